# python
"""
Tests for the shared utilities.

This module verifies:
- The Unset sentinel: singleton identity, falsy semantics, copying, pickling and finality.
- coalesce() replacing only Unset.
- rename() in both call forms.
- simplify() lenient names.
- RecordType records: type names, mirrored (copied) fields and generated representations.
"""
import copy
import pickle
import unittest
from threading import Thread, Lock
from unittest import TestCase

from rich.console import Console

from herald.utils import RecordType, Unset, UnsetType, coalesce, rename, simplify


class TestUnset(TestCase):
    """
    Unset is a process-wide, falsy, final sentinel distinct from None.
    """

    def testSingleton(self) -> None:
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsy(self) -> None:
        self.assertFalse(bool(Unset))

    def testNotEqualToNoneOrFalse(self) -> None:
        self.assertNotEqual(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")
        self.assertEqual(str(Unset), "Unset")

    def testRichConsolePrint(self) -> None:
        console = Console(color_system=None, force_terminal=False)
        with console.capture() as capture:
            console.print(Unset)
        self.assertEqual(capture.get().strip(), "Unset")

    def testCopyDeepcopyPreserveSingleton(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testPickleRoundTrip(self) -> None:
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testThreadSafetySingleton(self) -> None:
        """
        Concurrent constructions return the same instance.
        """
        results: list[UnsetType] = []
        lock: Lock = Lock()

        def worker():
            instance = UnsetType()
            with lock:
                results.append(instance)

        threads: list[Thread] = [Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertTrue(all(result is Unset for result in results))

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            class _(UnsetType):
                pass

    def testUnion(self) -> None:
        """
        Unset takes part in isinstance() unions as its own type.
        """
        self.assertIsInstance(Unset, int | Unset)
        self.assertIsInstance(3, Unset | int)
        self.assertNotIsInstance("3", int | Unset)


class TestCoalesce(TestCase):
    def testReplacesOnlyUnset(self) -> None:
        self.assertEqual(coalesce(Unset, 3), 3)
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, 3))
        self.assertEqual(coalesce(0, 3), 0)
        self.assertEqual(coalesce("", 3), "")


class TestRename(TestCase):
    def testDirect(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecorator(self) -> None:
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")

    def testArity(self) -> None:
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(print, "a", "b")

    def testNotCallable(self) -> None:
        with self.assertRaises(TypeError):
            rename(3, "renamed")


class TestSimplify(TestCase):
    def testDropsNonAlphanumerics(self) -> None:
        self.assertEqual(simplify("Very_Large"), "verylarge")
        self.assertEqual(simplify("very-large 2"), "verylarge2")
        self.assertEqual(simplify("__"), "")


class Sample(metaclass=RecordType):
    __introspectable__ = ("name", "tags")

    def __init__(self, name, tags):
        self._name = name
        self._tags = tags


class Hidden(metaclass=RecordType):
    __introspectable__ = ("name", "secret")
    __displayable__ = ("name",)

    def __init__(self, name, secret):
        self._name = name
        self._secret = secret


class TestRecordType(TestCase):
    def testTypeName(self) -> None:
        self.assertEqual(Sample.__typename__, "sample")
        self.assertEqual(Hidden.__typename__, "hidden")

        class OptionType(metaclass=RecordType):
            pass

        self.assertEqual(OptionType.__typename__, "option-type")

    def testMirroredFieldsAreCopies(self) -> None:
        sample = Sample("alpha", ["x", ("y", "z")])
        tags = sample.tags
        tags.append("w")
        self.assertEqual(sample.tags, ["x", ["y", "z"]])

    def testMirroredFieldsAreReadOnly(self) -> None:
        with self.assertRaises(AttributeError):
            Sample("alpha", []).name = "bravo"

    def testRepr(self) -> None:
        self.assertEqual(repr(Sample("alpha", ())), "sample(name='alpha', tags=[])")

    def testDisplayableDefaultsToUnset(self) -> None:
        self.assertIs(RecordType.__displayable__, Unset)
        self.assertIs(Sample.__displayable__, Unset)

    def testDisplayable(self) -> None:
        hidden = Hidden("alpha", "password")
        self.assertEqual(repr(hidden), "hidden(name='alpha')")
        self.assertEqual(hidden.secret, "password")


if __name__ == "__main__":
    unittest.main()
