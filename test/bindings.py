# python
"""
Binding registry behavioral tests.

Scope
- Validate Key value semantics (equality, hashing, ordering) and lookup matching.
- Validate the injector: classified bindings preferred, lookups idempotent, duplicates rejected.
- Validate modules (fluent binding, single configuration) and constant providers.

Conventions
- Test method names follow CamelCase per project convention.
"""

import unittest
from unittest import TestCase

from herald import (
    Classifier,
    ConstantProvider,
    Injector,
    Key,
    Module,
    PrimitivesModule,
    StringProvider,
    Text,
    TextProvider,
    create_injector,
    of,
)


class Sender(Classifier):
    pass


class Shouted(Classifier):
    pass


class TestKey(TestCase):
    def testEquality(self):
        self.assertEqual(Key(str), Key(str))
        self.assertEqual(Key(str, Text), Key(str, Text))
        self.assertNotEqual(Key(str), Key(str, Text))
        self.assertNotEqual(Key(str, Text), Key(str, Sender))
        self.assertNotEqual(Key(str), Key(int))

    def testHashFollowsEquality(self):
        self.assertEqual(len({Key(str), Key(str), Key(str, Text)}), 2)

    def testMultipleClassifiersInOneSet(self):
        keys = {Key(str), Key(str, Sender)}
        keys.add(Key(str, Text))
        self.assertEqual(len(keys), 3)
        self.assertIn(Key(str, Sender), keys)

    def testClassifiedKeysSortFirst(self):
        ordered = sorted([Key(str), Key(str, Text), Key(int), Key(int, Sender)])
        self.assertEqual([key.classifier is not None for key in ordered], [True, True, False, False])

    def testOrderIsTotal(self):
        keys = [Key(str), Key(str, Text), Key(str, Sender), Key(int), Key("sender")]
        ordered = sorted(keys)
        self.assertEqual(sorted(reversed(keys)), ordered)
        self.assertEqual(len(set(ordered)), len(keys))

    def testUnclassifiedMatchesAnyClassifier(self):
        self.assertTrue(Key(str).matches(Key(str)))
        self.assertTrue(Key(str).matches(Key(str, Text)))
        self.assertFalse(Key(str).matches(Key(int)))

    def testClassifiedMatchesOnlyItsClassifier(self):
        self.assertTrue(Key(str, Text).matches(Key(str, Text)))
        self.assertFalse(Key(str, Text).matches(Key(str)))
        self.assertFalse(Key(str, Text).matches(Key(str, Sender)))

    def testClassifierMustBeClassifierSubclass(self):
        with self.assertRaises(TypeError):
            Key(str, int)

    def testTypeMustBeHashable(self):
        with self.assertRaises(TypeError):
            Key([])

    def testClassifiersCannotBeInstantiated(self):
        with self.assertRaises(TypeError):
            Text()


class TestInjector(TestCase):
    def setUp(self):
        self.injector = create_injector(PrimitivesModule())

    def testClassifiedBindingWins(self):
        self.assertIsInstance(self.injector.get_provider(Key(str, Text)), TextProvider)
        self.assertIsInstance(self.injector.get_provider(Key(str)), StringProvider)
        self.assertNotIsInstance(self.injector.get_provider(Key(str)), TextProvider)

    def testFallsBackToUnclassifiedBinding(self):
        self.assertIsInstance(self.injector.get_provider(Key(str, Shouted)), StringProvider)

    def testLookupIsIdempotent(self):
        for key in (Key(str), Key(str, Text), Key(int), Key(str, Shouted)):
            with self.subTest(key=key):
                self.assertIs(self.injector.get_binding(key), self.injector.get_binding(key))

    def testRegistrationOrderDoesNotMatter(self):
        injector = Injector()
        injector.bind(str).to_provider(StringProvider())
        injector.bind(str).annotated_with(Text).to_provider(TextProvider())
        reversed_injector = Injector()
        reversed_injector.bind(str).annotated_with(Text).to_provider(TextProvider())
        reversed_injector.bind(str).to_provider(StringProvider())
        for current in (injector, reversed_injector):
            self.assertIsInstance(current.get_provider(Key(str, Text)), TextProvider)

    def testMissingBinding(self):
        self.assertIsNone(self.injector.get_binding(Key(complex)))

    def testDuplicateKeyRejected(self):
        with self.assertRaises(ValueError):
            self.injector.bind(str).to_provider(StringProvider())

    def testToInstance(self):
        self.injector.bind("answer").to_instance(42)
        provider = self.injector.get_provider(Key("answer"))
        self.assertIsInstance(provider, ConstantProvider)
        self.assertTrue(provider.provided)
        self.assertEqual(provider.consumes, 0)
        self.assertEqual(provider.get(of()), 42)

    def testToProviderRequiresProvider(self):
        with self.assertRaises(TypeError):
            self.injector.bind(float).to_provider(object())


class TestModule(TestCase):
    def testConfiguredOnce(self):
        class Answers(Module):
            def configure(self):
                self.bind("answer").to_instance(42)

        module = Answers()
        create_injector(module)
        with self.assertRaises(RuntimeError):
            create_injector(module)

    def testBindOutsideConfigure(self):
        class Empty(Module):
            def configure(self):
                pass

        with self.assertRaises(RuntimeError):
            Empty().bind(str)

    def testInstallRequiresModule(self):
        with self.assertRaises(TypeError):
            Injector().install(object())


if __name__ == "__main__":
    unittest.main()
