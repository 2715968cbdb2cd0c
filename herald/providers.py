"""
Herald stock providers, modifiers and the primitives module.

Providers
- BooleanProvider: yes/true/y/1 and no/false/n/0.
- IntegerProvider, ShortProvider, ByteProvider, FloatProvider, DoubleProvider:
  numbers, checked against a Range modifier when one is declared.
- StringProvider: one token, checked against a Validate modifier.
- TextProvider: every remaining token joined with single spaces.
- EnumProvider: enum members matched case-insensitively, ignoring anything that
  is not a letter or a digit ("very-large", "VeryLarge" and "very_large" all
  find VERY_LARGE).
- ArgumentsProvider: a cursor over the unread tokens (raw access for the body).
- NamespaceProvider: a namespace entry, or the namespace itself.

Modifiers
- Range(min, max): inclusive numeric bounds.
- Validate(regex): full-match pattern for strings.

Classifiers
- Text: resolves a str parameter to TextProvider.

PrimitivesModule binds bool, int, float, str, str+Text, CommandArgs and
Namespace.
"""
import re

from .arguments import CommandArgs, Namespace, copy_of
from .bindings import Classifier, Module, Provider
from .faults import ArgumentParseError, MissingArgumentError, ProvisionError
from .utils import RecordType, Unset, simplify


class Text(Classifier):
    """Capture the rest of the line as a single string."""


class Range(metaclass=RecordType):
    __introspectable__ = ("min", "max")

    def __init__(self, min=Unset, max=Unset):
        for name, bound in (("min", min), ("max", max)):
            if isinstance(bound, bool) or not isinstance(bound, int | float | Unset):
                raise TypeError(f"{type(self).__typename__} {name!r} must be a number")
        if min is not Unset and max is not Unset and min > max:
            raise ValueError(f"{type(self).__typename__} 'min' cannot be greater than 'max'")
        self._min = min
        self._max = max

    def check(self, value, /):
        if self._min is not Unset and value < self._min:
            raise ArgumentParseError(
                f"a valid value is greater than or equal to {self._min} (you entered {value})",
                token=str(value)
            )
        if self._max is not Unset and value > self._max:
            raise ArgumentParseError(
                f"a valid value is less than or equal to {self._max} (you entered {value})",
                token=str(value)
            )


class Validate(metaclass=RecordType):
    __introspectable__ = ("regex",)

    def __init__(self, regex):
        if not isinstance(regex, str):
            raise TypeError(f"{type(self).__typename__} 'regex' must be a string")
        try:
            self._pattern = re.compile(regex)
        except re.error as error:
            raise ValueError(f"{type(self).__typename__} 'regex' is not a valid pattern: {error}") from None
        self._regex = regex

    def check(self, value, /):
        if not self._pattern.fullmatch(value):
            raise ArgumentParseError(
                f"the given text doesn't match the right format (technically speaking, the 'format' is {self._regex})",
                token=value
            )


def _check(value, modifiers, kind):
    for modifier in modifiers:
        if isinstance(modifier, kind):
            modifier.check(value)
    return value


class BooleanProvider(Provider):
    def get(self, arguments, modifiers=()):
        return arguments.next_boolean()


class NumberProvider(Provider):
    """
    Base of the numeric providers: read with _read(), then apply Range.
    """

    def _read(self, arguments):
        raise NotImplementedError

    def get(self, arguments, modifiers=()):
        return _check(self._read(arguments), modifiers, Range)


class IntegerProvider(NumberProvider):
    def _read(self, arguments):
        return arguments.next_int()


class ShortProvider(NumberProvider):
    def _read(self, arguments):
        return arguments.next_short()


class ByteProvider(NumberProvider):
    def _read(self, arguments):
        return arguments.next_byte()


class FloatProvider(NumberProvider):
    def _read(self, arguments):
        return arguments.next_float()


class DoubleProvider(NumberProvider):
    def _read(self, arguments):
        return arguments.next_double()


class StringProvider(Provider):
    def get(self, arguments, modifiers=()):
        return _check(arguments.next(), modifiers, Validate)


class TextProvider(StringProvider):
    consumes = -1

    def get(self, arguments, modifiers=()):
        parts = []
        while arguments.has_next():
            parts.append(arguments.next())
        if not parts:
            raise MissingArgumentError()
        return _check(" ".join(parts), modifiers, Validate)


class EnumProvider(Provider):
    def __init__(self, enum, /):
        self._enum = enum
        self._lookup = {simplify(member.name): member for member in enum}

    def get(self, arguments, modifiers=()):
        text = arguments.next()
        try:
            return self._lookup[simplify(text)]
        except KeyError:
            raise ArgumentParseError(f"no matching value found in the '{self._enum.__name__}' list", token=text) from None

    def suggest(self, prefix, namespace=Unset, modifiers=()):
        prefix = simplify(prefix)
        return [member.name.lower() for key, member in self._lookup.items() if key.startswith(prefix)]

    def __repr__(self):
        return f"enum-provider({self._enum.__name__})"


class ArgumentsProvider(Provider):
    """
    Hand the body a fresh cursor over the tokens not read yet.

    The shared cursor is drained, so commands reading their arguments by hand
    (bounded by min/max) do not trip the unused-argument check.
    """
    provided = True
    consumes = 0

    def get(self, arguments, modifiers=()):
        remaining = []
        while arguments.has_next():
            remaining.append(arguments.next())
        return copy_of(remaining, arguments.flags, arguments.namespace)


class NamespaceProvider(Provider):
    """
    Provide namespace[key]; with no key, the namespace itself.
    """
    provided = True
    consumes = 0

    def __init__(self, key=Unset, /):
        self._key = key

    def get(self, arguments, modifiers=()):
        if self._key is Unset:
            return arguments.namespace
        try:
            return arguments.namespace[self._key]
        except KeyError:
            raise ProvisionError(f"{self._key!r} was expected in the namespace but it is missing") from None

    def __repr__(self):
        return f"namespace-provider({self._key!r})"


class PrimitivesModule(Module):
    def configure(self):
        self.bind(bool).to_provider(BooleanProvider())
        self.bind(int).to_provider(IntegerProvider())
        self.bind(float).to_provider(DoubleProvider())
        self.bind(str).to_provider(StringProvider())
        self.bind(str).annotated_with(Text).to_provider(TextProvider())
        self.bind(CommandArgs).to_provider(ArgumentsProvider())
        self.bind(Namespace).to_provider(NamespaceProvider())


__all__ = (
    # Classifiers
    "Text",

    # Modifiers
    "Range",
    "Validate",

    # Providers
    "BooleanProvider",
    "NumberProvider",
    "IntegerProvider",
    "ShortProvider",
    "ByteProvider",
    "FloatProvider",
    "DoubleProvider",
    "StringProvider",
    "TextProvider",
    "EnumProvider",
    "ArgumentsProvider",
    "NamespaceProvider",

    # Modules
    "PrimitivesModule",
)
