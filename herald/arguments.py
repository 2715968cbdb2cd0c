"""
Herald argument cursors and the call namespace.

Overview
- CommandArgs: forward-only cursor over positional tokens. It also exposes the
  flag map and the Namespace so that providers can reach them.
  • next()/peek() raise MissingArgumentError once the tokens run out.
  • typed readers (next_int, next_short, next_byte, next_float, next_double,
    next_boolean) raise ArgumentParseError carrying the offending text.
- StringListArgs: cursor over a private copy of a token list. Empty tokens are
  kept, so joining what is left reproduces the text verbatim.
- MutableStringListArgs: StringListArgs that can splice tokens in at the
  current position.
- ContextArgs: read-only view over a tokenized CommandContext.
- Namespace: call-scoped side channel (keys are types or any hashable).

Factories
- of(*tokens), copy_of(tokens, flags, namespace), view_of(context).
"""
import re
from abc import ABC, abstractmethod
from collections import UserDict
from types import MappingProxyType

from .faults import MissingArgumentError, ArgumentParseError
from .utils import Unset, coalesce

_INTEGER = re.compile(r"[+-]?\d+")

_TRUTHY = frozenset(("yes", "true", "y", "1"))
_FALSY = frozenset(("no", "false", "n", "0"))


class Namespace(UserDict):
    """
    Mutable mapping threaded through one command call.

    It carries caller context (current user, session, permission subject) to
    providers and authorizers without touching the token stream.
    """

    def put(self, key, value, /):
        self.data[key] = value

    def __repr__(self):
        return f"namespace({self.data!r})"


class CommandArgs(ABC):
    """
    Forward-only cursor over positional tokens.
    """

    @abstractmethod
    def has_next(self): ...

    @abstractmethod
    def next(self):
        """Return the current token and advance; MissingArgumentError when exhausted."""

    @abstractmethod
    def peek(self):
        """Return the current token without advancing; MissingArgumentError when exhausted."""

    @abstractmethod
    def position(self): ...

    @abstractmethod
    def size(self): ...

    @abstractmethod
    def mark_consumed(self):
        """Jump to the end, as if every remaining token was read."""

    @property
    @abstractmethod
    def flags(self): ...

    @property
    @abstractmethod
    def namespace(self): ...

    def _integer(self, low=None, high=None):
        text = self.next()
        if not _INTEGER.fullmatch(text):
            raise ArgumentParseError(f"expected a number, got '{text}'", token=text)
        try:
            value = int(text)
        except ValueError:
            raise ArgumentParseError(f"expected a number, got '{text}'", token=text) from None
        if (low is not None and value < low) or (high is not None and value > high):
            raise ArgumentParseError(f"expected a number, got '{text}'", token=text)
        return value

    def _real(self):
        text = self.next()
        try:
            return float(text)
        except ValueError:
            raise ArgumentParseError(f"expected a number, got '{text}'", token=text) from None

    def next_int(self):
        return self._integer()

    def next_short(self):
        return self._integer(-32768, 32767)

    def next_byte(self):
        return self._integer(-128, 127)

    def next_double(self):
        return self._real()

    def next_float(self):
        return self._real()

    def next_boolean(self):
        """
        Read yes/true/y/1 as True and no/false/n/0 as False (any case).
        """
        text = self.next()
        if (lowered := text.lower()) in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
        raise ArgumentParseError(f"expected a boolean (yes/no), got '{text}'", token=text)


class StringListArgs(CommandArgs):
    def __init__(self, arguments, flags=Unset, namespace=Unset):
        if isinstance(arguments, str):
            raise TypeError("string-list-args arguments must be a sequence of strings, not a string")
        self._arguments = list(arguments)
        if not all(isinstance(argument, str) for argument in self._arguments):
            raise TypeError("string-list-args arguments must be strings")
        self._flags = MappingProxyType(dict(coalesce(flags, {})))
        self._namespace = coalesce(namespace, None)
        if self._namespace is None:
            self._namespace = Namespace()
        self._position = 0

    def has_next(self):
        return self._position < len(self._arguments)

    def next(self):
        if self._position >= len(self._arguments):
            raise MissingArgumentError()
        self._position += 1
        return self._arguments[self._position - 1]

    def peek(self):
        if self._position >= len(self._arguments):
            raise MissingArgumentError()
        return self._arguments[self._position]

    def position(self):
        return self._position

    def size(self):
        return len(self._arguments)

    def mark_consumed(self):
        self._position = len(self._arguments)

    @property
    def flags(self):
        return self._flags

    @property
    def namespace(self):
        return self._namespace

    def __repr__(self):
        return f"string-list-args(arguments={self._arguments!r}, position={self._position!r})"


class MutableStringListArgs(StringListArgs):
    def insert(self, argument, /):
        """Insert a token at the current position; it is read next."""
        if not isinstance(argument, str):
            raise TypeError("insert() argument must be a string")
        self._arguments.insert(self._position, argument)


class ContextArgs(CommandArgs):
    def __init__(self, context):
        self._context = context
        self._position = 0

    @property
    def context(self):
        return self._context

    def has_next(self):
        return self._position < len(self._context)

    def next(self):
        if self._position >= len(self._context):
            raise MissingArgumentError()
        self._position += 1
        return self._context.get_string(self._position - 1)

    def peek(self):
        if self._position >= len(self._context):
            raise MissingArgumentError()
        return self._context.get_string(self._position)

    def position(self):
        return self._position

    def size(self):
        return len(self._context)

    def mark_consumed(self):
        self._position = len(self._context)

    @property
    def flags(self):
        return self._context.flags_map

    @property
    def namespace(self):
        return self._context.namespace

    def __repr__(self):
        return f"context-args(context={self._context!r}, position={self._position!r})"


def of(*arguments):
    """Cursor over the given tokens, no flags, fresh namespace."""
    return StringListArgs(arguments)


def copy_of(arguments, flags=Unset, namespace=Unset, /):
    return MutableStringListArgs(arguments, flags, namespace)


def view_of(context, /):
    return ContextArgs(context)


__all__ = (
    "Namespace",
    "CommandArgs",
    "StringListArgs",
    "MutableStringListArgs",
    "ContextArgs",
    "of",
    "copy_of",
    "view_of",
)
