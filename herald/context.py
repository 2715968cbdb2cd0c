"""
Herald tokenizer: raw command text into positional tokens and flags.

Grammar
- The text is split on single spaces; empty segments are kept while splitting
  (so the original positions survive) and dropped afterwards.
- Tokens opening with ' or " are merged with the following tokens up to the
  first one closing with the same quote. An unterminated quote stays literal;
  an empty quoted string ("") disappears.
- A token matching -[a-zA-Z?]+ is a flag cluster. Each character is either a
  value flag (declared by the caller; it takes the next token as its value) or
  a boolean flag. A lone "--" ends flag scanning: every later token is
  positional, verbatim.
- Everything else is a positional token.

The first element of the input is the command itself and never a token.

Suggestion context
- hanging-value: the text ends with a space (or a boolean flag), the next
  positional value has not been started yet.
- last-value: the last positional token is being typed.
- flag: the value of a value flag is being typed (or is still missing when
  hanging flags are allowed).
"""
import re
from collections.abc import Iterable, Sequence
from types import MappingProxyType
from typing import NamedTuple

from .arguments import Namespace
from .faults import DuplicatedFlagError, MissingFlagValueError
from .utils import RecordType, Unset, coalesce

_FLAG = re.compile(r"-[a-zA-Z?]+")


def split(text, /):
    """
    Split on single spaces, keeping empty segments.

    >>> split("a  b ")
    ['a', '', 'b', '']
    """
    if not isinstance(text, str):
        raise TypeError("split() argument must be a string")
    return text.split(" ")


class SuggestionContext(NamedTuple):
    kind: str
    flag: str | None = None

    @classmethod
    def hanging(cls):
        return cls("hanging-value")

    @classmethod
    def last(cls):
        return cls("last-value")

    @classmethod
    def for_flag(cls, flag, /):
        return cls("flag", flag)

    @property
    def is_hanging_value(self):
        return self.kind == "hanging-value"

    @property
    def is_last_value(self):
        return self.kind == "last-value"

    @property
    def is_flag(self):
        return self.kind == "flag"


def _merge_quotes(args):
    """
    Drop empty segments and merge quoted runs.

    Returns (tokens, indices, hanging) where indices[i] is the position in args
    where tokens[i] starts and hanging tells whether the last segment was empty.
    """
    tokens, indices = [], []
    hanging = False
    index = 1
    while index < len(args):
        hanging = False
        token = args[index]
        if not token:
            hanging = True
            index += 1
            continue
        start = index
        if (quote := token[0]) in "'\"":
            parts = []
            for end in range(index, len(args)):
                piece = args[end]
                if len(piece) > 1 and piece[-1] == quote:
                    parts.append(piece[1 if end == index else 0:-1])
                    break
                parts.append(piece[1:] if end == index else piece)
            else:
                end = len(args)
            if end < len(args):
                token = " ".join(parts)
                index = end
            if not token:
                index += 1
                continue
        tokens.append(token)
        indices.append(start)
        index += 1
    return tokens, indices, hanging


class CommandContext(metaclass=RecordType):
    """
    Tokenized command line.

    Build it from the full text (the first segment being the command name), or
    from the arguments alone with CommandContext.of(), which uses "_" as the
    command name.

    Parameters
    - args: str | Sequence[str]
    - value_flags: characters whose flags take a value.
    - hanging: allow a trailing value flag without a value (used for
      completion); otherwise that is a MissingFlagValueError.
    - namespace: the call-scoped Namespace (a fresh one when Unset).

    Raises
    - DuplicatedFlagError: a value flag was given twice.
    - MissingFlagValueError: a value flag has no value and hanging is False.
    """

    __introspectable__ = (
        "command",
        "arguments",
        "flags",
        "value_flags",
    )

    def __init__(self, args, /, value_flags=(), *, hanging=False, namespace=Unset):
        if isinstance(args, str):
            args = split(args)
        elif not isinstance(args, Sequence) or not all(isinstance(arg, str) for arg in args):
            raise TypeError(f"{type(self).__typename__} arguments must be a string or a sequence of strings")
        if not args:
            raise ValueError(f"{type(self).__typename__} arguments must include the command")
        if not isinstance(value_flags, Iterable):
            raise TypeError(f"{type(self).__typename__} 'value_flags' must be iterable")
        expected = frozenset(value_flags)

        self._original = tuple(args)
        self._command = args[0]
        self._namespace = coalesce(namespace, None)
        if self._namespace is None:
            self._namespace = Namespace()

        tokens, indices, is_hanging = _merge_quotes(self._original)
        suggestion = SuggestionContext.hanging()

        arguments, positions = [], []
        value_flags, boolean_flags = {}, []
        cursor = 0
        while cursor < len(tokens):
            token = tokens[cursor]
            cursor += 1
            suggestion = SuggestionContext.hanging()

            if token == "--":
                while cursor < len(tokens):
                    arguments.append(tokens[cursor])
                    positions.append(indices[cursor])
                    cursor += 1
                break

            if not _FLAG.fullmatch(token):
                if not is_hanging:
                    suggestion = SuggestionContext.last()
                arguments.append(token)
                positions.append(indices[cursor - 1])
                continue

            for flag in token[1:]:
                if flag not in expected:
                    if flag not in boolean_flags:
                        boolean_flags.append(flag)
                    continue
                if flag in value_flags:
                    raise DuplicatedFlagError(f"value flag '{flag}' already given", flag=flag)
                if cursor >= len(tokens):
                    if hanging:
                        suggestion = SuggestionContext.for_flag(flag)
                        break
                    raise MissingFlagValueError(f"no value specified for the '-{flag}' flag", flag=flag)
                value_flags[flag] = tokens[cursor]
                cursor += 1
                if not is_hanging:
                    suggestion = SuggestionContext.for_flag(flag)

        self._arguments = tuple(arguments)
        self._positions = tuple(positions)
        self._flags = frozenset(boolean_flags)
        self._value_flags = MappingProxyType(value_flags)
        self._flags_map = MappingProxyType(value_flags | {flag: "true" for flag in boolean_flags if flag not in value_flags})
        self._suggestion_context = suggestion

    @classmethod
    def of(cls, arguments, /, value_flags=(), *, hanging=False, namespace=Unset):
        """
        Tokenize arguments alone; the command name becomes "_".
        """
        if isinstance(arguments, str):
            arguments = split(arguments)
        return cls(["_", *arguments], value_flags, hanging=hanging, namespace=namespace)

    @property
    def namespace(self):
        return self._namespace

    @property
    def suggestion_context(self):
        return self._suggestion_context

    @property
    def flags_map(self):
        """Every flag; boolean flags map to "true"."""
        return self._flags_map

    @property
    def original(self):
        return self._original

    def __len__(self):
        return len(self._arguments)

    def matches(self, command, /):
        return self._command.lower() == command.lower()

    def get_string(self, index, default=Unset, /):
        if index < len(self._arguments) or default is Unset:
            return self._arguments[index]
        return default

    def get_range(self, start, end, /):
        """Positional tokens start..end (inclusive) joined by spaces."""
        return " ".join(self._arguments[start:end + 1])

    def get_remaining_string(self, start, /):
        return self.get_range(start, len(self._arguments) - 1)

    def get_joined_strings(self, index, /):
        """
        The original text from the index-th positional token to the end.

        Quotes, doubled spaces and flags are kept as typed.
        """
        return " ".join(self._original[self._positions[index]:])

    def get_integer(self, index, default=Unset, /):
        if index >= len(self._arguments) and default is not Unset:
            return default
        return int(self._arguments[index])

    def get_double(self, index, default=Unset, /):
        if index >= len(self._arguments) and default is not Unset:
            return default
        return float(self._arguments[index])

    def get_slice(self, index, /):
        return list(self._original[index:])

    def get_padded_slice(self, index, padding, /):
        return [None] * padding + self.get_slice(index)

    def get_parsed_slice(self, index, /):
        return list(self._arguments[index:])

    def get_parsed_padded_slice(self, index, padding, /):
        return [None] * padding + self.get_parsed_slice(index)

    def has_flag(self, flag, /):
        return flag in self._flags or flag in self._value_flags

    def get_flag(self, flag, default=None, /):
        return self._value_flags.get(flag, default)

    def get_flag_integer(self, flag, default=Unset, /):
        if flag not in self._value_flags and default is not Unset:
            return default
        return int(self._value_flags[flag])

    def get_flag_double(self, flag, default=Unset, /):
        if flag not in self._value_flags and default is not Unset:
            return default
        return float(self._value_flags[flag])


__all__ = (
    "split",
    "SuggestionContext",
    "CommandContext",
)
