"""
Herald faults and their rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing fault, grouped by
  the layer that raises them (tokenizer, arguments, usage, access, invocation).
- CommandException: base type carrying a message plus frozen options, able to
  render itself with rich and to be re-shaped through copy.replace().
- The fault taxonomy used across herald (argument faults, invalid usage,
  authorization, invocation) and the two non-user-facing errors:
  ProvisionError (a provided value could not be produced) and DeclarationError
  (a command was declared wrongly; never caught by herald).
- trigger(): central entry point to surface a fault (raise or print).

Rendering
- Lowercased, one-line titles; the message body; a single hint line.
- Host overrides live in __main__: __prog__ (program name), __styles__ (rich
  styles by role) and __codes__ (labels for fault codes).
- Options understood while rendering: shell, fancy, colorful, ratio, traceback.

Propagation
- Herald's layers only raise. Printing happens when the outermost caller
  triggers a fault with shell=True.
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text
from rich.traceback import Traceback

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - generic (210xx): COMMAND_FAILED
    - tokenizer (211xx): DUPLICATED_FLAG, MISSING_FLAG_VALUE
    - arguments (212xx): MISSING_ARGUMENT, MALFORMED_ARGUMENT, UNUSED_ARGUMENT
    - usage (213xx): INVALID_USAGE
    - access (214xx): UNAUTHORIZED
    - invocation (215xx): INVOCATION_FAILED, EXECUTION_INTERRUPTED

    normalize() lets the host remap codes to its own labels.
    """
    # --- generic faults (210xx) ---
    COMMAND_FAILED              = 21001

    # --- tokenizer faults (211xx) ---
    DUPLICATED_FLAG             = 21101
    MISSING_FLAG_VALUE          = 21102

    # --- argument faults (212xx) ---
    MISSING_ARGUMENT            = 21201
    MALFORMED_ARGUMENT          = 21202
    UNUSED_ARGUMENT             = 21203

    # --- usage faults (213xx) ---
    INVALID_USAGE               = 21301

    # --- access faults (214xx) ---
    UNAUTHORIZED                = 21401

    # --- invocation faults (215xx) ---
    INVOCATION_FAILED           = 21501
    EXECUTION_INTERRUPTED       = 21502

    def normalize(self):
        """
        return the host label for this code.

        __main__ may define a __codes__ mapping from FaultCode to label; the
        numeric value is used otherwise.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base of every user-facing herald fault.

    The message is optional (Unset renders the title instead). Options are
    free-form context frozen into a read-only mapping; subclasses expose the
    ones they care about as properties.
    """
    code = FaultCode.COMMAND_FAILED
    title = "command failed"
    hint = Unset

    def __init__(self, message=Unset, /, **options):
        if not isinstance(message, str | Unset):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)
        self._stack = []

    def __str__(self):
        return coalesce(self.message, "")

    def prepend_stack(self, name, /):
        """
        Record a parent command name (innermost first).
        """
        if not isinstance(name, str):
            raise TypeError("prepend_stack() argument must be a string")
        self._stack.append(name)

    def command_used(self, prefix="", suffix=None, /):
        """
        Rebuild the called command from the recorded stack.

        >>> fault.prepend_stack("sphere"); fault.prepend_stack("br")
        >>> fault.command_used("/")
        '/br sphere'
        """
        used = prefix + " ".join(reversed(self._stack))
        if suffix is not None:
            used = f"{used} {suffix}" if used else suffix
        return used.strip()

    def _hint(self):
        return coalesce(self.options.get("hint", Unset), coalesce(type(self).hint, ""))

    def _details(self, text, styler):
        return []

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
            "help": "#A0A0B0",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog", "herald")), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.options.get("code", type(self).code).normalize(), styler("code")),
            " | ",
            text(self.options.get("title", type(self).title).title(), styler("error-title")),
            " ]"
        )
        message = text(coalesce(self.message, self.options.get("title", type(self).title)), styler("error-message"))
        parts = [message, *self._details(text, styler)]
        if hint := self._hint():
            parts.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            try:
                width = int((console.width - 4) * self.options["ratio"])
            except KeyError:
                width = None
            return Panel(Group(*parts), title=header, title_align="left", width=width)

        return Group(header, *parts)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        fault = type(self)(self.message, **{**self.options, **overrides})
        fault._stack = list(self._stack)
        fault.__cause__ = self.__cause__
        return fault


class ArgumentError(CommandException):
    """
    A fault located in the user's arguments.

    The 'parameter' option names the parameter descriptor involved, when known.
    """
    code = FaultCode.MALFORMED_ARGUMENT
    title = "bad argument"

    @property
    def parameter(self):
        return self.options.get("parameter")


class MissingArgumentError(ArgumentError):
    code = FaultCode.MISSING_ARGUMENT
    title = "missing argument"


class ArgumentParseError(ArgumentError):
    code = FaultCode.MALFORMED_ARGUMENT
    title = "malformed argument"


class UnusedArgumentError(ArgumentError):
    code = FaultCode.UNUSED_ARGUMENT
    title = "unused arguments"

    @property
    def unconsumed(self):
        return self.options.get("unconsumed", "")


class DuplicatedFlagError(ArgumentError):
    code = FaultCode.DUPLICATED_FLAG
    title = "duplicated flag"


class MissingFlagValueError(ArgumentError):
    code = FaultCode.MISSING_FLAG_VALUE
    title = "missing flag value"


class InvalidUsageError(CommandException):
    """
    The user called a command the wrong way.

    Options
    - command: the callable that rejected the input (its description renders
      the usage line and, with full_help, the help text).
    - aliases: the alias trail that led to the command.
    - full_help: whether the whole help text should be shown.
    """
    code = FaultCode.INVALID_USAGE
    title = "invalid usage"

    @property
    def command(self):
        return self.options.get("command")

    @property
    def aliases(self):
        return tuple(self.options.get("aliases", ()))

    @property
    def full_help(self):
        return bool(self.options.get("full_help", False))

    def _hint(self):
        if "hint" in self.options or self.command is None:
            return super()._hint()
        usage = " ".join(filter(None, (*self.aliases, self.command.description.usage)))
        return f"usage: {usage}" if usage else ""

    def _details(self, text, styler):
        if not self.full_help or self.command is None:
            return []
        description = self.command.description
        return [text(part, styler("help")) for part in (description.short, description.help) if part]


class AuthorizationError(CommandException):
    code = FaultCode.UNAUTHORIZED
    title = "permission denied"
    hint = "you are not allowed to use this command"


class InvocationError(CommandException):
    """
    The command body (or the executor running it) failed unexpectedly.

    The original error is kept as __cause__; with the 'traceback' option it is
    rendered as a rich traceback.
    """
    code = FaultCode.INVOCATION_FAILED
    title = "invocation failed"

    def _details(self, text, styler):
        if not self.options.get("traceback", False) or (cause := self.__cause__) is None:
            return []
        return [Traceback.from_exception(type(cause), cause, cause.__traceback__)]


class ExecutionInterruptedError(InvocationError):
    code = FaultCode.EXECUTION_INTERRUPTED
    title = "execution interrupted"


class ProvisionError(Exception):
    """A value that should have been provided (not parsed) is unavailable."""


class DeclarationError(ValueError):
    """A command or parameter was declared wrongly."""


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    - fault must provide __trigger__ and __replace__ (see CommandException).
    - options are merged through copy.replace() before triggering.
    - shell=True prints the fault with rich; otherwise it is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "CommandException",
    "ArgumentError",
    "MissingArgumentError",
    "ArgumentParseError",
    "UnusedArgumentError",
    "DuplicatedFlagError",
    "MissingFlagValueError",
    "InvalidUsageError",
    "AuthorizationError",
    "InvocationError",
    "ExecutionInterruptedError",
    "ProvisionError",
    "DeclarationError",
    "trigger",
)
