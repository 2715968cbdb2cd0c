"""
Herald invocation layer: declare commands, build them into callables, run them.

What this module provides
- command(...): declare a command on a function or method (aliases, short
  description, help, usage override, required permissions, parameters, legacy
  flag/min/max options). The declaration stays callable and binds to instances
  like a method.
- ParametricBuilder: turns declarations into ParametricCallable objects using
  an injector, plus the pluggable parts shared by every command:
  • authorizer (NullAuthorizer), executor (SameThreadExecutor),
  • completer (None: suggestions come from the parameters' providers),
  • invoke listeners (hooks around every call),
  • exception converters (map foreign errors to herald faults).
- ParametricCallable: one leaf command. Its call() runs the pipeline
    permission → tokenize → -? → pre_process → parse → pre_invoke
    → executor → post_invoke
  and maps every failure onto the fault taxonomy.
- invoke(callable, prompt): outer runner, the only place faults get printed.

Parameters of a command
- Explicit: command(params=[param(Body), param(float), param(bool, Switch("f"))]).
- From the signature: each parameter annotated with a type, or with
  typing.Annotated[type, *tags] for classifiers, Optional, Switch and
  modifiers.

Quick start
    @command("settemp", desc="Set the temperature of a body")
    def settemp(body: Body, temperature: float, fahrenheit: Annotated[bool, Switch("f")]):
        ...

    builder = ParametricBuilder(create_injector(PrimitivesModule(), UniverseModule(universe)))
    invoke(builder.build(settemp), "mercury 167 -f", shell=True)
"""
import builtins
import copy
import functools
import inspect
import sys
import types
import typing
from abc import ABC, abstractmethod
from collections.abc import Iterable
from concurrent.futures import CancelledError, Future

from .arguments import CommandArgs, Namespace, view_of
from .context import CommandContext, split
from .faults import (
    ArgumentError,
    ArgumentParseError,
    AuthorizationError,
    CommandException,
    DeclarationError,
    ExecutionInterruptedError,
    InvalidUsageError,
    InvocationError,
    MissingArgumentError,
    ProvisionError,
    UnusedArgumentError,
    trigger,
)
from .parameters import Description, ParserBuilder, param
from .utils import RecordType, Unset, UnsetType, rename


class Command(metaclass=RecordType):
    """
    A declared command: the body plus everything needed to build it.

    Options
    - aliases: names it is registered under (the first is the primary one);
      defaults to the function name.
    - desc / help / usage: short description, long help (defaults to the
      docstring), usage override.
    - require: permissions, any of which grants access.
    - params: explicit parameter declarations (Unset reads the signature).
    - any_flags: accept flags no parameter declares.
    - flags: characters of flags read by hand, exempt from the unused check.
    - min / max: legacy bounds on the number of tokens (-1 is unbounded).
    """
    __introspectable__ = (
        "aliases",
        "desc",
        "help",
        "usage",
        "require",
        "params",
        "any_flags",
        "flags",
        "min",
        "max",
    )
    __displayable__ = ("aliases", "desc", "require")

    def __init__(
            self,
            callback,
            /,
            aliases=(),
            *,
            desc=None,
            help=None,
            usage=None,
            require=(),
            params=Unset,
            any_flags=False,
            flags="",
            min=0,
            max=-1
    ):
        if not callable(callback):
            raise TypeError(f"{type(self).__typename__} callback must be callable")
        if isinstance(aliases, str):
            aliases = (aliases,)
        aliases = tuple(aliases) or (getattr(callback, "__name__", ""),)
        if not all(isinstance(alias, str) and alias and " " not in alias for alias in aliases):
            raise ValueError(f"{type(self).__typename__} aliases must be non-empty strings without spaces")
        if isinstance(require, str):
            require = (require,)
        if not all(isinstance(permission, str) for permission in require):
            raise TypeError(f"{type(self).__typename__} 'require' must be strings")
        if not isinstance(flags, str):
            raise TypeError(f"{type(self).__typename__} 'flags' must be a string")
        if any(isinstance(bound, bool) or not isinstance(bound, int) for bound in (min, max)) or min < 0 or max < -1:
            raise ValueError(f"{type(self).__typename__} 'min' and 'max' must be integers (min >= 0, max >= -1)")

        self._callback = callback
        self._aliases = aliases
        self._desc = desc
        self._help = help if help is not None else inspect.getdoc(callback)
        self._usage = usage
        self._require = tuple(require)
        self._params = params if params is Unset else tuple(params)
        self._any_flags = bool(any_flags)
        self._flags = flags
        self._min = min
        self._max = max
        functools.update_wrapper(self, callback, updated=())

    @property
    def callback(self):
        return self._callback

    def declarations(self):
        """
        The parameter declarations, explicit or read from the signature.
        """
        if self._params is not Unset:
            return list(self._params)

        declarations = []
        for parameter in inspect.signature(self._callback, eval_str=True).parameters.values():
            if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                raise DeclarationError(f"command {self._aliases[0]!r} cannot declare *{parameter.name} parameters")
            if (annotation := parameter.annotation) is inspect.Parameter.empty:
                raise DeclarationError(f"parameter {parameter.name!r} of command {self._aliases[0]!r} has no type annotation")
            if typing.get_origin(annotation) is typing.Annotated:
                declarations.append(param(annotation.__origin__, *annotation.__metadata__))
            else:
                declarations.append(param(annotation))
        return declarations

    def __call__(self, *args, **kwargs):
        return self._callback(*args, **kwargs)

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return copy.replace(self, callback=types.MethodType(self._callback, instance))

    def __replace__(self, **changes):
        callback = changes.pop("callback", self._callback)
        fields = dict(
            aliases=self._aliases,
            desc=self._desc,
            help=self._help,
            usage=self._usage,
            require=self._require,
            params=self._params,
            any_flags=self._any_flags,
            flags=self._flags,
            min=self._min,
            max=self._max,
        )
        return type(self)(callback, **(fields | changes))


def command(*aliases, **options):
    """
    Declare a command, or return a decorator that will.

    - @command: aliases default to the function name.
    - @command("settemp", "st", desc=...): explicit aliases and options.
    """
    if len(aliases) == 1 and callable(aliases[0]) and not options:
        return Command(aliases[0])

    @rename("command")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")
        return Command(callback, aliases, **options)

    return wrapper


class Authorizer(ABC):
    @abstractmethod
    def test_permission(self, namespace, permission, /):
        """Tell whether the caller described by namespace holds permission."""


class NullAuthorizer(Authorizer):
    """Grants everything."""

    def test_permission(self, namespace, permission, /):
        return True


class Completer(ABC):
    @abstractmethod
    def suggest(self, arguments, namespace, /): ...


class NullCompleter(Completer):
    def suggest(self, arguments, namespace, /):
        return []


class CommandExecutor(ABC):
    """
    Runs a resolved command body; submit() returns a concurrent Future.
    """

    @abstractmethod
    def submit(self, task, arguments, /): ...


class SameThreadExecutor(CommandExecutor):
    def submit(self, task, arguments, /):
        future = Future()
        try:
            future.set_result(task())
        except Exception as error:
            future.set_exception(error)
        return future


class PoolExecutor(CommandExecutor):
    """
    Run bodies on a concurrent.futures executor (thread pool, process pool).

        with ThreadPoolExecutor(4) as pool:
            builder.executor = PoolExecutor(pool)
    """

    def __init__(self, executor, /):
        self._executor = executor

    def submit(self, task, arguments, /):
        return self._executor.submit(task)


class InvokeHandler:
    """
    Per-call hooks. Returning False from pre_process or pre_invoke stops the
    call quietly (the call still counts as handled).
    """

    def pre_process(self, command, parser, arguments, /):
        return True

    def pre_invoke(self, command, parser, values, arguments, /):
        return True

    def post_invoke(self, command, parser, values, arguments, /):
        pass


class InvokeListener(ABC):
    @abstractmethod
    def create_handler(self):
        """Return the InvokeHandler for one call."""

    def update_description(self, command, parser, description, /):
        return description


class LegacyCommandsHandler(InvokeListener, InvokeHandler):
    """
    Enforce the min/max token counts of a command declaration.
    """

    def create_handler(self):
        return self

    def pre_invoke(self, command, parser, values, arguments, /):
        if arguments.size() < command.min:
            raise MissingArgumentError()
        if command.max != -1 and arguments.size() > command.max:
            text = " ".join(arguments.context.get_parsed_slice(command.max))
            raise UnusedArgumentError(text, unconsumed=text)
        return True

    def update_description(self, command, parser, description, /):
        # A raw command shows no parameters at all, which would read as "takes nothing".
        if command.usage is None and (command.min > 0 or command.max > 0) and not parser.user_parameters:
            return copy.replace(description, usage="(unknown usage information)")
        return description


class ExceptionConverter(ABC):
    @abstractmethod
    def convert(self, error, /):
        """Raise a CommandException for error, or return to let it through."""


def exception_match(type, /):
    """
    Mark an ExceptionConverterHelper method as the converter of type (and
    its subclasses).
    """
    if not isinstance(type, builtins.type) or not issubclass(type, BaseException):
        raise TypeError("exception_match() argument must be an exception type")

    @rename("exception_match")
    def wrapper(function):
        function.__exception_match__ = type
        return function

    return wrapper


class ExceptionConverterHelper(ExceptionConverter):
    """
    Converter dispatching to its @exception_match methods, the one for the
    most specific matching type first.

        class FileErrors(ExceptionConverterHelper):
            @exception_match(FileNotFoundError)
            def missing(self, error):
                raise CommandException(f"no such file: {error.filename}")
    """
    __matchers__ = ()

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        matchers = [
            (name, member.__exception_match__) for name, member in inspect.getmembers(cls)
            if hasattr(member, "__exception_match__")
        ]
        cls.__matchers__ = tuple(sorted(matchers, key=lambda matcher: len(matcher[1].__mro__), reverse=True))

    def convert(self, error, /):
        for name, type in self.__matchers__:
            if isinstance(error, type):
                getattr(self, name)(error)
                return


class ParametricBuilder:
    """
    Build commands against one injector, sharing authorizer, executor,
    completer, listeners and converters.
    """

    def __init__(self, injector, /, *, lenient=False):
        self._injector = injector
        self._lenient = lenient
        self._authorizer = NullAuthorizer()
        self._executor = SameThreadExecutor()
        self._completer = None
        self._listeners = []
        self._converters = []

    @property
    def injector(self):
        return self._injector

    @property
    def authorizer(self):
        return self._authorizer

    @authorizer.setter
    def authorizer(self, authorizer):
        if not isinstance(authorizer, Authorizer):
            raise TypeError("authorizer must be an authorizer")
        self._authorizer = authorizer

    @property
    def executor(self):
        return self._executor

    @executor.setter
    def executor(self, executor):
        if not isinstance(executor, CommandExecutor):
            raise TypeError("executor must be a command executor")
        self._executor = executor

    @property
    def completer(self):
        return self._completer

    @completer.setter
    def completer(self, completer):
        if completer is not None and not isinstance(completer, Completer):
            raise TypeError("completer must be a completer or None")
        self._completer = completer

    @property
    def invoke_listeners(self):
        return tuple(self._listeners)

    @property
    def exception_converters(self):
        return tuple(self._converters)

    def add_invoke_listener(self, listener, /):
        if not isinstance(listener, InvokeListener):
            raise TypeError("add_invoke_listener() argument must be an invoke listener")
        self._listeners.append(listener)

    def add_exception_converter(self, converter, /):
        if not isinstance(converter, ExceptionConverter):
            raise TypeError("add_exception_converter() argument must be an exception converter")
        self._converters.append(converter)

    def build(self, command, /):
        if not isinstance(command, Command):
            raise TypeError("build() argument must be a command declaration")

        builder = ParserBuilder(self._injector, lenient=self._lenient)
        for declaration in command.declarations():
            builder.add(declaration)
        parser = builder.build()

        description = Description(command.desc, command.help, command.usage, parser.user_parameters, command.require)
        for listener in self._listeners:
            description = listener.update_description(command, parser, description)

        return ParametricCallable(self, command, parser, description)

    def register(self, dispatcher, source, /):
        """
        Build and register a command, or every command found on source (an
        object or module whose members are command declarations).
        """
        if isinstance(source, Command):
            commands = [source]
        else:
            commands = [member for _, member in inspect.getmembers(source) if isinstance(member, Command)]
        for declared in commands:
            dispatcher.register(self.build(declared), *declared.aliases)
        return commands


class ParametricCallable(metaclass=RecordType):
    __introspectable__ = ("command", "parser", "description")
    __displayable__ = ("command", "description")

    def __init__(self, builder, command, parser, description):
        self._builder = builder
        self._command = command
        self._parser = parser
        self._description = description

    def test_permission(self, namespace, /):
        permissions = self._description.permissions
        return not permissions or any(
            self._builder.authorizer.test_permission(namespace, permission) for permission in permissions
        )

    def suggest(self, arguments, namespace=Unset, /):
        if (completer := self._builder.completer) is not None:
            return completer.suggest(arguments, namespace)
        return self._parser.suggest(arguments, namespace)

    def call(self, arguments, namespace=Unset, parents=(), /):
        """
        Run the command with the text following its alias.

        Returns True once handled. Raises InvalidUsageError (bad input or -?),
        AuthorizationError, InvocationError (ExecutionInterruptedError when the
        executor is interrupted) or whatever CommandException the body raises.
        """
        namespace = Namespace() if namespace is Unset else namespace
        parents = list(parents)
        usage = dict(command=self, aliases=parents)

        if not self.test_permission(namespace):
            raise AuthorizationError()

        handlers = [listener.create_handler() for listener in self._builder.invoke_listeners]

        try:
            context = CommandContext(
                [parents[-1] if parents else "_", *split(arguments)],
                self._parser.value_flags,
                namespace=namespace
            )
            cursor = view_of(context)

            if context.has_flag("?"):
                raise InvalidUsageError(full_help=True, **usage)

            if not all([handler.pre_process(self._command, self._parser, cursor) for handler in handlers]):
                return True

            values = self._parser.parse(
                cursor,
                ignore_unused_flags=self._command.any_flags,
                unused_flags=self._command.flags
            )

            if not all([handler.pre_invoke(self._command, self._parser, values, cursor) for handler in handlers]):
                return True

            namespace.put(CommandArgs, cursor)
            self._builder.executor.submit(functools.partial(self._command, *values), cursor).result()

            for handler in handlers:
                handler.post_invoke(self._command, self._parser, values, cursor)

        except MissingArgumentError as error:
            if error.parameter is not None:
                raise InvalidUsageError(f"too few arguments, no value found for parameter '{error.parameter.name}'", **usage) from error
            raise InvalidUsageError("too few arguments", **usage) from error
        except UnusedArgumentError as error:
            raise InvalidUsageError(f"too many arguments, unused arguments: {error.unconsumed}", **usage) from error
        except ArgumentParseError as error:
            if error.parameter is not None:
                raise InvalidUsageError(f"for parameter '{error.parameter.name}': {error}", **usage) from error
            raise InvalidUsageError(f"error parsing arguments: {error}", **usage) from error
        except ArgumentError as error:
            raise InvalidUsageError(f"error parsing arguments: {error}", **usage) from error
        except CommandException:
            raise
        except DeclarationError:
            raise
        except ProvisionError as error:
            raise InvocationError(f"internal error occurred: {error}") from error
        except (CancelledError, InterruptedError) as error:
            raise ExecutionInterruptedError("execution of the command was interrupted") from error
        except Exception as error:
            for converter in self._builder.exception_converters:
                converter.convert(error)
            raise InvocationError(str(error) or Unset) from error

        return True


def invoke(callable, prompt=Unset, namespace=Unset, /, **options):
    """
    Run a command callable (leaf or dispatcher) from the outermost layer.

    Parameters
    - prompt:
      • Unset: the process arguments (sys.argv[1:]).
      • str: used as typed.
      • Iterable[str]: joined with single spaces.
    - namespace: the call namespace (a fresh one when Unset).
    - options: rendering options for faults (shell, fancy, colorful, ratio,
      traceback, prog).

    Returns True when the command ran, False when a fault was printed (shell
    mode). Outside shell mode faults are raised.
    """
    if not hasattr(callable, "call") or not builtins.callable(callable.call):
        raise TypeError("invoke() first argument must be a command callable")

    match prompt:
        case str():
            pass
        case UnsetType():
            prompt = " ".join(sys.argv[1:])
        case Iterable():
            prompt = list(prompt)
            if not all(isinstance(token, str) for token in prompt):
                raise TypeError("invoke() prompt tokens must be strings")
            prompt = " ".join(prompt)
        case _:
            raise TypeError("invoke() prompt must be a string or an iterable of strings")

    try:
        callable.call(prompt, Namespace() if namespace is Unset else namespace, ())
    except CommandException as fault:
        trigger(fault, **options)
        return False
    return True


__all__ = (
    # Declarations
    "Command",
    "command",

    # Pluggable parts
    "Authorizer",
    "NullAuthorizer",
    "Completer",
    "NullCompleter",
    "CommandExecutor",
    "SameThreadExecutor",
    "PoolExecutor",

    # Hooks
    "InvokeHandler",
    "InvokeListener",
    "LegacyCommandsHandler",

    # Converters
    "ExceptionConverter",
    "ExceptionConverterHelper",
    "exception_match",

    # Building and running
    "ParametricBuilder",
    "ParametricCallable",
    "invoke",
)
