"""
Herald parameters: declared parameter shapes, the parse plan and its resolution.

Declaring
- param(type, *tags) builds a Declaration. Tags are classified by kind:
  • a Classifier subclass selects an alternative binding for the type;
  • Optional(*defaults) makes a positional optional, with default tokens;
  • Switch(flag) turns the parameter into a flag (boolean for bool, value
    flag otherwise);
  • anything else is a modifier handed to the provider (Range, Validate, ...).
  Optional and Switch are modifiers too, so providers may see them.

Planning (ParserBuilder)
- Every declaration is resolved once against the injector into a Parameter:
  option type, default tokens, provider, display name.
- A required positional may not follow an optional one. With lenient=True it
  may, as long as its consumption is fixed; the optional one is then skipped
  when the input has no room for it (see below).
- Provided parameters (namespace values, constants) never read tokens and are
  exempt from ordering rules.

Resolving (ArgumentParser.parse)
- Flag parameters read a synthetic cursor built from the flag map, positional
  ones read the shared cursor, in declaration order.
- An optional positional is only read when the remaining tokens minus what the
  later required positionals need leave at least one token free.
- A missing optional or flag falls back to its default tokens (None when it
  has none). A default that fails is a DeclarationError.
- Leftover tokens and flags no parameter claims raise UnusedArgumentError.

Example
    parser = ParserBuilder(injector)
    parser.add(param(Body))
    parser.add(param(float))
    parser.add(param(bool, Switch("f")))
    parser.build().parse(view_of(CommandContext.of("mercury 167 -f")))
"""
import copy
import re

from .arguments import copy_of
from .bindings import Classifier, Key
from .context import CommandContext
from .faults import (
    ArgumentError,
    DeclarationError,
    MissingArgumentError,
    ProvisionError,
    UnusedArgumentError,
)
from .utils import RecordType, Unset, coalesce


class Optional(metaclass=RecordType):
    __introspectable__ = ("defaults",)

    def __init__(self, *defaults):
        if not all(isinstance(default, str) for default in defaults):
            raise TypeError(f"{type(self).__typename__} defaults must be strings")
        self._defaults = defaults


class Switch(metaclass=RecordType):
    __introspectable__ = ("flag",)

    def __init__(self, flag):
        if not isinstance(flag, str) or not re.fullmatch(r"[a-zA-Z]", flag):
            raise TypeError(f"{type(self).__typename__} flag must be a single letter")
        self._flag = flag


def _is_classifier(tag):
    return isinstance(tag, type) and issubclass(tag, Classifier)


class Declaration(metaclass=RecordType):
    """
    What the command author wrote for one parameter, before any binding.
    """
    __introspectable__ = ("classifier", "modifiers")

    def __init__(self, type, classifier=None, modifiers=()):
        self._type = type
        self._classifier = classifier
        self._modifiers = tuple(modifiers)

    @property
    def type(self):
        return self._type

    def __rich_repr__(self):
        yield "type", self._type
        yield "classifier", self._classifier
        yield "modifiers", self._modifiers


def param(type, /, *tags):
    classifiers = [tag for tag in tags if _is_classifier(tag)]
    if len(classifiers) > 1:
        raise DeclarationError(f"a parameter of type {type!r} has more than one classifier: {classifiers!r}")
    return Declaration(
        type,
        classifiers[0] if classifiers else None,
        [tag for tag in tags if not _is_classifier(tag)]
    )


class OptionType(metaclass=RecordType):
    """
    How a parameter is fed: positional (required or optional) or by flag.
    """
    __introspectable__ = ("flag", "is_value_flag", "is_optional")

    def __init__(self, flag=None, is_value_flag=False, is_optional=False):
        self._flag = flag
        self._is_value_flag = is_value_flag
        self._is_optional = is_optional

    @classmethod
    def positional(cls):
        return cls()

    @classmethod
    def optional_positional(cls):
        return cls(is_optional=True)

    @classmethod
    def boolean_flag(cls, flag, /):
        return cls(flag, False, True)

    @classmethod
    def value_flag(cls, flag, /):
        return cls(flag, True, True)

    def transform(self, arguments, /):
        """
        The cursor this parameter reads: the shared one for positionals, a
        one-token (or empty) copy built from the flag map for flags.
        """
        if self._flag is None:
            return arguments
        if not self._is_value_flag:
            value = "true" if self._flag in arguments.flags else "false"
            return copy_of([value], arguments.flags, arguments.namespace)
        value = arguments.flags.get(self._flag)
        return copy_of([] if value is None else [value], arguments.flags, arguments.namespace)

    def __eq__(self, other):
        if not isinstance(other, OptionType):
            return NotImplemented
        return (self._flag, self._is_value_flag, self._is_optional) == (other._flag, other._is_value_flag, other._is_optional)

    def __hash__(self):
        return hash((self._flag, self._is_value_flag, self._is_optional))


class Parameter(metaclass=RecordType):
    __introspectable__ = (
        "name",
        "classifier",
        "modifiers",
        "option_type",
        "defaults",
        "provider",
    )
    __displayable__ = ("name", "option_type", "defaults")

    def __init__(self, name, type, classifier, modifiers, option_type, defaults, provider):
        self._name = name
        self._type = type
        self._classifier = classifier
        self._modifiers = tuple(modifiers)
        self._option_type = option_type
        self._defaults = tuple(defaults)
        self._provider = provider

    @property
    def type(self):
        return self._type

    @property
    def is_provided(self):
        return self._provider.provided

    @property
    def consumes(self):
        return self._provider.consumes

    @property
    def is_positional(self):
        """Read from the shared cursor (neither a flag nor provided)."""
        return self._option_type.flag is None and not self._provider.provided

    @property
    def usage(self):
        match self._option_type:
            case OptionType(flag=None, is_optional=False):
                return f"<{self._name}>"
            case OptionType(flag=None):
                return f"[{self._name}]"
            case OptionType(is_value_flag=False, flag=flag):
                return f"[-{flag}]"
            case OptionType(flag=flag):
                return f"[-{flag} <{self._name}>]"


class Description(metaclass=RecordType):
    """
    What a command shows to users: short description, help, usage, the user
    facing parameters and the permissions it requires (any of them).
    """
    __introspectable__ = ("short", "help", "parameters", "permissions")
    __displayable__ = ("short", "usage", "permissions")

    def __init__(self, short=None, help=None, usage=None, parameters=(), permissions=()):
        for name, text in (("short", short), ("help", help), ("usage", usage)):
            if text is not None and not isinstance(text, str):
                raise TypeError(f"{type(self).__typename__} {name!r} must be a string")
        self._short = short
        self._help = help
        self._usage = usage
        self._parameters = tuple(parameters)
        self._permissions = tuple(permissions)

    @property
    def usage(self):
        if self._usage is not None:
            return self._usage
        return " ".join(parameter.usage for parameter in self._parameters)

    def __replace__(self, **changes):
        fields = dict(
            short=self._short,
            help=self._help,
            usage=self._usage,
            parameters=self._parameters,
            permissions=self._permissions,
        )
        return type(self)(**(fields | changes))


class ArgumentParser(metaclass=RecordType):
    __introspectable__ = ("parameters", "value_flags")
    __displayable__ = ("parameters",)

    def __init__(self, parameters):
        self._parameters = tuple(parameters)
        self._value_flags = frozenset(
            parameter.option_type.flag for parameter in self._parameters if parameter.option_type.is_value_flag
        )

    @property
    def user_parameters(self):
        """Parameters the user types (everything not provided)."""
        return [parameter for parameter in self._parameters if not parameter.is_provided]

    def _skips(self, index, arguments):
        # Required positionals further down keep their tokens.
        reserved = sum(
            parameter.consumes for parameter in self._parameters[index + 1:]
            if parameter.is_positional and not parameter.option_type.is_optional
        )
        return arguments.size() - arguments.position() - reserved < 1

    def _default(self, parameter, arguments):
        if not parameter.defaults:
            return None
        try:
            return parameter.provider.get(
                copy_of(parameter.defaults, arguments.flags, arguments.namespace),
                parameter.modifiers
            )
        except (ArgumentError, ProvisionError) as error:
            raise DeclarationError(
                f"no value was specified for the '{parameter.name}' parameter so the default value "
                f"'{" ".join(parameter.defaults)}' was used, but this value doesn't work due to an error: {error}"
            ) from error

    def parse(self, arguments, /, *, ignore_unused_flags=False, unused_flags=()):
        """
        Resolve every parameter against the cursor, in declaration order.

        Raises
        - MissingArgumentError / ArgumentParseError: tagged with the parameter.
        - UnusedArgumentError: tokens or flags left over.
        - ProvisionError: a provided value is unavailable.
        - DeclarationError: a default value does not resolve.
        """
        values = []
        for index, parameter in enumerate(self._parameters):
            option = parameter.option_type

            if parameter.is_positional and option.is_optional and self._skips(index, arguments):
                values.append(self._default(parameter, arguments))
                continue

            try:
                values.append(parameter.provider.get(option.transform(arguments), parameter.modifiers))
            except MissingArgumentError as error:
                if not option.is_optional:
                    raise copy.replace(error, parameter=parameter) from None
                values.append(self._default(parameter, arguments))
            except ArgumentError as error:
                raise copy.replace(error, parameter=parameter) from None

        self._check_unconsumed(arguments, ignore_unused_flags, frozenset(unused_flags))
        return values

    def _check_unconsumed(self, arguments, ignore_unused_flags, unused_flags):
        unconsumed = []

        if not ignore_unused_flags:
            claimed = {parameter.option_type.flag for parameter in self._parameters} - {None}
            unconsumed.extend(
                f"-{flag}" for flag in arguments.flags if flag not in claimed and flag not in unused_flags
            )

        while arguments.has_next():
            unconsumed.append(arguments.next())

        if unconsumed:
            text = " ".join(unconsumed)
            raise UnusedArgumentError(text, unconsumed=text)

    def suggest(self, arguments, namespace=Unset, /):
        """
        Complete the value being typed, asking the provider of the parameter
        that will receive it.
        """
        try:
            context = CommandContext.of(arguments, self._value_flags, hanging=True, namespace=namespace)
        except ArgumentError:
            return []
        suggestion = context.suggestion_context

        if suggestion.is_flag:
            for parameter in self._parameters:
                if parameter.option_type.is_value_flag and parameter.option_type.flag == suggestion.flag:
                    return parameter.provider.suggest(
                        context.get_flag(suggestion.flag, ""), context.namespace, parameter.modifiers
                    )
            return []

        if suggestion.is_last_value:
            index, prefix = len(context) - 1, context.get_string(len(context) - 1)
        else:
            index, prefix = len(context), ""

        position = 0
        for parameter in filter(lambda parameter: parameter.is_positional, self._parameters):
            if parameter.consumes < 0 or index < position + parameter.consumes:
                return parameter.provider.suggest(prefix, context.namespace, parameter.modifiers)
            position += parameter.consumes
        return []


def _friendly_name(type, classifier, index):
    if classifier is not None:
        return classifier.__name__.lower()
    return coalesce(getattr(type, "__name__", Unset), f"unknown{index}").lower()


class ParserBuilder:
    """
    Collect declarations and resolve them into an ArgumentParser.

    lenient=False rejects any required positional after an optional one.
    lenient=True accepts it unless the required one consumes the rest of the
    input, and relies on the look-ahead at parse time.
    """

    def __init__(self, injector, /, *, lenient=False):
        self._injector = injector
        self._lenient = lenient
        self._parameters = []
        self._seen_optional = False

    def add(self, declaration, /):
        if not isinstance(declaration, Declaration):
            declaration = param(declaration)

        index = len(self._parameters)
        option = None
        defaults = ()

        for tag in declaration.modifiers:
            match tag:
                case Switch() | Optional() if option is not None:
                    raise DeclarationError(f"both optional and switch were found on the same element for parameter #{index}")
                case Switch(flag=flag):
                    option = OptionType.boolean_flag(flag) if declaration.type is bool else OptionType.value_flag(flag)
                case Optional(defaults=defaults):
                    option = OptionType.optional_positional()

        if option is None:
            option = OptionType.positional()

        if option.flag is not None and any(parameter.option_type.flag == option.flag for parameter in self._parameters):
            raise DeclarationError(f"the flag '-{option.flag}' is used by more than one parameter (at #{index})")

        key = Key(declaration.type, declaration.classifier)
        if (binding := self._injector.get_binding(key)) is None:
            raise DeclarationError(f"can't find a binding for the parameter type {declaration.type!r} (at #{index})")
        provider = binding.provider

        if option.flag is None and not provider.provided:
            if option.is_optional:
                self._seen_optional = True
            elif self._seen_optional:
                if not self._lenient:
                    raise DeclarationError(f"a non-optional parameter followed an optional parameter at #{index}")
                if provider.consumes < 0:
                    raise DeclarationError(
                        f"a parameter consuming the rest of the input cannot follow an optional parameter at #{index}"
                    )

        self._parameters.append(Parameter(
            _friendly_name(declaration.type, declaration.classifier, index),
            declaration.type,
            declaration.classifier,
            declaration.modifiers,
            option,
            defaults,
            provider,
        ))
        return self

    def build(self):
        return ArgumentParser(self._parameters)


__all__ = (
    # Tags
    "Optional",
    "Switch",

    # Declarations
    "Declaration",
    "param",

    # Plan
    "OptionType",
    "Parameter",
    "Description",
    "ArgumentParser",
    "ParserBuilder",
)
