"""
Herald dispatch tree: route a command line through nested sub-commands.

What this module provides
- CommandMapping: a callable registered under its aliases (the first one is the
  primary alias).
- Dispatcher: a node of the tree, itself a command callable.
  • register(callable, *aliases) / register_default(callable, *aliases):
    append-only, lookups are case-insensitive, collisions raise ValueError.
  • call(text): the first token picks the child; an unknown first token falls
    back to the default command (which receives the whole text); otherwise the
    user is asked to choose a sub-command.
  • suggest(text): aliases for the first token, the child's suggestions after.
  • a node is usable when any of its children is.
- CommandGraph / DispatcherNode: fluent construction of the tree.

Quick start
    graph = CommandGraph(ParametricBuilder(injector))
    root = graph.commands()
    root.group("body").describe("Manage celestial bodies").register_commands(BodyCommands(universe))
    invoke(graph.dispatcher, "body settemp mercury 167 -f", shell=True)

Children are any object with call(), suggest(), description and
test_permission(): ParametricCallable leaves or other dispatchers.
"""
import copy

from .arguments import Namespace
from .context import split
from .faults import (
    AuthorizationError,
    CommandException,
    DeclarationError,
    InvalidUsageError,
    InvocationError,
)
from .invocation import command as declare
from .parameters import Description, OptionType, Parameter
from .providers import StringProvider, Text, TextProvider
from .utils import RecordType, Unset


class CommandMapping(metaclass=RecordType):
    __introspectable__ = ("callable", "aliases")

    def __init__(self, callable, aliases):
        if isinstance(aliases, str):
            aliases = (aliases,)
        aliases = tuple(aliases)
        if not aliases:
            raise ValueError(f"{type(self).__typename__} needs at least one alias")
        if not all(isinstance(alias, str) and alias and " " not in alias for alias in aliases):
            raise ValueError(f"{type(self).__typename__} aliases must be non-empty strings without spaces")
        self._callable = callable
        self._aliases = aliases

    @property
    def primary_alias(self):
        return self._aliases[0]


def _description(short=None):
    return Description(short, parameters=(
        Parameter("subcommand", str, None, (), OptionType.positional(), (), StringProvider()),
        Parameter("...", str, Text, (), OptionType.optional_positional(), (), TextProvider()),
    ))


class Dispatcher(metaclass=RecordType):
    """
    A node of the command tree.

    The default mapping (at most one) receives the text when the first token
    names no child. With default_only it is reachable only that way.
    """

    def __init__(self, desc=None):
        self._mappings = []
        self._commands = {}
        self._default = None
        self._description = _description(desc)

    def _register(self, mapping, default, default_only):
        if default and self._default is not None:
            raise ValueError("dispatcher does not support replacing the default command mapping")
        if not (default and default_only):
            for alias in mapping.aliases:
                if alias.lower() in self._commands:
                    raise ValueError(f"can't add the command '{alias}' because the dispatcher does not support replacing commands")
        if default:
            self._default = mapping
            if default_only:
                return mapping
        for alias in mapping.aliases:
            self._commands[alias.lower()] = mapping
        self._mappings.append(mapping)
        return mapping

    def register(self, callable, /, *aliases):
        return self._register(CommandMapping(callable, aliases), False, False)

    def register_default(self, callable, /, *aliases, default_only=False):
        if not aliases and not default_only:
            raise ValueError("register_default() needs aliases unless default_only is set")
        return self._register(CommandMapping(callable, aliases or ("_",)), True, default_only)

    @property
    def commands(self):
        """Registered mappings, in registration order (the default-only one excluded)."""
        return tuple(self._mappings)

    @property
    def default(self):
        return self._default

    @property
    def aliases(self):
        return frozenset(self._commands)

    @property
    def primary_aliases(self):
        return [mapping.primary_alias for mapping in self._mappings]

    @property
    def description(self):
        return self._description

    def describe(self, desc, /):
        self._description = copy.replace(self._description, short=desc)

    def __contains__(self, alias):
        return alias.lower() in self._commands

    def get(self, alias, /):
        return self._commands.get(alias.lower())

    def test_permission(self, namespace, /):
        mappings = [*self._mappings, *([self._default] if self._default is not None else [])]
        return any(mapping.callable.test_permission(namespace) for mapping in mappings)

    def call(self, arguments, namespace=Unset, parents=(), /):
        """
        Route the text to a child; returns True once handled.
        """
        namespace = Namespace() if namespace is Unset else namespace
        parents = list(parents)

        if not self._mappings and self._default is None:
            raise InvalidUsageError("this command has no sub-commands", command=self, aliases=parents)
        if not self.test_permission(namespace):
            raise AuthorizationError()

        head, *rest = split(arguments)

        if head and (mapping := self.get(head)) is not None:
            return self._delegate(mapping, " ".join(rest), namespace, [*parents, head], head)
        if self._default is not None:
            return self._delegate(self._default, arguments, namespace, parents, None)

        raise InvalidUsageError("please choose a sub-command", command=self, aliases=parents, full_help=True)

    def _delegate(self, mapping, arguments, namespace, parents, alias):
        try:
            mapping.callable.call(arguments, namespace, parents)
        except CommandException as fault:
            if alias is not None:
                fault.prepend_stack(alias)
            raise
        except DeclarationError:
            raise
        except Exception as error:
            raise InvocationError(str(error) or Unset) from error
        return True

    def suggest(self, arguments, namespace=Unset, /):
        namespace = Namespace() if namespace is Unset else namespace
        head, *rest = split(arguments)

        if not rest:
            prefix = head.lower()
            return [
                mapping.primary_alias for mapping in self._mappings
                if mapping.callable.test_permission(namespace)
                and any(alias.lower().startswith(prefix) for alias in mapping.aliases)
            ]

        if (mapping := self.get(head)) is None or not mapping.callable.test_permission(namespace):
            return []
        return mapping.callable.suggest(" ".join(rest), namespace)

    def __rich_repr__(self):
        yield "aliases", self.primary_aliases
        yield "default", self._default


class DispatcherNode:
    """
    Fluent handle over one dispatcher of a CommandGraph.
    """

    def __init__(self, graph, parent, dispatcher):
        self._graph = graph
        self._parent = parent
        self._dispatcher = dispatcher

    @property
    def dispatcher(self):
        return self._dispatcher

    def describe(self, desc, /):
        self._dispatcher.describe(desc)
        return self

    def register(self, callable, /, *aliases):
        self._dispatcher.register(callable, *aliases)
        return self

    def register_commands(self, source, /):
        """Build and register every command declared on source."""
        self._graph.builder.register(self._dispatcher, source)
        return self

    def command(self, *aliases, **options):
        """
        Declare a command and register it on this node right away.

            @root.command("ping", desc="Answer pong")
            def ping(): ...
        """

        def wrapper(callback, /):
            declared = declare(*aliases, **options)(callback)
            self._graph.builder.register(self._dispatcher, declared)
            return declared

        return wrapper

    def group(self, *aliases):
        child = Dispatcher()
        self._dispatcher.register(child, *aliases)
        return DispatcherNode(self._graph, self, child)

    def parent(self):
        if self._parent is None:
            raise RuntimeError("this node does not have a parent")
        return self._parent

    def graph(self):
        return self._graph

    def __repr__(self):
        return f"dispatcher-node({self._dispatcher!r})"


class CommandGraph:
    """
    Entry point of the fluent API: owns the root dispatcher and the builder
    used by register_commands() and command().
    """

    def __init__(self, builder=Unset, /):
        self._builder = builder
        self._root = DispatcherNode(self, None, Dispatcher())

    @property
    def builder(self):
        if self._builder is Unset:
            raise RuntimeError("no parametric builder set")
        return self._builder

    @builder.setter
    def builder(self, builder):
        self._builder = builder

    def commands(self):
        return self._root

    @property
    def dispatcher(self):
        return self._root.dispatcher


__all__ = (
    "CommandMapping",
    "Dispatcher",
    "DispatcherNode",
    "CommandGraph",
)
