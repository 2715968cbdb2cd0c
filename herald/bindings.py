"""
Herald bindings: which provider produces a value for a declared parameter.

Overview
- Classifier: marker base class. A classifier subclass tags a parameter so it
  resolves to an alternative provider for the same base type (e.g. a str that
  captures the remaining text instead of one token).
- Key(type, classifier): immutable lookup key.
  • ==/hash compare (type, classifier) exactly.
  • stored.matches(requested): same type, and the stored classifier is absent
    or equal to the requested one. An unclassified binding therefore serves
    every classifier of its type, a classified one serves only its classifier.
  • Keys are totally ordered with classified keys first, so the most specific
    binding is found first.
- Provider: strategy producing a value (see providers for the stock ones).
- Injector: ordered binding registry; modules install into it.
- Module: batch of registrations; configure() runs once.
"""
import bisect
import builtins
import functools
from abc import ABC, abstractmethod
from typing import NamedTuple

from .utils import RecordType, Unset


class Classifier:
    """
    Base class of classifier tags.

    Classifiers are declared as subclasses and used as-is; they are never
    instantiated.
    """

    def __new__(cls, *args, **kwargs):
        raise TypeError(f"classifier {cls.__name__!r} cannot be instantiated")


def _identity(object):
    if object is None:
        return 0, "", "", 0
    if isinstance(object, builtins.type):
        return 1, object.__module__, object.__qualname__, id(object)
    return 2, builtins.type(object).__name__, repr(object), 0


@functools.total_ordering
class Key(metaclass=RecordType):
    __introspectable__ = ("type", "classifier")

    def __init__(self, type, classifier=None, /):
        try:
            hash(type)
        except TypeError:
            raise TypeError("key 'type' must be hashable") from None
        if classifier is not None and not (isinstance(classifier, builtins.type) and issubclass(classifier, Classifier)):
            raise TypeError("key 'classifier' must be a classifier subclass")
        self._type = type
        self._classifier = classifier

    def matches(self, requested, /):
        """
        Tell whether this (stored) key can serve the requested key.
        """
        return self._type == requested._type and (self._classifier is None or self._classifier is requested._classifier)

    def _order(self):
        return self._classifier is None, _identity(self._type), _identity(self._classifier)

    def __eq__(self, other):
        if not isinstance(other, Key):
            return NotImplemented
        return self._type == other._type and self._classifier is other._classifier

    def __hash__(self):
        return hash((self._type, self._classifier))

    def __lt__(self, other):
        if not isinstance(other, Key):
            return NotImplemented
        return self._order() < other._order()


class Provider(ABC):
    """
    Produces the value of one parameter.

    Attributes
    - provided: True when the value comes from elsewhere (namespace, constant)
      and no token is read.
    - consumes: tokens read per call; 0 when provided, -1 when it reads an
      unbounded number (e.g. the rest of the line).
    """
    provided = False
    consumes = 1

    @abstractmethod
    def get(self, arguments, modifiers=()):
        """Read from the cursor and return the value."""

    def suggest(self, prefix, namespace=Unset, modifiers=()):
        """Completions for a value starting with prefix."""
        return []


class ConstantProvider(Provider):
    provided = True
    consumes = 0

    def __init__(self, value, /):
        self._value = value

    def get(self, arguments, modifiers=()):
        return self._value

    def __repr__(self):
        return f"constant-provider({self._value!r})"


class Binding(NamedTuple):
    key: Key
    provider: Provider


class BindingBuilder:
    """
    Fluent registration: bind(type).annotated_with(classifier).to_provider(p).
    """

    def __init__(self, injector, type, /):
        self._injector = injector
        self._type = type
        self._classifier = None

    def annotated_with(self, classifier, /):
        self._classifier = classifier
        return self

    def to_provider(self, provider, /):
        if not isinstance(provider, Provider):
            raise TypeError("to_provider() argument must be a provider")
        self._injector.register(Key(self._type, self._classifier), provider)

    def to_instance(self, instance, /):
        self.to_provider(ConstantProvider(instance))


class Injector:
    def __init__(self):
        self._bindings = []

    @property
    def bindings(self):
        return tuple(self._bindings)

    def install(self, module, /):
        if not isinstance(module, Module):
            raise TypeError("install() argument must be a module")
        module.__configure__(self)

    def bind(self, type, /):
        return BindingBuilder(self, type)

    def register(self, key, provider, /):
        """
        Add a binding. An identical key cannot be bound twice.
        """
        if not isinstance(key, Key):
            raise TypeError("register() first argument must be a key")
        if any(binding.key == key for binding in self._bindings):
            raise ValueError(f"injector already has a binding for {key!r}")
        bisect.insort(self._bindings, Binding(key, provider), key=lambda binding: binding.key)

    def get_binding(self, key, /):
        for binding in self._bindings:
            if binding.key.matches(key):
                return binding
        return None

    def get_provider(self, key, /):
        binding = self.get_binding(key)
        return binding.provider if binding is not None else None


class Module(ABC):
    """
    A batch of bindings.

        class UniverseModule(Module):
            def __init__(self, universe):
                self.universe = universe

            def configure(self):
                self.bind(Universe).to_instance(self.universe)
                self.bind(Body).to_provider(BodyProvider(self.universe))
    """
    _injector = None

    def __configure__(self, injector):
        if self._injector is not None:
            raise RuntimeError(f"module {type(self).__name__!r} is already configured")
        self._injector = injector
        self.configure()

    @abstractmethod
    def configure(self): ...

    def bind(self, type, /):
        if self._injector is None:
            raise RuntimeError("bind() can only be called while the module is configured")
        return self._injector.bind(type)


def create_injector(*modules):
    injector = Injector()
    for module in modules:
        injector.install(module)
    return injector


__all__ = (
    "Classifier",
    "Key",
    "Provider",
    "ConstantProvider",
    "Binding",
    "BindingBuilder",
    "Injector",
    "Module",
    "create_injector",
)
