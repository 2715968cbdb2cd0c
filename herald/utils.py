"""
Herald utilities shared by every layer.

Scope
- UnsetType / Unset: "not provided" sentinel, distinct from None.
- coalesce(value, default): materialize Unset into a default.
- rename(): stable __name__/__qualname__ for generated callables.
- mirror(): read-only property over a private "_name" field, handing out copies
  of containers so public state cannot be mutated from outside.
- RecordType: metaclass used by the declarative records (contexts, parameters,
  descriptions, command declarations) for __typename__, mirrored properties
  and stable __repr__/__rich_repr__.
- simplify(): lowercase alphanumeric form used for lenient name matching.

Names not listed in __all__ are internal.
"""
import builtins
import functools
import operator
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for values that were not provided.

    Falsey, printable as "Unset", sealed and a per-process singleton.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return object, or default when object is Unset.

    None and other falsey values are kept: only Unset is replaced.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set __name__/__qualname__ on a callable.

    - rename(callable, name) renames in place and returns the callable.
    - rename(name) returns a decorator doing the same later.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    # Fresh containers all the way down; scalars and records pass through.
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Build a read-only property exposing self._<name>.

    Containers are returned as fresh copies.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def simplify(text, /):
    """
    Lowercase text and drop everything that is not a letter or a digit.

    >>> simplify("Very_Large")
    'verylarge'
    """
    return re.sub(r"[^a-z0-9]", "", text.lower())


Unset = UnsetType()


class RecordType(type):
    """
    Metaclass for herald's declarative records.

    - __typename__ is the hyphenated lowercase class name ("option-type").
    - every name in __introspectable__ becomes a mirror() property over "_name".
    - __displayable__ (when set) narrows what __rich_repr__ yields.
    - __repr__ renders "typename(field=value, ...)" from __rich_repr__.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        if "__repr__" not in namespace:
            @rename("__repr__")
            def __repr__(self):
                return f"{type(self).__typename__}({
                    ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
                })"
            self.__repr__ = __repr__

        if "__rich_repr__" not in namespace:
            @rename("__rich_repr__")
            def __rich_repr__(self):
                for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                    yield name, getattr(self, name)
            self.__rich_repr__ = __rich_repr__

        return self


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "simplify",

    # Types
    "UnsetType",
    "RecordType",

    # Constants
    "Unset",
)
