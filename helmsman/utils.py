"""
Helmsman utilities (small building blocks shared by every layer)

Overview
- UnsetType / Unset
  • Sentinel for "not provided", kept apart from None because None is a real
    value in many places (e.g. an optional positional that was not typed).
- coalesce(value, default=None)
  • Materialize Unset into a default, leaving None/0/""/[] untouched.
- rename(target, name) / @rename(name)
  • Stable __name__/__qualname__ for generated resolvers and wrappers, so that
    tracebacks and log lines name the argument they belong to.
- mirror(name)
  • Read-only property over a private "_name" field; containers come back as
    fresh copies so callers cannot mutate a declared feature tree.
- pluralize(word, count)
  • Tiny English pluralizer for counts in user-facing messages.

Stability
- Everything in __all__ is re-exported by the package root. Underscored names
  are internal.
"""
import functools
from collections.abc import Mapping, Sequence, Set


class UnsetType:
    """
    Sentinel type for values that were not provided.

    Characteristics
    - Falsy, printable as "Unset", a process-wide singleton and sealed.
    - Survives copy/deepcopy/pickle as the same object.
    - Participates in PEP 604 unions so that `str | Unset` can be used in
      isinstance checks while sanitizing metadata.
    """
    __slots__ = ()
    _instance = None

    def __new__(cls):
        if UnsetType._instance is None:
            UnsetType._instance = object.__new__(cls)
        return UnsetType._instance

    def __init_subclass__(cls, **options):
        raise TypeError(f"type {UnsetType.__name__!r} is not an acceptable base type")

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    # `str | Unset` is spelled with the instance, the union holds the type
    def __or__(self, other, /):
        try:
            return UnsetType | (UnsetType if other is self else other)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | UnsetType
        except TypeError:
            return NotImplemented


def coalesce(object, default=None, /):
    """
    Return `default` when `object` is Unset, otherwise `object` unchanged.

    Examples
    - coalesce("ls", "fallback")  -> "ls"
    - coalesce(Unset, "fallback") -> "fallback"
    - coalesce(None, "fallback")  -> None
    """
    if object is Unset:
        return default
    return object


def _relabel(target, name, /):
    if not callable(target):
        raise TypeError("rename() target must be callable")
    if not isinstance(name, str):
        raise TypeError("rename() name must be a string")
    try:
        target.__name__ = target.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError(f"rename() cannot relabel {type(target).__name__!r} objects") from None
    return target


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or build a decorator
    doing so.

    Forms
    - rename(target, name) -> target (relabeled in place)
    - rename(name)         -> decorator

    Raises
    - TypeError on wrong arity, a non-callable target, a non-string name, or a
      callable whose names cannot be updated (e.g. built-ins).
    """
    if len(parameters) == 2:
        return _relabel(*parameters)
    if len(parameters) != 1:
        raise TypeError(f"rename() takes 1 or 2 arguments ({len(parameters)} given)")
    if not isinstance(name := parameters[0], str):
        raise TypeError("rename() name must be a string")

    def decorator(target):
        return _relabel(target, name)

    return _relabel(decorator, "rename")


def _detach(object):
    """
    Copy containers recursively (sequences become lists, mappings dicts, sets
    sets); strings and everything else are returned as they are.
    """
    match object:
        case str() | bytes():
            return object
        case Mapping():
            return {key: _detach(value) for key, value in object.items()}
        case Set():
            return {_detach(value) for value in object}
        case Sequence():
            return [_detach(value) for value in object]
    return object


def mirror(name, /):
    """
    Read-only property exposing `self._{name}` through _detach().

    Example
    - given self._cmd = ("link", "ln"), `cmd = mirror("cmd")` publishes a
      property returning ["link", "ln"] (a new list on every access).
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")
    field = "_" + name

    def getter(self):
        return _detach(getattr(self, field))

    return property(rename(getter, name), doc=f"read-only view of {field}")


@functools.cache
def _plural(word, /):
    stem, suffix = word, "s"
    if word.lower().endswith(("s", "sh", "ch", "x", "z")):
        suffix = "es"
    elif len(word) > 1 and word[-1] in "yY" and word[-2].lower() not in "aeiou":
        stem, suffix = word[:-1], "ies"
    # an all-caps word keeps shouting
    return stem + (suffix.upper() if word.isupper() else suffix)


def pluralize(word, count=2, /):
    """
    Return `word` unchanged when `count` is exactly one, its plural otherwise.

    Only the regular English rules are covered (s/sh/ch/x/z -> +es,
    consonant + y -> ies, everything else +s); the words used in messages
    ("argument", "entry", "match") are all regular.

    Examples
    - pluralize("argument", 1) -> "argument"
    - pluralize("argument", 0) -> "arguments"
    - pluralize("Entry")       -> "Entries"
    """
    if not isinstance(word, str):
        raise TypeError("pluralize() first argument must be a string")
    if not isinstance(count, int):
        raise TypeError("pluralize() second argument must be an integer")
    if not word or count == 1:
        return word
    return _plural(word)


Unset = UnsetType()
"""
The only UnsetType instance.

Use it as a parameter default when None is a meaningful user value and
materialize it with coalesce() where a concrete value is needed.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
