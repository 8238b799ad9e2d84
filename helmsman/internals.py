"""
Shared metaclass for the declarative value objects of helmsman.

Argument specs, features, groups, contexts and results are all plain value
objects: built once, validated on construction, read through properties. The
SpecType metaclass wires the repetitive parts so each class only declares which
of its private fields are public.

Conventions
- __introspectable__: names published as read-only properties over "_name".
- __displayable__: subset shown by __repr__/__rich_repr__ (defaults to all
  introspectable names).
- __typename__: hyphenated, lowercased class name ("FeatureGroup" becomes
  "feature-group"), used as the subject of validation messages.
"""
from .utils import *


def _typename(name, /):
    return "".join(f"-{char.lower()}" if char.isupper() and index else char.lower() for index, char in enumerate(name))


def _fields(self):
    cls = type(self)
    for name in coalesce(cls.__displayable__, cls.__introspectable__):
        yield name, getattr(self, name)


def _represent(self):
    fields = ", ".join(f"{name}={value!r}" for name, value in self.__rich_repr__())
    return f"{type(self).__typename__}({fields})"


class SpecType(type):
    """
    Metaclass publishing introspectable fields and a stable representation.

    Options
    - final: when True, the resulting class refuses to be subclassed.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(mcs, name, bases, namespace, /, *, final=False, **options):
        namespace = dict(namespace, __typename__=_typename(name))
        for field in namespace.get("__introspectable__", ()):
            namespace[field] = mirror(field)
        # explicit definitions in the class body win
        namespace.setdefault("__repr__", _represent)
        namespace.setdefault("__rich_repr__", _fields)
        cls = super().__new__(mcs, name, bases, namespace, **options)

        if final:
            def sealed(subclass, /, **unused):
                raise TypeError(f"type {name!r} is not an acceptable base type")
            cls.__init_subclass__ = classmethod(rename(sealed, "__init_subclass__"))
        return cls


__all__ = (
    "SpecType",
)
