"""
Argtree utilities: the "not provided" sentinel.

- Unset marks a parameter the caller did not pass, so None stays available as a real value
  (a value adapter bound to no cell, a context without parent, a list target not given yet).
- coalesce(object, default) turns Unset into default and leaves everything else alone.

    >>> coalesce(Unset, ",")
    ','
    >>> coalesce("", ",")
    ''
"""
import functools
from typing import final


@final
class UnsetType:
    """
    type of the Unset singleton: falsy, repr "Unset", not subclassable.

    Unset can sit in a PEP 604 union for isinstance checks: isinstance(x, str | Unset).
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"


def coalesce(object, default=None, /):
    return default if object is Unset else object


Unset = UnsetType()


__all__ = (
    "coalesce",
    "UnsetType",
    "Unset",
)
