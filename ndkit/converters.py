"""
Element parse contract.

Every scalar type an argument field is bound to must be convertible from text through a
pure "try-parse" function:

    (text, locale=None) -> (success, value)

Resolution order for an element type
1. str (and subclasses): passthrough, always succeeds.
2. enum.Enum subclasses: case-insensitive match against member names.
3. A __tryparse__(text, locale=None) classmethod declared on the type itself.
4. A converter registered with @parser(type) for the type or one of its bases.

A type that resolves to none of these is not parsable; schema extraction reports fields
of such a type as invalid.
"""
import builtins
import enum
import functools
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from pathlib import PurePath

from .utils import rename

_parsers = {}


def parser(type, /):
    """
    Register a try-parse function for a type (decorator).

    The decorated function receives (text, locale) and returns (success, value). It must not
    raise for malformed text.

        @parser(Version)
        def _(text, locale=None):
            ...
    """
    if not isinstance(type, builtins.type):
        raise TypeError("@parser() argument must be a type")

    @rename("parser")
    def wrapper(function, /):
        if not callable(function):
            raise TypeError("@parser() must be applied to a callable")
        _parsers[type] = function
        resolve.cache_clear()
        return function

    return wrapper


def _guarded(convert):
    """
    Turn a raising constructor into a try-parse function.
    """
    def tryparse(text, locale=None):
        try:
            return True, convert(text)
        except (ValueError, TypeError, ArithmeticError, InvalidOperation):
            return False, None
    return tryparse


def _parse_path(cls, text, locale=None):
    if not text:
        return False, None
    return True, cls(text)


def _parse_enum(cls, text, locale=None):
    folded = text.strip().casefold()
    for name, member in cls.__members__.items():
        if name.casefold() == folded:
            return True, member
    return False, None


def _parse_str(text, locale=None):
    return True, text


@functools.cache
def resolve(element, /):
    """
    Return the try-parse function for an element type, or None when it has no contract.
    """
    if not isinstance(element, type):
        return None
    if issubclass(element, str):
        return _parse_str
    if issubclass(element, enum.Enum):
        return functools.partial(_parse_enum, element)
    if issubclass(element, PurePath):
        return functools.partial(_parse_path, element)
    if callable(getattr(element, "__tryparse__", None)):
        return element.__tryparse__
    for base in element.__mro__:
        if base in _parsers:
            return _parsers[base]
    return None


@parser(bool)
def _parse_bool(text, locale=None):
    match text.strip().lower():
        case "true":
            return True, True
        case "false":
            return True, False
    return False, None


parser(int)(_guarded(int))
parser(float)(_guarded(float))
parser(complex)(_guarded(complex))
parser(Decimal)(_guarded(Decimal))
parser(Fraction)(_guarded(Fraction))


def parsable(element, /):
    """
    Whether values of the given element type can be parsed from text.
    """
    return resolve(element) is not None


def tryparse(element, text, locale=None, /):
    """
    Parse text into an element type. Never raises for malformed text.

    Returns
    - (True, value) on success.
    - (False, None) when the text does not convert.

    Raises
    - TypeError: when the element type has no parse contract (a schema defect, not bad input).
    """
    if (function := resolve(element)) is None:
        raise TypeError(f"type {getattr(element, '__qualname__', element)!r} has no parse contract")
    success, value = function(text, locale)
    return bool(success), value if success else None


def default_of(element, /):
    """
    The value an unparsed collection slot keeps: element() when default-constructible.
    """
    if isinstance(element, type) and issubclass(element, enum.Enum):
        return None
    try:
        return element()
    except Exception:  # NOQA: not every element type has a no-argument constructor
        return None


__all__ = (
    "parser",
    "resolve",
    "parsable",
    "tryparse",
    "default_of",
)
