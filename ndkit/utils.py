"""
Shared helpers of the argument engine and the tool registry.

- Unset: the "not provided" sentinel, for places where None is a real value.
- coalesce(value, default=None): Unset becomes default, anything else passes through.
- @rename("name"): give a generated function a readable __name__/__qualname__.
- mirror("attr"): read-only property over self._attr that hands out copies of containers.
- walk_modules(pattern): importable module names matching "vendor.*.tools" or "vendor.**.tools".

    >>> coalesce(Unset, 8)
    8
    >>> coalesce(None, 8) is None
    True
"""
import functools
import importlib
import pkgutil
import re
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset singleton. It is falsey, copies to itself and cannot be subclassed.
    """
    __slots__ = ()

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")


def coalesce(object, default=None, /):
    return default if object is Unset else object


def rename(name, /):
    """
    Decorator: set both __name__ and __qualname__ of a function to name.
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorator(function):
        function.__name__ = function.__qualname__ = name
        return function

    return decorator


def _detach(object):
    """
    Copy containers recursively. Named tuples keep their type, other tuples stay tuples
    (schemas must stay hashable), sequences become lists, mappings dicts and sets sets.
    """
    if isinstance(object, tuple):
        items = map(_detach, object)
        return type(object)._make(items) if hasattr(object, "_fields") else tuple(items)
    elif isinstance(object, str | bytes | frozenset):
        return object
    elif isinstance(object, Sequence):
        return list(map(_detach, object))
    elif isinstance(object, Mapping):
        return {key: _detach(value) for key, value in object.items()}
    elif isinstance(object, Set):
        return set(map(_detach, object))
    return object


def mirror(name, /):
    """
    Read-only property returning a detached copy of self._{name}.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    attribute = "_" + name

    @rename(name)
    def getter(self):
        return _detach(getattr(self, attribute))

    return property(getter)


_IDENTIFIER = re.compile(r"(?!\d)\w+")
_WILDCARDS = re.compile(r"\\(.)|(\*)|(\?)|\[(!?)([^\]]+)\]|(.)", re.DOTALL)


def _translate(segment):
    # Wildcards inside a segment never cross a dot.
    if segment == "**":
        return r"(?:\.(?!\d)\w+)*"

    def replace(match):
        escaped, star, question, negated, members, literal = match.groups()
        if star:
            return r"[^.]*"
        elif question:
            return r"[^.]"
        elif members:
            return "[" + ("^" if negated else "") + members.replace("\\", "\\\\") + "]"
        return re.escape(escaped or literal)

    return r"\." + _WILDCARDS.sub(replace, segment)


@functools.cache
def _module_regex(pattern):
    head, *rest = pattern.split(".")
    return re.compile(_translate(head)[2:] + "".join(map(_translate, rest)))


def walk_modules(pattern, /):
    """
    Expand a dotted module glob into the sorted names of the modules it matches.

    "*", "?" and "[...]" ("[!...]" negated) match within one segment, "**" spans any
    number of whole segments. The leading segments up to the first wildcard name the
    package that is walked; if it cannot be imported nothing matches. A pattern without
    wildcards is returned unchanged.

    Raises
    - TypeError: when pattern is not a string.
    - ValueError: when pattern is empty or starts with a wildcard.
    """
    if not isinstance(pattern, str):
        raise TypeError("walk_modules() argument must be a string")
    elif not (pattern := pattern.strip()):
        raise ValueError("walk_modules() argument cannot be empty")

    segments = pattern.split(".")
    if all(map(_IDENTIFIER.fullmatch, segments)):
        return [pattern]

    package = []
    for segment in segments:
        if not _IDENTIFIER.fullmatch(segment):
            break
        package.append(segment)
    if not package:
        raise ValueError(f"module pattern {pattern!r} must start with a package name")

    try:
        root = importlib.import_module(prefix := ".".join(package))
    except ImportError:
        return []

    regex = _module_regex(pattern)
    found = {prefix} if regex.fullmatch(prefix) else set()
    for module in pkgutil.walk_packages(getattr(root, "__path__", ()), prefix + "."):
        if regex.fullmatch(module.name):
            found.add(module.name)
    return sorted(found)


Unset = UnsetType()


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "walk_modules",
    "UnsetType",
    "Unset",
)
