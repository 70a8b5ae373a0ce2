"""
ndkit faults: fault codes, exceptions and diagnostic records.

Scope
- FaultCode: canonical, stable numeric identifiers for every reportable condition
  (per-invocation argument issues, schema defects, registry conditions).
- NdkitError and friends: raised only for programmer errors (malformed markers,
  parsing against something that is not a schema) and for tool construction failures.
- Diagnostic: a named collection of argument names under one fault code. The argument
  engine never raises for bad input; it produces diagnostics and lets the host decide.

Rendering
- Diagnostic implements __rich__ so a host can print it directly with rich. Styles can be
  overridden through a __styles__ mapping in __main__, the program name through __prog__.
"""
from collections import defaultdict
from collections.abc import Mapping
from types import MappingProxyType
from enum import IntEnum
from typing import NamedTuple

from rich.console import Group
from rich.text import Text


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - arguments (21xxx): UNKNOWN_ARGUMENT, DUPLICATED_ARGUMENT, MISSING_ARGUMENT,
      UNPARSED_ARGUMENT
    - schema defects (22xxx): INVALID_FIELD
    - registry (23xxx): UNIT_LOAD_FAILED, TOOL_INSTANTIATION_FAILED
    """
    # --- argument issues (21xxx) ---
    UNKNOWN_ARGUMENT            = 21101
    DUPLICATED_ARGUMENT         = 21102
    MISSING_ARGUMENT            = 21103
    UNPARSED_ARGUMENT           = 21104

    # --- schema defects (22xxx) ---
    INVALID_FIELD               = 22101

    # --- registry (23xxx) ---
    UNIT_LOAD_FAILED            = 23101
    TOOL_INSTANTIATION_FAILED   = 23102

    def normalize(self):
        """
        return a host-normalized label for this code.

        the host application can provide a __codes__ mapping in __main__ to override the
        numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class NdkitError(Exception):
    """
    Base class of every exception raised by ndkit.
    """
    code = None


class MarkerError(NdkitError, TypeError):
    """
    A field marker or registration marker was declared incorrectly.
    """


class ToolInstantiationError(NdkitError):
    """
    A registered tool type could not be constructed on first lookup.
    """
    code = FaultCode.TOOL_INSTANTIATION_FAILED

    def __init__(self, registration, /):
        super().__init__(f"unable to instantiate tool {registration.type.__qualname__!r} "
                         f"registered as {registration.key!r}")
        self.registration = registration


# Headline copy per code: (singular, plural) templates, count first.
_HEADLINES = {
    FaultCode.UNKNOWN_ARGUMENT: ("%d argument was not recognized:", "%d arguments were not recognized:"),
    FaultCode.DUPLICATED_ARGUMENT: ("%d argument was included more than once:", "%d arguments were included more than once:"),
    FaultCode.MISSING_ARGUMENT: ("%d argument is missing:", "%d arguments are missing:"),
    FaultCode.UNPARSED_ARGUMENT: ("%d argument has failed to be parsed:", "%d arguments have failed to be parsed:"),
    FaultCode.INVALID_FIELD: ("%d field cannot be bound:", "%d fields cannot be bound:"),
}

# Warnings are amber, errors are red.
_SEVERITY = {
    FaultCode.UNKNOWN_ARGUMENT: "warning",
    FaultCode.DUPLICATED_ARGUMENT: "warning",
    FaultCode.MISSING_ARGUMENT: "error",
    FaultCode.UNPARSED_ARGUMENT: "error",
    FaultCode.INVALID_FIELD: "error",
}


def styles():
    """
    resolve the active style table (defaults merged with __main__.__styles__).
    """
    return defaultdict(str, {
        "prog-name": "bold #E6E6F0",
        "code": "bold #00E5FF",
        "title": "bold #E6E6F0",
        "warning": "italic #FFB400",
        "error": "italic #FF4D6A",
        "positional": "#C8C8D0",
        "variable": "#00B8C8",
        "flag": "#7A7F8C",
        "separator": "#FF4D6A",
        "descr": "#C8C8D0",
    } | getattr(__import__("__main__"), "__styles__", {}))


def kind_of(name, /):
    """
    guess the argument kind from its spelling: '--x' flag, '-x' variable, else positional.
    """
    if name.startswith("--"):
        return "flag"
    if name.startswith("-"):
        return "variable"
    return "positional"


class Diagnostic(NamedTuple):
    """
    One diagnostic set: a fault code and the argument names it concerns.

    The optional kinds mapping (name -> "positional" | "variable" | "flag") refines the
    styling of names whose kind cannot be guessed from their spelling; formats maps a name
    to an explicit rich style.
    """
    code: FaultCode
    names: tuple[str, ...]
    kinds: Mapping = MappingProxyType({})
    formats: Mapping = MappingProxyType({})
    colorful: bool = True

    @property
    def headline(self):
        singular, plural = _HEADLINES[self.code]
        return (singular if len(self.names) == 1 else plural) % len(self.names)

    @property
    def severity(self):
        return _SEVERITY.get(self.code, "error")

    def __bool__(self):
        return bool(self.names)

    def __rich__(self):
        table = styles()

        def styler(style):
            return table[style] if self.colorful else ""

        line = Text("  ")
        for name in self.names:
            style = self.formats.get(name) or styler(self.kinds.get(name) or kind_of(name))
            line.append_text(Text.assemble('"', (name, style if self.colorful else ""), '" '))

        return Group(Text("  " + self.headline, styler(self.severity)), line)


__all__ = (
    "FaultCode",
    "NdkitError",
    "MarkerError",
    "ToolInstantiationError",
    "Diagnostic",
    "styles",
    "kind_of",
)
