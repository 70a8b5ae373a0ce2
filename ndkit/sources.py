"""
Unit sources: where the registry gets its units from.

Every loader returns a UnitLoadResult; load failures are collected as messages, never raised.
"""
import hashlib
import importlib
import importlib.metadata
import importlib.util
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .faults import FaultCode
from .utils import walk_modules

_logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "ndkit.tools"
PATH_VARIABLE = "NDKIT_TOOLS_PATH"
MODULES_VARIABLE = "NDKIT_TOOLS_MODULES"


@dataclass(frozen=True)
class UnitLoadResult:
    units: list = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def __add__(self, other):
        if not isinstance(other, UnitLoadResult):
            return NotImplemented
        return UnitLoadResult(self.units + other.units, self.errors + other.errors)

    def __bool__(self):
        return bool(self.units)


def _failed(errors, message):
    _logger.warning("[%s] %s", FaultCode.UNIT_LOAD_FAILED.normalize(), message)
    errors.append(message)


def _load_file(path):
    # Unique per absolute path so two directories can both ship "tools.py".
    digest = hashlib.sha1(str(path).encode()).hexdigest()[:12]
    name = f"ndkit_unit_{path.stem}_{digest}"
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot load unit from {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(name, None)
        raise
    return module


def load_directory(path, /):
    """
    Load every "*.py" file of a directory (names starting with "_" are skipped).
    """
    units, errors = [], []
    path = Path(path).expanduser()
    if not path.is_dir():
        _failed(errors, f"unit directory does not exist: {path}")
        return UnitLoadResult(units, errors)

    for file in sorted(path.glob("*.py")):
        if file.name.startswith("_"):
            continue
        try:
            units.append(_load_file(file.resolve()))
        except Exception as error:
            _failed(errors, f"failed to load unit {file}: {error}")
    return UnitLoadResult(units, errors)


def load_pattern(pattern, /):
    """
    Import every module matching a module glob such as "vendor.tools.*" or "vendor.**.tools".
    """
    units, errors = [], []
    try:
        names = walk_modules(pattern)
    except ValueError as error:
        _failed(errors, str(error))
        return UnitLoadResult(units, errors)
    for name in names:
        try:
            units.append(importlib.import_module(name))
        except Exception as error:
            _failed(errors, f"failed to import unit {name}: {error}")
    return UnitLoadResult(units, errors)


def load_entry_points(group=ENTRY_POINT_GROUP, /):
    """
    Load the objects published under an entry point group by installed distributions.
    """
    units, errors = [], []
    for entry_point in importlib.metadata.entry_points(group=group):
        try:
            units.append(entry_point.load())
        except Exception as error:
            _failed(errors, f"failed to load entry point {entry_point.name!r}: {error}")
    return UnitLoadResult(units, errors)


def load_environment(variable=PATH_VARIABLE, /):
    """
    Load the directories listed (os.pathsep separated) in an environment variable.
    """
    result = UnitLoadResult()
    seen = set()
    for part in os.environ.get(variable, "").split(os.pathsep):
        if not (part := part.strip()) or (path := Path(part).expanduser()) in seen:
            continue
        seen.add(path)
        result += load_directory(path)
    return result


def load_modules(variable=MODULES_VARIABLE, /):
    """
    Import the module globs listed (comma separated) in an environment variable.
    """
    result = UnitLoadResult()
    for pattern in dict.fromkeys(filter(None, map(str.strip, os.environ.get(variable, "").split(",")))):
        result += load_pattern(pattern)
    return result


__all__ = (
    "UnitLoadResult",
    "ENTRY_POINT_GROUP",
    "PATH_VARIABLE",
    "MODULES_VARIABLE",
    "load_directory",
    "load_pattern",
    "load_entry_points",
    "load_environment",
    "load_modules",
)
