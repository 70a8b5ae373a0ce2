"""
Versioned extension registry.

A tool is a Tool subclass carrying one or more registration markers (class decorators).
Scanning a unit registers every marked tool type it provides:

    @compiler_info("gcc", "c", "0.1.0")
    @compiler_info("gcc", "c++", "0.1.0")
    class Gcc(CompilerInfo):
        ...

    default_registry.scan([my_tools_module])
    default_registry.lookup(CompilerInfo, "gcc", "c++")   # -> Gcc instance (created once)

Rules
- Registrations whose major.minor differs from the host version are skipped.
- Registrations are keyed by (variant, language, marker type); on a collision the strictly
  higher version wins and equal or lower versions are discarded.
- Units that cannot be loaded, and markers that do not fit their type, are skipped and logged.
- Instances are created on first lookup and reused for the lifetime of the registry.
"""
import abc
import importlib
import logging
import threading
import types
from typing import NamedTuple

from .faults import MarkerError, ToolInstantiationError
from .utils import *
from .versions import HOST_VERSION, SemanticVersion

_logger = logging.getLogger(__name__)


class Tool(abc.ABC):
    """
    Capability every pluggable tool implements. Tools are constructed without arguments.
    """

    @property
    @abc.abstractmethod
    def name(self):
        ...

    @property
    def language(self):
        return ""


class ToolMarker:
    """
    Base of every registration marker (repeatable class decorator).

    Subclasses set required_base to the capability the decorated type must implement;
    registrations of types outside that capability are skipped at scan time.
    """
    required_base = None

    def __init__(self, variant, language="", version=str(HOST_VERSION)):
        if not isinstance(variant, str) or not variant:
            raise MarkerError(f"{type(self).__name__} 'variant' must be a non-empty string")
        if not isinstance(language, str):
            raise MarkerError(f"{type(self).__name__} 'language' must be a string")
        if not isinstance(version, str):
            raise MarkerError(f"{type(self).__name__} 'version' must be a string")
        self.variant = variant
        self.language = language
        self.version = version

    def __call__(self, cls, /):
        if not isinstance(cls, type):
            raise MarkerError(f"@{type(self).__name__} must decorate a class")
        # Markers are stored on the decorated class only, subclasses do not inherit them.
        cls.__markers__ = cls.__dict__.get("__markers__", ()) + (self,)
        return cls

    def __repr__(self):
        return f"{type(self).__name__}({self.variant!r}, {self.language!r}, {self.version!r})"


def markers_of(cls, /):
    """
    The registration markers declared directly on a class, in decoration order.
    """
    # Decorators apply bottom-up; report them top-down as written.
    return tuple(reversed(cls.__dict__.get("__markers__", ())))


class Registration(NamedTuple):
    key: tuple
    type: type
    base: type | None
    version: SemanticVersion
    marker: ToolMarker

    @property
    def variant(self):
        return self.key[0]

    @property
    def language(self):
        return self.key[1]


class Registry:
    """
    Process-wide table of tool registrations and their lazily created instances.

    Parameters
    - host: SemanticVersion | str | (major, minor) | None. Defaults to the ndkit version;
      None disables the compatibility gate.

    All operations take the same reentrant lock.
    """

    def __init__(self, host=Unset):
        match host:
            case UnsetType():
                host = HOST_VERSION
            case None | SemanticVersion():
                pass
            case str():
                host = SemanticVersion.parse(host)
            case (int() as major, int() as minor):
                host = SemanticVersion(major, minor)
            case _:
                raise TypeError("Registry() host must be a version, a version string or None")
        self._host = host
        self._lock = threading.RLock()
        self._registrations = {}
        self._instances = {}

    @property
    def host(self):
        return self._host

    def _compatible(self, version):
        return self._host is None or version.compatibility == self._host.compatibility

    def register(self, cls, /):
        """
        Register every marker of one tool type. Returns the registrations that were accepted.
        """
        if not (isinstance(cls, type) and issubclass(cls, Tool)):
            _logger.debug("skipping %r: not a tool type", cls)
            return ()

        accepted = []
        with self._lock:
            for marker in markers_of(cls):
                if marker.required_base is not None and not issubclass(cls, marker.required_base):
                    _logger.debug("skipping %r on %s: type is not a %s",
                                  marker, cls.__qualname__, marker.required_base.__qualname__)
                    continue
                try:
                    version = SemanticVersion.parse(marker.version)
                except ValueError:
                    _logger.warning("skipping %r on %s: unparsable version", marker, cls.__qualname__)
                    continue
                if not self._compatible(version):
                    _logger.debug("skipping %r on %s: incompatible with host %s",
                                  marker, cls.__qualname__, self._host)
                    continue

                registration = Registration(
                    key=(marker.variant, marker.language, type(marker)),
                    type=cls,
                    base=marker.required_base,
                    version=version,
                    marker=marker,
                )
                if (existing := self._registrations.get(registration.key)) is not None:
                    if existing.version >= version:
                        continue
                    _logger.info("replacing %s %s with %s %s", existing.type.__qualname__, existing.version,
                                 cls.__qualname__, version)
                    del self._registrations[registration.key]
                    self._instances.pop(registration.key, None)
                self._registrations[registration.key] = registration
                accepted.append(registration)
        return tuple(accepted)

    def _types_of(self, unit):
        if isinstance(unit, str):
            try:
                unit = importlib.import_module(unit)
            except Exception:
                _logger.warning("skipping unit %r: import failed", unit, exc_info=True)
                return ()

        if callable(provider := getattr(unit, "__tools__", None)):
            try:
                return tuple(provider())
            except Exception:
                _logger.warning("skipping unit %r: __tools__() failed", unit, exc_info=True)
                return ()

        if isinstance(unit, types.ModuleType):
            return tuple(
                member for member in vars(unit).values()
                if isinstance(member, type) and member.__module__ == unit.__name__
            )

        _logger.debug("skipping unit %r: not a module or tool provider", unit)
        return ()

    def scan(self, units, /):
        """
        Register the tools of every unit (module, module name or __tools__() provider).

        Scanning the same units again leaves the registrations unchanged.
        """
        accepted = []
        with self._lock:
            for unit in units:
                for cls in self._types_of(unit):
                    accepted.extend(self.register(cls))
        return tuple(accepted)

    def registrations(self, capability=Tool, /):
        with self._lock:
            return tuple(
                registration for registration in self._registrations.values()
                if issubclass(registration.type, capability)
            )

    def instantiate(self, registration, /):
        """
        The memoized instance of a registration; construction failures are not cached.

        Raises
        - LookupError: when the registration is no longer the live one for its key.
        - ToolInstantiationError: when the tool type cannot be constructed.
        """
        with self._lock:
            if self._registrations.get(registration.key) is not registration:
                raise LookupError(f"{registration.key!r} is not registered as {registration.type.__qualname__!r}")
            if registration.key in self._instances:
                return self._instances[registration.key]
            try:
                instance = registration.type()
            except Exception as error:
                raise ToolInstantiationError(registration) from error
            self._instances[registration.key] = instance
            return instance

    def lookup(self, capability, variant, language="", /):
        """
        The instance registered for (variant, language) implementing capability, or None.
        """
        with self._lock:
            for registration in self.registrations(capability):
                if registration.key[:2] == (variant, language):
                    return self.instantiate(registration)
        return None

    def lookup_all(self, capability=Tool, /):
        """
        The instances of every registration implementing capability.

        A tool that cannot be constructed is logged and left out, so one broken tool does
        not hide the others.
        """
        instances = []
        with self._lock:
            for registration in self.registrations(capability):
                try:
                    instances.append(self.instantiate(registration))
                except ToolInstantiationError as error:
                    _logger.warning("[%s] %s", error.code.normalize(), error, exc_info=error.__cause__)
        return instances

    def clear(self):
        with self._lock:
            self._registrations.clear()
            self._instances.clear()

    def __len__(self):
        with self._lock:
            return len(self._registrations)

    def __iter__(self):
        return iter(self.registrations())

    def __contains__(self, cls):
        with self._lock:
            return any(registration.type is cls for registration in self._registrations.values())

    def __repr__(self):
        return f"Registry(host={self._host!r}, registrations={len(self)})"


default_registry = Registry()
"""
The registry used by the tool lookups and the hub unless another one is passed.
"""


__all__ = (
    "Tool",
    "ToolMarker",
    "Registration",
    "Registry",
    "markers_of",
    "default_registry",
)
