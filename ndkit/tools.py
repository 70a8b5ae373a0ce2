"""
Tool capabilities: languages, compilers, linkers, outputs, subsystems and templates.

Each capability pairs a Tool base class with a registration marker:

    @language_info("csharp", "12.0")
    class CSharp12(LanguageInfo):
        identifier = "csharp"
        full_name = "C#"
        language_version = "12.0"

Lookups go through the default registry unless a registry= is given.
"""
import abc
import functools

from .registry import Tool, ToolMarker
from . import registry as registries
from .utils import *
from .versions import HOST_VERSION, version_key


def _registry(registry):
    return coalesce(registry, registries.default_registry)


def resolve_highest(candidates, /):
    """
    The language with the highest version among candidates (first one on ties), or None.
    """
    candidates = sorted(candidates, key=lambda candidate: version_key(candidate.language_version), reverse=True)
    return candidates[0] if candidates else None


@functools.total_ordering
class LanguageInfo(Tool):
    """
    A language at one version. Ordering: by identifier, then highest version first.
    """
    identifier = ""
    full_name = ""
    language_version = ""
    aliases = ()
    extensions = ()

    @property
    def name(self):
        return self.language_version

    @property
    def language(self):
        return self.identifier

    def __eq__(self, other):
        if not isinstance(other, LanguageInfo):
            return NotImplemented
        return (self.identifier, version_key(self.language_version)) == \
            (other.identifier, version_key(other.language_version))

    def __lt__(self, other):
        if not isinstance(other, LanguageInfo):
            return NotImplemented
        if self.identifier != other.identifier:
            return self.identifier < other.identifier
        return version_key(self.language_version) > version_key(other.language_version)

    __hash__ = Tool.__hash__

    @classmethod
    def get(cls, identifier, language_version, /, *, registry=Unset):
        return _registry(registry).lookup(cls, language_version, identifier)

    @classmethod
    def all(cls, identifier, /, *, registry=Unset):
        return [language for language in _registry(registry).lookup_all(cls) if language.identifier == identifier]

    @classmethod
    def first(cls, identifier, /, *, registry=Unset):
        return next(iter(cls.all(identifier, registry=registry)), None)

    @classmethod
    def highest(cls, identifier, /, *, registry=Unset):
        return resolve_highest(cls.all(identifier, registry=registry))


class CompilerInfo(Tool):
    variant = ""
    target_language = ""

    @property
    def name(self):
        return self.variant

    @property
    def language(self):
        return self.target_language

    @classmethod
    def get(cls, variant, language, /, *, registry=Unset):
        return _registry(registry).lookup(cls, variant, language)


class LinkerInfo(Tool):
    variant = ""

    @property
    def name(self):
        return self.variant

    @classmethod
    def get(cls, variant, /, *, registry=Unset):
        return _registry(registry).lookup(cls, variant)


class OutputInfo(Tool):
    variant = ""

    @property
    def name(self):
        return self.variant

    @classmethod
    def get(cls, variant, /, *, registry=Unset):
        return _registry(registry).lookup(cls, variant)


class Subsystem(Tool):
    """
    A hub command. invoke() receives the tokens after the subsystem name.
    """
    subsystem = ""
    description = ""
    detailed_description = ""

    @property
    def name(self):
        return self.subsystem

    @abc.abstractmethod
    def invoke(self, tokens, /):
        """
        Run the subsystem; return the process exit code.
        """

    @classmethod
    def get(cls, name, /, *, registry=Unset):
        return _registry(registry).lookup(cls, name)


class Template(Tool):
    identifier = ""
    description = ""
    target_language = ""

    @property
    def name(self):
        return self.identifier

    @property
    def language(self):
        return self.target_language

    @classmethod
    def get(cls, language, name, /, *, registry=Unset):
        return _registry(registry).lookup(cls, name, language)

    @classmethod
    def first(cls, language, /, *, registry=Unset):
        return next((template for template in _registry(registry).lookup_all(cls)
                     if template.language == language), None)


class LanguageInfoMarker(ToolMarker):
    required_base = LanguageInfo


class CompilerInfoMarker(ToolMarker):
    required_base = CompilerInfo


class LinkerInfoMarker(ToolMarker):
    required_base = LinkerInfo


class OutputInfoMarker(ToolMarker):
    required_base = OutputInfo


class SubsystemMarker(ToolMarker):
    required_base = Subsystem


class TemplateMarker(ToolMarker):
    required_base = Template


def language_info(language, language_version, version=str(HOST_VERSION)):
    return LanguageInfoMarker(language_version, language, version)


def compiler_info(variant, language, version=str(HOST_VERSION)):
    return CompilerInfoMarker(variant, language, version)


def linker_info(variant, version=str(HOST_VERSION)):
    return LinkerInfoMarker(variant, "", version)


def output_info(variant, version=str(HOST_VERSION)):
    return OutputInfoMarker(variant, "", version)


def subsystem(name, version=str(HOST_VERSION)):
    return SubsystemMarker(name, "", version)


def template(language, name, version=str(HOST_VERSION)):
    return TemplateMarker(name, language, version)


@linker_info("standardlib")
class StandardLibraryLinker(LinkerInfo):
    """
    Links against the standard library of the target language.
    """
    variant = "standardlib"


def __tools__():
    return [StandardLibraryLinker]


__all__ = (
    # Capabilities
    "LanguageInfo",
    "CompilerInfo",
    "LinkerInfo",
    "OutputInfo",
    "Subsystem",
    "Template",

    # Markers
    "LanguageInfoMarker",
    "CompilerInfoMarker",
    "LinkerInfoMarker",
    "OutputInfoMarker",
    "SubsystemMarker",
    "TemplateMarker",
    "language_info",
    "compiler_info",
    "linker_info",
    "output_info",
    "subsystem",
    "template",

    # Resolution
    "resolve_highest",

    # Built-ins
    "StandardLibraryLinker",
)
