r"""
ndkit argument engine: declarative schemas, extraction and parsing.

Overview
- Markers (attached to fields with typing.Annotated)
  • Positional(index): value bound by its position among the non-named tokens.
  • Variable(name): named value, accepted as "-name:value" or "-name value".
  • Flag(name): named, value-less toggle (bool flips, int cycles between 0 and 1).
  • Category(name): sticky grouping; applies to this and every later field until changed.
  • Required(): the name is reported as missing unless it is bound.
  • Remainder(): on a collection field, consume every remaining token.

- Schemas
  • extract(cls) -> Schema: computed once per command type and cached.
  • Schema: ordered, immutable declarations plus the fields that could not be bound.

- Parsing
  • parse(tokens, schema) -> ParseResult: never raises for malformed input; every failure
    ends up in one of the diagnostic sets (parsed, duplicate, missing, unknown, unparsed).
  • Arguments.parse(tokens) -> bound instance of the schema class.

Quick example:
    >>> class StartArguments(Arguments):
    ...     language: Annotated[str, Positional(0), Required()] = ""
    ...     template: Annotated[str | None, Positional(1)] = None
    ...     directory: Annotated[str | None, Variable("-dir")] = None
    ...
    >>> args = StartArguments.parse(["csharp", "-dir:./app"])
    >>> args.language, args.directory
    ('csharp', './app')

Collections
- Fields typed list[T], tuple[T, ...] or Sequence[T] are collections of T.
- A non-remainder collection takes one bracketed token: "[a,b,c]".
- Each element is parsed independently; a failed element keeps the element type's default
  and is reported as "name[index]" in unparsed. The collection still counts as parsed
  unless every element failed.
"""
import copy
import functools
import inspect
import operator
import re
import shlex
import sys
import types
import typing
from collections.abc import Iterable, Sequence, MutableSequence
from types import MappingProxyType
from typing import Annotated, ClassVar, NamedTuple

from . import converters
from .faults import MarkerError
from .printing import issues
from .utils import *

_NAME = re.compile(r"--?[^\W\d_](-?[^\W_]+)*")


class ArgumentType(type):
    """
    Metaclass for markers, declarations and schemas.

    Responsibilities
    - Expose the names listed in __introspectable__ as read-only properties backed by
      private "_name" attributes (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.
    - Derive __typename__ from the class name ("Positional" -> "positional").
    """
    __introspectable__ = ()

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
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_text(cls, metadata, key, /):
    """
    Internal: validate an optional, non-empty string entry of marker metadata (in place).
    """
    if not isinstance(text := metadata[key], str | UnsetType):
        raise MarkerError(f"{cls.__typename__} {key!r} must be a string")
    elif isinstance(text, str) and not (text := text.strip()):
        raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")
    metadata[key] = coalesce(text)


def _sanitize_switch(cls, metadata, /):
    """
    Internal: named markers (Variable, Flag) accept only shell-style names such as
    "-dir", "-file" or "--help". Unicode letters are allowed, underscores are not.
    """
    _sanitize_text(cls, metadata, "name")
    _sanitize_text(cls, metadata, "descr")
    if metadata["name"] is not None and not _NAME.fullmatch(metadata["name"]):
        raise ValueError(f"{cls.__typename__} name {metadata["name"]!r} must be a valid shell-style name")


class Marker(metaclass=ArgumentType):
    """
    Base of every field marker. Markers are plain, immutable metadata holders.
    """
    __slots__ = ()

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return tuple(self.__rich_repr__()) == tuple(other.__rich_repr__())

    def __hash__(self):
        return hash((type(self), tuple(self.__rich_repr__())))


class Positional(Marker):
    """
    Marks a field as the positional argument at the given index.

    Parameters
    - index: int (>= 0), position among the tokens that are neither flags nor variables.
    - name: str, defaults to the field name.
    - descr: str, short description for listings.
    """
    __introspectable__ = ("index", "name", "descr")
    __slots__ = ("_index", "_name", "_descr")

    def __init__(self, index, /, name=Unset, descr=Unset):
        if not isinstance(index, int) or isinstance(index, bool):
            raise MarkerError(f"{type(self).__typename__} 'index' must be an integer")
        if index < 0:
            raise ValueError(f"{type(self).__typename__} 'index' cannot be negative")
        metadata = {"name": name, "descr": descr}
        _sanitize_text(type(self), metadata, "name")
        _sanitize_text(type(self), metadata, "descr")
        self._index = index
        self._name = metadata["name"]
        self._descr = metadata["descr"]


class Variable(Marker):
    """
    Marks a field as a named value ("-name:value" or "-name value").

    The name defaults to "-" followed by the field name (underscores become hyphens).
    """
    __introspectable__ = ("name", "descr")
    __slots__ = ("_name", "_descr")

    def __init__(self, name=Unset, /, descr=Unset):
        metadata = {"name": name, "descr": descr}
        _sanitize_switch(type(self), metadata)
        self._name = metadata["name"]
        self._descr = metadata["descr"]


class Flag(Marker):
    """
    Marks a bool or int field as a value-less toggle.

    The name defaults to "--" followed by the field name (underscores become hyphens).
    """
    __introspectable__ = ("name", "descr")
    __slots__ = ("_name", "_descr")

    def __init__(self, name=Unset, /, descr=Unset):
        metadata = {"name": name, "descr": descr}
        _sanitize_switch(type(self), metadata)
        self._name = metadata["name"]
        self._descr = metadata["descr"]


class Category(Marker):
    """
    Switches the current category for this field and every field declared after it.
    """
    __introspectable__ = ("name",)
    __slots__ = ("_name",)

    def __init__(self, name, /):
        if not isinstance(name, str):
            raise MarkerError(f"{type(self).__typename__} 'name' must be a string")
        self._name = name.strip()


class Required(Marker):
    """
    The argument is reported as missing unless it gets bound.
    """
    __slots__ = ()


class Remainder(Marker):
    """
    On a collection field, consume every remaining token as an element.
    """
    __slots__ = ()


class InvalidField(NamedTuple):
    """
    A marked field that cannot take part in parsing (schema defect).
    """
    field: str
    annotation: object
    category: str
    reason: str


class Declaration(metaclass=ArgumentType):
    """
    One bindable argument of a schema.

    Properties
    - kind: "positional" | "variable" | "flag"
    - name: the user-facing name (positional names are only used in diagnostics).
    - field: the attribute the value is bound to.
    - index: positional index, None for named arguments.
    - element: the scalar type values are converted to (element type for collections).
    - collection: the container type (list or tuple), None for scalars.
    - remainder, required: booleans.
    - default: the value the field starts from on every parse.
    """
    __introspectable__ = (
        "kind",
        "name",
        "field",
        "index",
        "descr",
        "category",
        "element",
        "collection",
        "remainder",
        "required",
        "default",
    )

    def __init__(self, **metadata):
        for name in type(self).__introspectable__:
            setattr(self, "_" + name, metadata[name])

    def __setattr__(self, name, value, /):
        if not name.startswith("_") or hasattr(self, name):
            raise AttributeError(f"{type(self).__typename__} is read-only")
        super().__setattr__(name, value)

    @property
    def positional(self):
        return self._kind == "positional"

    @property
    def variable(self):
        return self._kind == "variable"

    @property
    def flag(self):
        return self._kind == "flag"


class Schema(metaclass=ArgumentType):
    """
    The immutable argument surface of one command type.

    Declarations keep the field declaration order. Lookups by name or by index are
    first-match by declaration order.
    """
    __introspectable__ = ("type", "declarations", "invalid")

    def __init__(self, type, declarations, invalid, /):
        self._type = type
        self._declarations = tuple(declarations)
        self._invalid = tuple(invalid)

        # First declaration wins on name and index collisions.
        named = {}
        indexed = {}
        for declaration in self._declarations:
            named.setdefault(declaration.name, declaration)
            if declaration.positional:
                indexed.setdefault(declaration.index, declaration)
        self._named = MappingProxyType(named)
        self._indexed = MappingProxyType(indexed)

    @property
    def positionals(self):
        return tuple(declaration for declaration in self._declarations if declaration.positional)

    @property
    def variables(self):
        return tuple(declaration for declaration in self._declarations if declaration.variable)

    @property
    def flags(self):
        return tuple(declaration for declaration in self._declarations if declaration.flag)

    @property
    def required(self):
        return tuple(declaration.name for declaration in self._declarations if declaration.required)

    @property
    def categories(self):
        return tuple(dict.fromkeys(declaration.category for declaration in self._declarations))

    def get(self, name, /):
        """
        Return the first declaration with this name, or None.
        """
        return self._named.get(name)

    def at(self, index, /):
        """
        Return the first positional declaration with this index, or None.
        """
        return self._indexed.get(index)

    def by_category(self, category, /):
        return tuple(declaration for declaration in self._declarations if declaration.category == category)

    def __iter__(self):
        return iter(self._declarations)

    def __len__(self):
        return len(self._declarations)

    def __contains__(self, name):
        return name in self._named


def _unwrap_optional(hint):
    """
    Internal: Optional[T] / T | None -> T. Other unions are left untouched.
    """
    if typing.get_origin(hint) in (typing.Union, types.UnionType):
        arguments = tuple(argument for argument in typing.get_args(hint) if argument is not type(None))
        if len(arguments) == 1:
            return arguments[0]
    return hint


def _analyze(hint):
    """
    Internal: split a field type into (element, collection).

    - list[T], Sequence[T], MutableSequence[T] -> (T, list)
    - tuple[T, ...]                            -> (T, tuple)
    - anything else                            -> (hint, None)
    """
    hint = _unwrap_optional(hint)
    origin = typing.get_origin(hint)
    arguments = typing.get_args(hint)
    if origin in (list, Sequence, MutableSequence) and len(arguments) == 1:
        return _unwrap_optional(arguments[0]), list
    if origin is tuple and len(arguments) == 2 and arguments[1] is Ellipsis:
        return _unwrap_optional(arguments[0]), tuple
    return hint, None


def _fields(cls):
    """
    Internal: (name, type, markers, default) for every annotated field, base classes first.
    """
    hints = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name, hint in inspect.get_annotations(klass, eval_str=True).items():
            hints[name] = hint

    for name, hint in hints.items():
        if hint is ClassVar or typing.get_origin(hint) is ClassVar:
            continue
        markers = ()
        if typing.get_origin(hint) is Annotated:
            markers = tuple(marker for marker in hint.__metadata__ if isinstance(marker, Marker))
            hint = hint.__origin__
        yield name, hint, markers, getattr(cls, name, Unset)


class _Fold(NamedTuple):
    """
    Extraction accumulator: the sticky category travels with the results.
    """
    category: str
    declarations: tuple
    invalid: tuple


def _declare(state, field, /):
    """
    Internal: fold one field into the extraction state.

    The category marker is applied before anything else so that even an invalid field
    moves the current category forward.
    """
    name, hint, markers, default = field

    category = state.category
    for marker in markers:
        if isinstance(marker, Category):
            category = marker.name
    state = state._replace(category=category)

    roles = [marker for marker in markers if isinstance(marker, Positional | Variable | Flag)]
    if not roles:
        return state

    def invalid(reason):
        return state._replace(invalid=state.invalid + (InvalidField(name, hint, category, reason),))

    if len(roles) > 1:
        return invalid("more than one of positional, variable or flag")

    role, = roles
    element, collection = _analyze(hint)
    remainder = collection is not None and any(isinstance(marker, Remainder) for marker in markers)

    if not converters.parsable(element):
        return invalid(f"element type {getattr(element, "__qualname__", element)!r} has no parse contract")

    match role:
        case Positional():
            kind = "positional"
            label = role.name or name
        case Variable():
            kind = "variable"
            label = role.name or "-" + name.replace("_", "-")
        case Flag():
            kind = "flag"
            label = role.name or "--" + name.replace("_", "-").lstrip("-")
            if collection is not None or element not in (bool, int):
                return invalid("flags must be bool or int")
            if default is Unset or default is None:
                default = element()

    if kind != "positional" and not _NAME.fullmatch(label):
        return invalid(f"derived name {label!r} is not a valid shell-style name")

    declaration = Declaration(
        kind=kind,
        name=label,
        field=name,
        index=role.index if kind == "positional" else None,
        descr=role.descr,
        category=category,
        element=element,
        collection=collection,
        remainder=remainder,
        required=any(isinstance(marker, Required) for marker in markers),
        default=coalesce(default),
    )
    return state._replace(declarations=state.declarations + (declaration,))


@functools.cache
def extract(cls, /):
    """
    Build the schema of a command type (cached per type).

    Fields are scanned in declaration order. A field without a role marker is skipped. A
    marked field whose element type has no parse contract (or a flag that is neither bool
    nor int) is recorded in Schema.invalid instead of raising.

    Raises
    - TypeError: when cls is not a class.
    """
    if not isinstance(cls, type):
        raise TypeError("extract() argument must be a class")
    state = functools.reduce(_declare, _fields(cls), _Fold("", (), ()))
    return Schema(cls, state.declarations, state.invalid)


class ParseResult(metaclass=ArgumentType):
    """
    Outcome of one parse call.

    Properties
    - values: mapping field -> bound value (defaults for anything not bound).
    - any_arguments: True iff at least one name was bound.
    - parsed, duplicate, missing, unknown, unparsed: names in order of occurrence.
    """
    __introspectable__ = (
        "values",
        "any_arguments",
        "parsed",
        "duplicate",
        "missing",
        "unknown",
        "unparsed",
    )

    def __init__(self, values, parsed=(), duplicate=(), missing=(), unknown=(), unparsed=()):
        self._values = MappingProxyType(dict(values))
        self._parsed = tuple(parsed)
        self._duplicate = tuple(duplicate)
        self._missing = tuple(missing)
        self._unknown = tuple(unknown)
        self._unparsed = tuple(unparsed)
        self._any_arguments = bool(self._parsed)

    @property
    def failed(self):
        """
        Whether any token failed to convert or any required name is missing.
        """
        return bool(self._unparsed or self._missing)


def _toggle(value):
    if isinstance(value, bool):
        return not value
    if isinstance(value, int):
        return 0 if value > 0 else 1
    return True


class _Parser:
    """
    Internal: single-use, left-to-right scan over a token list.
    """

    def __init__(self, tokens, schema, locale):
        self.tokens = tokens
        self.schema = schema
        self.locale = locale
        self.values = {declaration.field: copy.deepcopy(declaration.default) for declaration in schema.declarations}
        self.parsed = []
        self.duplicate = []
        self.unknown = []
        self.unparsed = []
        self.missing = list(schema.required)

    def _switch(self, token, kind):
        declaration = self.schema.get(token)
        if declaration is not None and declaration.kind == kind:
            return declaration
        for declaration in getattr(self.schema, kind + "s"):
            if declaration.name == token:
                return declaration
        return None

    def _element(self, declaration, text):
        return converters.tryparse(declaration.element, text, self.locale)

    def _bind(self, declaration, text, index):
        """
        Apply the single-value-or-collection rule; return the index of the last consumed token.
        """
        if declaration.collection is None:
            success, value = self._element(declaration, text)
            if success:
                self.values[declaration.field] = value
                self.parsed.append(declaration.name)
            else:
                self.unparsed.append(declaration.name)
            return index

        if declaration.remainder:
            parts = [text, *self.tokens[index + 1:]]
            index = len(self.tokens) - 1
        else:
            text = text.strip()
            if len(text) < 2 or not text.startswith("[") or not text.endswith("]"):
                self.unparsed.append(declaration.name)
                return index
            parts = text[1:-1].split(",") if text[1:-1] else []

        elements = []
        failed = 0
        for position, part in enumerate(parts):
            success, value = self._element(declaration, part)
            if not success:
                failed += 1
                value = converters.default_of(declaration.element)
                self.unparsed.append(f"{declaration.name}[{position}]")
            elements.append(value)

        self.values[declaration.field] = declaration.collection(elements)
        if not (parts and failed == len(parts)):
            self.parsed.append(declaration.name)
        return index

    def run(self):
        position = 0
        index = 0
        while index < len(self.tokens):
            token = self.tokens[index]

            if (declaration := self._switch(token, "flag")) is not None:
                if declaration.name in self.parsed:
                    self.duplicate.append(declaration.name)
                    index += 1
                    continue
                self.values[declaration.field] = _toggle(self.values[declaration.field])
                self.parsed.append(declaration.name)
            elif (declaration := self._switch(token.split(":", 1)[0], "variable")) is not None:
                if declaration.name in self.parsed:
                    self.duplicate.append(declaration.name)
                    index += 1
                    continue
                _, separator, value = token.partition(":")
                if not separator:
                    index += 1
                    if index >= len(self.tokens):
                        self.unparsed.append(declaration.name)
                        continue
                    value = self.tokens[index]
                index = self._bind(declaration, value, index)
            else:
                declaration = self.schema.at(position)
                if declaration is not None:
                    index = self._bind(declaration, token, index)
                else:
                    self.unknown.append(token)
                position += 1

            if declaration is not None and declaration.name in self.parsed and declaration.name in self.missing:
                self.missing.remove(declaration.name)
            index += 1

        return ParseResult(
            self.values,
            parsed=self.parsed,
            duplicate=self.duplicate,
            missing=self.missing,
            unknown=self.unknown,
            unparsed=self.unparsed,
        )


def _tokenize(tokens):
    """
    Internal: normalize the accepted token shapes into a list of strings.
    """
    if tokens is Unset:
        return sys.argv[1:]
    if isinstance(tokens, str):
        return shlex.split(tokens)
    if not isinstance(tokens, Iterable):
        raise TypeError("parse() tokens must be a string or an iterable of strings")
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse() tokens must be a string or an iterable of strings")
    return tokens


def parse(tokens, schema, /, *, locale=None):
    """
    Parse a token list against a schema.

    Parameters
    - tokens: Iterable[str] | str (split with shlex) | Unset (sys.argv[1:]).
    - schema: a Schema built by extract().
    - locale: forwarded to every element converter.

    Returns
    - ParseResult. Malformed input never raises.

    Raises
    - TypeError: when schema is not a Schema or tokens are not strings (programmer errors).
    """
    if not isinstance(schema, Schema):
        raise TypeError("parse() schema must be built with extract()")
    return _Parser(_tokenize(tokens), schema, locale).run()


class Arguments:
    """
    Base class of command argument structures.

    Subclass it, declare fields with Annotated markers, then call parse():

        class ViewArguments(Arguments):
            option: Annotated[ViewOption, Positional(0)] = ViewOption.PROPERTIES
            file: Annotated[str | None, Category("Arguments"), Variable("-file")] = None

        args = ViewArguments.parse(["outline", "-file:app.nproj"])

    The bound instance exposes each field as an attribute together with the diagnostic
    sets of the call that produced it.
    """

    def __init__(self):
        schema = type(self).schema()
        for declaration in schema.declarations:
            setattr(self, declaration.field, copy.deepcopy(declaration.default))
        self._result = ParseResult({declaration.field: getattr(self, declaration.field) for declaration in schema})

    @classmethod
    def schema(cls):
        """
        The (cached) schema of this command type.
        """
        if cls is Arguments:
            raise TypeError("'Arguments' must be subclassed to declare a schema")
        return extract(cls)

    @classmethod
    def parse(cls, tokens=Unset, /, *, locale=None):
        """
        Parse tokens into a new bound instance of this command type.
        """
        result = parse(tokens, cls.schema(), locale=locale)
        self = cls()
        for field, value in result.values.items():
            setattr(self, field, value)
        self._result = result
        return self

    @property
    def result(self):
        return self._result

    any_arguments = property(lambda self: self._result.any_arguments)
    parsed = property(lambda self: self._result.parsed)
    duplicate = property(lambda self: self._result.duplicate)
    missing = property(lambda self: self._result.missing)
    unknown = property(lambda self: self._result.unknown)
    unparsed = property(lambda self: self._result.unparsed)

    def issues(self):
        """
        The non-empty diagnostic sets of the last parse, as Diagnostic records.
        """
        return issues(self._result, type(self).schema())

    def __rich_repr__(self):
        for declaration in type(self).schema():
            yield declaration.field, getattr(self, declaration.field)

    def __repr__(self):
        return f"{type(self).__name__}({", ".join("%s=%r" % pair for pair in self.__rich_repr__())})"


__all__ = (
    # Markers
    "Marker",
    "Positional",
    "Variable",
    "Flag",
    "Category",
    "Required",
    "Remainder",

    # Schema
    "Declaration",
    "InvalidField",
    "Schema",
    "extract",

    # Parsing
    "ParseResult",
    "parse",
    "Arguments",
)

del ArgumentType
