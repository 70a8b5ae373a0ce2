# python
"""
Argument engine behavioral tests.

Scope
- Markers: metadata validation, derived names.
- Extraction: ordering, determinism, sticky categories, invalid fields.
- Parsing: flags, variables, positionals, collections, remainders, diagnostics.

Conventions
- Test method names follow CamelCase per project convention.
- Schemas are declared at module level so their annotations resolve against module globals.
"""
import enum
import unittest
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path
from typing import Annotated
from unittest import TestCase

from ndkit import (
    Arguments,
    Category,
    Flag,
    InvalidField,
    MarkerError,
    ParseResult,
    Positional,
    Remainder,
    Required,
    Schema,
    SemanticVersion,
    Variable,
    extract,
    parse,
)


class ViewOption(enum.Enum):
    PROPERTIES = 0
    OUTLINE = 1


class Point:
    def __init__(self, x=0, y=0):
        self.x, self.y = x, y

    def __eq__(self, other):
        return isinstance(other, Point) and (self.x, self.y) == (other.x, other.y)

    @classmethod
    def __tryparse__(cls, text, locale=None):
        x, separator, y = text.partition("x")
        if not (separator and x.isdigit() and y.isdigit()):
            return False, None
        return True, cls(int(x), int(y))


class StartArguments(Arguments):
    language: Annotated[str, Positional(0, descr="the language"), Required()] = ""
    template: Annotated[str | None, Positional(1)] = None
    directory: Annotated[str | None, Variable("-dir")] = None


class ViewArguments(Arguments):
    option: Annotated[ViewOption, Positional(0)] = ViewOption.PROPERTIES
    file: Annotated[str | None, Category("Arguments"), Variable("-file")] = None
    depth: Annotated[int, Variable()] = 1
    detailed: Annotated[bool, Flag()] = False


class VerboseArguments(Arguments):
    verbose: Annotated[bool, Flag("--verbose")] = False
    level: Annotated[int, Flag("--level")] = 0
    count: Annotated[int | None, Flag("--count")] = None


class RunArguments(Arguments):
    command: Annotated[str, Positional(0)] = ""
    rest: Annotated[list[str], Positional(1), Remainder()] = []


class NumbersArguments(Arguments):
    numbers: Annotated[list[int], Variable("-n")] = []
    sizes: Annotated[tuple[float, ...], Variable("-sizes")] = ()
    tail: Annotated[Sequence[int], Variable("-tail"), Remainder()] = []


class ScalarArguments(Arguments):
    count: Annotated[int, Variable()] = 0
    ratio: Annotated[float, Variable()] = 0.0
    enabled: Annotated[bool, Variable()] = False
    option: Annotated[ViewOption, Variable()] = ViewOption.PROPERTIES
    name: Annotated[str, Variable()] = ""
    amount: Annotated[Decimal, Variable()] = Decimal(0)
    path: Annotated[Path | None, Variable()] = None
    point: Annotated[Point | None, Variable()] = None


class CategorizedArguments(Arguments):
    first: Annotated[str | None, Positional(0)] = None
    second: Annotated[str | None, Category("Output"), Variable("-out")] = None
    broken: Annotated[object, Variable("-broken")] = None
    third: Annotated[bool, Flag("--third")] = False
    untouched: int = 3
    fourth: Annotated[str | None, Category("Other"), Variable("-fourth")] = None


class InvalidArguments(Arguments):
    counter: Annotated[str, Flag("--counter")] = ""
    many: Annotated[list[bool], Flag("--many")] = []
    both: Annotated[str, Positional(0), Variable("-both")] = ""
    fine: Annotated[int, Variable("-fine")] = 0


class CollidingArguments(Arguments):
    first: Annotated[str | None, Positional(0)] = None
    second: Annotated[str | None, Positional(0)] = None


class DerivedArguments(Arguments):
    root_dir: Annotated[str | None, Variable()] = None
    dry_run: Annotated[bool, Flag()] = False
    source_file: Annotated[str | None, Positional(0)] = None


class ReleaseArguments(Arguments):
    version: Annotated[SemanticVersion, Variable("-version")] = SemanticVersion(1, 0)


class BaseArguments(Arguments):
    verbose: Annotated[bool, Flag()] = False


class ChildArguments(BaseArguments):
    target: Annotated[str | None, Positional(0)] = None


class TestMarkers(TestCase):
    """Marker construction and validation."""

    def testPositionalIndexMustBeInteger(self):
        with self.assertRaises(MarkerError):
            Positional("0")

    def testPositionalIndexCannotBeNegative(self):
        with self.assertRaises(ValueError):
            Positional(-1)

    def testVariableNameMustBeShellStyle(self):
        with self.assertRaises(ValueError):
            Variable("dir")

    def testFlagNameCannotBeEmpty(self):
        with self.assertRaises(ValueError):
            Flag("  ")

    def testDescrMustBeString(self):
        with self.assertRaises(TypeError):
            Variable("-x", descr=3)

    def testMarkerEquality(self):
        self.assertEqual(Variable("-x"), Variable("-x"))
        self.assertNotEqual(Variable("-x"), Flag("-x"))

    def testRepr(self):
        self.assertEqual(repr(Positional(0)), "positional(index=0, name=None, descr=None)")


class TestExtraction(TestCase):
    """Schema extraction."""

    def testDeterministic(self):
        self.assertIs(extract(ViewArguments), extract(ViewArguments))
        self.assertEqual(
            [declaration.name for declaration in extract(ViewArguments)],
            ["option", "-file", "-depth", "--detailed"],
        )

    def testDeclarationShape(self):
        declaration = extract(StartArguments).get("language")
        self.assertEqual(declaration.kind, "positional")
        self.assertEqual(declaration.index, 0)
        self.assertEqual(declaration.descr, "the language")
        self.assertIs(declaration.element, str)
        self.assertIsNone(declaration.collection)
        self.assertTrue(declaration.required)

    def testOptionalUnwrapped(self):
        self.assertIs(extract(StartArguments).get("-dir").element, str)

    def testCollectionElement(self):
        schema = extract(NumbersArguments)
        self.assertIs(schema.get("-n").element, int)
        self.assertIs(schema.get("-n").collection, list)
        self.assertIs(schema.get("-sizes").collection, tuple)
        self.assertTrue(schema.get("-tail").remainder)
        self.assertFalse(schema.get("-n").remainder)

    def testStickyCategory(self):
        schema = extract(CategorizedArguments)
        self.assertEqual(schema.get("first").category, "")
        self.assertEqual(schema.get("-out").category, "Output")
        self.assertEqual(schema.get("--third").category, "Output")
        self.assertEqual(schema.get("-fourth").category, "Other")
        self.assertEqual(schema.categories, ("", "Output", "Other"))

    def testInvalidFieldKeepsCategory(self):
        invalid, = extract(CategorizedArguments).invalid
        self.assertEqual(invalid.field, "broken")
        self.assertEqual(invalid.category, "Output")
        self.assertNotIn("-broken", extract(CategorizedArguments))

    def testUnmarkedFieldSkipped(self):
        schema = extract(CategorizedArguments)
        self.assertNotIn("untouched", [declaration.field for declaration in schema])

    def testInvalidFlags(self):
        schema = extract(InvalidArguments)
        self.assertEqual([field.field for field in schema.invalid], ["counter", "many", "both"])
        self.assertEqual([declaration.name for declaration in schema], ["-fine"])

    def testDerivedNames(self):
        schema = extract(DerivedArguments)
        self.assertIn("-root-dir", schema)
        self.assertIn("--dry-run", schema)
        self.assertEqual(schema.get("-root-dir").field, "root_dir")
        self.assertEqual(schema.at(0).name, "source_file")
        self.assertIsNone(schema.at(0).descr)

    def testInvalidFieldRecords(self):
        invalid = extract(InvalidArguments).invalid
        self.assertTrue(all(isinstance(field, InvalidField) for field in invalid))
        self.assertEqual(invalid[2].reason, "more than one of positional, variable or flag")

    def testDefaultKeepsItsType(self):
        default = extract(ReleaseArguments).get("-version").default
        self.assertIsInstance(default, SemanticVersion)
        self.assertEqual(ReleaseArguments.parse([]).version, SemanticVersion(1, 0))
        self.assertEqual(ReleaseArguments.parse(["-version:2.1"]).version, SemanticVersion(2, 1))

    def testInheritedFieldsComeFirst(self):
        self.assertEqual([declaration.name for declaration in extract(ChildArguments)], ["--verbose", "target"])

    def testPositionalCollisionFirstMatch(self):
        schema = extract(CollidingArguments)
        self.assertEqual(len(schema.positionals), 2)
        self.assertEqual(schema.at(0).field, "first")

    def testByCategory(self):
        schema = extract(ViewArguments)
        self.assertEqual([declaration.name for declaration in schema.by_category("Arguments")],
                         ["-file", "-depth", "--detailed"])

    def testDeclarationReadOnly(self):
        declaration = extract(StartArguments).get("language")
        with self.assertRaises(AttributeError):
            declaration.name = "other"

    def testExtractRequiresClass(self):
        with self.assertRaises(TypeError):
            extract(StartArguments())


class TestParse(TestCase):
    """Token scanning and diagnostics."""

    def testPositionalsAndVariable(self):
        args = StartArguments.parse(["csharp", "console", "-dir:./app"])
        self.assertEqual((args.language, args.template, args.directory), ("csharp", "console", "./app"))
        self.assertEqual(args.parsed, ("language", "template", "-dir"))
        self.assertTrue(args.any_arguments)

    def testVariableTakesNextToken(self):
        args = StartArguments.parse(["-dir", "./app", "csharp"])
        self.assertEqual(args.directory, "./app")
        self.assertEqual(args.language, "csharp")

    def testVariableValueKeepsColons(self):
        args = StartArguments.parse(["-dir:C:/app"])
        self.assertEqual(args.directory, "C:/app")

    def testVariableWithoutValue(self):
        args = StartArguments.parse(["csharp", "-dir"])
        self.assertEqual(args.unparsed, ("-dir",))
        self.assertIsNone(args.directory)

    def testStringTokensAreSplit(self):
        args = StartArguments.parse('csharp -dir "my app"')
        self.assertEqual(args.directory, "my app")

    def testUnknownPositional(self):
        args = StartArguments.parse(["csharp", "console", "extra"])
        self.assertEqual(args.unknown, ("extra",))

    def testMissingRequired(self):
        args = StartArguments.parse([])
        self.assertEqual(args.missing, ("language",))
        self.assertFalse(args.any_arguments)
        self.assertTrue(args.result.failed)

    def testRequiredSatisfied(self):
        self.assertEqual(StartArguments.parse(["csharp"]).missing, ())

    def testDuplicateFlag(self):
        args = VerboseArguments.parse(["--verbose", "--verbose"])
        self.assertEqual(args.parsed, ("--verbose",))
        self.assertEqual(args.duplicate, ("--verbose",))
        self.assertIs(args.verbose, True)

    def testIntegerFlagCycles(self):
        self.assertEqual(VerboseArguments.parse(["--level"]).level, 1)

    def testOptionalCounterFlag(self):
        self.assertEqual(VerboseArguments.parse([]).count, 0)
        count = VerboseArguments.parse(["--count"]).count
        self.assertIs(type(count), int)
        self.assertEqual(count, 1)

    def testDuplicateVariable(self):
        args = StartArguments.parse(["csharp", "-dir:a", "-dir:b"])
        self.assertEqual(args.directory, "a")
        self.assertEqual(args.duplicate, ("-dir",))

    def testEnumCaseInsensitive(self):
        self.assertIs(ViewArguments.parse(["OutLine"]).option, ViewOption.OUTLINE)

    def testEnumFailure(self):
        args = ViewArguments.parse(["tree"])
        self.assertEqual(args.unparsed, ("option",))
        self.assertIs(args.option, ViewOption.PROPERTIES)

    def testRemainderCapture(self):
        args = RunArguments.parse(["run", "a", "b", "c"])
        self.assertEqual(args.command, "run")
        self.assertEqual(args.rest, ["a", "b", "c"])

    def testRemainderSwallowsNamedTokens(self):
        args = NumbersArguments.parse(["-tail", "1", "-n", "2"])
        self.assertEqual(args.tail, [1, 0, 2])
        self.assertEqual(args.unparsed, ("-tail[1]",))
        self.assertEqual(args.numbers, [])

    def testBracketedCollection(self):
        args = NumbersArguments.parse(["-n:[1,2,3]", "-sizes:[1.5,2]"])
        self.assertEqual(args.numbers, [1, 2, 3])
        self.assertEqual(args.sizes, (1.5, 2.0))

    def testEmptyBrackets(self):
        args = NumbersArguments.parse(["-n:[]"])
        self.assertEqual(args.numbers, [])
        self.assertEqual(args.parsed, ("-n",))

    def testCollectionWithoutBrackets(self):
        args = NumbersArguments.parse(["-n:1,2"])
        self.assertEqual(args.unparsed, ("-n",))
        self.assertEqual(args.numbers, [])

    def testPartialCollectionFailure(self):
        args = NumbersArguments.parse(["-n:[1,xx,3]"])
        self.assertEqual(args.numbers, [1, 0, 3])
        self.assertIn("-n", args.parsed)
        self.assertEqual(args.unparsed, ("-n[1]",))

    def testCompleteCollectionFailure(self):
        args = NumbersArguments.parse(["-n:[a,b]"])
        self.assertNotIn("-n", args.parsed)
        self.assertEqual(args.unparsed, ("-n[0]", "-n[1]"))

    def testMutableDefaultsNotShared(self):
        first = RunArguments.parse(["run"])
        first.rest.append("x")
        self.assertEqual(RunArguments.parse(["run"]).rest, [])
        self.assertEqual(RunArguments.rest, [])

    def testModuleParse(self):
        result = parse(["csharp"], extract(StartArguments))
        self.assertIsInstance(result, ParseResult)
        self.assertEqual(result.values["language"], "csharp")

    def testParseRequiresSchema(self):
        with self.assertRaises(TypeError):
            parse(["csharp"], StartArguments)

    def testParseRequiresStrings(self):
        with self.assertRaises(TypeError):
            StartArguments.parse([1, 2])

    def testBaseClassHasNoSchema(self):
        with self.assertRaises(TypeError):
            Arguments.parse([])

    def testSchemaProperty(self):
        self.assertIsInstance(StartArguments.schema(), Schema)

    def testIssues(self):
        issues = StartArguments.parse(["csharp", "a", "b", "-dir"]).issues()
        self.assertEqual([diagnostic.names for diagnostic in issues], [("b",), ("-dir",)])

    def testRichRepr(self):
        args = StartArguments.parse(["csharp"])
        self.assertEqual(dict(args.__rich_repr__()), {"language": "csharp", "template": None, "directory": None})


class TestRoundTrip(TestCase):
    """Values written back to text parse to the same value."""

    def testScalars(self):
        for field, value in (
                ("count", 42),
                ("ratio", 2.5),
                ("enabled", True),
                ("option", ViewOption.OUTLINE),
                ("name", "hello world"),
                ("amount", Decimal("1.25")),
                ("path", Path("some/where")),
        ):
            with self.subTest(field=field):
                text = value.name if isinstance(value, enum.Enum) else str(value)
                args = ScalarArguments.parse([f"-{field}:{text}"])
                self.assertEqual(getattr(args, field), value)

    def testCustomContract(self):
        self.assertEqual(ScalarArguments.parse(["-point:3x4"]).point, Point(3, 4))
        self.assertEqual(ScalarArguments.parse(["-point:3y4"]).unparsed, ("-point",))


if __name__ == "__main__":
    unittest.main()
