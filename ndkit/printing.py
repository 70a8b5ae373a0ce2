"""
Rendering of parse diagnostics and argument listings with rich.

The argument engine itself prints nothing; hosts call these helpers to show results.

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry
  (prog-name, code, title, warning, error, positional, variable, flag, separator, descr).
- Define __prog__ in __main__ to set the program name used in headings.
- colorful=False strips every style.
"""
import os
import sys

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .faults import Diagnostic, FaultCode, styles
from .utils import *


def _console(console):
    return console if console is not None else Console(stderr=True)


def prog():
    """
    The program name: __main__.__prog__, else the basename of sys.argv[0].
    """
    return getattr(__import__("__main__"), "__prog__", None) or os.path.basename(sys.argv[0] or "ndkit")


def _kinds(schema):
    if schema is None:
        return {}
    return {declaration.name: declaration.kind for declaration in schema}


def issues(result, schema=None, /, *, formats=None, colorful=True):
    """
    The non-empty diagnostic sets of a parse result, in the order unknown, duplicate,
    missing, unparsed.
    """
    kinds = _kinds(schema)
    # "name[3]" is styled like "name".
    for name in result.unparsed:
        if (base := name.partition("[")[0]) in kinds:
            kinds.setdefault(name, kinds[base])

    diagnostics = []
    for code, names in (
        (FaultCode.UNKNOWN_ARGUMENT, result.unknown),
        (FaultCode.DUPLICATED_ARGUMENT, result.duplicate),
        (FaultCode.MISSING_ARGUMENT, result.missing),
        (FaultCode.UNPARSED_ARGUMENT, result.unparsed),
    ):
        if names:
            diagnostics.append(Diagnostic(code, tuple(names), kinds, dict(formats or {}), colorful))
    return diagnostics


def defects(schema, /, *, colorful=True):
    """
    A Diagnostic listing the fields of a schema that cannot be bound, or None.
    """
    if not schema.invalid:
        return None
    return Diagnostic(FaultCode.INVALID_FIELD, tuple(field.field for field in schema.invalid), colorful=colorful)


def print_issues(result, schema=None, /, *, console=None, formats=None, colorful=True):
    """
    Print every non-empty diagnostic set. Returns whether anything was printed.
    """
    diagnostics = issues(result, schema, formats=formats, colorful=colorful)
    if diagnostics:
        _console(console).print(Group(*diagnostics))
    return bool(diagnostics)


def _label(declaration, table, colorful):
    style = table[declaration.kind] if colorful else ""
    if declaration.positional:
        label = Text.assemble("<", (declaration.name, style), ">")
    elif declaration.variable:
        label = Text.assemble((declaration.name, style), ":", ("value", table["descr"] if colorful else ""))
    else:
        label = Text(declaration.name, style)
    if declaration.collection is not None:
        label.append("..." if declaration.remainder else "[,]")
    return label


def print_category(schema, category="", /, *, console=None, title=Unset, formats=None, colorful=True):
    """
    Print the declarations of one category as a two-column listing (name, description).

    Returns False when the category is empty.
    """
    declarations = schema.by_category(category)
    if not declarations:
        return False

    table = styles()
    formats = formats or {}
    grid = Table.grid(padding=(0, 3))
    grid.add_column(no_wrap=True)
    grid.add_column()
    for declaration in declarations:
        label = _label(declaration, table, colorful)
        if declaration.name in formats:
            label.stylize(formats[declaration.name])
        if declaration.required:
            label.append(" *", table["separator"] if colorful else "")
        grid.add_row(Text("  ").append_text(label), Text(declaration.descr or "", table["descr"] if colorful else ""))

    heading = coalesce(title, category)
    renderables = [Text(heading + ":", table["title"] if colorful else "")] if heading else []
    _console(console).print(Group(*renderables, grid))
    return True


def print_help(schema, /, *, console=None, usage=Unset, colorful=True):
    """
    Print a usage line followed by every category of the schema.
    """
    console = _console(console)
    table = styles()
    head = Text.assemble(("usage: ", table["title"] if colorful else ""), (prog(), table["prog-name"] if colorful else ""))
    if usage := coalesce(usage, ""):
        head.append(" " + usage)
    console.print(head)
    for category in schema.categories:
        console.print()
        print_category(schema, category, console=console, title=category or "Arguments", colorful=colorful)


__all__ = (
    "prog",
    "issues",
    "defects",
    "print_issues",
    "print_category",
    "print_help",
)
