"""
The ndkit hub: dispatches "ndkit <subsystem> [arguments...]" to a registered Subsystem.

Exit codes
- 0: help/version shown, or the subsystem's own code.
- 1: the subsystem is not registered.
- 2: the hub arguments could not be parsed.
"""
import logging
import sys
from typing import Annotated

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from . import sources
from .arguments import Arguments, Category, Flag, Positional, Remainder
from .faults import styles
from .printing import print_help, print_issues, prog
from .registry import default_registry
from .tools import Subsystem
from .versions import HOST_VERSION

_logger = logging.getLogger(__name__)

BUILTIN_UNITS = "ndkit.tools"


class HubArguments(Arguments):
    subsystem: Annotated[str | None, Positional(0, descr="the subsystem to run")] = None
    arguments: Annotated[list[str], Positional(1, descr="arguments passed to the subsystem"), Remainder()] = []

    help: Annotated[bool, Category("Flags"), Flag("--help", descr="show this help message and exit")] = False
    version: Annotated[bool, Flag("--version", descr="show the ndkit version and exit")] = False
    verbose: Annotated[bool, Flag("--verbose", descr="log registry activity")] = False


def configure_logging(verbose=False, /, *, console=None):
    """
    Route the "ndkit" logger through rich; DEBUG when verbose, WARNING otherwise.
    """
    logger = logging.getLogger("ndkit")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handler = RichHandler(console=console or Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.handlers[:] = [handler]
    logger.propagate = False
    return logger


def populate(registry=default_registry, /, *, entry_points=True, environment=True):
    """
    Fill a registry with the built-in tools, installed entry points, the module globs of
    NDKIT_TOOLS_MODULES and the unit directories of NDKIT_TOOLS_PATH.
    """
    result = sources.load_pattern(BUILTIN_UNITS)
    if entry_points:
        result += sources.load_entry_points()
    if environment:
        result += sources.load_modules()
        result += sources.load_environment()
    registry.scan(result.units)
    _logger.debug("registry populated with %d registrations", len(registry))
    return result


def print_subsystems(registry=default_registry, /, *, console=None, colorful=True):
    console = console or Console(stderr=True)
    table = styles()
    subsystems = sorted(registry.lookup_all(Subsystem), key=lambda subsystem: subsystem.name)
    if not subsystems:
        return False
    grid = Table.grid(padding=(0, 3))
    grid.add_column(no_wrap=True)
    grid.add_column()
    for subsystem in subsystems:
        grid.add_row(
            Text("  " + subsystem.name, table["positional"] if colorful else ""),
            Text(subsystem.description, table["descr"] if colorful else ""),
        )
    console.print()
    console.print(Text("Subsystems:", table["title"] if colorful else ""))
    console.print(grid)
    return True


def main(argv=None, /, *, registry=default_registry, console=None):
    console = console or Console(stderr=True)
    arguments = HubArguments.parse(sys.argv[1:] if argv is None else argv)
    configure_logging(arguments.verbose, console=console)

    if arguments.version:
        console.print(Text(f"{prog()} {HOST_VERSION}"))
        return 0

    print_issues(arguments.result, HubArguments.schema(), console=console)
    if arguments.unparsed:
        print_help(HubArguments.schema(), console=console, usage="<subsystem> [arguments...]")
        return 2

    populate(registry)

    if arguments.subsystem is None:
        print_help(HubArguments.schema(), console=console, usage="<subsystem> [arguments...]")
        print_subsystems(registry, console=console)
        return 0

    if (subsystem := Subsystem.get(arguments.subsystem, registry=registry)) is None:
        console.print(Text(f"unknown subsystem {arguments.subsystem!r}", styles()["error"]))
        return 1

    tokens = list(arguments.arguments)
    # "ndkit start --help" asks the subsystem for its help.
    if arguments.help and "--help" not in tokens:
        tokens.append("--help")
    _logger.debug("invoking %s with %r", arguments.subsystem, tokens)
    return subsystem.invoke(tokens) or 0


__all__ = (
    "HubArguments",
    "configure_logging",
    "populate",
    "print_subsystems",
    "main",
)
