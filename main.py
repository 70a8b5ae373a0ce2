import enum
from typing import Annotated

from rich.pretty import pprint

from ndkit import *


class ViewOption(enum.Enum):
    PROPERTIES = 0
    OUTLINE = 1


class ViewArguments(Arguments):
    option: Annotated[ViewOption, Positional(0, descr="what to show")] = ViewOption.PROPERTIES
    file: Annotated[str | None, Category("Arguments"), Variable("-file", descr="the project file")] = None
    include: Annotated[list[str], Variable("-include", descr="extra sources")] = []
    detailed: Annotated[bool, Flag("--detailed")] = False


if __name__ == '__main__':
    arguments = ViewArguments.parse(["outline", "-file:app.nproj", "-include:[a.c,b.c]", "--detailed", "--detailed"])
    pprint(arguments)
    print_issues(arguments.result, ViewArguments.schema())
    print_help(ViewArguments.schema(), usage="<option> [arguments...]")
