__title__ = 'ndkit'
__author__ = 'ndkit contributors'
__license__ = 'MIT'
__version__ = "0.1.0"

from .utils import Unset, coalesce
from .faults import *
from .converters import *
from .arguments import *
from .versions import *
from .registry import *
from .sources import *
from .tools import *
from .printing import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

version_info = VersionInfo(*HOST_VERSION[:3], "final", 0, "")

__all__ = (
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info",
    "Unset",
    "coalesce",
)

# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the converters
__all__ += converters.__all__  # type: ignore[attr-defined]
# Load the exposed API of the arguments
__all__ += arguments.__all__  # type: ignore[attr-defined]
# Load the exposed API of the versions
__all__ += versions.__all__  # type: ignore[attr-defined]
# Load the exposed API of the registry
__all__ += registry.__all__  # type: ignore[attr-defined]
# Load the exposed API of the sources
__all__ += sources.__all__  # type: ignore[attr-defined]
# Load the exposed API of the tools
__all__ += tools.__all__  # type: ignore[attr-defined]
# Load the exposed API of the printing helpers
__all__ += printing.__all__  # type: ignore[attr-defined]
