"""
Version strings: the host compatibility version and the tool ranking order.

Two unrelated notions live here:
- SemanticVersion: strict "major.minor[.patch[.build]]" numbers carried by registration
  markers and by the host (compatibility gate, replace-on-higher-version).
- version_key/compare_versions: a lenient ranking for free-form language versions such as
  "7.3", "C# 12-preview.2" or "net-8". The first number is the base segment; the first
  number after a later "-" is the suite segment. Higher suite ranks first, then higher base.
"""
import functools
import re
from typing import NamedTuple

_NUMBER = re.compile(r"\d+(?:\.\d+)?")


class SemanticVersion(NamedTuple):
    major: int
    minor: int = 0
    patch: int = 0
    build: int = 0

    @classmethod
    def parse(cls, text, /):
        """
        Parse "major.minor[.patch[.build]]". Raises ValueError for anything else.
        """
        if isinstance(text, cls):
            return text
        if not isinstance(text, str):
            raise TypeError("SemanticVersion.parse() argument must be a string")
        if not re.fullmatch(r"\d+(\.\d+){1,3}", text := text.strip()):
            raise ValueError(f"invalid version string {text!r}")
        return cls(*map(int, text.split(".")))

    @classmethod
    def __tryparse__(cls, text, locale=None):
        try:
            return True, cls.parse(text)
        except ValueError:
            return False, None

    @property
    def compatibility(self):
        return self.major, self.minor

    def __str__(self):
        return f"{self.major}.{self.minor}.{self.patch}" + (f".{self.build}" if self.build else "")


HOST_VERSION = SemanticVersion(0, 1, 0)
"""
The version of this ndkit host; registrations must share its major.minor.
"""


@functools.cache
def version_key(text, /):
    """
    Return (suite, base) for a free-form version string; absent segments are 0.0.

    Sort with reverse=True to get the best candidate first:
        >>> sorted(["7.3", "8.0", "8.0-2"], key=version_key, reverse=True)
        ['8.0-2', '8.0', '7.3']
    """
    if not isinstance(text, str):
        raise TypeError("version_key() argument must be a string")
    if (base := _NUMBER.search(text)) is None:
        return 0.0, 0.0
    suite = 0.0
    if (delimiter := text.find("-", base.end())) != -1:
        if (match := _NUMBER.search(text, delimiter + 1)) is not None:
            suite = float(match.group())
    return suite, float(base.group())


def compare_versions(a, b, /):
    """
    Negative when a ranks first (higher), positive when b does, zero on ties.
    """
    a, b = version_key(a), version_key(b)
    return (a < b) - (a > b)


__all__ = (
    "SemanticVersion",
    "HOST_VERSION",
    "version_key",
    "compare_versions",
)
