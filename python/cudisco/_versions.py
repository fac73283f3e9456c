"""Known and plausible CUDA release numbers.

Discovery does not know which toolkit version is installed, and most Unix
distributions only ship version-suffixed libraries, so the locators probe
every version listed here.
"""

import os
from typing import List, NamedTuple, Union


class Version(NamedTuple):
    major: int
    minor: int
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> "Version":
        parts = [int(p) for p in text.strip().lstrip("v").split(".")]
        if not 1 <= len(parts) <= 3:
            raise ValueError(f"not a version number: {text!r}")
        return cls(*parts) if len(parts) > 1 else cls(parts[0], 0)

    def __str__(self):
        return f"{self.major}.{self.minor}.{self.patch}"


# A structured version, or an opaque token such as CUPTI's "2023.1.0"
VersionHint = Union[Version, str]

CUDA_RELEASES = [
    Version(9, 0), Version(9, 1), Version(9, 2),
    Version(10, 0), Version(10, 1), Version(10, 2),
    Version(11, 0), Version(11, 1), Version(11, 2), Version(11, 3), Version(11, 4),
    Version(11, 5), Version(11, 6), Version(11, 7), Version(11, 8),
    Version(12, 0), Version(12, 1), Version(12, 2), Version(12, 3), Version(12, 4),
    Version(12, 5), Version(12, 6), Version(12, 8), Version(12, 9),
    Version(13, 0),
]

_FUTURE_MAJORS = 2
_FUTURE_MINORS = range(1, 11)

# CUPTI uses "<year>.<major>.<minor>" instead of the toolkit version
_CUPTI_YEARS = range(2020, 2026)
_CUPTI_MAJORS = range(1, 6)
_CUPTI_MINORS = range(0, 4)


def cuda_library_versions(name: str) -> List[VersionHint]:
    """Return every version a CUDA library called *name* might carry, oldest first."""
    versions: List[VersionHint] = list(CUDA_RELEASES)

    last_major = CUDA_RELEASES[-1].major
    for major in range(last_major, last_major + _FUTURE_MAJORS + 1):
        for minor in _FUTURE_MINORS:
            version = Version(major, minor)
            if version not in versions:
                versions.append(version)

    if name == "cupti":
        for year in _CUPTI_YEARS:
            for major in _CUPTI_MAJORS:
                for minor in _CUPTI_MINORS:
                    versions.append(f"{year}.{major}.{minor}")

    return versions


def has_version_like_name(path: str) -> bool:
    """True if the last component of *path* looks like ``12.1``."""
    name = os.path.basename(os.path.normpath(path))
    if "." not in name:
        return False
    return all(part.isdigit() for part in name.split("."))
