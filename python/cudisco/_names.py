"""Platform-specific file names for (possibly versioned) shared libraries."""

from typing import Iterable, List, Optional, Sequence

from ._platform import Platform
from ._versions import Version, VersionHint


def library_names(name: str, versions: Sequence[VersionHint] = (),
                  platform: Optional[Platform] = None) -> List[str]:
    """Return the file names a library called *name* might have, in probe order.

    Unversioned names come first, then the variants for each version in the
    order given.
    """
    platform = platform or Platform.current()
    ext = platform.dlext
    names = []

    if platform.is_windows:
        ws = platform.word_size
        names.append(f"{name}{ws}.{ext}")
        # some libraries (e.g. CUTENSOR) are shipped without the word size
        names.append(f"{name}.{ext}")
    else:
        names.append(f"lib{name}.{ext}")

    for version in versions:
        if platform.is_windows:
            # Windows encodes the version in the file name
            for prefix in (f"{name}{platform.word_size}", name):
                if isinstance(version, Version):
                    names.append(f"{prefix}_{version.major}{version.minor}.{ext}")
                    names.append(f"{prefix}_{version.major}.{ext}")
                else:
                    names.append(f"{prefix}_{version}.{ext}")
        elif platform.is_apple:
            # macOS puts the version before the extension
            if isinstance(version, Version):
                names.append(f"lib{name}.{version.major}.{version.minor}.{ext}")
                names.append(f"lib{name}.{version.major}.{ext}")
            else:
                names.append(f"lib{name}.{version}.{ext}")
        else:
            if isinstance(version, Version):
                names.append(f"lib{name}.{ext}.{version.major}.{version.minor}.{version.patch}")
                names.append(f"lib{name}.{ext}.{version.major}.{version.minor}")
                names.append(f"lib{name}.{ext}.{version.major}")
            else:
                names.append(f"lib{name}.{ext}.{version}")

    return names


def join_versions(versions: Sequence[VersionHint]) -> str:
    if not versions:
        return "no specific version"
    return "version " + " or ".join(str(v) for v in versions)


def join_locations(locations: Iterable[str]) -> str:
    locations = list(locations)
    if not locations:
        return "in no specific location"
    return "in " + " or ".join(locations)
