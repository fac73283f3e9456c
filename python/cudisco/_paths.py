"""Symlink resolution and directory filtering for discovery candidates."""

import os
from typing import Iterable, List

MAX_SYMLINK_HOPS = 10


def resolve(path: str) -> str:
    """Follow a chain of symlinks starting at *path*.

    Relative link targets are interpreted against the directory holding the
    link. At most ``MAX_SYMLINK_HOPS`` links are followed, so a cyclic chain
    returns whatever path was reached at the cutoff. Unreadable links stop
    the walk.
    """
    hops = 0
    while hops < MAX_SYMLINK_HOPS and os.path.islink(path):
        try:
            target = os.readlink(path)
        except OSError:
            break
        path = os.path.normpath(os.path.join(os.path.dirname(path), target))
        hops += 1
    return path


def isdir(path: str) -> bool:
    try:
        return os.path.isdir(path)
    except OSError:
        return False


def valid_dirs(dirs: Iterable[str]) -> List[str]:
    """Resolve symlinks, drop duplicates (first one wins) and non-directories."""
    seen = set()
    result = []
    for d in dirs:
        d = resolve(d)
        if d in seen:
            continue
        seen.add(d)
        if isdir(d):
            result.append(d)
    return result


def isfile(path: str) -> bool:
    try:
        return os.path.isfile(path)
    except OSError:
        return False
