"""
Library and binary discovery inside candidate CUDA toolkit directories.

Search order for a library:
    1. every (location, name) pair, location-major, where locations are the
       caller's roots expanded with platform-specific subdirectories
    2. the dynamic linker's default search, using the bare names

Search order for a binary:
    1. every expanded location
    2. PATH
"""

import os
import shutil
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ._log import get_logger
from ._names import join_locations, join_versions, library_names
from ._paths import isdir, isfile, resolve
from ._platform import Platform
from ._versions import VersionHint
from . import _loader

logger = get_logger(__name__)

# CUPTI and the perf libraries live in the toolkit's "extras" directory
_CUPTI_LIBRARIES = ("cupti", "nvperf_host", "nvperf_target")


@dataclass(frozen=True)
class ResolvedPath:
    """An existing, symlink-resolved file found by discovery."""
    path: str
    kind: str  # "library" or "binary"

    def __str__(self):
        return self.path

    @property
    def dirname(self) -> str:
        return os.path.dirname(self.path)


def _canonical(path: str) -> str:
    return os.path.abspath(resolve(path))


def library_locations(roots: Sequence[str], platform: Optional[Platform] = None) -> List[str]:
    """Expand each root into the subdirectories libraries are installed to."""
    platform = platform or Platform.current()
    locations = []
    for root in roots:
        locations.append(root)
        locations.append(os.path.join(root, "lib"))
        if platform.word_size == 64:
            locations.append(os.path.join(root, "lib64"))
            locations.append(os.path.join(root, "libx64"))
        if platform.is_windows:
            locations.append(os.path.join(root, "bin"))
            locations.append(os.path.join(root, "bin", "x64" if platform.word_size == 64 else "Win32"))
        if platform.is_linux:
            # NVHPC SDK layout
            locations.append(os.path.join(root, "targets", f"{platform.target_arch}-linux", "lib"))
    return locations


def binary_locations(roots: Sequence[str]) -> List[str]:
    locations = []
    for root in roots:
        locations.append(root)
        locations.append(os.path.join(root, "bin"))
    return locations


def find_library(name: str, versions: Sequence[VersionHint] = (), locations: Sequence[str] = (),
                 platform: Optional[Platform] = None, loader=_loader) -> Optional[ResolvedPath]:
    """Exhaustive search for a shared library.

    Tries every variant of the library name (unversioned, then each version
    in *versions*) in every subdirectory of *locations*, and finally asks the
    dynamic linker's default search. Returns the symlink-resolved path.
    """
    all_names = library_names(name, versions, platform)
    all_locations = library_locations(locations, platform)

    logger.debug("Looking for library %s, %s, %s", name, join_versions(versions),
                 join_locations(locations))
    for location in all_locations:
        for candidate in all_names:
            path = os.path.join(location, candidate)
            if isfile(path):
                found = _canonical(path)
                logger.debug("Found %s at %s", os.path.basename(found), os.path.dirname(found))
                return ResolvedPath(found, "library")

    path = loader.find_in_default_search(all_names)
    if path is not None:
        found = _canonical(path)
        logger.debug("Found %s at %s", os.path.basename(found), os.path.dirname(found))
        return ResolvedPath(found, "library")

    logger.debug("Did not find %s", name)
    return None


def find_binary(name: str, locations: Sequence[str] = ()) -> Optional[ResolvedPath]:
    """Exhaustive search for an executable in *locations* (and their bin/), then PATH."""
    all_locations = binary_locations(locations)

    logger.debug("Looking for binary %s %s", name, join_locations(locations))
    candidates = [os.path.join(location, name) for location in all_locations] + [name]
    for candidate in candidates:
        try:
            program_path = shutil.which(candidate)
        except OSError:
            # some systems disallow stat on certain paths
            continue
        if program_path is not None:
            found = _canonical(program_path)
            logger.debug("Found %s at %s", candidate, found)
            return ResolvedPath(found, "binary")

    logger.debug("Did not find %s", name)
    return None


## CUDA-specific entry points

def cuda_library_locations(toolkit_dirs: Sequence[str], name: str) -> List[str]:
    """The toolkit roots, plus directories specific to library *name*."""
    locations = list(toolkit_dirs)
    if name in _CUPTI_LIBRARIES:
        locations.extend(os.path.join(d, "extras", "CUPTI") for d in toolkit_dirs
                         if isdir(os.path.join(d, "extras")))
    # NVVM can be in a separate directory
    if name == "nvvm":
        locations.extend(os.path.join(d, "nvvm") for d in toolkit_dirs)
    return locations


def cuda_binary_locations(toolkit_dirs: Sequence[str], name: str) -> List[str]:
    """The toolkit roots, plus directories specific to binary *name*."""
    locations = list(toolkit_dirs)
    # compute-sanitizer is in extras/ of the toolkit; NVHPC has it at the top level
    if name == "compute-sanitizer":
        locations.extend(os.path.join(d, "extras", "compute-sanitizer") for d in toolkit_dirs
                         if isdir(os.path.join(d, "extras")))
        locations.extend(os.path.join(d, "compute-sanitizer") for d in toolkit_dirs
                         if isdir(os.path.join(d, "compute-sanitizer")))
    return locations


def find_cuda_library(toolkit_dirs: Sequence[str], name: str, versions: Sequence[VersionHint] = (),
                      platform: Optional[Platform] = None, loader=_loader) -> Optional[ResolvedPath]:
    locations = cuda_library_locations(toolkit_dirs, name)
    return find_library(name, versions, locations, platform=platform, loader=loader)


def find_cuda_binary(toolkit_dirs: Sequence[str], name: str) -> Optional[ResolvedPath]:
    return find_binary(name, cuda_binary_locations(toolkit_dirs, name))
