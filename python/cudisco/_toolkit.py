"""
Locate directories where (parts of) the CUDA toolkit might be installed.

Search priority:
    1. CUDA_PATH / CUDA_HOME / CUDA_ROOT / NVHPC_ROOT env vars (explicit
       override, nothing else is consulted)
    2. the directory of ``ptxas`` found on PATH
    3. the directory of ``cudart`` found by the dynamic linker
    4. default installation directories, newest version first
"""

import os
import re
from typing import List, Mapping, Optional

from ._find_lib import find_binary, find_library
from ._log import get_logger
from ._paths import isdir, valid_dirs
from ._platform import Platform
from ._preferences import get_version_preference
from ._versions import CUDA_RELEASES, Version, has_version_like_name
from . import _loader

logger = get_logger(__name__)

ENV_VARS = ("CUDA_PATH", "CUDA_HOME", "CUDA_ROOT", "NVHPC_ROOT")

_UNIX_BASE_DIRS = ["/usr/local/cuda", "/opt/cuda"]
_UNIX_DISTRO_DIRS = ["/usr/lib/nvidia-cuda-toolkit", "/usr/share/cuda"]
_WINDOWS_TOOLKIT_SUBDIR = os.path.join("NVIDIA GPU Computing Toolkit", "CUDA")

_GENERIC_BIN_DIR = re.compile(r"^bin(32|64)?$")
_GENERIC_LIB_DIR = re.compile(r"^(lib|bin)(32|64)?$")


def _ispath(path: str) -> bool:
    try:
        return os.path.exists(path)
    except OSError:
        return False


def _listdir(path: str) -> List[str]:
    try:
        return sorted(os.listdir(path))
    except OSError:
        return []


def _install_dir_version(entry: str):
    # "v12.4" sorts by number; names that are not versions sort before all versions
    try:
        return (1, Version.parse(entry), entry)
    except ValueError:
        return (0, Version(0, 0), entry)


def cuda_path_from_nvhpc_root(nvhpc_root: str,
                              environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Go from NVHPC_ROOT to NVHPC_ROOT/cuda/X.Y.

    Uses the configured version preference if that directory exists,
    otherwise the only version-like subdirectory. Returns None when neither
    identifies a unique toolkit.
    """
    nvhpc_cuda = os.path.join(nvhpc_root, "cuda")
    if not _ispath(nvhpc_cuda):
        logger.debug("Couldn't deduce CUDA toolkit path from environment variable NVHPC_ROOT")
        return None

    ver = get_version_preference(environ)
    if ver is not None:
        p = os.path.join(nvhpc_cuda, ver)
        if _ispath(p):
            logger.debug("Deduced CUDA toolkit path %s from environment variable NVHPC_ROOT "
                         "and version preference %s", p, ver)
            return p
        logger.debug("Couldn't deduce a valid CUDA toolkit path from environment variable "
                     "NVHPC_ROOT and version preference %s", ver)

    paths = [os.path.join(nvhpc_cuda, entry) for entry in _listdir(nvhpc_cuda)]
    paths = [p for p in paths if has_version_like_name(p)]
    if len(paths) != 1:
        logger.debug("Couldn't deduce a unique CUDA toolkit path from environment variable "
                     "NVHPC_ROOT (%d candidates)", len(paths))
        return None

    logger.debug("Deduced CUDA toolkit path %s from environment variable NVHPC_ROOT", paths[0])
    return paths[0]


def _from_environment(environ: Mapping[str, str]) -> List[str]:
    envvars = [var for var in ENV_VARS if environ.get(var) and _ispath(environ[var])]
    logger.debug("Looking for CUDA toolkit via environment variables %s", ", ".join(envvars))

    paths = []
    for var in envvars:
        path = environ[var]
        if var == "NVHPC_ROOT":
            path = cuda_path_from_nvhpc_root(path, environ) or path
        if path not in paths:
            paths.append(path)

    if len(paths) > 1:
        logger.warning("Multiple CUDA environment variables set to different values: %s",
                       ", ".join(paths))
    return paths


def default_directories(platform: Optional[Platform] = None,
                        environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """Conventional installation directories, newest CUDA version first.

    Not filtered for existence.
    """
    platform = platform or Platform.current()
    environ = os.environ if environ is None else environ

    if platform.is_windows:
        # CUDA versions are installed in separate directories under a single base dir
        var = "ProgramFiles" if platform.word_size == 64 else "ProgramFiles(x86)"
        program_files = environ.get(var)
        if not program_files:
            return []
        basedir = os.path.join(program_files, _WINDOWS_TOOLKIT_SUBDIR)
        if not isdir(basedir):
            return []
        entries = sorted(_listdir(basedir), key=_install_dir_version)
        return [os.path.join(basedir, entry) for entry in reversed(entries)]

    # CUDA versions are installed in unversioned dirs, or suffixed with the version
    dirs = []
    for ver in reversed(CUDA_RELEASES):
        for basedir in _UNIX_BASE_DIRS:
            dirs.append(f"{basedir}-{ver.major}.{ver.minor}")
    dirs.extend(_UNIX_BASE_DIRS)
    dirs.extend(_UNIX_DISTRO_DIRS)
    return dirs


def find_toolkit(environ: Optional[Mapping[str, str]] = None,
                 platform: Optional[Platform] = None, loader=_loader) -> List[str]:
    """Return a (possibly empty) list of directories that may hold the CUDA toolkit.

    Setting CUDA_PATH, CUDA_HOME, CUDA_ROOT or NVHPC_ROOT overrides the
    heuristics entirely.
    """
    environ = os.environ if environ is None else environ

    dirs = _from_environment(environ)
    if dirs:
        return dirs

    # PATH may point to the installation
    ptxas = find_binary("ptxas")
    if ptxas is not None:
        ptxas_dir = ptxas.dirname
        if _GENERIC_BIN_DIR.match(os.path.basename(ptxas_dir)):
            ptxas_dir = os.path.dirname(ptxas_dir)
        logger.debug("Looking for CUDA toolkit via ptxas binary at %s: %s", ptxas.path, ptxas_dir)
        dirs.append(ptxas_dir)

    # LD_LIBRARY_PATH (or equivalent) may point to the installation
    libcudart = find_library("cudart", platform=platform, loader=loader)
    if libcudart is not None:
        libcudart_dir = libcudart.dirname
        if _GENERIC_LIB_DIR.match(os.path.basename(libcudart_dir)):
            libcudart_dir = os.path.dirname(libcudart_dir)
        logger.debug("Looking for CUDA toolkit via CUDA runtime library at %s: %s",
                     libcudart.path, libcudart_dir)
        dirs.append(libcudart_dir)

    default_dirs = valid_dirs(default_directories(platform, environ))
    if default_dirs:
        logger.debug("Looking for CUDA toolkit via default installation directories: %s",
                     ", ".join(default_dirs))
        dirs.extend(default_dirs)

    dirs = valid_dirs(dirs)
    if dirs:
        logger.debug("Found CUDA toolkit at %s", ", ".join(dirs))
    else:
        logger.debug("Could not find CUDA toolkit")
    return dirs
