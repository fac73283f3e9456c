"""Thin ctypes wrapper around the OS dynamic loader.

Two capabilities are needed by discovery: map a file as a shared library
(failing if it is not one), and recover the absolute path a loaded library
was mapped from. The latter is what turns a bare name found through the
linker's default search into a real location on disk.
"""

import ctypes
import ctypes.util
import os
import sys
from typing import Iterable, Optional

from ._log import get_logger

logger = get_logger(__name__)

_RTLD_DI_LINKMAP = 2
_RTLD_NOLOAD_DARWIN = 0x10


class _LinkMap(ctypes.Structure):
    # only the leading fields of glibc's struct link_map are needed
    _fields_ = [("l_addr", ctypes.c_void_p), ("l_name", ctypes.c_char_p)]


def dlopen(path: str) -> ctypes.CDLL:
    """Load *path* as a shared library. Raises OSError on failure."""
    return ctypes.CDLL(path)


def _dlopen_bare(name: str) -> ctypes.CDLL:
    # winmode=0 restores the LoadLibrary search order, which includes PATH
    if sys.platform.startswith("win"):
        return ctypes.CDLL(name, winmode=0)
    return ctypes.CDLL(name)


def _dlpath_linux(handle: int) -> Optional[str]:
    try:
        libdl = ctypes.CDLL(ctypes.util.find_library("dl"))
        dlinfo = libdl.dlinfo
    except (OSError, AttributeError):
        return None
    dlinfo.restype = ctypes.c_int
    dlinfo.argtypes = [ctypes.c_void_p, ctypes.c_int, ctypes.c_void_p]

    lm = ctypes.POINTER(_LinkMap)()
    if dlinfo(handle, _RTLD_DI_LINKMAP, ctypes.byref(lm)) != 0 or not lm:
        return None
    name = lm.contents.l_name
    return os.fsdecode(name) if name else None


def _dlpath_darwin(handle: int) -> Optional[str]:
    try:
        libsystem = ctypes.CDLL("/usr/lib/libSystem.B.dylib")
    except OSError:
        return None
    libsystem._dyld_image_count.restype = ctypes.c_uint32
    libsystem._dyld_get_image_name.restype = ctypes.c_char_p
    libsystem._dyld_get_image_name.argtypes = [ctypes.c_uint32]

    for i in range(libsystem._dyld_image_count()):
        name = libsystem._dyld_get_image_name(i)
        if not name:
            continue
        name = os.fsdecode(name)
        try:
            other = ctypes.CDLL(name, mode=_RTLD_NOLOAD_DARWIN)
        except OSError:
            continue
        if other._handle == handle:
            return name
    return None


def _dlpath_windows(handle: int) -> Optional[str]:
    buf = ctypes.create_unicode_buffer(32768)
    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
    kernel32.GetModuleFileNameW.argtypes = [ctypes.c_void_p, ctypes.c_wchar_p, ctypes.c_uint32]
    kernel32.GetModuleFileNameW.restype = ctypes.c_uint32
    n = kernel32.GetModuleFileNameW(handle, buf, len(buf))
    return buf.value if n else None


def dlpath(lib: ctypes.CDLL) -> Optional[str]:
    """Return the absolute path *lib* was mapped from, or None if unknown."""
    if sys.platform.startswith("win"):
        return _dlpath_windows(lib._handle)
    if sys.platform == "darwin":
        return _dlpath_darwin(lib._handle)
    return _dlpath_linux(lib._handle)


def find_in_default_search(names: Iterable[str]) -> Optional[str]:
    """Load each bare name through the linker's default search; return the first path.

    Load failures are expected here (most names do not exist) and count as
    "not found".
    """
    for name in names:
        try:
            lib = _dlopen_bare(name)
        except OSError:
            continue
        path = dlpath(lib)
        if path:
            logger.debug("Default library search mapped %s from %s", name, path)
            return path
        logger.debug("Loaded %s but could not recover its path", name)
    return None
