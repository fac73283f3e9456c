"""One-shot discovery of the local CUDA toolkit.

``discover()`` finds the toolkit roots, resolves every component in
declaration order and opens each library as it is found. The outcome is an
immutable :class:`DiscoveryReport`; nothing is stored in module globals
except the cached report behind :func:`get_report`.

Usage::

    from cudisco.discovery import get_report
    report = get_report()
    if report.available:
        cublas = report.handle("cublas")
"""

import functools
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence, Tuple, TypeVar

from ._find_lib import ResolvedPath, find_cuda_binary, find_cuda_library
from ._log import get_logger
from ._toolkit import find_toolkit
from ._versions import cuda_library_versions
from .errors import ComponentNotFoundError, DiscoveryError, LibraryLoadError
from . import _loader

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Component:
    name: str
    kind: str  # "library" or "binary"
    optional: bool = False


COMPONENTS: Tuple[Component, ...] = (
    Component("compute-sanitizer", "binary"),
    Component("cudart", "library"),
    Component("cufft", "library"),
    Component("cublas", "library"),
    Component("cublasLt", "library"),
    Component("cusparse", "library"),
    Component("cusolver", "library"),
    Component("cusolverMg", "library"),
    Component("curand", "library"),
    Component("cupti", "library"),
    Component("nvperf_host", "library"),
    Component("nvperf_target", "library"),
)


@dataclass(frozen=True)
class DiscoveryResult:
    name: str
    kind: str
    optional: bool
    resolved: Optional[ResolvedPath] = None
    error: Optional[DiscoveryError] = None

    @property
    def found(self) -> bool:
        return self.resolved is not None


def _readonly(mapping=None) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class DiscoveryReport:
    toolkit_dirs: Tuple[str, ...] = ()
    results: Mapping[str, DiscoveryResult] = field(default_factory=_readonly)
    handles: Mapping[str, object] = field(default_factory=_readonly)
    available: bool = False
    error: Optional[DiscoveryError] = None

    def _path(self, name: str, kind: str) -> Optional[str]:
        result = self.results.get(name)
        if result is None or result.resolved is None or result.kind != kind:
            return None
        return result.resolved.path

    def library(self, name: str) -> Optional[str]:
        """Path of library *name*, or None if it was not found."""
        return self._path(name, "library")

    def binary(self, name: str) -> Optional[str]:
        """Path of binary *name*, or None if it was not found."""
        return self._path(name, "binary")

    def handle(self, name: str):
        """The loaded ``ctypes.CDLL`` for library *name*, or None."""
        return self.handles.get(name)


def get_binary(dirs: Sequence[str], name: str, optional: bool = False) -> Optional[ResolvedPath]:
    path = find_cuda_binary(dirs, name)
    if path is None and not optional:
        raise ComponentNotFoundError(name, "binary")
    return path


def get_library(dirs: Sequence[str], name: str, optional: bool = False, platform=None,
                loader=_loader) -> Tuple[Optional[ResolvedPath], object]:
    """Find and open CUDA library *name*.

    An unversioned library is preferred; only if none exists are all known
    versions tried. Returns ``(path, handle)``, or ``(None, None)`` for an
    absent optional library.
    """
    path = find_cuda_library(dirs, name, (), platform=platform, loader=loader)
    if path is None:
        versions = cuda_library_versions(name)
        path = find_cuda_library(dirs, name, versions, platform=platform, loader=loader)

    if path is None:
        if not optional:
            raise ComponentNotFoundError(name, "library")
        return None, None

    try:
        handle = loader.dlopen(path.path)
    except OSError as e:
        raise LibraryLoadError(name, path.path, e) from e
    return path, handle


def discover(toolkit_dirs: Optional[Sequence[str]] = None,
             components: Sequence[Component] = COMPONENTS, platform=None,
             loader=_loader) -> DiscoveryReport:
    """Run the whole discovery pipeline once and return its report.

    A missing required component or a library the loader rejects stops the
    pass; the error is logged and recorded in the report, never raised.
    """
    if toolkit_dirs is None:
        toolkit_dirs = find_toolkit(platform=platform, loader=loader)
    toolkit_dirs = tuple(toolkit_dirs)
    if not toolkit_dirs:
        return DiscoveryReport()

    results = {}
    handles = {}
    for comp in components:
        try:
            if comp.kind == "binary":
                path = get_binary(toolkit_dirs, comp.name, comp.optional)
            else:
                path, handle = get_library(toolkit_dirs, comp.name, comp.optional,
                                           platform=platform, loader=loader)
                if handle is not None:
                    handles[comp.name] = handle
        except DiscoveryError as err:
            results[comp.name] = DiscoveryResult(comp.name, comp.kind, comp.optional, error=err)
            logger.error(
                "Could not (fully) discover the local CUDA toolkit; one or more pieces may be "
                "missing (%s). For more information, run with CUDISCO_LOG_LEVEL=DEBUG.\n"
                "It may be helpful to set the CUDA_PATH/CUDA_HOME/CUDA_ROOT environment variable "
                "and point it to the root of your CUDA toolkit installation.",
                err, exc_info=True,
            )
            return DiscoveryReport(toolkit_dirs, _readonly(results), _readonly(handles),
                                   available=False, error=err)
        results[comp.name] = DiscoveryResult(comp.name, comp.kind, comp.optional, resolved=path)

    return DiscoveryReport(toolkit_dirs, _readonly(results), _readonly(handles), available=True)


@functools.lru_cache(maxsize=None)
def get_report() -> DiscoveryReport:
    """The process-wide discovery report, computed on first use."""
    return discover()


def is_available() -> bool:
    return get_report().available


def _sanitizer_path(report: DiscoveryReport) -> str:
    path = report.binary("compute-sanitizer")
    if path is None:
        raise ComponentNotFoundError("compute-sanitizer", "binary")
    return path


def compute_sanitizer(report: DiscoveryReport, *args: str) -> list:
    """Command line running compute-sanitizer with *args*, for ``subprocess``."""
    return [_sanitizer_path(report), *args]


def with_compute_sanitizer(report: DiscoveryReport, fn: Callable[[str], T]) -> T:
    """Call ``fn(path)`` with the path of the compute-sanitizer binary."""
    return fn(_sanitizer_path(report))
