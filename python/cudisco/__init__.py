"""cudisco - find the local CUDA toolkit without configuration."""

import logging as _logging

_logger = _logging.getLogger(__name__)

try:
    from importlib.metadata import version as _meta_version
    __version__ = _meta_version("cudisco")
except Exception as _e:
    __version__ = "0.0.0.dev0"
    _logger.debug("Could not read cudisco version from metadata: %s", _e)

from ._find_lib import ResolvedPath, find_binary, find_cuda_binary, find_cuda_library, find_library
from ._toolkit import find_toolkit
from ._versions import Version, cuda_library_versions
from .discovery import (
    DiscoveryReport,
    compute_sanitizer,
    discover,
    get_report,
    is_available,
    with_compute_sanitizer,
)
from .errors import ComponentNotFoundError, DiscoveryError, LibraryLoadError

