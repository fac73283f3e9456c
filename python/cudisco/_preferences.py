"""Per-consumer preferences read from the environment.

A preference ``KEY`` for consumer ``NAME`` is set with the environment
variable ``CUDISCO_PREF_<NAME>_<KEY>``, both parts upper-cased with
non-alphanumeric characters replaced by underscores::

    CUDISCO_PREF_CUDA_RUNTIME_VERSION=12.4
"""

import os
import re
from typing import Dict, Mapping, Optional

_PREFIX = "CUDISCO_PREF_"

# the consumer whose "version" preference selects a toolkit under NVHPC_ROOT
RUNTIME_CONSUMER = "CUDA_Runtime"


def _mangle(name: str) -> str:
    return re.sub(r"[^0-9A-Za-z]", "_", name).upper()


def get_preferences(consumer: str, environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return all preferences set for *consumer*, keyed by lower-cased key."""
    environ = os.environ if environ is None else environ
    prefix = f"{_PREFIX}{_mangle(consumer)}_"
    return {
        var[len(prefix):].lower(): value
        for var, value in environ.items()
        if var.startswith(prefix) and len(var) > len(prefix) and value
    }


def get_version_preference(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    return get_preferences(RUNTIME_CONSUMER, environ).get("version")
