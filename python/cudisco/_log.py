"""Logging setup shared by every cudisco module.

Modules obtain their logger with ``get_logger(__name__)``; all of them hang
off the ``cudisco`` root, which writes to stderr and is configured once, on
first use. Its level comes from ``CUDISCO_LOG_LEVEL`` (default WARNING).

An entry point that knows better (``cudisco -v``) passes ``level=`` to
``get_logger``; that reconfigures the root, switching to the detailed
``name:lineno`` format whenever the effective level is DEBUG.
"""

import logging
import os
from typing import Optional

_ROOT_LOGGER_NAME = "cudisco"
_BRIEF_FORMAT = "[cudisco] %(message)s"
_DEBUG_FORMAT = "[cudisco] %(name)s:%(lineno)d %(message)s"
_configured = False
_handler: Optional[logging.Handler] = None


def _env_level() -> int:
    level_name = os.environ.get("CUDISCO_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    return level if isinstance(level, int) else logging.WARNING


def _configure_root(level: Optional[int] = None) -> logging.Logger:
    global _configured, _handler
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    if _configured and level is None:
        return root

    if not _configured:
        _configured = True
        if not root.handlers:
            _handler = logging.StreamHandler()
            root.addHandler(_handler)
        if level is None:
            level = _env_level()

    root.setLevel(level)
    if _handler is not None:
        fmt = _DEBUG_FORMAT if level <= logging.DEBUG else _BRIEF_FORMAT
        _handler.setFormatter(logging.Formatter(fmt))
    return root


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Return a logger under the ``cudisco`` hierarchy.

    Names outside the hierarchy get ``cudisco.`` prepended. A non-None
    *level* overrides the root level set from the environment.
    """
    _configure_root(level)
    if not name.startswith(_ROOT_LOGGER_NAME):
        name = f"{_ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
