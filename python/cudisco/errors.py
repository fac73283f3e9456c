"""Exceptions raised while resolving required toolkit components."""

from typing import Optional


class DiscoveryError(RuntimeError):
    """A required toolkit component could not be made available."""

    def __init__(self, message: str, component: str):
        super().__init__(message)
        self.component = component


class ComponentNotFoundError(DiscoveryError):
    """Raised when a required library or binary is absent from every candidate location."""

    def __init__(self, component: str, kind: str = "library"):
        super().__init__(
            f"Could not find {kind} '{component}' in your local CUDA installation.", component)
        self.kind = kind


class LibraryLoadError(DiscoveryError):
    """Raised when a found library is rejected by the OS loader."""

    def __init__(self, component: str, path: str, reason: Optional[BaseException] = None):
        message = f"Could not load library '{component}' from {path}"
        if reason is not None:
            message += f": {reason}"
        super().__init__(message, component)
        self.path = path
