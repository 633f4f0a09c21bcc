"""Error taxonomy shared across the assembler, probe, and fork logic."""

from __future__ import annotations


class ErrorProneError(Exception):
    """Base error for Error Prone compile configuration failures."""


class InvalidConfigurationError(ErrorProneError, ValueError):
    """Raised at render time when user-supplied options break a syntactic invariant."""


class UnsupportedToolchainError(ErrorProneError, RuntimeError):
    """Raised before compilation when the plugin is enabled on a too-old compiler."""


class ProbeInvariantError(ErrorProneError, RuntimeError):
    """Raised when the strong-encapsulation probe fails for a reason other than a missing type.

    This signals a defect in the probe itself, never a user configuration problem.
    """


class RuntimeDiscoveryError(ErrorProneError, RuntimeError):
    """Raised when the Java launcher or its module facts cannot be discovered."""


__all__ = [
    "ErrorProneError",
    "InvalidConfigurationError",
    "ProbeInvariantError",
    "RuntimeDiscoveryError",
    "UnsupportedToolchainError",
]
