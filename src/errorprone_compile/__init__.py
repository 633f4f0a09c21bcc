"""
errorprone-compile — package root.

File: src/errorprone_compile/__init__.py

Purpose
- Turn an Error Prone configuration into ``javac`` plugin arguments, the JVM
  arguments the plugin needs on JDK 16+, and the fork decision for a compile task.

Import boundary rules
- No side effects at import time (no runtime probing, no logging setup).
- Subprocess-backed runtime discovery lives in ``errorprone_compile.runtime`` and is
  only imported by callers that need it.
"""

from errorprone_compile.errors import (
    ErrorProneError,
    InvalidConfigurationError,
    ProbeInvariantError,
    UnsupportedToolchainError,
)
from errorprone_compile.options import ArgumentProvider, ErrorProneOptions
from errorprone_compile.severity import CheckSeverity

__version__ = "0.1.0"

__all__ = [
    "ArgumentProvider",
    "CheckSeverity",
    "ErrorProneError",
    "ErrorProneOptions",
    "InvalidConfigurationError",
    "ProbeInvariantError",
    "UnsupportedToolchainError",
    "__version__",
]
