"""Utility exports for one-time initialization helpers."""

from errorprone_compile.utils.concurrency import OnceCell

__all__ = ["OnceCell"]
