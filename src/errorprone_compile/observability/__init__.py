"""Observability exports: structured logging setup."""

from errorprone_compile.observability.logging import setup_logging

__all__ = ["setup_logging"]
