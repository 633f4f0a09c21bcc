"""Check severity lattice and its rendering as an ``-Xep:`` suffix."""

from __future__ import annotations

from enum import StrEnum
from typing import Final

from errorprone_compile.errors import InvalidConfigurationError


class CheckSeverity(StrEnum):
    """Severity of a single Error Prone check."""

    DEFAULT = "DEFAULT"
    OFF = "OFF"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def as_arg(self) -> str:
        """Suffix appended to ``-Xep:<name>``; empty for :attr:`DEFAULT`."""

        return render_severity(self)

    @classmethod
    def parse(cls, value: str | CheckSeverity) -> CheckSeverity:
        """Parse a case-insensitive severity name as written in ``errorprone.toml``."""

        if isinstance(value, CheckSeverity):
            return value
        if not isinstance(value, str):
            raise InvalidConfigurationError(
                f"check severity must be a string, got {type(value).__name__}"
            )
        normalized = _SEVERITY_ALIASES.get(value.strip().lower())
        if normalized is None:
            allowed = ", ".join(member.value for member in cls)
            raise InvalidConfigurationError(
                f'unknown check severity "{value}"; expected one of {allowed}'
            )
        return normalized


_SEVERITY_ALIASES: Final[dict[str, CheckSeverity]] = {
    "default": CheckSeverity.DEFAULT,
    "off": CheckSeverity.OFF,
    "warn": CheckSeverity.WARN,
    "warning": CheckSeverity.WARN,
    "error": CheckSeverity.ERROR,
}


def render_severity(severity: CheckSeverity) -> str:
    if severity is CheckSeverity.DEFAULT:
        return ""
    return f":{severity.value}"


__all__ = ["CheckSeverity", "render_severity"]
