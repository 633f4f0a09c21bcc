"""Java feature versions and the toolchain descriptor of a compile task."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

_VERSION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:1\.(?P<legacy>\d+)|(?P<major>\d+))(?:[.+\-_].*)?$"
)


@dataclass(frozen=True, slots=True, order=True)
class JavaVersion:
    """Java feature release (``8``, ``11``, ``17``, ...)."""

    major: int

    def __post_init__(self) -> None:
        if isinstance(self.major, bool) or not isinstance(self.major, int):
            raise ValueError(f"java major version must be an int, got {self.major!r}")
        if self.major < 1:
            raise ValueError(f"java major version must be >= 1, got {self.major}")

    @classmethod
    def of(cls, value: int | str | JavaVersion) -> JavaVersion:
        if isinstance(value, JavaVersion):
            return value
        if isinstance(value, int):
            return cls(value)
        return cls.parse(value)

    @classmethod
    def parse(cls, text: str) -> JavaVersion:
        """Parse ``1.8``, ``8``, ``17.0.2``, ``21-ea`` style version strings."""

        match = _VERSION_PATTERN.match(text.strip())
        if match is None:
            raise ValueError(f"unrecognized java version {text!r}")
        raw = match.group("legacy") or match.group("major")
        return cls(int(raw))

    def is_compatible_with(self, other: JavaVersion | int) -> bool:
        return self.major >= JavaVersion.of(other).major

    def __str__(self) -> str:
        return str(self.major)


@dataclass(frozen=True, slots=True)
class ToolchainDescriptor:
    """Compiler runtime used by one compile task execution.

    ``version`` is ``None`` when it cannot be determined, e.g. a forked
    ``javac`` selected through an explicit ``java_home`` or ``executable``.
    """

    version: JavaVersion | None
    is_current_runtime: bool


def resolve_compiler_version(
    *,
    toolchain_version: JavaVersion | None,
    fork: bool,
    fork_java_home: object | None,
    fork_executable: str | None,
    current_runtime_version: JavaVersion,
) -> JavaVersion | None:
    """Return the compiler version a task will run with, or ``None`` if unknown."""

    if toolchain_version is not None:
        return toolchain_version
    is_command_line = fork and (fork_java_home is not None or fork_executable is not None)
    if is_command_line:
        return None
    return current_runtime_version


def describe_toolchain(
    compiler_version: JavaVersion | None,
    current_runtime_version: JavaVersion,
) -> ToolchainDescriptor:
    return ToolchainDescriptor(
        version=compiler_version,
        is_current_runtime=compiler_version == current_runtime_version,
    )


__all__ = [
    "JavaVersion",
    "ToolchainDescriptor",
    "describe_toolchain",
    "resolve_compiler_version",
]
