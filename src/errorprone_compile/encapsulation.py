"""
errorprone-compile — strong encapsulation compatibility detector.

File: src/errorprone_compile/encapsulation.py

Purpose
- Decide whether Error Prone, running inside a given JVM, needs ``--add-exports`` /
  ``--add-opens`` grants to reach ``jdk.compiler`` internals.
- Produce the fixed grant list passed to forked ``javac`` processes.

Key interfaces
- :class:`CapabilitySource`: answers "is this type's package exported/opened to
  unnamed modules"; tests inject fakes, :mod:`errorprone_compile.runtime` provides
  the real one.
- :class:`StrongEncapsulationProbe`: runs the capability test at most once.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

import structlog

from errorprone_compile.constants import (
    EXPORT_PROBE_TYPES,
    JVM_ARGS_STRONG_ENCAPSULATION,
    MIN_TOOLCHAIN_VERSION,
    OPEN_PROBE_TYPES,
    STRONG_ENCAPSULATION_VERSION,
)
from errorprone_compile.errors import ProbeInvariantError
from errorprone_compile.toolchain import JavaVersion, ToolchainDescriptor
from errorprone_compile.utils.concurrency import OnceCell

logger = structlog.get_logger(__name__)


class CapabilityResult(Enum):
    """Outcome of the strong-encapsulation capability test."""

    NEEDED = "needed"
    NOT_NEEDED = "not_needed"
    INDETERMINATE = "indeterminate"

    @property
    def needs_grants(self) -> bool:
        # Indeterminate errs toward adding the grants.
        return self is not CapabilityResult.NOT_NEEDED


class TypeNotFoundError(LookupError):
    """Raised by a capability source when a probed type does not exist."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"type not found: {type_name}")


class CapabilitySource(Protocol):
    """Module access facts about the JVM running the compiler in-process."""

    def is_exported(self, type_name: str) -> bool: ...

    def is_open(self, type_name: str) -> bool: ...


def probe_strong_encapsulation(
    source: CapabilitySource,
    *,
    export_types: Sequence[str] = EXPORT_PROBE_TYPES,
    open_types: Sequence[str] = OPEN_PROBE_TYPES,
) -> CapabilityResult:
    """Check every probed type's package against ``source``.

    A missing type yields :attr:`CapabilityResult.INDETERMINATE`; any other failure
    is a probe defect and raises :class:`ProbeInvariantError`.
    """

    try:
        for type_name in export_types:
            if not source.is_exported(type_name):
                return CapabilityResult.NEEDED
        for type_name in open_types:
            if not source.is_open(type_name):
                return CapabilityResult.NEEDED
    except TypeNotFoundError as exc:
        logger.debug("errorprone_encapsulation_type_missing", type_name=exc.type_name)
        return CapabilityResult.INDETERMINATE
    except Exception as exc:
        raise ProbeInvariantError(
            f"strong encapsulation probe failed unexpectedly: {exc}"
        ) from exc
    return CapabilityResult.NOT_NEEDED


class StrongEncapsulationProbe:
    """Once-per-instance capability test for the JVM executing the build.

    The capability source is only created when the runtime is at least JDK 16;
    older runtimes never need grants.
    """

    __slots__ = ("_cell", "_probe_count", "_runtime_version", "_source_factory")

    def __init__(
        self,
        runtime_version: JavaVersion,
        source_factory: Callable[[], CapabilitySource],
    ) -> None:
        self._runtime_version = runtime_version
        self._source_factory = source_factory
        self._probe_count = 0
        self._cell: OnceCell[CapabilityResult] = OnceCell(self._compute)

    @property
    def runtime_version(self) -> JavaVersion:
        return self._runtime_version

    @property
    def probe_count(self) -> int:
        """Number of times the capability source was actually inspected."""

        return self._probe_count

    def result(self) -> CapabilityResult:
        return self._cell.get()

    def needs_grants(self) -> bool:
        return self.result().needs_grants

    def _compute(self) -> CapabilityResult:
        if not self._runtime_version.is_compatible_with(STRONG_ENCAPSULATION_VERSION):
            result = CapabilityResult.NOT_NEEDED
        else:
            self._probe_count += 1
            result = probe_strong_encapsulation(self._source_factory())
        logger.info(
            "errorprone_encapsulation_probe",
            runtime_version=str(self._runtime_version),
            result=result.value,
            needs_grants=result.needs_grants,
        )
        return result


@dataclass(frozen=True, slots=True)
class BuildRuntime:
    """The JVM the build tool itself runs on, with its cached encapsulation probe."""

    version: JavaVersion
    probe: StrongEncapsulationProbe = field(compare=False)

    @classmethod
    def create(
        cls,
        version: JavaVersion | int | str,
        source_factory: Callable[[], CapabilitySource],
    ) -> BuildRuntime:
        resolved = JavaVersion.of(version)
        return cls(version=resolved, probe=StrongEncapsulationProbe(resolved, source_factory))

    @property
    def needs_grants(self) -> bool:
        return self.probe.needs_grants()


def jvm_arguments(enabled: bool, toolchain: ToolchainDescriptor) -> list[str]:
    """Grants for a forked compiler JVM; empty when disabled or unsupported."""

    if not enabled:
        return []
    if toolchain.version is None:
        return []
    if not toolchain.version.is_compatible_with(MIN_TOOLCHAIN_VERSION):
        return []
    return list(JVM_ARGS_STRONG_ENCAPSULATION)


__all__ = [
    "BuildRuntime",
    "CapabilityResult",
    "CapabilitySource",
    "StrongEncapsulationProbe",
    "TypeNotFoundError",
    "jvm_arguments",
    "probe_strong_encapsulation",
]
