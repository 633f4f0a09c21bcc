"""
errorprone-compile — unit tests for the strong encapsulation detector

File: tests/unit/toolchain/test_encapsulation.py

Purpose
- Validate the capability probe against injected fake capability sources.

What this test file should cover
- Fast path below JDK 16 never creates a capability source.
- Missing export/open means grants are needed; missing types are indeterminate.
- Unexpected source failures raise ``ProbeInvariantError``.
- The probe runs at most once, including under concurrent access.
- The forked JVM grant list.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

import pytest

from errorprone_compile.constants import (
    EXPORT_PROBE_TYPES,
    JVM_ARGS_STRONG_ENCAPSULATION,
    OPEN_PROBE_TYPES,
)
from errorprone_compile.encapsulation import (
    BuildRuntime,
    CapabilityResult,
    StrongEncapsulationProbe,
    TypeNotFoundError,
    jvm_arguments,
    probe_strong_encapsulation,
)
from errorprone_compile.errors import ProbeInvariantError
from errorprone_compile.toolchain import JavaVersion, ToolchainDescriptor


class FakeCapabilitySource:
    def __init__(
        self,
        *,
        exported: Iterable[str] = EXPORT_PROBE_TYPES,
        opened: Iterable[str] = OPEN_PROBE_TYPES,
        missing: Iterable[str] = (),
        broken: BaseException | None = None,
    ) -> None:
        self.exported = set(exported)
        self.opened = set(opened)
        self.missing = set(missing)
        self.broken = broken
        self.lookups: list[str] = []

    def is_exported(self, type_name: str) -> bool:
        return self._lookup(type_name) in self.exported

    def is_open(self, type_name: str) -> bool:
        return self._lookup(type_name) in self.opened

    def _lookup(self, type_name: str) -> str:
        self.lookups.append(type_name)
        if self.broken is not None:
            raise self.broken
        if type_name in self.missing:
            raise TypeNotFoundError(type_name)
        return type_name


def test_fully_granted_source_is_not_needed() -> None:
    assert probe_strong_encapsulation(FakeCapabilitySource()) is CapabilityResult.NOT_NEEDED


def test_missing_export_is_needed() -> None:
    source = FakeCapabilitySource(exported=EXPORT_PROBE_TYPES[1:])

    result = probe_strong_encapsulation(source)

    assert result is CapabilityResult.NEEDED
    assert result.needs_grants


def test_missing_open_is_needed() -> None:
    source = FakeCapabilitySource(opened=OPEN_PROBE_TYPES[:1])

    assert probe_strong_encapsulation(source) is CapabilityResult.NEEDED


def test_missing_type_is_indeterminate_and_errs_toward_grants() -> None:
    source = FakeCapabilitySource(missing={OPEN_PROBE_TYPES[0]})

    result = probe_strong_encapsulation(source)

    assert result is CapabilityResult.INDETERMINATE
    assert result.needs_grants


def test_unexpected_failure_is_probe_invariant_error() -> None:
    cause = PermissionError("access denied")
    source = FakeCapabilitySource(broken=cause)

    with pytest.raises(ProbeInvariantError) as excinfo:
        probe_strong_encapsulation(source)

    assert excinfo.value.__cause__ is cause


def test_probe_inspects_every_type_when_granted() -> None:
    source = FakeCapabilitySource()

    probe_strong_encapsulation(source)

    assert source.lookups == [*EXPORT_PROBE_TYPES, *OPEN_PROBE_TYPES]


def test_old_runtime_never_creates_source() -> None:
    def _factory() -> FakeCapabilitySource:
        raise AssertionError("capability source must not be created below JDK 16")

    probe = StrongEncapsulationProbe(JavaVersion(15), _factory)

    assert probe.result() is CapabilityResult.NOT_NEEDED
    assert probe.needs_grants() is False
    assert probe.probe_count == 0


def test_probe_result_is_cached() -> None:
    created: list[FakeCapabilitySource] = []

    def _factory() -> FakeCapabilitySource:
        source = FakeCapabilitySource(exported=())
        created.append(source)
        return source

    probe = StrongEncapsulationProbe(JavaVersion(17), _factory)

    first = probe.needs_grants()
    second = probe.needs_grants()

    assert first is True
    assert second is first
    assert probe.probe_count == 1
    assert len(created) == 1


def test_probe_runs_once_under_concurrent_access() -> None:
    barrier = threading.Barrier(8)
    results: list[bool] = []
    lock = threading.Lock()
    probe = StrongEncapsulationProbe(JavaVersion(21), FakeCapabilitySource)

    def _worker() -> None:
        barrier.wait()
        value = probe.needs_grants()
        with lock:
            results.append(value)

    threads = [threading.Thread(target=_worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results == [False] * 8
    assert probe.probe_count == 1


def test_invariant_failure_is_not_cached_as_a_result() -> None:
    probe = StrongEncapsulationProbe(
        JavaVersion(17), lambda: FakeCapabilitySource(broken=RuntimeError("boom"))
    )

    with pytest.raises(ProbeInvariantError):
        probe.result()
    with pytest.raises(ProbeInvariantError):
        probe.result()


def test_build_runtime_delegates_to_probe() -> None:
    runtime = BuildRuntime.create("17.0.2", lambda: FakeCapabilitySource(opened=()))

    assert runtime.version == JavaVersion(17)
    assert runtime.needs_grants is True
    assert runtime.probe.probe_count == 1


def test_jvm_arguments_for_supported_toolchain() -> None:
    toolchain = ToolchainDescriptor(version=JavaVersion(11), is_current_runtime=True)

    arguments = jvm_arguments(True, toolchain)

    assert arguments == list(JVM_ARGS_STRONG_ENCAPSULATION)
    assert len(arguments) == 10


@pytest.mark.parametrize(
    ("enabled", "version"),
    [(False, 17), (True, None), (True, 8), (True, 10)],
)
def test_jvm_arguments_empty_when_disabled_or_unsupported(enabled: bool, version: int | None) -> None:
    toolchain = ToolchainDescriptor(
        version=JavaVersion(version) if version is not None else None,
        is_current_runtime=False,
    )

    assert jvm_arguments(enabled, toolchain) == []


def test_grant_list_names_every_probed_package() -> None:
    exported = {name.rpartition(".")[0] for name in EXPORT_PROBE_TYPES}
    opened = {name.rpartition(".")[0] for name in OPEN_PROBE_TYPES}

    expected = {f"--add-exports=jdk.compiler/{package}=ALL-UNNAMED" for package in exported} | {
        f"--add-opens=jdk.compiler/{package}=ALL-UNNAMED" for package in opened
    }

    assert set(JVM_ARGS_STRONG_ENCAPSULATION) == expected
