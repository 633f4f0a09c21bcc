"""Unit tests for the pre-compile fork decision."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from errorprone_compile.errors import UnsupportedToolchainError
from errorprone_compile.forking import ForkOutcome, apply_fork_decision, decide_fork
from errorprone_compile.toolchain import JavaVersion, ToolchainDescriptor


@dataclass
class _Options:
    fork: bool = False


class _Grants:
    def __init__(self, needed: bool) -> None:
        self.needed = needed
        self.calls = 0

    def __call__(self) -> bool:
        self.calls += 1
        return self.needed


def _toolchain(version: int | None, *, current: bool = True) -> ToolchainDescriptor:
    return ToolchainDescriptor(
        version=JavaVersion(version) if version is not None else None,
        is_current_runtime=current,
    )


def test_disabled_takes_no_action_even_on_old_toolchain() -> None:
    options = _Options()
    grants = _Grants(True)

    decision = apply_fork_decision(
        options, enabled=False, toolchain=_toolchain(8), runtime_needs_grants=grants
    )

    assert decision.outcome is ForkOutcome.DISABLED
    assert options.fork is False
    assert grants.calls == 0


@pytest.mark.parametrize("version", [8, 10, None])
def test_unsupported_toolchain_is_fatal(version: int | None) -> None:
    options = _Options()

    with pytest.raises(UnsupportedToolchainError) as excinfo:
        apply_fork_decision(
            options,
            enabled=True,
            toolchain=_toolchain(version),
            runtime_needs_grants=_Grants(True),
        )

    assert str(excinfo.value) == "Must not enable ErrorProne when compiling with JDK < 11"
    assert options.fork is False


def test_unsupported_toolchain_is_fatal_when_already_forked() -> None:
    with pytest.raises(UnsupportedToolchainError):
        apply_fork_decision(
            _Options(fork=True),
            enabled=True,
            toolchain=_toolchain(8, current=False),
            runtime_needs_grants=_Grants(False),
        )


def test_current_runtime_needing_grants_forces_fork() -> None:
    options = _Options()
    grants = _Grants(True)

    decision = apply_fork_decision(
        options, enabled=True, toolchain=_toolchain(17), runtime_needs_grants=grants
    )

    assert decision.outcome is ForkOutcome.SUPPORTED
    assert decision.force_fork is True
    assert options.fork is True
    assert grants.calls == 1


def test_already_forked_is_left_untouched_without_probing() -> None:
    options = _Options(fork=True)
    grants = _Grants(True)

    decision = apply_fork_decision(
        options, enabled=True, toolchain=_toolchain(17), runtime_needs_grants=grants
    )

    assert decision.outcome is ForkOutcome.SUPPORTED
    assert decision.force_fork is False
    assert options.fork is True
    assert grants.calls == 0


def test_other_toolchain_does_not_force_fork() -> None:
    options = _Options()
    grants = _Grants(True)

    decision = apply_fork_decision(
        options,
        enabled=True,
        toolchain=_toolchain(21, current=False),
        runtime_needs_grants=grants,
    )

    assert decision.force_fork is False
    assert options.fork is False
    assert grants.calls == 0


def test_runtime_already_granted_does_not_force_fork() -> None:
    options = _Options()

    decision = apply_fork_decision(
        options, enabled=True, toolchain=_toolchain(17), runtime_needs_grants=_Grants(False)
    )

    assert decision.outcome is ForkOutcome.SUPPORTED
    assert decision.force_fork is False
    assert options.fork is False


def test_jdk11_proceeds_without_error() -> None:
    decision = decide_fork(
        enabled=True,
        toolchain=_toolchain(11),
        already_forked=False,
        runtime_needs_grants=_Grants(False),
    )

    assert decision.outcome is ForkOutcome.SUPPORTED


def test_decision_is_idempotent() -> None:
    options = _Options()
    grants = _Grants(True)

    first = apply_fork_decision(
        options, enabled=True, toolchain=_toolchain(17), runtime_needs_grants=grants
    )
    second = apply_fork_decision(
        options, enabled=True, toolchain=_toolchain(17), runtime_needs_grants=grants
    )

    assert first.force_fork is True
    assert second.force_fork is False
    assert options.fork is True
