"""Fork decision evaluated right before a compile task runs ``javac``."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import structlog

from errorprone_compile.constants import MIN_TOOLCHAIN_VERSION, TOO_OLD_TOOLCHAIN_ERROR_MESSAGE
from errorprone_compile.errors import UnsupportedToolchainError
from errorprone_compile.toolchain import ToolchainDescriptor

logger = structlog.get_logger(__name__)


class ForkOutcome(Enum):
    DISABLED = "disabled"
    UNSUPPORTED = "unsupported"
    SUPPORTED = "supported"


@dataclass(frozen=True, slots=True)
class ForkDecision:
    """Result of :func:`decide_fork`; ``force_fork`` is only true when a change is needed."""

    outcome: ForkOutcome
    force_fork: bool = False
    reason: str = ""


class ForkableOptions(Protocol):
    """The slice of host compile options the fork action may mutate."""

    fork: bool


def decide_fork(
    *,
    enabled: bool,
    toolchain: ToolchainDescriptor,
    already_forked: bool,
    runtime_needs_grants: Callable[[], bool],
) -> ForkDecision:
    """Classify a compile task and decide whether it must run out of process.

    ``runtime_needs_grants`` is only consulted when the compiler would otherwise run
    in-process on the build runtime itself.
    """

    if not enabled:
        return ForkDecision(ForkOutcome.DISABLED, reason="errorprone disabled")

    version = toolchain.version
    if version is None or not version.is_compatible_with(MIN_TOOLCHAIN_VERSION):
        return ForkDecision(
            ForkOutcome.UNSUPPORTED,
            reason=f"compiler version {version} is below {MIN_TOOLCHAIN_VERSION}"
            if version is not None
            else "compiler version could not be determined",
        )

    if already_forked:
        return ForkDecision(ForkOutcome.SUPPORTED, reason="already forked")
    if not toolchain.is_current_runtime:
        return ForkDecision(ForkOutcome.SUPPORTED, reason="compiler is not the build runtime")
    if not runtime_needs_grants():
        return ForkDecision(ForkOutcome.SUPPORTED, reason="build runtime already grants access")
    return ForkDecision(
        ForkOutcome.SUPPORTED,
        force_fork=True,
        reason="build runtime needs strong encapsulation grants",
    )


def apply_fork_decision(
    options: ForkableOptions,
    *,
    enabled: bool,
    toolchain: ToolchainDescriptor,
    runtime_needs_grants: Callable[[], bool],
    task_name: str = "",
) -> ForkDecision:
    """Evaluate :func:`decide_fork` and apply it to ``options``.

    Raises :class:`UnsupportedToolchainError` for unsupported toolchains, even when
    the task is not configured to fork. Never turns forking off.
    """

    decision = decide_fork(
        enabled=enabled,
        toolchain=toolchain,
        already_forked=options.fork,
        runtime_needs_grants=runtime_needs_grants,
    )
    logger.info(
        "errorprone_fork_decision",
        task=task_name,
        outcome=decision.outcome.value,
        force_fork=decision.force_fork,
        reason=decision.reason,
        compiler_version=str(toolchain.version) if toolchain.version is not None else None,
    )
    if decision.outcome is ForkOutcome.UNSUPPORTED:
        raise UnsupportedToolchainError(TOO_OLD_TOOLCHAIN_ERROR_MESSAGE)
    if decision.force_fork:
        options.fork = True
    return decision


__all__ = [
    "ForkDecision",
    "ForkOutcome",
    "ForkableOptions",
    "apply_fork_decision",
    "decide_fork",
]
