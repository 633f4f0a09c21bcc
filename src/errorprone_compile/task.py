"""
errorprone-compile — compile task model and plugin wiring.

File: src/errorprone_compile/task.py

Purpose
- Model the slice of a host build tool's Java compile task that Error Prone touches:
  compiler arguments, fork options, toolchain metadata, and pre-compile actions.
- Wire an :class:`ErrorProneOptions` extension, the argument providers, and the fork
  action into such a task, with source-set conventions.

Lifecycle
- ``configure_task`` at configuration time; ``run_before_compile`` right before
  ``javac`` runs; ``compiler_arguments`` / ``fork_jvm_arguments`` when launching.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from errorprone_compile.constants import (
    EXTENSION_NAME,
    MIN_TOOLCHAIN_VERSION,
    TEST_SOURCE_SET_PATTERN,
)
from errorprone_compile.encapsulation import BuildRuntime
from errorprone_compile.forking import ForkDecision, ForkOutcome, apply_fork_decision
from errorprone_compile.options import ArgumentProvider, ErrorProneOptions
from errorprone_compile.providers import (
    ErrorProneCompilerArgumentProvider,
    ErrorProneJvmArgumentProvider,
)
from errorprone_compile.runtime import current_build_runtime
from errorprone_compile.toolchain import (
    JavaVersion,
    ToolchainDescriptor,
    describe_toolchain,
    resolve_compiler_version,
)

logger = structlog.get_logger(__name__)

TaskAction = Callable[["CompileTask"], None]


@dataclass(slots=True)
class ForkOptions:
    java_home: Path | None = None
    executable: str | None = None
    jvm_args: list[str] = field(default_factory=list)
    jvm_argument_providers: list[ArgumentProvider] = field(default_factory=list)


@dataclass(slots=True)
class CompileOptions:
    fork: bool = False
    fork_options: ForkOptions = field(default_factory=ForkOptions)
    compiler_args: list[str] = field(default_factory=list)
    compiler_argument_providers: list[ArgumentProvider] = field(default_factory=list)
    extensions: dict[str, Any] = field(default_factory=dict)

    @property
    def errorprone(self) -> ErrorProneOptions:
        options = self.extensions.get(EXTENSION_NAME)
        if not isinstance(options, ErrorProneOptions):
            raise LookupError("errorprone options are not configured on this task")
        return options


@dataclass(frozen=True, slots=True)
class JavaCompilerMetadata:
    """Toolchain explicitly selected for a task."""

    language_version: JavaVersion
    installation_path: Path | None = None


@dataclass(slots=True)
class CompileTask:
    name: str
    options: CompileOptions = field(default_factory=CompileOptions)
    java_compiler: JavaCompilerMetadata | None = None
    actions: list[TaskAction] = field(default_factory=list)

    def do_first(self, action: TaskAction) -> None:
        self.actions.insert(0, action)

    def run_before_compile(self) -> None:
        for action in list(self.actions):
            action(self)

    def compiler_arguments(self) -> list[str]:
        return [*self.options.compiler_args, *_flatten(self.options.compiler_argument_providers)]

    def fork_jvm_arguments(self) -> list[str]:
        fork_options = self.options.fork_options
        return [*fork_options.jvm_args, *_flatten(fork_options.jvm_argument_providers)]


@dataclass(frozen=True, slots=True)
class TaskSummary:
    """Display-friendly view of how Error Prone is applied to a task."""

    task: str
    enabled: bool
    compiler_version: str | None
    fork: bool
    compiler_args: tuple[str, ...]
    jvm_args: tuple[str, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "task": self.task,
            "enabled": self.enabled,
            "compiler_version": self.compiler_version,
            "fork": self.fork,
            "compiler_args": list(self.compiler_args),
            "jvm_args": list(self.jvm_args),
        }


def is_test_source_set(name: str) -> bool:
    """Whether ``name`` looks like a test source set (``test``, ``integrationTest``, ...).

    Matches ``^(t|.*T)est(\\p{Upper}.*)?$``.
    """

    return TEST_SOURCE_SET_PATTERN.fullmatch(name) is not None


class ErrorPronePlugin:
    """Applies Error Prone to compile tasks of one build.

    ``runtime`` defaults to the process-wide build runtime and is only called once a
    task is enabled.
    """

    def __init__(self, runtime: Callable[[], BuildRuntime] | None = None) -> None:
        self._runtime = runtime if runtime is not None else current_build_runtime

    def configure_task(self, task: CompileTask) -> ErrorProneOptions:
        """Install the ``errorprone`` extension, argument providers, and fork action."""

        existing = task.options.extensions.get(EXTENSION_NAME)
        if isinstance(existing, ErrorProneOptions):
            return existing

        errorprone = ErrorProneOptions()
        task.options.extensions[EXTENSION_NAME] = errorprone
        task.options.compiler_argument_providers.append(
            ErrorProneCompilerArgumentProvider(errorprone)
        )
        task.options.fork_options.jvm_argument_providers.append(
            ErrorProneJvmArgumentProvider(errorprone, lambda: self.toolchain(task))
        )
        task.do_first(self._configure_forking)
        logger.debug("errorprone_task_configured", task=task.name)
        return errorprone

    def configure_source_set_task(self, task: CompileTask, source_set_name: str) -> ErrorProneOptions:
        """Configure the primary compile task of a source set, with its conventions."""

        errorprone = self.configure_task(task)
        if task.java_compiler is None:
            errorprone.enabled_by_convention(True)
        else:
            errorprone.enabled_by_convention(
                task.java_compiler.language_version.is_compatible_with(MIN_TOOLCHAIN_VERSION)
            )
        errorprone.compiling_test_only_code_by_convention(is_test_source_set(source_set_name))
        return errorprone

    def compiler_version(self, task: CompileTask) -> JavaVersion | None:
        toolchain_version = (
            task.java_compiler.language_version if task.java_compiler is not None else None
        )
        if toolchain_version is not None:
            return toolchain_version
        fork_options = task.options.fork_options
        return resolve_compiler_version(
            toolchain_version=None,
            fork=task.options.fork,
            fork_java_home=fork_options.java_home,
            fork_executable=fork_options.executable,
            current_runtime_version=self._runtime().version,
        )

    def toolchain(self, task: CompileTask) -> ToolchainDescriptor:
        return describe_toolchain(self.compiler_version(task), self._runtime().version)

    def decide(self, task: CompileTask) -> ForkDecision:
        """Run the fork action for ``task`` and return the decision."""

        if not task.options.errorprone.enabled:
            logger.debug("errorprone_fork_skipped", task=task.name)
            return ForkDecision(ForkOutcome.DISABLED, reason="errorprone disabled")
        return apply_fork_decision(
            task.options,
            enabled=task.options.errorprone.enabled,
            toolchain=self.toolchain(task),
            runtime_needs_grants=lambda: self._runtime().needs_grants,
            task_name=task.name,
        )

    def summarize(self, task: CompileTask) -> TaskSummary:
        errorprone = task.options.errorprone
        version = self.compiler_version(task) if errorprone.enabled else None
        return TaskSummary(
            task=task.name,
            enabled=errorprone.enabled,
            compiler_version=str(version) if version is not None else None,
            fork=task.options.fork,
            compiler_args=tuple(task.compiler_arguments()),
            jvm_args=tuple(task.fork_jvm_arguments()),
        )

    def _configure_forking(self, task: CompileTask) -> None:
        self.decide(task)


def _flatten(providers: Iterable[ArgumentProvider]) -> list[str]:
    return [argument for provider in providers for argument in provider.as_arguments()]


__all__ = [
    "CompileOptions",
    "CompileTask",
    "ErrorPronePlugin",
    "ForkOptions",
    "JavaCompilerMetadata",
    "TaskSummary",
    "is_test_source_set",
]
