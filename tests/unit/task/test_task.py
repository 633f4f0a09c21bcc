"""
errorprone-compile — unit tests for compile task wiring

File: tests/unit/task/test_task.py

Purpose
- Validate the plugin lifecycle on a compile task: extension installation, source-set
  conventions, argument providers, and the pre-compile fork action.

What this test file should cover
- Test source-set name matching.
- ``enabled`` convention driven by the selected toolchain.
- No forced fork when the build runtime already carries the grants.
- Unsupported toolchains abort before compilation.
- Disabled tasks never touch the build runtime.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from errorprone_compile import runtime as runtime_module
from errorprone_compile.constants import COMPANION_COMPILER_ARGS, JVM_ARGS_STRONG_ENCAPSULATION
from errorprone_compile.encapsulation import BuildRuntime
from errorprone_compile.errors import RuntimeDiscoveryError, UnsupportedToolchainError
from errorprone_compile.forking import ForkOutcome
from errorprone_compile.runtime import assumed_build_runtime
from errorprone_compile.task import (
    CompileTask,
    ErrorPronePlugin,
    JavaCompilerMetadata,
    is_test_source_set,
)
from errorprone_compile.toolchain import JavaVersion


def _plugin(runtime: BuildRuntime) -> ErrorPronePlugin:
    return ErrorPronePlugin(lambda: runtime)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("test", True),
        ("testFixtures", True),
        ("integrationTest", True),
        ("functionalTestJava17", True),
        ("myTestSuite", True),
        ("main", False),
        ("testing", False),
        ("contest", False),
        ("Test", True),
        ("latest", False),
        ("integrationTests", False),
        ("Testing", False),
        ("unitTestRunner", True),
    ],
)
def test_is_test_source_set(name: str, expected: bool) -> None:
    assert is_test_source_set(name) is expected


def test_configure_task_is_idempotent_and_disabled_outside_source_sets() -> None:
    plugin = _plugin(assumed_build_runtime(17))
    task = CompileTask(name="compileCustom")

    first = plugin.configure_task(task)
    second = plugin.configure_task(task)

    assert first is second
    assert task.options.errorprone is first
    assert first.enabled is False
    assert len(task.options.compiler_argument_providers) == 1
    assert len(task.options.fork_options.jvm_argument_providers) == 1
    assert len(task.actions) == 1
    assert task.compiler_arguments() == []


def test_source_set_conventions_without_toolchain() -> None:
    plugin = _plugin(assumed_build_runtime(17))
    main = CompileTask(name="compileJava")
    test = CompileTask(name="compileTestJava")

    plugin.configure_source_set_task(main, "main")
    plugin.configure_source_set_task(test, "test")

    assert main.options.errorprone.enabled is True
    assert main.options.errorprone.compiling_test_only_code is False
    assert test.options.errorprone.compiling_test_only_code is True
    assert test.compiler_arguments() == [
        "-Xplugin:ErrorProne -XepCompilingTestOnlyCode",
        *COMPANION_COMPILER_ARGS,
    ]


@pytest.mark.parametrize(("version", "enabled"), [(8, False), (11, True), (21, True)])
def test_enabled_convention_follows_toolchain(version: int, enabled: bool) -> None:
    plugin = _plugin(assumed_build_runtime(17))
    task = CompileTask(
        name="compileJava",
        java_compiler=JavaCompilerMetadata(language_version=JavaVersion(version)),
    )

    options = plugin.configure_source_set_task(task, "main")

    assert options.enabled is enabled


def test_explicit_enabled_beats_convention() -> None:
    plugin = _plugin(assumed_build_runtime(17))
    task = CompileTask(name="compileJava")
    options = plugin.configure_task(task)
    options.enabled = False

    plugin.configure_source_set_task(task, "main")

    assert options.enabled is False


def test_in_process_compile_on_runtime_needing_grants_is_forked() -> None:
    runtime = assumed_build_runtime(17)
    plugin = _plugin(runtime)
    task = CompileTask(name="compileJava")
    plugin.configure_source_set_task(task, "main")

    task.run_before_compile()

    assert task.options.fork is True
    assert task.fork_jvm_arguments() == list(JVM_ARGS_STRONG_ENCAPSULATION)
    assert runtime.probe.probe_count == 1


def test_runtime_already_granted_is_not_forced_to_fork() -> None:
    plugin = _plugin(assumed_build_runtime(17, JVM_ARGS_STRONG_ENCAPSULATION))
    task = CompileTask(name="compileJava")
    plugin.configure_source_set_task(task, "main")

    task.run_before_compile()

    assert task.options.fork is False


def test_other_toolchain_is_not_forced_to_fork() -> None:
    runtime = assumed_build_runtime(17)
    plugin = _plugin(runtime)
    task = CompileTask(
        name="compileJava",
        java_compiler=JavaCompilerMetadata(language_version=JavaVersion(21)),
    )
    plugin.configure_source_set_task(task, "main")

    task.run_before_compile()

    assert task.options.fork is False
    assert runtime.probe.probe_count == 0


def test_jdk8_toolchain_explicitly_enabled_fails_before_compile() -> None:
    plugin = _plugin(assumed_build_runtime(17))
    task = CompileTask(
        name="compileJava",
        java_compiler=JavaCompilerMetadata(language_version=JavaVersion(8)),
    )
    plugin.configure_source_set_task(task, "main").enabled = True

    with pytest.raises(UnsupportedToolchainError, match="JDK < 11"):
        task.run_before_compile()


def test_forked_command_line_compiler_is_unsupported() -> None:
    plugin = _plugin(assumed_build_runtime(17))
    task = CompileTask(name="compileJava")
    task.options.fork = True
    task.options.fork_options.java_home = Path("/opt/jdk-17")
    plugin.configure_source_set_task(task, "main")

    assert plugin.compiler_version(task) is None
    with pytest.raises(UnsupportedToolchainError):
        task.run_before_compile()


def test_disabled_task_runs_without_probing() -> None:
    runtime = assumed_build_runtime(17)
    plugin = _plugin(runtime)
    task = CompileTask(
        name="compileJava",
        java_compiler=JavaCompilerMetadata(language_version=JavaVersion(8)),
    )
    plugin.configure_source_set_task(task, "main")

    task.run_before_compile()

    assert task.options.fork is False
    assert task.compiler_arguments() == []
    assert task.fork_jvm_arguments() == []
    assert runtime.probe.probe_count == 0


def test_fork_action_runs_before_existing_actions() -> None:
    seen: list[bool] = []
    plugin = _plugin(assumed_build_runtime(17))
    task = CompileTask(name="compileJava")
    task.actions.append(lambda t: seen.append(t.options.fork))
    plugin.configure_source_set_task(task, "main")

    task.run_before_compile()

    assert seen == [True]


def test_user_arguments_come_before_provider_arguments() -> None:
    plugin = _plugin(assumed_build_runtime(17))
    task = CompileTask(name="compileJava")
    task.options.compiler_args.append("-Werror")
    task.options.fork_options.jvm_args.append("-Xmx1g")
    plugin.configure_source_set_task(task, "main")

    assert task.compiler_arguments()[0] == "-Werror"
    assert task.compiler_arguments()[1] == "-Xplugin:ErrorProne"
    assert task.fork_jvm_arguments()[0] == "-Xmx1g"


def test_summary() -> None:
    plugin = _plugin(assumed_build_runtime(17))
    task = CompileTask(name="compileJava")
    plugin.configure_source_set_task(task, "main").disable("Foo")
    task.run_before_compile()

    summary = plugin.summarize(task).to_dict()

    assert summary["task"] == "compileJava"
    assert summary["enabled"] is True
    assert summary["compiler_version"] == "17"
    assert summary["fork"] is True
    assert summary["compiler_args"][0] == "-Xplugin:ErrorProne -Xep:Foo:OFF"  # type: ignore[index]
    assert summary["jvm_args"] == list(JVM_ARGS_STRONG_ENCAPSULATION)


def test_summary_of_disabled_task() -> None:
    plugin = _plugin(assumed_build_runtime(17))
    task = CompileTask(name="compileJava")
    plugin.configure_task(task)

    summary = plugin.summarize(task)

    assert summary.enabled is False
    assert summary.compiler_version is None
    assert summary.compiler_args == ()


def _no_runtime() -> BuildRuntime:
    raise RuntimeDiscoveryError("java launcher not found; set JAVA_HOME or add java to PATH")


def test_disabled_task_never_discovers_the_runtime() -> None:
    plugin = ErrorPronePlugin(_no_runtime)
    task = CompileTask(name="compileJava")
    plugin.configure_task(task)

    task.run_before_compile()

    assert plugin.decide(task).outcome is ForkOutcome.DISABLED
    assert task.options.fork is False
    assert task.compiler_arguments() == []
    assert task.fork_jvm_arguments() == []
    assert plugin.summarize(task).enabled is False


def test_enabled_task_surfaces_runtime_discovery_failure() -> None:
    plugin = ErrorPronePlugin(_no_runtime)
    task = CompileTask(name="compileJava")
    plugin.configure_source_set_task(task, "main")

    with pytest.raises(RuntimeDiscoveryError, match="java launcher not found"):
        task.run_before_compile()


def test_plugin_defaults_to_process_wide_runtime(monkeypatch: pytest.MonkeyPatch) -> None:
    runtime = assumed_build_runtime(21)
    calls: list[int] = []

    def fake_discover() -> BuildRuntime:
        calls.append(1)
        return runtime

    monkeypatch.setattr(runtime_module, "discover_build_runtime", fake_discover)
    monkeypatch.setattr(
        runtime_module,
        "_CURRENT_RUNTIME",
        runtime_module.OnceCell(runtime_module._discover_current_runtime),
    )
    plugin = ErrorPronePlugin()
    first = CompileTask(name="compileJava")
    second = CompileTask(name="compileTestJava")
    plugin.configure_source_set_task(first, "main")
    plugin.configure_source_set_task(second, "test")

    first.run_before_compile()
    second.run_before_compile()

    assert first.options.fork is True
    assert second.options.fork is True
    assert calls == [1]
    assert runtime.probe.probe_count == 1
