"""Command-line interface router for errorprone-compile."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

from errorprone_compile.config import (
    apply_config,
    dump_effective_config,
    load_config,
)
from errorprone_compile.encapsulation import BuildRuntime, jvm_arguments
from errorprone_compile.observability import setup_logging
from errorprone_compile.options import ErrorProneOptions
from errorprone_compile.runtime import assumed_build_runtime, discover_build_runtime
from errorprone_compile.task import CompileTask, ErrorPronePlugin, JavaCompilerMetadata, TaskSummary
from errorprone_compile.toolchain import JavaVersion, ToolchainDescriptor
from errorprone_compile.utils.concurrency import OnceCell

DEFAULT_SOURCE_SET: Final[str] = "main"


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router."""

    parser = argparse.ArgumentParser(
        prog="errorprone-compile",
        description=(
            "errorprone-compile — Error Prone javac plugin arguments and fork decisions.\n\n"
            "Common workflows:\n"
            "  errorprone-compile args                      Print javac arguments\n"
            "  errorprone-compile jvm-args --compiler-version 17\n"
            "  errorprone-compile plan --runtime-version 17 Simulate a compile task\n"
            "  errorprone-compile config                    Show effective config\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to errorprone TOML config (default: ./errorprone.toml if present).",
    )
    common.add_argument(
        "--source-set",
        default=DEFAULT_SOURCE_SET,
        help=f"Source set whose compile task is configured (default: {DEFAULT_SOURCE_SET}).",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Log decisions at DEBUG level to stderr.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # args ----------------------------------------------------------------
    args_parser = subparsers.add_parser(
        "args",
        parents=[common],
        help="Print the javac arguments contributed by Error Prone",
    )
    args_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    args_parser.set_defaults(handler=_cmd_args)

    # jvm-args ------------------------------------------------------------
    jvm_parser = subparsers.add_parser(
        "jvm-args",
        parents=[common],
        help="Print the JVM arguments a forked compiler needs",
    )
    jvm_parser.add_argument(
        "--compiler-version",
        required=True,
        help="Java version of the forked compiler (e.g. 17, 1.8).",
    )
    jvm_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    jvm_parser.set_defaults(handler=_cmd_jvm_args)

    # plan ----------------------------------------------------------------
    plan_parser = subparsers.add_parser(
        "plan",
        parents=[common],
        help="Evaluate the compile task lifecycle and print its summary",
        description=(
            "Configure a compile task, run the pre-compile fork action, and print the\n"
            "resulting compiler and JVM arguments.\n\n"
            "Examples:\n"
            "  errorprone-compile plan --runtime-version 17\n"
            "  errorprone-compile plan --compiler-version 21 --json\n"
            "  errorprone-compile plan --fork --java-home /opt/jdk-17\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    plan_parser.add_argument(
        "--compiler-version",
        default=None,
        help="Toolchain language version selected for the task.",
    )
    plan_parser.add_argument(
        "--fork", action="store_true", default=False, help="Task is configured to fork."
    )
    plan_parser.add_argument("--java-home", default=None, help="Fork options java_home.")
    plan_parser.add_argument("--executable", default=None, help="Fork options executable.")
    plan_parser.add_argument(
        "--runtime-version",
        default=None,
        help=(
            "Assume a build runtime of this version instead of discovering it; "
            "grants come from [runtime] jvm_args."
        ),
    )
    plan_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    plan_parser.set_defaults(handler=_cmd_plan)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Print the effective configuration as JSON",
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_args(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    plugin = ErrorPronePlugin(_unused_runtime)
    task = _configured_task(plugin, config, args.source_set)
    arguments = task.compiler_arguments()

    if _flag(args, "json"):
        _emit_json({"command": "args", "task": task.name, "arguments": arguments})
    else:
        _emit_lines(arguments)
    return 0


def _cmd_jvm_args(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    options = apply_config(ErrorProneOptions(), config, source_set=args.source_set)
    options.enabled_by_convention(True)
    version = _parse_version(args.compiler_version, "--compiler-version")
    arguments = jvm_arguments(
        options.enabled, ToolchainDescriptor(version=version, is_current_runtime=False)
    )

    if _flag(args, "json"):
        _emit_json({"command": "jvm-args", "compiler_version": str(version), "arguments": arguments})
    else:
        _emit_lines(arguments)
    return 0


def _cmd_plan(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    runtime_config = config.get("runtime", {})
    jvm_args = list(runtime_config.get("jvm_args", ()))

    if args.runtime_version is not None:
        assumed = assumed_build_runtime(
            _parse_version(args.runtime_version, "--runtime-version"), jvm_args
        )
        plugin = ErrorPronePlugin(lambda: assumed)
    elif runtime_config.get("java_home") is None and not jvm_args:
        plugin = ErrorPronePlugin()
    else:
        # Discovery only runs once an enabled task asks for the runtime.
        discovered: OnceCell[BuildRuntime] = OnceCell(
            lambda: discover_build_runtime(
                java_home=runtime_config.get("java_home"), jvm_args=jvm_args
            )
        )
        plugin = ErrorPronePlugin(discovered.get)

    compiler: JavaCompilerMetadata | None = None
    if args.compiler_version is not None:
        compiler = JavaCompilerMetadata(
            language_version=_parse_version(args.compiler_version, "--compiler-version")
        )
    task = _configured_task(plugin, config, args.source_set, java_compiler=compiler)
    task.options.fork = bool(args.fork)
    if args.java_home is not None:
        task.options.fork_options.java_home = Path(args.java_home)
    if args.executable is not None:
        task.options.fork_options.executable = args.executable

    task.run_before_compile()
    summary = plugin.summarize(task)

    if _flag(args, "json"):
        _emit_json({"command": "plan", **summary.to_dict()})
    else:
        _emit_lines(_render_summary(summary))
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    print(dump_effective_config(config))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    config = load_config(getattr(args, "config_path", None))
    setup_logging(
        config.get("observability"),
        level="DEBUG" if _flag(args, "verbose") else None,
    )
    return config


def _configured_task(
    plugin: ErrorPronePlugin,
    config: Mapping[str, Any],
    source_set: str,
    *,
    java_compiler: JavaCompilerMetadata | None = None,
) -> CompileTask:
    task = CompileTask(name=compile_task_name(source_set), java_compiler=java_compiler)
    options = plugin.configure_source_set_task(task, source_set)
    apply_config(options, config, source_set=source_set)
    return task


def compile_task_name(source_set: str) -> str:
    """``main`` -> ``compileJava``, ``integrationTest`` -> ``compileIntegrationTestJava``."""

    if source_set == DEFAULT_SOURCE_SET:
        return "compileJava"
    return f"compile{source_set[:1].upper()}{source_set[1:]}Java"


def _unused_runtime() -> BuildRuntime:
    raise CLIError("build runtime is not available for this command", exit_code=4)


def _parse_version(raw: str, flag: str) -> JavaVersion:
    try:
        return JavaVersion.parse(raw)
    except ValueError as exc:
        raise CLIError(f"{flag}: {exc}", exit_code=2) from exc


def _render_summary(summary: TaskSummary) -> list[str]:
    if not summary.enabled:
        return [f"{summary.task}: ErrorProne: disabled"]
    lines = [
        f"{summary.task}: ErrorProne: enabled",
        f"compiler version: {summary.compiler_version or 'unknown'}",
        f"fork: {'true' if summary.fork else 'false'}",
        "compiler args:",
        *(f"  {argument}" for argument in summary.compiler_args),
        "jvm args:",
        *(f"  {argument}" for argument in summary.jvm_args),
    ]
    return lines


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _emit_lines(lines: Sequence[str]) -> None:
    for line in lines:
        print(line)


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "compile_task_name", "run_cli"]
