"""
errorprone-compile — build runtime discovery.

File: src/errorprone_compile/runtime.py

Purpose
- Locate the Java launcher of the build runtime and read its feature version.
- Read the ``jdk.compiler`` module descriptor and combine it with the runtime's launch
  ``--add-exports`` / ``--add-opens`` grants into a :class:`CapabilitySource`.

Functional requirements
- Every external command goes through an injectable :class:`CommandRunner` so tests
  never need a JVM.
- The module descriptor is only read when the encapsulation probe actually runs.
- Discovery failures raise :class:`RuntimeDiscoveryError`.
"""

from __future__ import annotations

import os
import re
import shutil
import subprocess
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Protocol

import structlog

from errorprone_compile.constants import (
    ALL_UNNAMED,
    COMPILER_MODULE,
    EXPORT_PROBE_TYPES,
    OPEN_PROBE_TYPES,
)
from errorprone_compile.encapsulation import BuildRuntime, TypeNotFoundError
from errorprone_compile.errors import RuntimeDiscoveryError
from errorprone_compile.toolchain import JavaVersion
from errorprone_compile.utils.concurrency import OnceCell

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS: Final[float] = 30.0

_SPECIFICATION_VERSION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\s*java\.specification\.version\s*=\s*(?P<value>\S+)\s*$",
    re.MULTILINE,
)
_GRANT_FLAGS: Final[tuple[str, ...]] = ("--add-exports", "--add-opens")


@dataclass(frozen=True, slots=True)
class CommandExecutionResult:
    """Normalized subprocess execution result."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        return f"{self.stdout}\n{self.stderr}"


class CommandRunner(Protocol):
    """Injectable command runner used for deterministic/offline testing."""

    def run(
        self,
        command: Sequence[str],
        *,
        timeout_seconds: float,
    ) -> CommandExecutionResult: ...


class SubprocessCommandRunner:
    """Default command runner backed by ``subprocess.run``."""

    def run(
        self,
        command: Sequence[str],
        *,
        timeout_seconds: float,
    ) -> CommandExecutionResult:
        try:
            completed = subprocess.run(
                list(command),
                check=False,
                capture_output=True,
                text=True,
                timeout=timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise RuntimeDiscoveryError(
                f"command timed out after {timeout_seconds} seconds: {' '.join(command)}"
            ) from exc
        except OSError as exc:
            raise RuntimeDiscoveryError(
                f"failed to execute {' '.join(command)}: {exc}"
            ) from exc

        return CommandExecutionResult(
            command=tuple(command),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


# ---------------------------------------------------------------------------
# Launcher and version
# ---------------------------------------------------------------------------


def find_java_launcher(
    java_home: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> Path:
    """Return the ``java`` launcher from ``java_home``, ``JAVA_HOME``, or ``PATH``."""

    env = os.environ if environ is None else environ
    home = java_home if java_home is not None else env.get("JAVA_HOME")
    if home:
        launcher = Path(home) / "bin" / ("java.exe" if os.name == "nt" else "java")
        if not launcher.is_file():
            raise RuntimeDiscoveryError(f"no java launcher found under {home}")
        return launcher

    found = which("java")
    if found is None:
        raise RuntimeDiscoveryError("java launcher not found; set JAVA_HOME or add java to PATH")
    return Path(found)


def parse_specification_version(output: str) -> JavaVersion:
    """Extract ``java.specification.version`` from ``-XshowSettings:properties`` output."""

    match = _SPECIFICATION_VERSION_PATTERN.search(output)
    if match is None:
        raise RuntimeDiscoveryError("java.specification.version not reported by the launcher")
    try:
        return JavaVersion.parse(match.group("value"))
    except ValueError as exc:
        raise RuntimeDiscoveryError(str(exc)) from exc


def read_runtime_version(
    launcher: Path,
    *,
    runner: CommandRunner,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> JavaVersion:
    result = runner.run(
        (str(launcher), "-XshowSettings:properties", "-version"),
        timeout_seconds=timeout_seconds,
    )
    if result.returncode != 0:
        raise RuntimeDiscoveryError(
            f"{launcher} -version exited with status {result.returncode}: {result.stderr.strip()}"
        )
    # The launcher prints settings to stderr.
    return parse_specification_version(result.output)


# ---------------------------------------------------------------------------
# Module descriptor
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ModuleDescriptor:
    """Package-level access facts of one named module."""

    name: str
    is_open: bool = False
    exports: frozenset[str] = frozenset()
    opens: frozenset[str] = frozenset()
    packages: frozenset[str] = frozenset()

    @classmethod
    def parse(cls, text: str) -> ModuleDescriptor:
        """Parse ``java --describe-module`` output.

        Only unqualified ``exports`` / ``opens`` count as access for unnamed modules;
        qualified ones and ``contains`` lines only declare that the package exists.
        """

        lines = [line.strip() for line in text.splitlines() if line.strip()]
        if not lines:
            raise RuntimeDiscoveryError("empty module description")

        header = lines[0].split()
        name = header[0].split("@", 1)[0]
        is_open = "open" in header[1:]
        exports: set[str] = set()
        opens: set[str] = set()
        packages: set[str] = set()

        for line in lines[1:]:
            tokens = line.split()
            if len(tokens) >= 2 and tokens[0] in {"exports", "opens", "contains"}:
                packages.add(tokens[1])
                if tokens[0] == "exports":
                    exports.add(tokens[1])
                elif tokens[0] == "opens":
                    opens.add(tokens[1])
            elif len(tokens) >= 3 and tokens[0] == "qualified" and tokens[1] in {"exports", "opens"}:
                packages.add(tokens[2])

        return cls(
            name=name,
            is_open=is_open,
            exports=frozenset(exports),
            opens=frozenset(opens),
            packages=frozenset(packages),
        )

    @classmethod
    def internal(cls, name: str, packages: Iterable[str]) -> ModuleDescriptor:
        """Descriptor in which ``packages`` exist but none is exported or opened."""

        return cls(name=name, packages=frozenset(packages))


def read_module_descriptor(
    launcher: Path,
    module: str = COMPILER_MODULE,
    *,
    runner: CommandRunner,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> ModuleDescriptor:
    result = runner.run(
        (str(launcher), "--describe-module", module),
        timeout_seconds=timeout_seconds,
    )
    if result.returncode != 0:
        raise RuntimeDiscoveryError(
            f"could not describe module {module}: {result.stderr.strip() or result.stdout.strip()}"
        )
    descriptor = ModuleDescriptor.parse(result.stdout)
    if descriptor.name != module:
        raise RuntimeDiscoveryError(f"expected module {module}, launcher described {descriptor.name}")
    return descriptor


@dataclass(frozen=True, slots=True)
class LaunchGrants:
    """``--add-exports`` / ``--add-opens`` packages granted to unnamed modules."""

    exports: frozenset[str] = frozenset()
    opens: frozenset[str] = frozenset()


def parse_launch_grants(jvm_args: Iterable[str], module: str = COMPILER_MODULE) -> LaunchGrants:
    """Collect packages of ``module`` exported/opened to ``ALL-UNNAMED`` by ``jvm_args``.

    Both ``--add-exports=value`` and ``--add-exports value`` spellings are accepted.
    """

    granted: dict[str, set[str]] = {flag: set() for flag in _GRANT_FLAGS}
    pending_flag: str | None = None
    for argument in jvm_args:
        if pending_flag is not None:
            flag, value = pending_flag, argument
            pending_flag = None
        elif argument in _GRANT_FLAGS:
            pending_flag = argument
            continue
        else:
            flag, sep, value = argument.partition("=")
            if not sep or flag not in _GRANT_FLAGS:
                continue

        source, sep, targets = value.partition("=")
        if not sep:
            continue
        source_module, _, package = source.partition("/")
        if source_module != module or not package:
            continue
        if ALL_UNNAMED in {target.strip() for target in targets.split(",")}:
            granted[flag].add(package)

    return LaunchGrants(
        exports=frozenset(granted["--add-exports"]),
        opens=frozenset(granted["--add-opens"]),
    )


@dataclass(frozen=True, slots=True)
class ModuleDescriptorCapabilitySource:
    """Capability source combining a module descriptor with launch-time grants."""

    descriptor: ModuleDescriptor
    grants: LaunchGrants = field(default_factory=LaunchGrants)

    @classmethod
    def from_jvm_args(
        cls,
        descriptor: ModuleDescriptor,
        jvm_args: Iterable[str] = (),
    ) -> ModuleDescriptorCapabilitySource:
        return cls(descriptor=descriptor, grants=parse_launch_grants(jvm_args, descriptor.name))

    def is_exported(self, type_name: str) -> bool:
        package = self._package_of(type_name)
        # An opened package is also exported.
        return self.is_open(type_name) or (
            package in self.descriptor.exports or package in self.grants.exports
        )

    def is_open(self, type_name: str) -> bool:
        package = self._package_of(type_name)
        if self.descriptor.is_open:
            return True
        return package in self.descriptor.opens or package in self.grants.opens

    def _package_of(self, type_name: str) -> str:
        package, _, simple_name = type_name.rpartition(".")
        if not package or not simple_name or package not in self.descriptor.packages:
            raise TypeNotFoundError(type_name)
        return package


# ---------------------------------------------------------------------------
# Build runtime
# ---------------------------------------------------------------------------


def discover_build_runtime(
    *,
    java_home: str | Path | None = None,
    jvm_args: Sequence[str] = (),
    runner: CommandRunner | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> BuildRuntime:
    """Discover the Java runtime executing the build.

    The module descriptor is read lazily by the encapsulation probe.
    """

    command_runner = runner if runner is not None else SubprocessCommandRunner()
    launcher = find_java_launcher(java_home)
    version = read_runtime_version(launcher, runner=command_runner, timeout_seconds=timeout_seconds)
    logger.debug("errorprone_runtime_discovered", launcher=str(launcher), version=str(version))

    def source_factory() -> ModuleDescriptorCapabilitySource:
        descriptor = read_module_descriptor(
            launcher, runner=command_runner, timeout_seconds=timeout_seconds
        )
        return ModuleDescriptorCapabilitySource.from_jvm_args(descriptor, jvm_args)

    return BuildRuntime.create(version, source_factory)


def assumed_build_runtime(
    version: JavaVersion | int | str,
    jvm_args: Sequence[str] = (),
) -> BuildRuntime:
    """Build runtime of a given version whose compiler internals are only reachable via ``jvm_args``."""

    probed_packages = {
        type_name.rpartition(".")[0] for type_name in (*EXPORT_PROBE_TYPES, *OPEN_PROBE_TYPES)
    }
    descriptor = ModuleDescriptor.internal(COMPILER_MODULE, probed_packages)
    return BuildRuntime.create(
        version,
        lambda: ModuleDescriptorCapabilitySource.from_jvm_args(descriptor, jvm_args),
    )


def _discover_current_runtime() -> BuildRuntime:
    return discover_build_runtime()


_CURRENT_RUNTIME: OnceCell[BuildRuntime] = OnceCell(_discover_current_runtime)


def current_build_runtime() -> BuildRuntime:
    """Process-wide build runtime discovered from ``JAVA_HOME`` / ``PATH``."""

    return _CURRENT_RUNTIME.get()


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "CommandExecutionResult",
    "CommandRunner",
    "LaunchGrants",
    "ModuleDescriptor",
    "ModuleDescriptorCapabilitySource",
    "SubprocessCommandRunner",
    "assumed_build_runtime",
    "current_build_runtime",
    "discover_build_runtime",
    "find_java_launcher",
    "parse_launch_grants",
    "parse_specification_version",
    "read_module_descriptor",
    "read_runtime_version",
]
