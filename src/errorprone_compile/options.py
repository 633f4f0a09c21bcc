"""
errorprone-compile — Error Prone options builder and argument assembler.

File: src/errorprone_compile/options.py

Purpose
- Accumulate Error Prone settings incrementally (build scripts, config files).
- Render them once, atomically, into the ordered ``-Xep*`` argument list.

Functional requirements
- Builders never validate; all validation happens in :func:`assemble_arguments`.
- A disabled configuration renders to nothing and reads no other field.
- Rendering order is a contract: later arguments override earlier ones in Error Prone.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from errorprone_compile.constants import (
    FLAG_ALL_DISABLED_CHECKS_AS_WARNINGS,
    FLAG_ALL_ERRORS_AS_WARNINGS,
    FLAG_ALL_SUGGESTIONS_AS_WARNINGS,
    FLAG_CHECK_OPTION_PREFIX,
    FLAG_CHECK_PREFIX,
    FLAG_COMPILING_TEST_ONLY_CODE,
    FLAG_DISABLE_ALL_CHECKS,
    FLAG_DISABLE_ALL_WARNINGS,
    FLAG_DISABLE_WARNINGS_IN_GENERATED_CODE,
    FLAG_EXCLUDED_PATHS,
    FLAG_IGNORE_SUPPRESSION_ANNOTATIONS,
    FLAG_IGNORE_UNKNOWN_CHECK_NAMES,
    PLUGIN_DIRECTIVE,
)
from errorprone_compile.severity import CheckSeverity, render_severity
from errorprone_compile.validation import validate_check_name, validate_no_whitespace


@runtime_checkable
class ArgumentProvider(Protocol):
    """Pluggable supplier of extra Error Prone arguments, evaluated at render time."""

    def as_arguments(self) -> Iterable[str]: ...


@dataclass(frozen=True, slots=True)
class StaticArgumentProvider:
    """Argument provider over a fixed sequence, mostly useful for config files."""

    arguments: tuple[str, ...]

    def as_arguments(self) -> Iterable[str]:
        return self.arguments


@dataclass(frozen=True, slots=True)
class ErrorProneSnapshot:
    """Read-only view of :class:`ErrorProneOptions` at render time."""

    enabled: bool
    disable_all_checks: bool = False
    disable_all_warnings: bool = False
    all_errors_as_warnings: bool = False
    all_suggestions_as_warnings: bool = False
    all_disabled_checks_as_warnings: bool = False
    disable_warnings_in_generated_code: bool = False
    ignore_unknown_check_names: bool = False
    ignore_suppression_annotations: bool = False
    compiling_test_only_code: bool = False
    excluded_paths: str | None = None
    checks: Mapping[str, CheckSeverity] = field(default_factory=dict)
    check_options: Mapping[str, str] = field(default_factory=dict)
    extra_args: tuple[str, ...] = ()
    argument_providers: tuple[ArgumentProvider, ...] = ()


class ErrorProneOptions:
    """Mutable Error Prone settings for one compile task.

    ``enabled`` and ``compiling_test_only_code`` keep an explicit value separately
    from their convention so source-set defaults never override user choices.
    """

    def __init__(self) -> None:
        self._enabled: bool | None = None
        self._enabled_convention = False
        self._compiling_test_only_code: bool | None = None
        self._compiling_test_only_code_convention = False
        self.disable_all_checks = False
        self.disable_all_warnings = False
        self.all_errors_as_warnings = False
        self.all_suggestions_as_warnings = False
        self.all_disabled_checks_as_warnings = False
        self.disable_warnings_in_generated_code = False
        self.ignore_unknown_check_names = False
        self.ignore_suppression_annotations = False
        self.excluded_paths: str | None = None
        self.checks: dict[str, CheckSeverity] = {}
        self.check_options: dict[str, str] = {}
        self.errorprone_args: list[str] = []
        self.argument_providers: list[ArgumentProvider] = []

    # -- conventions -------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled if self._enabled is not None else self._enabled_convention

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)

    @property
    def compiling_test_only_code(self) -> bool:
        if self._compiling_test_only_code is not None:
            return self._compiling_test_only_code
        return self._compiling_test_only_code_convention

    @compiling_test_only_code.setter
    def compiling_test_only_code(self, value: bool) -> None:
        self._compiling_test_only_code = bool(value)

    def enabled_by_convention(self, value: bool) -> None:
        self._enabled_convention = bool(value)

    def compiling_test_only_code_by_convention(self, value: bool) -> None:
        self._compiling_test_only_code_convention = bool(value)

    # -- checks ------------------------------------------------------------

    def check(self, name: str, severity: CheckSeverity | str = CheckSeverity.DEFAULT) -> None:
        """Set the severity of a check; re-adding a check keeps its position."""

        self.checks[name] = CheckSeverity.parse(severity)

    def check_pairs(self, *pairs: tuple[str, CheckSeverity | str]) -> None:
        for name, severity in pairs:
            self.check(name, severity)

    def enable(self, *names: str) -> None:
        self._set_all(names, CheckSeverity.DEFAULT)

    def disable(self, *names: str) -> None:
        self._set_all(names, CheckSeverity.OFF)

    def warn(self, *names: str) -> None:
        self._set_all(names, CheckSeverity.WARN)

    def error(self, *names: str) -> None:
        self._set_all(names, CheckSeverity.ERROR)

    def _set_all(self, names: Iterable[str], severity: CheckSeverity) -> None:
        for name in names:
            self.check(name, severity)

    # -- check options -----------------------------------------------------

    def option(self, name: str, value: str | bool = True) -> None:
        if isinstance(value, bool):
            value = "true" if value else "false"
        self.check_options[name] = value

    # -- free-form arguments -----------------------------------------------

    def args(self, *arguments: str) -> None:
        self.errorprone_args.extend(arguments)

    def add_argument_provider(self, provider: ArgumentProvider) -> None:
        self.argument_providers.append(provider)

    # -- rendering ---------------------------------------------------------

    def snapshot(self) -> ErrorProneSnapshot:
        return ErrorProneSnapshot(
            enabled=self.enabled,
            disable_all_checks=self.disable_all_checks,
            disable_all_warnings=self.disable_all_warnings,
            all_errors_as_warnings=self.all_errors_as_warnings,
            all_suggestions_as_warnings=self.all_suggestions_as_warnings,
            all_disabled_checks_as_warnings=self.all_disabled_checks_as_warnings,
            disable_warnings_in_generated_code=self.disable_warnings_in_generated_code,
            ignore_unknown_check_names=self.ignore_unknown_check_names,
            ignore_suppression_annotations=self.ignore_suppression_annotations,
            compiling_test_only_code=self.compiling_test_only_code,
            excluded_paths=self.excluded_paths,
            checks=MappingProxyType(dict(self.checks)),
            check_options=MappingProxyType(dict(self.check_options)),
            extra_args=tuple(self.errorprone_args),
            argument_providers=tuple(self.argument_providers),
        )

    def render(self) -> list[str]:
        """Render the ordered Error Prone arguments; empty when disabled."""

        if not self.enabled:
            return []
        return assemble_arguments(self.snapshot())

    def __str__(self) -> str:
        return " ".join(self.render())


def assemble_arguments(snapshot: ErrorProneSnapshot) -> list[str]:
    """Build the validated, ordered Error Prone argument list for ``snapshot``.

    Raises :class:`~errorprone_compile.errors.InvalidConfigurationError` on the
    first check name containing ``:`` or the first token containing white space;
    nothing is returned in that case.
    """

    if not snapshot.enabled:
        return []
    arguments = list(_iter_arguments(snapshot))
    for token in arguments:
        validate_no_whitespace(token)
    return arguments


def plugin_directive(arguments: Iterable[str]) -> str:
    """Join rendered arguments into the single ``-Xplugin:ErrorProne ...`` argument."""

    return " ".join((PLUGIN_DIRECTIVE, *arguments))


def _iter_arguments(snapshot: ErrorProneSnapshot) -> Iterator[str]:
    toggles = (
        (FLAG_DISABLE_ALL_CHECKS, snapshot.disable_all_checks),
        (FLAG_DISABLE_ALL_WARNINGS, snapshot.disable_all_warnings),
        (FLAG_ALL_ERRORS_AS_WARNINGS, snapshot.all_errors_as_warnings),
        (FLAG_ALL_SUGGESTIONS_AS_WARNINGS, snapshot.all_suggestions_as_warnings),
        (FLAG_ALL_DISABLED_CHECKS_AS_WARNINGS, snapshot.all_disabled_checks_as_warnings),
        (FLAG_DISABLE_WARNINGS_IN_GENERATED_CODE, snapshot.disable_warnings_in_generated_code),
        (FLAG_IGNORE_UNKNOWN_CHECK_NAMES, snapshot.ignore_unknown_check_names),
        (FLAG_IGNORE_SUPPRESSION_ANNOTATIONS, snapshot.ignore_suppression_annotations),
        (FLAG_COMPILING_TEST_ONLY_CODE, snapshot.compiling_test_only_code),
    )
    for flag, is_set in toggles:
        if is_set:
            yield flag

    if snapshot.excluded_paths is not None:
        yield f"{FLAG_EXCLUDED_PATHS}:{snapshot.excluded_paths}"

    for name, severity in snapshot.checks.items():
        validate_check_name(name)
        yield f"{FLAG_CHECK_PREFIX}{name}{render_severity(severity)}"

    # Option names may contain ':' (e.g. NullAway:AnnotatedPackages).
    for name, value in snapshot.check_options.items():
        yield f"{FLAG_CHECK_OPTION_PREFIX}{name}={value}"

    yield from snapshot.extra_args

    for provider in snapshot.argument_providers:
        yield from provider.as_arguments()


__all__ = [
    "ArgumentProvider",
    "ErrorProneOptions",
    "ErrorProneSnapshot",
    "StaticArgumentProvider",
    "assemble_arguments",
    "plugin_directive",
]
