"""
errorprone-compile — configuration schema and validation.

File: src/errorprone_compile/config/schema.py

Purpose
- Define the built-in defaults of ``errorprone.toml`` and strict type validation rules.

What should be included in this file
- Schema versioning and migration guidance.
- Validation rules for field types and enums, returning structured issues.
- Source-set overlay validation and an order-preserving deep merge.

Functional requirements
- Check names and white space are not validated here; the argument assembler
  enforces them when rendering.
- ``[errorprone.checks]`` keeps document order, since later checks override earlier
  ones in the rendered arguments.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from errorprone_compile.constants import CONFIG_SCHEMA_VERSION
from errorprone_compile.errors import InvalidConfigurationError
from errorprone_compile.severity import CheckSeverity

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

ERRORPRONE_BOOLEAN_FIELDS: Final[tuple[str, ...]] = (
    "enabled",
    "disable_all_checks",
    "disable_all_warnings",
    "all_errors_as_warnings",
    "all_suggestions_as_warnings",
    "all_disabled_checks_as_warnings",
    "disable_warnings_in_generated_code",
    "ignore_unknown_check_names",
    "ignore_suppression_annotations",
    "compiling_test_only_code",
)

# Left unset by default so source-set conventions apply.
CONVENTION_FIELDS: Final[frozenset[str]] = frozenset({"enabled", "compiling_test_only_code"})

# Config paths normalized relative to the config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (("runtime", "java_home"),)

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("json", "text")


class MetaConfig(TypedDict):
    schema_version: int


class ErrorProneSection(TypedDict, total=False):
    enabled: bool
    disable_all_checks: bool
    disable_all_warnings: bool
    all_errors_as_warnings: bool
    all_suggestions_as_warnings: bool
    all_disabled_checks_as_warnings: bool
    disable_warnings_in_generated_code: bool
    ignore_unknown_check_names: bool
    ignore_suppression_annotations: bool
    compiling_test_only_code: bool
    excluded_paths: str
    args: list[str]
    checks: dict[str, str]
    check_options: dict[str, str | bool | int]


class RuntimeConfig(TypedDict, total=False):
    java_home: str
    jvm_args: list[str]


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["json", "text"]


class ErrorProneConfig(TypedDict):
    meta: MetaConfig
    errorprone: ErrorProneSection
    source_sets: dict[str, ErrorProneSection]
    runtime: RuntimeConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[ErrorProneConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "errorprone": {
        "disable_all_checks": False,
        "disable_all_warnings": False,
        "all_errors_as_warnings": False,
        "all_suggestions_as_warnings": False,
        "all_disabled_checks_as_warnings": False,
        "disable_warnings_in_generated_code": False,
        "ignore_unknown_check_names": False,
        "ignore_suppression_annotations": False,
        "args": [],
        "checks": {},
        "check_options": {},
    },
    "source_sets": {},
    "runtime": {
        "jvm_args": [],
    },
    "observability": {
        "log_level": "WARNING",
        "log_format": "text",
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> ErrorProneConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    """Return migration guidance for a schema version mismatch."""

    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade errorprone.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade errorprone-compile"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto ``base``; new keys are appended in overlay order."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def source_set_section(config: Mapping[str, Any], source_set: str | None) -> dict[str, Any]:
    """Return ``[errorprone]`` with the ``[source_sets.<name>]`` overlay applied."""

    base = config.get("errorprone")
    section = _deep_copy_mapping(base) if isinstance(base, Mapping) else {}
    if source_set is None:
        return section
    overlays = config.get("source_sets")
    if not isinstance(overlays, Mapping):
        return section
    overlay = overlays.get(source_set)
    if isinstance(overlay, Mapping):
        _merge_into(section, overlay)
    return section


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with dotted paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    normalized = _validate_root(root, issues)
    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=issues.items())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _validate_root(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    allowed = {"meta", "errorprone", "source_sets", "runtime", "observability"}
    _reject_unknown_keys(payload, allowed, "", issues)
    _require_keys(payload, {"meta"}, "", issues)

    out: dict[str, Any] = {}
    _section(payload, key="meta", path="", issues=issues, validator=_validate_meta, out=out)
    _section(
        payload, key="errorprone", path="", issues=issues, validator=_validate_errorprone, out=out
    )
    _section(
        payload, key="source_sets", path="", issues=issues, validator=_validate_source_sets, out=out
    )
    _section(payload, key="runtime", path="", issues=issues, validator=_validate_runtime, out=out)
    _section(
        payload,
        key="observability",
        path="",
        issues=issues,
        validator=_validate_observability,
        out=out,
    )
    return out


def _section(
    payload: Mapping[str, object],
    *,
    key: str,
    path: str,
    issues: _IssueCollector,
    validator: Callable[[dict[str, object], str, _IssueCollector], dict[str, Any]],
    out: dict[str, Any],
) -> None:
    raw = payload.get(key)
    if raw is None:
        return
    section_path = _join(path, key)
    section_obj = _as_object(raw, section_path, issues)
    if section_obj is None:
        return
    out[key] = validator(section_obj, section_path, issues)


def _validate_meta(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"schema_version"}, path, issues)
    _require_keys(payload, {"schema_version"}, path, issues)

    out: dict[str, Any] = {}
    if "schema_version" in payload:
        parsed = _as_int(payload["schema_version"], _join(path, "schema_version"), issues, minimum=1)
        if parsed is not None:
            out["schema_version"] = parsed
            if parsed != ConfigSchemaVersion:
                issues.add(_join(path, "schema_version"), migration_guidance(parsed))
    return out


def _validate_errorprone(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
) -> dict[str, Any]:
    allowed = {*ERRORPRONE_BOOLEAN_FIELDS, "excluded_paths", "args", "checks", "check_options"}
    _reject_unknown_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    for key, value in payload.items():
        key_path = _join(path, key)
        if key in ERRORPRONE_BOOLEAN_FIELDS:
            parsed_bool = _as_bool(value, key_path, issues)
            if parsed_bool is not None:
                out[key] = parsed_bool
        elif key == "excluded_paths":
            parsed_str = _as_verbatim_str(value, key_path, issues)
            if parsed_str is not None:
                out[key] = parsed_str
        elif key == "args":
            parsed_list = _as_str_list(value, key_path, issues)
            if parsed_list is not None:
                out[key] = parsed_list
        elif key == "checks":
            parsed_checks = _validate_checks(value, key_path, issues)
            if parsed_checks is not None:
                out[key] = parsed_checks
        elif key == "check_options":
            parsed_options = _validate_check_options(value, key_path, issues)
            if parsed_options is not None:
                out[key] = parsed_options
    return out


def _validate_checks(value: object, path: str, issues: _IssueCollector) -> dict[str, str] | None:
    table = _as_object(value, path, issues)
    if table is None:
        return None
    out: dict[str, str] = {}
    for name, severity in table.items():
        key_path = _join(path, name)
        if not isinstance(severity, str):
            issues.add(key_path, f"expected severity string, got {type(severity).__name__}")
            continue
        try:
            out[name] = CheckSeverity.parse(severity).value
        except InvalidConfigurationError as exc:
            issues.add(key_path, str(exc))
    return out


def _validate_check_options(
    value: object, path: str, issues: _IssueCollector
) -> dict[str, str | bool | int] | None:
    table = _as_object(value, path, issues)
    if table is None:
        return None
    out: dict[str, str | bool | int] = {}
    for name, option_value in table.items():
        if isinstance(option_value, (str, bool, int)):
            out[name] = option_value
        else:
            issues.add(
                _join(path, name),
                f"expected string, boolean or integer, got {type(option_value).__name__}",
            )
    return out


def _validate_source_sets(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for name, overlay in payload.items():
        overlay_path = _join(path, name)
        overlay_obj = _as_object(overlay, overlay_path, issues)
        if overlay_obj is None:
            continue
        out[name] = _validate_errorprone(overlay_obj, overlay_path, issues)
    return out


def _validate_runtime(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"java_home", "jvm_args"}, path, issues)

    out: dict[str, Any] = {}
    if "java_home" in payload:
        parsed_home = _as_path_text(payload["java_home"], _join(path, "java_home"), issues)
        if parsed_home is not None:
            out["java_home"] = parsed_home
    if "jvm_args" in payload:
        parsed_args = _as_str_list(payload["jvm_args"], _join(path, "jvm_args"), issues)
        if parsed_args is not None:
            out["jvm_args"] = parsed_args
    return out


def _validate_observability(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
) -> dict[str, Any]:
    allowed = {"log_level", "log_format"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "log_level" in payload:
        parsed_log_level = _as_enum(
            payload["log_level"],
            _join(path, "log_level"),
            issues,
            allowed_values=LOG_LEVELS,
        )
        if parsed_log_level is not None:
            out["log_level"] = parsed_log_level

    if "log_format" in payload:
        parsed_log_format = _as_enum(
            payload["log_format"],
            _join(path, "log_format"),
            issues,
            allowed_values=LOG_FORMATS,
        )
        if parsed_log_format is not None:
            out["log_format"] = parsed_log_format
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_verbatim_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    # White space is rejected when arguments are rendered, not here.
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    if not value:
        issues.add(path, "must not be empty")
        return None
    return value


def _as_path_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return parsed


def _as_str_list(value: object, path: str, issues: _IssueCollector) -> list[str] | None:
    if not isinstance(value, (list, tuple)):
        issues.add(path, f"expected list of strings, got {type(value).__name__}")
        return None
    out: list[str] = []
    for index, item in enumerate(value):
        if not isinstance(item, str):
            issues.add(f"{path}[{index}]", f"expected string, got {type(item).__name__}")
            continue
        out.append(item)
    return out


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key, value in overlay.items():
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = _deep_copy_value(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    return {key: _deep_copy_value(item) for key, item in value.items()}


def _deep_copy_value(value: object) -> Any:
    if isinstance(value, Mapping):
        return {key: _deep_copy_value(item) for key, item in value.items() if isinstance(key, str)}
    if isinstance(value, list):
        return [_deep_copy_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(_deep_copy_value(item) for item in value)
    return copy.deepcopy(value)


__all__ = [
    "CONVENTION_FIELDS",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "ERRORPRONE_BOOLEAN_FIELDS",
    "ErrorProneConfig",
    "ErrorProneSection",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "source_set_section",
    "validate_config",
]
