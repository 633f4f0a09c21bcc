"""
errorprone-compile config package public API.

File: src/errorprone_compile/config/__init__.py

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``errorprone.toml`` + ``ERRORPRONE_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from errorprone_compile.config.binding import apply_config, options_from_config
from errorprone_compile.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    load_config,
    load_config_file,
    normalize_paths,
)
from errorprone_compile.config.schema import (
    DEFAULT_CONFIG,
    PATH_FIELDS,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    ErrorProneConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    source_set_section,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "ErrorProneConfig",
    "PATH_FIELDS",
    "apply_config",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "load_config",
    "load_config_file",
    "merge_config",
    "migration_guidance",
    "normalize_paths",
    "options_from_config",
    "source_set_section",
    "validate_config",
]
