"""Apply a validated ``errorprone.toml`` config onto :class:`ErrorProneOptions`."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from errorprone_compile.config.schema import ERRORPRONE_BOOLEAN_FIELDS, source_set_section
from errorprone_compile.options import ErrorProneOptions


def apply_config(
    options: ErrorProneOptions,
    config: Mapping[str, Any],
    *,
    source_set: str | None = None,
) -> ErrorProneOptions:
    """Copy ``[errorprone]`` (plus the source-set overlay) onto ``options``.

    Unset ``enabled`` / ``compiling_test_only_code`` leave the conventions in place.
    Values are copied as-is; invalid check names surface when rendering.
    """

    section = source_set_section(config, source_set)

    for name in ERRORPRONE_BOOLEAN_FIELDS:
        if name in section:
            setattr(options, name, section[name])

    if "excluded_paths" in section:
        options.excluded_paths = section["excluded_paths"]

    for name, severity in section.get("checks", {}).items():
        options.check(name, severity)

    for name, value in section.get("check_options", {}).items():
        options.option(name, value if isinstance(value, (str, bool)) else str(value))

    options.args(*section.get("args", ()))
    return options


def options_from_config(
    config: Mapping[str, Any],
    *,
    source_set: str | None = None,
) -> ErrorProneOptions:
    return apply_config(ErrorProneOptions(), config, source_set=source_set)


__all__ = ["apply_config", "options_from_config"]
