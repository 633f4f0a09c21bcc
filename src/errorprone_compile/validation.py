"""Render-time validators for check names and rendered argument tokens."""

from __future__ import annotations

import re
from typing import Final

from errorprone_compile.errors import InvalidConfigurationError

# Unicode ``White_Space`` property; ``str.isspace`` also accepts U+001C..U+001F.
_WHITE_SPACE: Final[re.Pattern[str]] = re.compile(
    "[\u0009-\u000d\u0020\u0085\u00a0\u1680\u2000-\u200a"
    "\u2028\u2029\u202f\u205f\u3000]"
)


def validate_check_name(name: str) -> str:
    """Reject check names containing ``:``, the severity separator in ``-Xep:``."""

    if ":" in name:
        raise InvalidConfigurationError(
            f'Error Prone check name cannot contain a colon (":"): "{name}".'
        )
    return name


def validate_no_whitespace(token: str) -> str:
    """Reject tokens that would be split into several process arguments."""

    if _WHITE_SPACE.search(token) is not None:
        raise InvalidConfigurationError(
            f'Error Prone options cannot contain white space: "{token}".'
        )
    return token


def contains_white_space(token: str) -> bool:
    return _WHITE_SPACE.search(token) is not None


__all__ = ["contains_white_space", "validate_check_name", "validate_no_whitespace"]
