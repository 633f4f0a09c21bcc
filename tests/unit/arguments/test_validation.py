"""Unit tests for render-time check name and white space validation."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from errorprone_compile.errors import InvalidConfigurationError
from errorprone_compile.validation import (
    contains_white_space,
    validate_check_name,
    validate_no_whitespace,
)

_UNICODE_WHITE_SPACE = (
    "\t\n\x0b\x0c\r \x85\xa0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006"
    "\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000"
)


def test_check_name_with_colon_is_rejected_with_quoted_name() -> None:
    with pytest.raises(InvalidConfigurationError) as excinfo:
        validate_check_name("Foo:Bar")

    assert str(excinfo.value) == 'Error Prone check name cannot contain a colon (":"): "Foo:Bar".'


def test_check_name_without_colon_is_returned() -> None:
    assert validate_check_name("ArrayEquals") == "ArrayEquals"


def test_token_with_space_is_rejected_with_quoted_token() -> None:
    with pytest.raises(InvalidConfigurationError) as excinfo:
        validate_no_whitespace("foo bar")

    assert str(excinfo.value) == 'Error Prone options cannot contain white space: "foo bar".'


@pytest.mark.parametrize("character", list(_UNICODE_WHITE_SPACE))
def test_every_unicode_white_space_character_is_rejected(character: str) -> None:
    assert contains_white_space(f"-Xep{character}Foo")
    with pytest.raises(InvalidConfigurationError):
        validate_no_whitespace(f"-Xep{character}Foo")


@pytest.mark.parametrize("character", ["\u200b", "\x1c", "\ufeff"])
def test_characters_outside_white_space_property_are_accepted(character: str) -> None:
    assert validate_no_whitespace(f"a{character}b") == f"a{character}b"


@settings(max_examples=100, deadline=None)
@given(
    prefix=st.text(alphabet=st.characters(exclude_characters=_UNICODE_WHITE_SPACE), max_size=10),
    space=st.sampled_from(list(_UNICODE_WHITE_SPACE)),
    suffix=st.text(max_size=10),
)
def test_any_token_containing_white_space_is_rejected(prefix: str, space: str, suffix: str) -> None:
    with pytest.raises(InvalidConfigurationError):
        validate_no_whitespace(prefix + space + suffix)
