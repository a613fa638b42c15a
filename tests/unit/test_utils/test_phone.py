"""Tests for phone number canonicalisation."""

import pytest

from src.utils.errors import InvalidPhoneNumberError
from src.utils.phone import area_code_for, canonical_phone_number


@pytest.mark.unit
@pytest.mark.parametrize("raw", [
    "+14045550100",
    "14045550100",
    "4045550100",
    "(404) 555-0100",
    "404.555.0100",
    " +1 404 555 0100 ",
])
def test_canonical_forms(raw):
    assert canonical_phone_number(raw) == "+14045550100"


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["", "   ", "abc", "555-0100", "+442071838750", "+1404555010099"])
def test_invalid_numbers(raw):
    with pytest.raises(InvalidPhoneNumberError):
        canonical_phone_number(raw)


@pytest.mark.unit
def test_invalid_number_error_is_value_error():
    with pytest.raises(ValueError):
        canonical_phone_number("abc")


@pytest.mark.unit
def test_area_code_for():
    assert area_code_for("+14045550100") == "404"
    assert area_code_for("(212) 555-0100") == "212"
