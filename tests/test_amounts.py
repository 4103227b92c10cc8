import pytest

from ao_wallet_bot.errors import InvalidAmount
from ao_wallet_bot.utils.amounts import (
    is_all_keyword,
    is_base_units,
    is_positive,
    to_base_units,
    to_display_units,
)


@pytest.mark.parametrize("text", ["all", "ALL", "Max", " max "])
def test_all_keywords(text) -> None:
    assert is_all_keyword(text)


@pytest.mark.parametrize("text", ["alll", "0", "", None, "everything"])
def test_not_all_keywords(text) -> None:
    assert not is_all_keyword(text)


def test_to_base_units_scales_by_decimals() -> None:
    assert to_base_units("0.1", 12) == "100000000000"
    assert to_base_units("1", 6) == "1000000"
    assert to_base_units("1,000", 0) == "1000"


def test_to_base_units_uses_bankers_rounding() -> None:
    assert to_base_units("2.5", 0) == "2"
    assert to_base_units("3.5", 0) == "4"
    assert to_base_units("0.0000015", 6) == "2"


@pytest.mark.parametrize("value", ["0", "-1", "abc", "", "nan", "inf"])
def test_to_base_units_rejects_invalid(value) -> None:
    with pytest.raises(InvalidAmount):
        to_base_units(value, 12)


def test_to_base_units_rejects_amount_below_precision() -> None:
    with pytest.raises(InvalidAmount):
        to_base_units("0.0000001", 6)


def test_all_keyword_never_reaches_conversion() -> None:
    with pytest.raises(InvalidAmount):
        to_base_units("all", 12)


def test_to_display_units_trims_and_caps_places() -> None:
    assert to_display_units("100000000000", 12) == "0.1"
    assert to_display_units("1000000", 6) == "1"
    assert to_display_units("1234567891", 12) == "0.001235"
    assert to_display_units("0", 12) == "0"
    assert to_display_units("42", 0) == "42"


@pytest.mark.parametrize("display,decimals", [("0.1", 12), ("12.345678", 6), ("7", 0), ("0.000001", 18)])
def test_display_of_base_returns_original(display, decimals) -> None:
    assert to_display_units(to_base_units(display, decimals), decimals) == display


def test_is_positive_compares_numerically() -> None:
    assert not is_positive("0")
    assert not is_positive("000")
    assert not is_positive("0.0")
    assert not is_positive(None)
    assert not is_positive("garbage")
    assert is_positive("1")


def test_is_base_units() -> None:
    assert is_base_units("123")
    assert not is_base_units("1.5")
    assert not is_base_units("")
    assert not is_base_units(None)
