import pytest

from surecast.amounts import is_positive_amount, to_base_units, to_human
from surecast.errors import AmountError, ValidationError


@pytest.mark.parametrize(
    "human, decimals, expected",
    [
        ("1.5", 6, "1500000"),
        ("0.000001", 6, "1"),
        ("0.1", 18, "100000000000000000"),
        ("1.1234567", 6, "1123456"),
        ("0", 18, "0"),
        ("0.0", 6, "0"),
        ("100", 0, "100"),
        ("007.5", 2, "750"),
        (".5", 2, "50"),
        ("5.", 2, "500"),
        (" 2 ", 6, "2000000"),
    ],
)
def test_to_base_units(human, decimals, expected):
    assert to_base_units(human, decimals) == expected


@pytest.mark.parametrize("bad", ["", "abc", "1.2.3", "-1", ".", "1e5", "1,5"])
def test_to_base_units_rejects_malformed_input(bad):
    with pytest.raises(AmountError):
        to_base_units(bad, 6)


def test_amount_error_is_validation_error():
    with pytest.raises(ValidationError):
        to_base_units("x", 6)


def test_negative_decimals_rejected():
    with pytest.raises(AmountError):
        to_base_units("1", -1)


@pytest.mark.parametrize("digits", ["١٢", "１.5", "1.१"])
def test_only_ascii_digits_accepted(digits):
    with pytest.raises(AmountError):
        to_base_units(digits, 0)
    with pytest.raises(AmountError):
        to_human(digits.replace(".", ""), 0)


@pytest.mark.parametrize(
    "base, decimals, expected",
    [
        ("1500000", 6, "1.5"),
        ("1", 6, "0.000001"),
        ("1000000", 6, "1"),
        ("0", 6, "0"),
        ("42", 0, "42"),
        ("100000000000000000", 18, "0.1"),
    ],
)
def test_to_human(base, decimals, expected):
    assert to_human(base, decimals) == expected


def test_to_human_display_cap():
    assert to_human("123456789", 6, max_fraction_digits=4) == "123.4567"
    assert to_human("1000001", 6, max_fraction_digits=4) == "1"


def test_to_human_rejects_non_digits():
    with pytest.raises(AmountError):
        to_human("1.5", 6)


@pytest.mark.parametrize(
    "human, decimals",
    [("1.5", 6), ("0.000123", 18), ("42", 6), ("123456.654321", 6), ("7", 0)],
)
def test_round_trip_canonical_amounts(human, decimals):
    assert to_human(to_base_units(human, decimals), decimals) == human


def test_is_positive_amount():
    assert is_positive_amount("0.0001")
    assert not is_positive_amount("0")
    assert not is_positive_amount("0.000")
    assert not is_positive_amount("abc")
    assert not is_positive_amount("")
