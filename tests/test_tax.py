import pytest

from aggregation import Bucket
from money import format_currency, parse_amount
from tax import derive_tax_cents


def test_derive_tax_from_fallback_rate() -> None:
    assert derive_tax_cents(10000, None) == 476
    bucket = Bucket()
    bucket.add(10000, derive_tax_cents(10000, None))
    assert bucket.pre_tax_cents == 9524


def test_derive_tax_exact_multiple() -> None:
    assert derive_tax_cents(10500, None) == 500
    assert 10500 - derive_tax_cents(10500, None) == 10000


def test_stored_tax_is_returned_unchanged() -> None:
    assert derive_tax_cents(5000, 1000) == 1000
    assert derive_tax_cents(5000, 0) == 0


def test_zero_amount_has_zero_tax() -> None:
    assert derive_tax_cents(0, None) == 0


def test_negative_amount_is_not_clamped() -> None:
    assert derive_tax_cents(-10500, None) == -500


def test_derived_tax_rounds_half_up() -> None:
    # 21 cents * 0.05 / 1.05 = exactly 1 cent; 10.50 -> 0.50
    assert derive_tax_cents(21, None) == 1
    assert derive_tax_cents(1050, None) == 50
    # 1.99 / 21 = 0.0947... -> 9 cents
    assert derive_tax_cents(199, None) == 9


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("12.50", 1250),
        ("$1,234.50", 123450),
        ("1,5", 150),
        ("1,200", 120000),
        ("$1,234", 123400),
        ("1,234,567", 123456700),
        (12.5, 1250),
        (7, 700),
        (" 0.63 ", 63),
    ],
)
def test_parse_amount(raw, expected) -> None:
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "", "NaN", True])
def test_parse_amount_rejects_garbage(raw) -> None:
    with pytest.raises(ValueError):
        parse_amount(raw)


def test_parse_amount_rejects_negative_by_default() -> None:
    with pytest.raises(ValueError, match="positive"):
        parse_amount("-1.00")
    assert parse_amount("-1.00", allow_negative=True) == -100


def test_format_currency() -> None:
    assert format_currency(123456) == "$1,234.56"
    assert format_currency(-500) == "-$5.00"
    assert format_currency(0) == "$0.00"
