from datetime import date
from typing import Optional

from aggregation import aggregate, aggregate_year
from models import Owner, Receipt
from periods import MONTH_NAMES, sorted_month_year_labels


def _receipt(
    day: date,
    amount_cents: int,
    category: str,
    tax_cents: Optional[int] = None,
    merchant: str = "Store",
) -> Receipt:
    return Receipt(
        owner=Owner.user1,
        merchant_name=merchant,
        date=day,
        amount_cents=amount_cents,
        tax_cents=tax_cents,
        category=category,
    )


def _scenario() -> list[Receipt]:
    return [
        _receipt(date(2024, 1, 15), 10500, "Food & Dining"),
        _receipt(date(2024, 2, 10), 5000, "Travel & Transportation", tax_cents=1000),
    ]


def test_two_receipt_scenario_totals() -> None:
    result = aggregate(_scenario())
    assert result.total_cents == 15500
    assert result.tax_cents == 1500
    assert result.pre_tax_cents == 14000
    assert result.count == 2
    assert [name for name, _ in result.categories_by_total()] == [
        "Food & Dining",
        "Travel & Transportation",
    ]
    assert result.top_category() == "Food & Dining"


def test_groupings_agree_with_grand_total() -> None:
    records = [
        _receipt(date(2024, 1, 3), 1999, "Food & Dining"),
        _receipt(date(2024, 1, 9), 333, "Shopping"),
        _receipt(date(2024, 3, 9), 10001, "Shopping", tax_cents=17),
        _receipt(date(2024, 7, 21), 12, "Lodging"),
        _receipt(date(2025, 7, 21), 77777, "Client gifts"),
    ]
    result = aggregate(records)

    for attr in ("total_cents", "tax_cents", "count"):
        by_period = sum(getattr(bucket, attr) for bucket in result.by_period.values())
        by_category = sum(
            getattr(bucket, attr) for bucket in result.by_category.values()
        )
        by_pair = sum(
            getattr(bucket, attr) for bucket in result.by_period_and_category.values()
        )
        assert by_period == by_category == by_pair == getattr(result.totals, attr)

    assert sum(line.tax_cents for line in result.lines) == result.tax_cents


def test_full_year_has_all_twelve_months() -> None:
    result = aggregate_year(_scenario())
    assert list(result.by_period) == list(MONTH_NAMES)
    assert result.by_period["January"].total_cents == 10500
    assert result.by_period["February"].tax_cents == 1000
    assert result.by_period["December"].count == 0
    assert result.by_period["December"].total_cents == 0


def test_full_year_of_nothing() -> None:
    result = aggregate_year([])
    assert len(result.by_period) == 12
    assert result.total_cents == 0
    assert result.by_category == {}
    assert result.top_category() is None


def test_equal_category_totals_keep_first_seen_order() -> None:
    records = [
        _receipt(date(2024, 5, 1), 5000, "Utilities"),
        _receipt(date(2024, 5, 2), 5000, "Lodging"),
        _receipt(date(2024, 5, 3), 9000, "Shopping"),
    ]
    ranked = [name for name, _ in aggregate(records).categories_by_total()]
    assert ranked == ["Shopping", "Utilities", "Lodging"]


def test_month_year_labels_sort_chronologically() -> None:
    records = [
        _receipt(date(2025, 1, 5), 100, "Other"),
        _receipt(date(2023, 12, 5), 100, "Other"),
        _receipt(date(2024, 2, 5), 100, "Other"),
    ]
    result = aggregate(records)
    expected = ["December 2023", "February 2024", "January 2025"]
    assert result.periods_chronological() == expected
    assert sorted_month_year_labels(reversed(expected)) == expected


def test_lines_for_returns_records_of_one_block() -> None:
    records = _scenario() + [_receipt(date(2024, 1, 20), 700, "Food & Dining")]
    result = aggregate(records)
    lines = result.lines_for("January 2024", "Food & Dining")
    assert [line.total_cents for line in lines] == [10500, 700]
    assert result.lines_for("January 2024", "Lodging") == []
    assert dict(result.categories_in_period("February 2024")).keys() == {
        "Travel & Transportation"
    }
