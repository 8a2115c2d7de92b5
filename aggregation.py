"""Roll receipts up by period and category.

A single pass over the records feeds three groupings (period, category and
the (period, category) pair) from the same derived tax figure, so the grand
total, the sum of period totals and the sum of category totals always agree
to the cent. The summary API and both export formats read from one
:class:`Aggregation` and never derive tax on their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, Optional, Protocol

from periods import MONTH_NAMES, month_name, month_year, sorted_month_year_labels
from tax import derive_tax_cents


class ExpenseRecord(Protocol):
    date: date
    amount_cents: int
    tax_cents: Optional[int]
    category: str


PeriodKey = Callable[[date], str]


@dataclass
class Bucket:
    total_cents: int = 0
    tax_cents: int = 0
    count: int = 0

    @property
    def pre_tax_cents(self) -> int:
        return self.total_cents - self.tax_cents

    def add(self, amount_cents: int, tax_cents: int) -> None:
        self.total_cents += amount_cents
        self.tax_cents += tax_cents
        self.count += 1


@dataclass(frozen=True)
class ExpenseLine:
    record: ExpenseRecord
    period: str
    tax_cents: int

    @property
    def total_cents(self) -> int:
        return self.record.amount_cents

    @property
    def pre_tax_cents(self) -> int:
        return self.record.amount_cents - self.tax_cents


@dataclass
class Aggregation:
    totals: Bucket = field(default_factory=Bucket)
    by_period: dict[str, Bucket] = field(default_factory=dict)
    by_category: dict[str, Bucket] = field(default_factory=dict)
    by_period_and_category: dict[tuple[str, str], Bucket] = field(
        default_factory=dict
    )
    lines: list[ExpenseLine] = field(default_factory=list)

    @property
    def total_cents(self) -> int:
        return self.totals.total_cents

    @property
    def tax_cents(self) -> int:
        return self.totals.tax_cents

    @property
    def pre_tax_cents(self) -> int:
        return self.totals.pre_tax_cents

    @property
    def count(self) -> int:
        return self.totals.count

    def categories_by_total(self) -> list[tuple[str, Bucket]]:
        # sorted() is stable: equal totals keep first-seen order
        return sorted(
            self.by_category.items(), key=lambda item: item[1].total_cents, reverse=True
        )

    def top_category(self) -> Optional[str]:
        ranked = self.categories_by_total()
        return ranked[0][0] if ranked else None

    def periods_chronological(self) -> list[str]:
        """Period labels oldest first; only valid for "Month Year" labels."""
        return sorted_month_year_labels(self.by_period)

    def categories_in_period(self, period: str) -> list[tuple[str, Bucket]]:
        return [
            (category, bucket)
            for (bucket_period, category), bucket in self.by_period_and_category.items()
            if bucket_period == period
        ]

    def lines_for(self, period: str, category: str) -> list[ExpenseLine]:
        return [
            line
            for line in self.lines
            if line.period == period and line.record.category == category
        ]


def aggregate(
    records: Iterable[ExpenseRecord],
    period_key: PeriodKey = month_year,
    periods: Optional[Iterable[str]] = None,
) -> Aggregation:
    result = Aggregation()
    for label in periods or ():
        result.by_period[label] = Bucket()

    for record in records:
        tax = derive_tax_cents(record.amount_cents, record.tax_cents)
        period = period_key(record.date)
        category = record.category

        result.totals.add(record.amount_cents, tax)
        result.by_period.setdefault(period, Bucket()).add(record.amount_cents, tax)
        result.by_category.setdefault(category, Bucket()).add(
            record.amount_cents, tax
        )
        result.by_period_and_category.setdefault((period, category), Bucket()).add(
            record.amount_cents, tax
        )
        result.lines.append(ExpenseLine(record=record, period=period, tax_cents=tax))
    return result


def aggregate_year(records: Iterable[ExpenseRecord]) -> Aggregation:
    """Month-name buckets for a single calendar year, all twelve months present."""
    return aggregate(records, period_key=month_name, periods=MONTH_NAMES)
