import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

MONTH_NAMES: tuple[str, ...] = tuple(calendar.month_name[1:])


@dataclass(frozen=True)
class Period:
    start: Optional[date]
    end: Optional[date]

    def contains(self, value: date) -> bool:
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


def month_start(year: int, month: int) -> date:
    return date(year, month, 1)


def month_end(year: int, month: int) -> date:
    if month == 12:
        return date(year + 1, 1, 1) - date.resolution
    return date(year, month + 1, 1) - date.resolution


def month_name(value: date) -> str:
    return MONTH_NAMES[value.month - 1]


def month_year(value: date) -> str:
    return f"{month_name(value)} {value.year}"


def parse_month_year(label: str) -> date:
    """Inverse of :func:`month_year`, anchored to day 1 of that month."""
    return datetime.strptime(f"{label} 1", "%B %Y %d").date()


def sorted_month_year_labels(labels) -> list[str]:
    return sorted(labels, key=parse_month_year)


def resolve_period(
    start_date: Optional[date],
    end_date: Optional[date],
    year: Optional[int],
    month: Optional[int],
) -> Period:
    """Date bounds selected by a report filter.

    An explicit range, even a half-open one, wins over year/month.
    """
    if start_date is not None or end_date is not None:
        if start_date and end_date and start_date > end_date:
            raise ValueError("Start date must be before end date")
        return Period(start_date, end_date)
    if year is not None:
        if month is not None:
            return Period(month_start(year, month), month_end(year, month))
        return Period(date(year, 1, 1), date(year, 12, 31))
    if month is not None:
        raise ValueError("Month filter requires a year")
    return Period(None, None)
