from datetime import date
from typing import Iterable, Optional, Protocol, TypeVar

from models import Owner
from schemas import ReportFilter


class FilterableRecord(Protocol):
    owner: Owner
    date: date
    category: str
    merchant_name: str


R = TypeVar("R", bound=FilterableRecord)


def matches(record: FilterableRecord, report_filter: ReportFilter) -> bool:
    if report_filter.owner is not None and record.owner != report_filter.owner:
        return False
    if not report_filter.period().contains(record.date):
        return False
    if report_filter.category is not None and record.category != report_filter.category:
        return False
    if report_filter.search is not None:
        needle = report_filter.search.lower()
        if needle not in (record.merchant_name or "").lower():
            return False
    return True


def select_records(
    records: Iterable[R], report_filter: Optional[ReportFilter] = None
) -> list[R]:
    """Records passing every rule of ``report_filter``, in their input order."""
    if report_filter is None:
        return list(records)
    return [record for record in records if matches(record, report_filter)]
