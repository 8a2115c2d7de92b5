from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from aggregation import Aggregation, aggregate, aggregate_year
from models import Owner, Receipt
from money import format_cents
from pdf_export import build_pdf
from schemas import (
    CategoryBucketOut,
    MonthBucketOut,
    MonthCategoriesOut,
    ReceiptIn,
    ReceiptUpdate,
    ReportFilter,
    SummaryOut,
)
from xlsx_export import build_workbook

BACKUP_VERSION = "1.0"

_REQUIRED_COLUMNS = ("owner", "merchant_name", "date", "amount_cents", "category")


class ReceiptService:
    def __init__(self, session: Session, owner: Optional[Owner] = None) -> None:
        self.session = session
        self.owner = owner

    def create(self, data: ReceiptIn) -> Receipt:
        receipt = Receipt(**data.model_dump())
        self.session.add(receipt)
        self.session.commit()
        self.session.refresh(receipt)
        return receipt

    def get(self, receipt_id: int) -> Receipt:
        stmt = select(Receipt).where(Receipt.id == receipt_id)
        if self.owner is not None:
            stmt = stmt.where(Receipt.owner == self.owner)
        receipt = self.session.scalar(stmt)
        if not receipt:
            raise ValueError("Receipt not found")
        return receipt

    def update(self, receipt_id: int, data: ReceiptUpdate) -> Receipt:
        receipt = self.get(receipt_id)
        for field in data.model_fields_set:
            value = getattr(data, field)
            if value is None and field in _REQUIRED_COLUMNS:
                continue
            setattr(receipt, field, value)
        if receipt.tax_cents is not None and receipt.tax_cents > receipt.amount_cents:
            self.session.rollback()
            raise ValueError("Tax cannot exceed the total amount")
        self.session.commit()
        self.session.refresh(receipt)
        return receipt

    def delete(self, receipt_id: int) -> None:
        receipt = self.get(receipt_id)
        self.session.delete(receipt)
        self.session.commit()

    def list(self, report_filter: Optional[ReportFilter] = None) -> list[Receipt]:
        report_filter = report_filter or ReportFilter()
        stmt = select(Receipt)
        owner = report_filter.owner or self.owner
        if owner is not None:
            stmt = stmt.where(Receipt.owner == owner)
        period = report_filter.period()
        if period.start is not None:
            stmt = stmt.where(Receipt.date >= period.start)
        if period.end is not None:
            stmt = stmt.where(Receipt.date <= period.end)
        if report_filter.category is not None:
            stmt = stmt.where(Receipt.category == report_filter.category)
        if report_filter.search is not None:
            stmt = stmt.where(
                Receipt.merchant_name.icontains(report_filter.search, autoescape=True)
            )
        stmt = stmt.order_by(Receipt.date.desc(), Receipt.id.desc())
        return list(self.session.scalars(stmt))


def _has_range(report_filter: ReportFilter) -> bool:
    return report_filter.start_date is not None or report_filter.end_date is not None


def _bucket_fields(bucket) -> dict[str, int]:
    return {
        "total_cents": bucket.total_cents,
        "tax_cents": bucket.tax_cents,
        "pre_tax_cents": bucket.pre_tax_cents,
        "count": bucket.count,
    }


def spreadsheet_filename(report_filter: ReportFilter) -> str:
    return f"expenses-{report_filter.year or 'all'}.xlsx"


def document_filename(report_filter: ReportFilter, today: Optional[date] = None) -> str:
    label = document_label(report_filter, today).replace(" to ", "_to_")
    return f"Tax-Expense-Report-{label}.pdf"


def document_label(report_filter: ReportFilter, today: Optional[date] = None) -> str:
    """Title used on the PDF cover: the tax year, or the explicit date range."""
    if _has_range(report_filter):
        period = report_filter.period()
        start = period.start.isoformat() if period.start else "start"
        end = period.end.isoformat() if period.end else "today"
        return f"{start} to {end}"
    return str(report_filter.year or (today or date.today()).year)


class ReportService:
    def __init__(
        self,
        session: Session,
        owner: Optional[Owner] = None,
        *,
        brand: str = "TaxEaze",
        today: Optional[date] = None,
    ) -> None:
        self.session = session
        self.owner = owner
        self.brand = brand
        self.today = today or date.today()
        self.receipts = ReceiptService(session, owner)

    def _default_to_current_year(self, report_filter: ReportFilter) -> ReportFilter:
        if _has_range(report_filter) or report_filter.year is not None:
            return report_filter
        return report_filter.model_copy(update={"year": self.today.year})

    def _is_full_year(self, report_filter: ReportFilter) -> bool:
        return not _has_range(report_filter) and report_filter.month is None

    def aggregate(self, report_filter: ReportFilter) -> Aggregation:
        """Receipts matching ``report_filter`` rolled up by "Month Year"."""
        return aggregate(self.receipts.list(report_filter))

    def get_summary(self, report_filter: Optional[ReportFilter] = None) -> SummaryOut:
        report_filter = self._default_to_current_year(report_filter or ReportFilter())
        records = self.receipts.list(report_filter)
        if self._is_full_year(report_filter):
            result = aggregate_year(records)
            months = list(result.by_period)
        else:
            result = aggregate(records)
            months = result.periods_chronological()

        monthly_categories = []
        for month in months:
            ranked = sorted(
                result.categories_in_period(month),
                key=lambda item: item[1].total_cents,
                reverse=True,
            )
            monthly_categories.append(
                MonthCategoriesOut(
                    month=month,
                    categories=[
                        CategoryBucketOut(category=category, **_bucket_fields(bucket))
                        for category, bucket in ranked
                    ],
                )
            )

        return SummaryOut(
            total_expenses=result.total_cents,
            total_tax=result.tax_cents,
            total_pre_tax=result.pre_tax_cents,
            receipt_count=result.count,
            top_category=result.top_category(),
            monthly_breakdown=[
                MonthBucketOut(month=month, **_bucket_fields(result.by_period[month]))
                for month in months
            ],
            category_breakdown=[
                CategoryBucketOut(category=category, **_bucket_fields(bucket))
                for category, bucket in result.categories_by_total()
            ],
            monthly_category_breakdown=monthly_categories,
        )

    def export_spreadsheet(self, report_filter: Optional[ReportFilter] = None) -> bytes:
        return build_workbook(self.aggregate(report_filter or ReportFilter()))

    def export_document(self, report_filter: Optional[ReportFilter] = None) -> bytes:
        report_filter = report_filter or ReportFilter()
        owner = report_filter.owner or self.owner
        return build_pdf(
            self.aggregate(report_filter),
            tax_year=document_label(report_filter, self.today),
            generated_on=self.today,
            owner_label=owner.display_name if owner is not None else None,
            brand=self.brand,
        )


def _receipt_to_backup(receipt: Receipt) -> dict[str, Any]:
    return {
        "owner": receipt.owner.value,
        "image_url": receipt.image_url,
        "merchant_name": receipt.merchant_name,
        "date": receipt.date.isoformat(),
        "amount": format_cents(receipt.amount_cents),
        "tax": format_cents(receipt.tax_cents) if receipt.tax_cents is not None else None,
        "category": receipt.category,
        "description": receipt.description,
    }


_RESTORE_ALIASES = {
    "merchantName": "merchant_name",
    "imageUrl": "image_url",
    "userId": "owner",
}


def _restore_entry(entry: dict[str, Any], owner: Optional[Owner]) -> Optional[ReceiptIn]:
    fields = {_RESTORE_ALIASES.get(key, key): value for key, value in entry.items()}
    fields.pop("id", None)
    if not fields.get("merchant_name") or not fields.get("date"):
        return None
    if fields.get("amount") in (None, "") and fields.get("amount_cents") is None:
        return None
    fields["owner"] = owner or fields.get("owner") or Owner.user1
    fields["category"] = fields.get("category") or "Other"
    try:
        return ReceiptIn.model_validate(fields)
    except (ValidationError, ValueError):
        return None


class BackupService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def backup(self, owner: Optional[Owner] = None) -> dict[str, Any]:
        receipts = ReceiptService(self.session, owner).list()
        return {
            "version": BACKUP_VERSION,
            "export_date": datetime.now(timezone.utc).isoformat(),
            "owner": owner.value if owner is not None else None,
            "receipts": [_receipt_to_backup(receipt) for receipt in receipts],
        }

    def restore(
        self, entries: list[dict[str, Any]], owner: Optional[Owner] = None
    ) -> tuple[int, int]:
        imported = 0
        skipped = 0
        for entry in entries:
            data = _restore_entry(entry, owner) if isinstance(entry, dict) else None
            if data is None:
                skipped += 1
                continue
            self.session.add(Receipt(**data.model_dump()))
            imported += 1
        self.session.commit()
        return imported, skipped
