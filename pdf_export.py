"""Accountant-oriented PDF ledger.

Layout, top to bottom:

1. cover with the executive summary and the category breakdown table;
2. the detailed ledger, month by month (oldest first), categories
   alphabetically inside a month, one row per receipt followed by a category
   subtotal and a month total;
3. grand totals and a certification/signature block.

Pages are drawn with a reportlab canvas and a vertical cursor. Before a month
header, a category block, a receipt row and the certification block the
remaining space is checked against a fixed threshold, and a new page is
started when it falls short, so a header is never separated from the rows
that follow it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from typing import Callable, Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas

from aggregation import Aggregation, Bucket, ExpenseLine
from money import format_currency

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = LETTER
LEFT = 50
RIGHT = PAGE_WIDTH - 50
TOP = PAGE_HEIGHT - 50
BOTTOM = 60

MONTH_HEADER_MIN_SPACE = 120
CATEGORY_BLOCK_MIN_SPACE = 64
ROW_MIN_SPACE = 18
CERTIFICATION_MIN_SPACE = 310

MERCHANT_WIDTH = 28
DESCRIPTION_WIDTH = 18

INK = HexColor("#1e293b")
MUTED = HexColor("#64748b")
FAINT = HexColor("#94a3b8")
RULE = HexColor("#e2e8f0")
ACCENT = HexColor("#059669")
CATEGORY_INK = HexColor("#0284c7")

# ledger columns: left edges for text, right edges for amounts
COL_DATE = 70
COL_MERCHANT = 135
COL_DESCRIPTION = 305
COL_PRE_TAX_RIGHT = 470
COL_TAX_RIGHT = 515
COL_TOTAL_RIGHT = RIGHT


@dataclass(frozen=True)
class PlacedSection:
    page: int
    kind: str
    label: str


def truncate(text: Optional[str], width: int) -> str:
    return (text or "")[:width]


class LedgerDocument:
    def __init__(
        self,
        aggregation: Aggregation,
        *,
        tax_year: str,
        generated_on: date,
        owner_label: Optional[str] = None,
        brand: str = "TaxEaze",
    ) -> None:
        self.aggregation = aggregation
        self.tax_year = tax_year
        self.generated_on = generated_on
        self.owner_label = owner_label
        self.brand = brand
        self.sections: list[PlacedSection] = []
        self.page = 1
        self._buffer = BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=LETTER)
        self._canvas.setTitle(f"Expense Report {tax_year}")
        self._canvas.setAuthor(brand)
        self.y = TOP

    # -- cursor and pages -------------------------------------------------

    def _finish_page(self) -> None:
        c = self._canvas
        c.setFont("Helvetica", 8)
        c.setFillColor(FAINT)
        c.drawCentredString(PAGE_WIDTH / 2, 30, f"Page {self.page}")
        c.showPage()

    def _new_page(self) -> None:
        self._finish_page()
        self.page += 1
        self.y = TOP

    def _ensure_space(
        self, needed: float, continuation: Optional[Callable[[], None]] = None
    ) -> None:
        if self.y - needed < BOTTOM:
            self._new_page()
            if continuation is not None:
                continuation()

    def _place(self, kind: str, label: str) -> None:
        self.sections.append(PlacedSection(self.page, kind, label))
        key = f"{kind}-{len(self.sections)}"
        level = {"month": 1, "category": 2}.get(kind, 0)
        self._canvas.bookmarkPage(key)
        self._canvas.addOutlineEntry(label, key, level=level, closed=level > 0)

    def _text(self, x: float, text: str, *, size: float = 9, font: str = "Helvetica", color=INK) -> None:
        self._canvas.setFont(font, size)
        self._canvas.setFillColor(color)
        self._canvas.drawString(x, self.y, text)

    def _right(self, x: float, text: str, *, size: float = 9, font: str = "Helvetica", color=INK) -> None:
        self._canvas.setFont(font, size)
        self._canvas.setFillColor(color)
        self._canvas.drawRightString(x, self.y, text)

    def _centred(self, text: str, *, size: float, font: str = "Helvetica", color=INK) -> None:
        self._canvas.setFont(font, size)
        self._canvas.setFillColor(color)
        self._canvas.drawCentredString(PAGE_WIDTH / 2, self.y, text)

    def _rule(self, x1: float = LEFT, x2: float = RIGHT, color=RULE, width: float = 0.75) -> None:
        self._canvas.setStrokeColor(color)
        self._canvas.setLineWidth(width)
        self._canvas.line(x1, self.y, x2, self.y)

    # -- cover ------------------------------------------------------------

    def _draw_cover(self) -> None:
        agg = self.aggregation
        self._place("cover", "Executive Summary")
        self.y -= 30
        self._centred("EXPENSE REPORT", size=28, font="Helvetica-Bold")
        self.y -= 24
        self._centred(f"Tax Year {self.tax_year}", size=16, color=MUTED)
        if self.owner_label:
            self.y -= 18
            self._centred(self.owner_label, size=11, color=MUTED)
        self.y -= 30
        self._centred(
            f"Report Generated: {self.generated_on.strftime('%B %d, %Y')}", size=10, color=MUTED
        )
        self.y -= 14
        self._centred(f"Total Receipts: {agg.count}", size=10, color=MUTED)
        self.y -= 40

        box_top = self.y
        self._canvas.setStrokeColor(RULE)
        self._canvas.rect(LEFT, box_top - 130, RIGHT - LEFT, 130, stroke=1, fill=0)
        self.y = box_top - 22
        self._text(LEFT + 20, "EXECUTIVE SUMMARY", size=14, font="Helvetica-Bold")
        rows = (
            ("Pre-Tax Amount:", format_currency(agg.pre_tax_cents)),
            ("Sales Tax Included:", format_currency(agg.tax_cents)),
            ("Total Paid:", format_currency(agg.total_cents)),
            ("Number of Transactions:", str(agg.count)),
            ("Expense Categories:", str(len(agg.by_category))),
        )
        for label, value in rows:
            self.y -= 19
            self._text(LEFT + 20, label, size=11, color=MUTED)
            is_total = label == "Total Paid:"
            self._right(
                380,
                value,
                size=12 if is_total else 11,
                font="Helvetica-Bold" if is_total else "Helvetica",
                color=ACCENT if is_total else INK,
            )
        self.y = box_top - 130 - 40
        self._draw_category_breakdown()

    def _category_table_header(self) -> None:
        self._rule(color=INK)
        self.y -= 12
        for x, title, right in (
            (LEFT, "CATEGORY", False),
            (280, "COUNT", True),
            (370, "PRE-TAX", True),
            (450, "TAX", True),
            (RIGHT, "TOTAL", True),
        ):
            if right:
                self._right(x, title, size=9, color=MUTED)
            else:
                self._text(x, title, size=9, color=MUTED)
        self.y -= 6
        self._rule()
        self.y -= 14

    def _bucket_amounts(self, bucket: Bucket, *, size: float, font: str = "Helvetica", total_color=INK) -> None:
        self._right(370, format_currency(bucket.pre_tax_cents), size=size, font=font)
        self._right(450, format_currency(bucket.tax_cents), size=size, font=font)
        self._right(RIGHT, format_currency(bucket.total_cents), size=size, font=font, color=total_color)

    def _draw_category_breakdown(self) -> None:
        self._ensure_space(CATEGORY_BLOCK_MIN_SPACE)
        self._text(LEFT, "EXPENSE BREAKDOWN BY CATEGORY", size=14, font="Helvetica-Bold")
        self.y -= 16
        self._category_table_header()
        for category, bucket in self.aggregation.categories_by_total():
            self._ensure_space(ROW_MIN_SPACE, continuation=self._category_table_header)
            self._text(LEFT, truncate(category, 34), size=9)
            self._right(280, str(bucket.count), size=9)
            self._bucket_amounts(bucket, size=9)
            self.y -= 14
        self._ensure_space(ROW_MIN_SPACE + 10)
        self.y += 6
        self._rule(color=INK)
        self.y -= 14
        self._text(LEFT, "TOTAL", size=10, font="Helvetica-Bold")
        self._right(280, str(self.aggregation.count), size=10, font="Helvetica-Bold")
        self._bucket_amounts(
            self.aggregation.totals, size=10, font="Helvetica-Bold", total_color=ACCENT
        )
        self.y -= 8
        self._rule(color=INK)

    # -- ledger -----------------------------------------------------------

    def _ledger_table_header(self) -> None:
        for x, title, right in (
            (COL_DATE, "DATE", False),
            (COL_MERCHANT, "VENDOR/MERCHANT", False),
            (COL_DESCRIPTION, "DESCRIPTION", False),
            (COL_PRE_TAX_RIGHT, "PRE-TAX", True),
            (COL_TAX_RIGHT, "TAX", True),
            (COL_TOTAL_RIGHT, "TOTAL", True),
        ):
            if right:
                self._right(x, title, size=8, color=MUTED)
            else:
                self._text(x, title, size=8, color=MUTED)
        self.y -= 5
        self._rule(x1=COL_DATE)
        self.y -= 11

    def _amount_columns(self, pre_tax: int, tax: int, total: int, *, size: float, color=INK, total_color=INK) -> None:
        self._right(COL_PRE_TAX_RIGHT, format_currency(pre_tax), size=size, color=color)
        self._right(COL_TAX_RIGHT, format_currency(tax), size=size, color=color)
        self._right(COL_TOTAL_RIGHT, format_currency(total), size=size, color=total_color)

    def _draw_line(self, line: ExpenseLine) -> None:
        record = line.record
        self._text(COL_DATE, record.date.strftime("%m/%d/%Y"), size=8)
        self._text(COL_MERCHANT, truncate(record.merchant_name, MERCHANT_WIDTH), size=8)
        self._text(COL_DESCRIPTION, truncate(record.description, DESCRIPTION_WIDTH), size=8)
        self._amount_columns(line.pre_tax_cents, line.tax_cents, line.total_cents, size=8)
        self.y -= 12

    def _draw_category(self, month: str, category: str, bucket: Bucket) -> None:
        self._ensure_space(CATEGORY_BLOCK_MIN_SPACE)
        self._place("category", category)
        self._text(60, category, size=11, font="Helvetica-Bold", color=CATEGORY_INK)
        self.y -= 14
        self._ledger_table_header()
        for line in self.aggregation.lines_for(month, category):
            self._ensure_space(ROW_MIN_SPACE, continuation=self._ledger_table_header)
            self._draw_line(line)
        self._ensure_space(ROW_MIN_SPACE, continuation=self._ledger_table_header)
        self._right(COL_DESCRIPTION + 100, f"Subtotal - {truncate(category, 24)}:", size=8, color=MUTED)
        self._amount_columns(
            bucket.pre_tax_cents, bucket.tax_cents, bucket.total_cents, size=8, color=MUTED
        )
        self.y -= 18

    def _draw_month(self, month: str) -> None:
        self._ensure_space(MONTH_HEADER_MIN_SPACE)
        self._place("month", month)
        self._text(LEFT, month.upper(), size=14, font="Helvetica-Bold")
        self.y -= 4
        self._rule(x2=200, color=ACCENT, width=1.5)
        self.y -= 18
        categories = sorted(self.aggregation.categories_in_period(month), key=lambda item: item[0])
        for category, bucket in categories:
            self._draw_category(month, category, bucket)
        month_bucket = self.aggregation.by_period[month]
        self._ensure_space(ROW_MIN_SPACE + 8)
        self._rule(color=ACCENT)
        self.y -= 14
        self._right(COL_DESCRIPTION + 100, f"{month} TOTAL:", size=10, font="Helvetica-Bold", color=ACCENT)
        self._amount_columns(
            month_bucket.pre_tax_cents,
            month_bucket.tax_cents,
            month_bucket.total_cents,
            size=9,
            color=ACCENT,
            total_color=ACCENT,
        )
        self.y -= 28

    def _draw_ledger(self) -> None:
        self._new_page()
        self._place("ledger", "Detailed Expense Ledger")
        self._centred("DETAILED EXPENSE LEDGER", size=16, font="Helvetica-Bold")
        self.y -= 16
        self._centred("Organized by Month and Category", size=10, color=MUTED)
        self.y -= 30
        for month in self.aggregation.periods_chronological():
            self._draw_month(month)

    # -- certification ----------------------------------------------------

    def _draw_certification(self) -> None:
        agg = self.aggregation
        self._ensure_space(CERTIFICATION_MIN_SPACE)
        self._place("certification", "Totals and Certification")
        self.y -= 10
        self._rule(color=INK)
        self.y -= 24
        self._text(LEFT, "ANNUAL TOTALS", size=12, font="Helvetica-Bold")
        self.y -= 22
        self._text(70, "Total Business Expenses:", size=10, color=MUTED)
        self._right(450, format_currency(agg.total_cents), size=10)
        self.y -= 18
        self._text(70, "Total Sales Tax Paid:", size=10, color=MUTED)
        self._right(450, format_currency(agg.tax_cents), size=10)
        self.y -= 18
        self._text(70, "Pre-Tax Amount:", size=10, color=MUTED)
        self._right(450, format_currency(agg.pre_tax_cents), size=10)
        self.y -= 24
        self._text(70, "TOTAL PAID:", size=12, font="Helvetica-Bold")
        self._right(450, format_currency(agg.total_cents), size=14, font="Helvetica-Bold", color=ACCENT)
        self.y -= 50
        self._text(
            LEFT,
            "I certify that the expenses listed in this report are accurate and were "
            "incurred for business purposes.",
            size=10,
            color=MUTED,
        )
        self.y -= 40
        for label in ("Signature", "Date", "Print Name"):
            self._text(LEFT, f"{label}: _________________________________", size=10, color=MUTED)
            self.y -= 24
        self.y -= 10
        self._centred(
            f"Generated by {self.brand} on {self.generated_on.strftime('%B %d, %Y')}",
            size=8,
            color=FAINT,
        )
        self.y -= 11
        self._centred(
            "This document is for tax preparation purposes. Please retain all original receipts.",
            size=8,
            color=FAINT,
        )

    def render(self) -> bytes:
        self._draw_cover()
        self._draw_ledger()
        self._draw_certification()
        self._finish_page()
        self._canvas.save()
        pdf_bytes = self._buffer.getvalue()
        logger.info(f"pdf_rendered: pages={self.page} sections={len(self.sections)}")
        return pdf_bytes


def build_pdf(
    aggregation: Aggregation,
    *,
    tax_year: str,
    generated_on: Optional[date] = None,
    owner_label: Optional[str] = None,
    brand: str = "TaxEaze",
) -> bytes:
    document = LedgerDocument(
        aggregation,
        tax_year=tax_year,
        generated_on=generated_on or date.today(),
        owner_label=owner_label,
        brand=brand,
    )
    return document.render()
