from datetime import date, timedelta

from aggregation import aggregate
from models import Owner, Receipt
from pdf_export import (
    BOTTOM,
    CERTIFICATION_MIN_SPACE,
    DESCRIPTION_WIDTH,
    MERCHANT_WIDTH,
    LedgerDocument,
    build_pdf,
    truncate,
)


def _receipt(day: date, category: str, amount_cents: int = 1999, merchant: str = "Store") -> Receipt:
    return Receipt(
        owner=Owner.user1,
        merchant_name=merchant,
        date=day,
        amount_cents=amount_cents,
        tax_cents=None,
        category=category,
        description="Line items",
    )


def _document(records) -> LedgerDocument:
    return LedgerDocument(
        aggregate(records), tax_year="2024", generated_on=date(2024, 12, 31)
    )


def test_empty_report_renders() -> None:
    content = build_pdf(aggregate([]), tax_year="2024", generated_on=date(2024, 1, 1))
    assert content.startswith(b"%PDF")
    assert content.rstrip().endswith(b"%%EOF")


def test_sections_follow_ledger_order() -> None:
    records = [
        _receipt(date(2024, 2, 3), "Lodging"),
        _receipt(date(2024, 1, 9), "Utilities"),
        _receipt(date(2024, 1, 5), "Entertainment"),
        _receipt(date(2023, 12, 30), "Other"),
    ]
    document = _document(records)
    document.render()

    kinds = [(s.kind, s.label) for s in document.sections]
    assert kinds == [
        ("cover", "Executive Summary"),
        ("ledger", "Detailed Expense Ledger"),
        ("month", "December 2023"),
        ("category", "Other"),
        ("month", "January 2024"),
        ("category", "Entertainment"),
        ("category", "Utilities"),
        ("month", "February 2024"),
        ("category", "Lodging"),
        ("certification", "Totals and Certification"),
    ]
    assert document.sections[0].page == 1
    assert document.sections[1].page == 2


def test_long_ledger_breaks_onto_new_pages() -> None:
    start = date(2024, 3, 1)
    records = [_receipt(start + timedelta(days=i % 28), "Office Supplies") for i in range(150)]
    document = _document(records)
    content = document.render()

    assert content.startswith(b"%PDF")
    assert document.page >= 4
    pages = [s.page for s in document.sections]
    assert pages == sorted(pages)
    assert document.sections[-1].kind == "certification"


def test_every_month_header_starts_with_room_below() -> None:
    records = []
    for month in range(1, 13):
        for day in range(1, 9):
            records.append(_receipt(date(2024, month, day), "Food & Dining"))
            records.append(_receipt(date(2024, month, day), "Shopping"))
    document = _document(records)
    document.render()

    months = [s for s in document.sections if s.kind == "month"]
    assert len(months) == 12
    # a category header is always placed on the same page as its month header
    for index, section in enumerate(document.sections):
        if section.kind == "month":
            assert document.sections[index + 1].kind == "category"
            assert document.sections[index + 1].page == section.page


def test_truncation_widths() -> None:
    assert truncate("A" * 40, MERCHANT_WIDTH) == "A" * 28
    assert truncate("B" * 40, DESCRIPTION_WIDTH) == "B" * 18
    assert truncate(None, DESCRIPTION_WIDTH) == ""
    assert truncate("Short", MERCHANT_WIDTH) == "Short"


def test_certification_block_stays_above_bottom_margin() -> None:
    document = _document([_receipt(date(2024, 1, 5), "Other")])
    drawn_at: list[float] = []
    c = document._canvas
    for name in ("drawString", "drawRightString", "drawCentredString"):
        original = getattr(c, name)

        def recording(x, y, text, *args, _original=original, **kwargs):
            drawn_at.append(y)
            return _original(x, y, text, *args, **kwargs)

        setattr(c, name, recording)

    document.y = BOTTOM + CERTIFICATION_MIN_SPACE + 1
    document._draw_certification()

    assert document.page == 1
    assert drawn_at
    assert min(drawn_at) >= BOTTOM


def test_certification_moves_to_a_new_page_when_short_of_room() -> None:
    document = _document([_receipt(date(2024, 1, 5), "Other")])
    document.y = BOTTOM + CERTIFICATION_MIN_SPACE - 1
    document._draw_certification()
    assert document.page == 2
    assert document.sections[-1].page == 2
