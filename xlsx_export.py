from io import BytesIO
from typing import Iterable, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from aggregation import Aggregation, Bucket, ExpenseLine
from money import cents_to_decimal
from periods import month_name, month_year

DETAIL_SHEET = "Expenses"
MONTHLY_SHEET = "Monthly Summary"
CATEGORY_SHEET = "Category Summary"

DETAIL_COLUMNS: tuple[tuple[str, int], ...] = (
    ("Year", 6),
    ("Month", 12),
    ("Month-Year", 16),
    ("Date", 12),
    ("Category", 20),
    ("Merchant", 25),
    ("Pre-Tax", 10),
    ("Tax", 8),
    ("Total Paid", 12),
    ("Notes", 30),
)
MONTHLY_COLUMNS: tuple[tuple[str, int], ...] = (
    ("Month", 18),
    ("Receipts", 10),
    ("Pre-Tax", 12),
    ("Tax", 10),
    ("Total Paid", 12),
)
CATEGORY_COLUMNS: tuple[tuple[str, int], ...] = (
    ("Category", 25),
    ("Receipts", 10),
    ("Pre-Tax", 12),
    ("Tax", 10),
    ("Total Paid", 12),
)

MONEY_FORMAT = "#,##0.00"
DATE_FORMAT = "mm/dd/yyyy"

HEADER_BG = "1E293B"
HEADER_FG = "FFFFFF"
_thin = Side(style="thin", color="E2E8F0")
_border = Border(left=_thin, right=_thin, top=_thin, bottom=_thin)


def sanitize_cell_text(value: str) -> str:
    """Prefix text a spreadsheet would evaluate as a formula with a tab."""
    if not value or value.strip() == "":
        return ""
    value = value.strip()
    if value.startswith(("=", "+", "-", "@", "\t", "\r")):
        return "\t" + value
    return value


def _write_header(ws: Worksheet, columns: Sequence[tuple[str, int]]) -> None:
    for idx, (title, width) in enumerate(columns, start=1):
        cell = ws.cell(row=1, column=idx, value=title)
        cell.font = Font(bold=True, color=HEADER_FG, size=10)
        cell.fill = PatternFill(start_color=HEADER_BG, end_color=HEADER_BG, fill_type="solid")
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = _border
        ws.column_dimensions[get_column_letter(idx)].width = width
    ws.freeze_panes = "A2"


def _money_cells(ws: Worksheet, row: int, first_column: int, bucket_like) -> None:
    for offset, cents in enumerate(
        (bucket_like.pre_tax_cents, bucket_like.tax_cents, bucket_like.total_cents)
    ):
        cell = ws.cell(row=row, column=first_column + offset, value=cents_to_decimal(cents))
        cell.number_format = MONEY_FORMAT
        cell.alignment = Alignment(horizontal="right")


def _write_detail_sheet(ws: Worksheet, lines: Iterable[ExpenseLine]) -> None:
    _write_header(ws, DETAIL_COLUMNS)
    ordered = sorted(lines, key=lambda line: line.record.date, reverse=True)
    for row, line in enumerate(ordered, start=2):
        record = line.record
        ws.cell(row=row, column=1, value=record.date.year)
        ws.cell(row=row, column=2, value=month_name(record.date))
        ws.cell(row=row, column=3, value=month_year(record.date))
        date_cell = ws.cell(row=row, column=4, value=record.date)
        date_cell.number_format = DATE_FORMAT
        ws.cell(row=row, column=5, value=sanitize_cell_text(record.category))
        ws.cell(row=row, column=6, value=sanitize_cell_text(record.merchant_name))
        _money_cells(ws, row, 7, line)
        ws.cell(row=row, column=10, value=sanitize_cell_text(record.description or ""))
    ws.auto_filter.ref = f"A1:{get_column_letter(len(DETAIL_COLUMNS))}{max(len(ordered) + 1, 1)}"


def _write_summary_sheet(
    ws: Worksheet,
    columns: Sequence[tuple[str, int]],
    rows: Iterable[tuple[str, Bucket]],
) -> None:
    _write_header(ws, columns)
    for row, (label, bucket) in enumerate(rows, start=2):
        ws.cell(row=row, column=1, value=sanitize_cell_text(label))
        ws.cell(row=row, column=2, value=bucket.count)
        _money_cells(ws, row, 3, bucket)


def build_workbook(aggregation: Aggregation) -> bytes:
    """Render a month-year aggregation as an xlsx workbook.

    The detail sheet carries one row per receipt, newest first; the two
    summary sheets are grouped by month (oldest first) and by category
    (largest total first).
    """
    wb = Workbook()
    detail = wb.active
    detail.title = DETAIL_SHEET
    _write_detail_sheet(detail, aggregation.lines)

    monthly = wb.create_sheet(MONTHLY_SHEET)
    _write_summary_sheet(
        monthly,
        MONTHLY_COLUMNS,
        [(label, aggregation.by_period[label]) for label in aggregation.periods_chronological()],
    )

    by_category = wb.create_sheet(CATEGORY_SHEET)
    _write_summary_sheet(by_category, CATEGORY_COLUMNS, aggregation.categories_by_total())

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
