import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

CENT = Decimal("0.01")
_THOUSANDS = re.compile(r"^-?\d{1,3}(,\d{3})+$")


def parse_amount(value: Union[str, int, float, Decimal], *, allow_negative: bool = False) -> int:
    """Parse a money value such as ``"12.50"``, ``"$1,234.50"`` or ``12.5`` into cents."""
    if isinstance(value, bool):
        raise ValueError("Invalid amount")
    if isinstance(value, (int, float, Decimal)):
        clean = str(value)
    else:
        clean = value.strip().replace("$", "").replace("€", "").replace(" ", "")
        if (clean.count(",") and clean.count(".")) or _THOUSANDS.match(clean):
            clean = clean.replace(",", "")
        else:
            clean = clean.replace(",", ".")
        if clean.count(".") > 1:
            parts = clean.split(".")
            clean = "".join(parts[:-1]) + "." + parts[-1]
    try:
        amount = Decimal(clean)
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc
    if not amount.is_finite():
        raise ValueError("Invalid amount")
    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents < 0 and not allow_negative:
        raise ValueError("Amount must be positive")
    return cents


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def format_cents(cents: int) -> str:
    return f"{cents_to_decimal(cents):.2f}"


def format_currency(cents: int, symbol: str = "$") -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{cents_to_decimal(abs(cents)):,.2f}"
