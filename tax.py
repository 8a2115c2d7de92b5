"""Tax portion of a tax-inclusive receipt total.

Receipts always store the total that was paid. When the tax line of a receipt
was not captured the tax is estimated by assuming the total already includes
tax at ``FALLBACK_TAX_RATE``: ``tax = amount - amount / (1 + rate)``.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

FALLBACK_TAX_RATE = Decimal("0.05")


def derive_tax_cents(amount_cents: int, stored_tax_cents: Optional[int]) -> int:
    if stored_tax_cents is not None:
        return stored_tax_cents
    amount = Decimal(amount_cents)
    tax = amount - amount / (1 + FALLBACK_TAX_RATE)
    # Negative totals are passed through unclamped; creation rejects them upstream.
    return int(tax.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

