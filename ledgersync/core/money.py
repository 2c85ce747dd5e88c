"""Monetary amounts as stored in ``Numeric(18, 2)`` ledger columns."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")

# Exclusive upper bound for a Numeric(18, 2) value: 16 integer digits
MAX_AMOUNT = Decimal("1e16")


def to_amount(value: Any) -> Decimal:
    """
    Parse a positive amount and round it to whole cents.

    Thousands separators are accepted ("1,250.00"). The rounded value is
    what gets stored, so callers apply exactly this figure to balances.

    Raises:
        ValueError: Not a number, not finite, not positive after rounding,
            or too large for the ledger columns
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("amount is required")
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation as e:
        raise ValueError(f"amount is not a number: {value!r}") from e

    if not amount.is_finite():
        raise ValueError(f"amount must be finite: {value!r}")
    if amount <= 0:
        raise ValueError(f"amount must be positive: {value!r}")
    # quantize() raises InvalidOperation on exponents this large
    if amount >= MAX_AMOUNT:
        raise ValueError(f"amount exceeds {MAX_AMOUNT:,.0f}: {value!r}")

    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise ValueError(f"amount must be at least {CENT}: {value!r}")
    if amount >= MAX_AMOUNT:
        raise ValueError(f"amount exceeds {MAX_AMOUNT:,.0f}: {value!r}")
    return amount
