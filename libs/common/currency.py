"""Currency helpers for Indonesian Rupiah.

Amounts are stored as ``Numeric(12, 2)`` and handled as ``Decimal`` in code.
Rupiah has no minor unit in practice, so display rounds to whole rupiah.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number | None) -> Decimal:
    """Coerce API/DB numbers to Decimal (``None`` → 0)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_rupiah(value: Number) -> Decimal:
    """Round to whole rupiah, half-up."""
    return to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def format_rupiah(value: Number) -> str:
    """Format an amount as ``Rp 116.000`` (dot thousands separator)."""
    amount = int(round_rupiah(value))
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp {abs(amount):,}".replace(",", ".")
