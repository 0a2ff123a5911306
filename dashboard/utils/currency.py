"""Currency helpers for amounts stored as integer cents."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, float, Decimal]

_CENT = Decimal("0.01")


def cents_to_dollars(amount: Number) -> float:
    """Convert a stored cent amount to dollars, e.g. ``12345`` -> ``123.45``."""

    return float(amount) / 100


def format_currency(amount: Number) -> str:
    """Format a cent amount as US dollars: ``123456`` -> ``"$1,234.56"``."""

    dollars = (Decimal(str(amount)) / 100).quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = "-" if dollars < 0 else ""
    return f"{sign}${abs(dollars):,.2f}"
