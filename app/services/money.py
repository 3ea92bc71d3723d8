# app/services/money.py
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

D0 = Decimal("0.00")
Q2 = Decimal("0.01")


def D(x) -> Decimal:
    return Decimal(str(x if x is not None else 0))


def money2(x) -> Decimal:
    return D(x).quantize(Q2, rounding=ROUND_HALF_UP)


def line_subtotal(qty, unit_price) -> Decimal:
    return money2(D(qty) * D(unit_price))


def pct(part, whole) -> Decimal:
    """part / whole * 100, 0 when whole is 0."""
    whole = D(whole)
    if whole == 0:
        return D0
    return money2(D(part) / whole * Decimal("100"))


def as_float(x) -> float:
    """JSON-friendly money for report snapshots."""
    return float(money2(x))
