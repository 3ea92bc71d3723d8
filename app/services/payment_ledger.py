# FILE: app/services/payment_ledger.py
from __future__ import annotations

import secrets
import time
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import InvalidInput
from app.models.sales import Payment, PaymentMethod, PaymentType
from app.services.money import money2
from app.utils.timezone import utcnow

_B36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_B36[r])
    return "".join(reversed(out))


def generate_reference(now_ms: Optional[int] = None) -> str:
    """PAY-<ms timestamp in base36>-<5 random base36 chars>, upper-case."""
    stamp = _base36(now_ms if now_ms is not None else int(time.time() * 1000))
    rand = "".join(secrets.choice(_B36) for _ in range(5))
    return f"PAY-{stamp}-{rand}".upper()


def append_payment(
    db: Session,
    *,
    related_id: int,
    amount,
    type: PaymentType,
    method=PaymentMethod.CASH,
    user_id: Optional[str] = None,
    customer_id: Optional[int] = None,
    reference: Optional[str] = None,
) -> Payment:
    """
    Append one immutable payment row. Does not commit.
    """
    amount = money2(amount)
    if amount <= 0:
        raise InvalidInput("Payment amount must be > 0")

    if reference:
        reference = reference.strip()
        if db.query(Payment.id).filter(Payment.reference == reference).first():
            raise InvalidInput(f"Payment reference {reference} already exists")
    else:
        reference = generate_reference()
        while db.query(Payment.id).filter(Payment.reference == reference).first():
            reference = generate_reference()

    pay = Payment(
        customer_id=customer_id,
        related_id=related_id,
        type=PaymentType(type),
        amount=amount,
        method=PaymentMethod(method),
        status="completed",
        reference=reference,
        user_id=user_id,
        date=utcnow(),
    )
    db.add(pay)
    db.flush()
    return pay
