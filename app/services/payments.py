from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import InvalidInput, NotFound
from app.models.catalog import Customer
from app.models.purchase import Purchase
from app.models.sales import Payment, PaymentMethod, PaymentType, Sale
from app.services.debts import PaymentOutcome, apply_payment
from app.services.money import D0, money2
from app.services.payment_ledger import append_payment
from app.utils.timezone import end_of_day, start_of_day, utcnow

logger = logging.getLogger(__name__)


def create_payment(
    db: Session,
    *,
    related_id: int,
    type,
    amount,
    method=PaymentMethod.CASH,
    customer_id: Optional[int] = None,
    reference: Optional[str] = None,
    user_id: Optional[str] = None,
) -> PaymentOutcome:
    """
    customer_payment: goes through the debt reconciler, same as paying the debt directly.
    supplier_payment: plain ledger entry against an existing purchase.
    """
    try:
        ptype = PaymentType(type)
    except ValueError:
        raise InvalidInput(f"Invalid payment type '{type}'")
    if money2(amount) <= 0:
        raise InvalidInput("Invalid amount")

    if ptype == PaymentType.CUSTOMER_PAYMENT:
        if customer_id is None:
            raise InvalidInput("customer_id is required for a customer payment")
        if not db.get(Customer, customer_id):
            raise NotFound("Customer not found")
        sale = db.get(Sale, related_id)
        if not sale:
            raise NotFound("Sale not found")
        if sale.customer_id != customer_id:
            raise InvalidInput("Sale does not belong to this customer")
        return apply_payment(
            db,
            amount=amount,
            sale_id=sale.id,
            method=method,
            user_id=user_id,
            customer_id=customer_id,
            reference=reference,
        )

    if not db.get(Purchase, related_id):
        raise NotFound("Purchase not found")
    try:
        pay = append_payment(
            db,
            related_id=related_id,
            amount=amount,
            type=ptype,
            method=method,
            user_id=user_id,
            customer_id=customer_id,
            reference=reference,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(pay)
    logger.info("Supplier payment %s recorded for purchase %s: %s", pay.reference, related_id, pay.amount)
    return PaymentOutcome(payment=pay, sale=None, debt=None)


def list_payments(db: Session, *, customer_id: Optional[int] = None, type=None) -> List[Payment]:
    q = db.query(Payment)
    if customer_id:
        q = q.filter(Payment.customer_id == customer_id)
    if type:
        q = q.filter(Payment.type == PaymentType(type))
    return q.order_by(Payment.date.desc(), Payment.id.desc()).all()


def payment_stats(db: Session, *, today: Optional[date] = None) -> dict:
    today = today or utcnow().date()
    total_count, total_amount = db.query(
        func.count(Payment.id), func.coalesce(func.sum(Payment.amount), 0)).one()
    today_count, today_amount = (
        db.query(func.count(Payment.id), func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.date >= start_of_day(today), Payment.date <= end_of_day(today))
        .one()
    )
    return {
        "total_payments": int(total_count or 0),
        "today_payments": int(today_count or 0),
        "total_amount": money2(total_amount or D0),
        "today_amount": money2(today_amount or D0),
    }
