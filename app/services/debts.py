# FILE: app/services/debts.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.errors import InvalidInput, NotFound
from app.models.sales import Debt, DebtStatus, Payment, PaymentMethod, PaymentType, Sale
from app.services.money import D0, money2
from app.services.payment_ledger import append_payment
from app.utils.timezone import as_naive_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass
class PaymentOutcome:
    payment: Payment
    sale: Optional[Sale]
    debt: Optional[Debt]


def derive_status(total_owed, amount_paid, due_date: Optional[datetime], now: datetime) -> DebtStatus:
    """
    cleared  -> nothing left to pay
    partial  -> something paid, something left
    unpaid   -> nothing paid yet
    overdue overrides partial/unpaid once due_date has passed.
    """
    remaining = money2(total_owed) - money2(amount_paid)
    if remaining <= 0:
        return DebtStatus.CLEARED
    if due_date is not None and due_date < now:
        return DebtStatus.OVERDUE
    if money2(amount_paid) > 0:
        return DebtStatus.PARTIAL
    return DebtStatus.UNPAID


def recompute_debt(debt: Debt, now: Optional[datetime] = None) -> Debt:
    """Re-derive remaining_balance (floored at 0) and status from the stored amounts."""
    now = now or utcnow()
    debt.total_owed = money2(debt.total_owed)
    debt.amount_paid = money2(debt.amount_paid)
    debt.remaining_balance = max(D0, money2(debt.total_owed - debt.amount_paid))
    debt.status = derive_status(debt.total_owed, debt.amount_paid, debt.due_date, now)
    return debt


def _mirror_to_sale(debt: Debt, sale: Optional[Sale]) -> None:
    # balance follows the debt; amount_paid is what that balance leaves of the total
    if sale is None:
        return
    sale.total_amount = debt.total_owed
    sale.balance = debt.remaining_balance
    sale.amount_paid = money2(sale.total_amount - sale.balance)


def _settle(debt: Debt, sale: Optional[Sale], amount: Decimal, now: datetime) -> None:
    debt.amount_paid = money2(debt.amount_paid) + amount
    debt.last_payment_date = now
    recompute_debt(debt, now)
    _mirror_to_sale(debt, sale)


def send_reminder(debt: Debt, customer_name: Optional[str] = None) -> None:
    """Best-effort nudge for an open balance. Never raises."""
    try:
        if debt.remaining_balance is None or money2(debt.remaining_balance) <= 0:
            return
        who = customer_name or (debt.customer.name if debt.customer else f"customer {debt.customer_id}")
        logger.info(
            "REMINDER: %s still owes %s on sale %s (due %s)",
            who, money2(debt.remaining_balance), debt.sale_id,
            debt.due_date.date().isoformat() if debt.due_date else "-")
    except Exception:
        logger.warning("Could not send reminder for debt %s", getattr(debt, "id", None), exc_info=True)


def apply_payment(
    db: Session,
    *,
    amount,
    debt_id: Optional[int] = None,
    sale_id: Optional[int] = None,
    method=PaymentMethod.CASH,
    user_id: Optional[str] = None,
    customer_id: Optional[int] = None,
    reference: Optional[str] = None,
) -> PaymentOutcome:
    """
    The one code path for money coming in against a sale.

    - Resolve the debt (by id) or the sale (by id) and its debt, if any.
    - debt.amount_paid += amount, remaining floored at 0, status re-derived
      (overpayment is clamped, not rejected).
    - Sale.amount_paid / balance mirror the debt.
    - Payment ledger row appended (customer_payment).
    All in one transaction.
    """
    amount = money2(amount)
    if amount <= 0:
        raise InvalidInput("Invalid amount")
    if debt_id is None and sale_id is None:
        raise InvalidInput("A debt or sale reference is required")

    sale: Optional[Sale] = None
    debt: Optional[Debt] = None
    try:
        if debt_id is not None:
            debt = db.query(Debt).filter(Debt.id == debt_id).with_for_update().first()
            if not debt:
                raise NotFound("Debt not found")
            sale = db.query(Sale).filter(Sale.id == debt.sale_id).with_for_update().first()
        else:
            sale = db.query(Sale).filter(Sale.id == sale_id).with_for_update().first()
            if not sale:
                raise NotFound("Sale not found")
            debt = db.query(Debt).filter(Debt.sale_id == sale.id).with_for_update().first()

        now = utcnow()
        if debt is not None:
            _settle(debt, sale, amount, now)
        else:
            sale.balance = max(D0, money2(sale.balance) - amount)
            sale.amount_paid = money2(sale.total_amount - sale.balance)

        payment = append_payment(
            db,
            related_id=sale.id if sale is not None else debt.sale_id,
            amount=amount,
            type=PaymentType.CUSTOMER_PAYMENT,
            method=method,
            user_id=user_id,
            customer_id=customer_id or (debt.customer_id if debt is not None else sale.customer_id),
            reference=reference,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(payment)
    if sale is not None:
        db.refresh(sale)
    if debt is not None:
        db.refresh(debt)
        logger.info(
            "Payment %s applied to debt %s: paid=%s remaining=%s status=%s",
            payment.reference, debt.id, debt.amount_paid, debt.remaining_balance, debt.status.value)
        send_reminder(debt)
    else:
        logger.info("Payment %s applied to sale %s: balance=%s", payment.reference, sale.id, sale.balance)

    return PaymentOutcome(payment=payment, sale=sale, debt=debt)


def pay_debt(
    db: Session,
    *,
    debt_id: int,
    amount,
    method=PaymentMethod.CASH,
    user_id: Optional[str] = None,
) -> PaymentOutcome:
    return apply_payment(db, amount=amount, debt_id=debt_id, method=method, user_id=user_id)


def update_debt_terms(
    db: Session,
    *,
    debt_id: int,
    total_owed=None,
    due_date: Optional[datetime] = None,
) -> Debt:
    """
    Administrative override of total_owed / due_date; balances and status follow.
    A changed total_owed becomes the linked sale's total as well.
    """
    debt = db.query(Debt).filter(Debt.id == debt_id).first()
    if not debt:
        raise NotFound("Debt not found")

    if total_owed is not None:
        total_owed = money2(total_owed)
        if total_owed < 0:
            raise InvalidInput("total_owed must be >= 0")
        debt.total_owed = total_owed
    if due_date is not None:
        debt.due_date = as_naive_utc(due_date)

    recompute_debt(debt)
    _mirror_to_sale(debt, db.get(Sale, debt.sale_id))
    db.commit()
    db.refresh(debt)
    return debt


def delete_debt(db: Session, *, debt_id: int) -> None:
    debt = db.query(Debt).filter(Debt.id == debt_id).first()
    if not debt:
        raise NotFound("Debt not found")
    db.delete(debt)
    db.commit()
    logger.info("Debt %s deleted", debt_id)


def refresh_statuses(db: Session, now: Optional[datetime] = None) -> int:
    """
    Re-derive status on every open debt (due dates pass without any write).
    Returns how many rows changed.
    """
    now = now or utcnow()
    changed = 0
    for debt in db.query(Debt).filter(Debt.status != DebtStatus.CLEARED).all():
        before = (debt.status, debt.remaining_balance)
        recompute_debt(debt, now)
        if (debt.status, debt.remaining_balance) != before:
            changed += 1
    if changed:
        db.commit()
    return changed


def list_debts(
    db: Session,
    *,
    customer_id: Optional[int] = None,
    status: Optional[DebtStatus] = None,
) -> List[Debt]:
    refresh_statuses(db)
    q = db.query(Debt)
    if customer_id:
        q = q.filter(Debt.customer_id == customer_id)
    if status:
        q = q.filter(Debt.status == status)
    return q.order_by(Debt.due_date.asc(), Debt.id.asc()).all()
