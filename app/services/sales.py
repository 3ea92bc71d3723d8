# FILE: app/services/sales.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidInput, InvalidState, NotFound
from app.models.catalog import Customer, Medicine
from app.models.sales import Debt, PaymentMethod, PaymentType, Sale, SaleItem, SaleType
from app.models.stock import StockChangeType
from app.services.debts import recompute_debt
from app.services.inventory import apply_stock_change
from app.services.money import D0, line_subtotal, money2
from app.services.payment_ledger import append_payment
from app.utils.timezone import as_naive_utc, utcnow

logger = logging.getLogger(__name__)


def _validate_lines(db: Session, items: Iterable) -> List[Tuple[Medicine, int, object]]:
    """
    Resolve every line against current stock before anything is written.
    Lines for the same medicine are summed for the stock check.
    """
    lines: List[Tuple[Medicine, int, object]] = []
    requested: Dict[int, int] = {}
    meds: Dict[int, Medicine] = {}

    for it in items:
        qty = int(it.quantity)
        if qty <= 0:
            raise InvalidInput("Item quantity must be > 0")

        med = meds.get(it.medicine_id) or db.get(Medicine, it.medicine_id)
        if med is None:
            raise NotFound(f"Medicine {it.medicine_id} not found")
        meds[med.id] = med

        requested[med.id] = requested.get(med.id, 0) + qty
        if requested[med.id] > (med.quantity_in_stock or 0):
            raise InvalidState(
                f"Quantity for {med.name} exceeds available stock ({med.quantity_in_stock})")

        lines.append((med, qty, getattr(it, "unit_price", None)))
    return lines


def record_sale(
    db: Session,
    *,
    customer_id: Optional[int],
    user_id: Optional[str],
    items: List,
    sale_type: Optional[SaleType] = None,
    amount_paid=0,
    sale_date: Optional[datetime] = None,
    payment_method=PaymentMethod.CASH,
) -> Sale:
    """
    Validate -> create sale -> debit stock -> payment -> debt, as one transaction.

    Validation is all-or-nothing: a missing medicine or short stock on any line
    aborts before the first write. The stock debit itself is a conditional
    update, so a concurrent sale that drained the stock in between makes this
    one fail (and roll back) instead of overselling.
    """
    if not customer_id:
        raise InvalidInput("Customer is required")
    if not items:
        raise InvalidInput("At least one item is required")

    customer = db.get(Customer, customer_id)
    if not customer:
        raise NotFound("Customer not found")

    paid = money2(amount_paid)
    if paid < 0:
        raise InvalidInput("amount_paid must be >= 0")

    lines = _validate_lines(db, items)

    priced = []
    total = D0
    for med, qty, unit_price in lines:
        price = money2(unit_price if unit_price is not None else med.selling_price)
        if price < 0:
            raise InvalidInput(f"Unit price for {med.name} must be >= 0")
        subtotal = line_subtotal(qty, price)
        priced.append((med, qty, price, subtotal))
        total += subtotal
    total = money2(total)

    if paid > total:
        raise InvalidInput(f"amount_paid ({paid}) exceeds total_amount ({total})")
    balance = money2(total - paid)

    if sale_type is None:
        sale_type = SaleType.CREDIT if balance > 0 else SaleType.CASH
    when = as_naive_utc(sale_date) if sale_date else utcnow()

    try:
        sale = Sale(
            customer_id=customer.id,
            user_id=user_id,
            total_amount=total,
            amount_paid=paid,
            balance=balance,
            sale_type=SaleType(sale_type),
            sale_date=when,
        )
        for med, qty, price, subtotal in priced:
            sale.items.append(
                SaleItem(
                    medicine_id=med.id,
                    name=med.name,
                    quantity=qty,
                    unit_price=price,
                    subtotal=subtotal,
                ))
        db.add(sale)
        db.flush()

        for med, qty, _price, _subtotal in priced:
            apply_stock_change(
                db,
                medicine_id=med.id,
                quantity_change=-qty,
                change_type=StockChangeType.SALE,
                user_id=user_id,
            )

        if paid > 0:
            append_payment(
                db,
                related_id=sale.id,
                amount=paid,
                type=PaymentType.CUSTOMER_PAYMENT,
                method=payment_method,
                user_id=user_id,
                customer_id=customer.id,
            )

        if balance > 0:
            debt = Debt(
                customer_id=customer.id,
                sale_id=sale.id,
                total_owed=total,
                amount_paid=paid,
                remaining_balance=balance,
                due_date=when + timedelta(days=settings.DEBT_DUE_DAYS),
            )
            recompute_debt(debt)
            db.add(debt)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sale)
    logger.info(
        "Sale %s recorded: customer=%s lines=%d total=%s paid=%s balance=%s",
        sale.id, customer.id, len(priced), total, paid, balance)
    return sale
