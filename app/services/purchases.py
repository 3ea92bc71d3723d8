# FILE: app/services/purchases.py
from __future__ import annotations

import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.core.errors import InvalidInput, NotFound
from app.models.catalog import Medicine, Supplier
from app.models.purchase import Purchase, PurchaseItem, PurchaseStatus
from app.models.stock import StockChangeType
from app.services.inventory import apply_stock_change
from app.services.money import D0, line_subtotal, money2
from app.utils.timezone import utcnow

logger = logging.getLogger(__name__)


def _build_items(db: Session, items: Iterable) -> list[PurchaseItem]:
    out: list[PurchaseItem] = []
    for it in items:
        if int(it.quantity) <= 0:
            raise InvalidInput("Item quantity must be > 0")
        if not db.get(Medicine, it.medicine_id):
            raise NotFound(f"Medicine {it.medicine_id} not found")
        out.append(
            PurchaseItem(
                medicine_id=it.medicine_id,
                quantity=int(it.quantity),
                unit_price=money2(it.unit_price),
                subtotal=line_subtotal(it.quantity, it.unit_price),
            ))
    return out


def create_purchase(
    db: Session,
    *,
    supplier_id: int,
    items: Iterable,
    user_id: Optional[str] = None,
    total_amount=None,
    status: PurchaseStatus = PurchaseStatus.PAID,
) -> Purchase:
    """
    Record a purchase and its lines.
    Stock is NOT touched here; only item edits/deletes move stock.
    """
    if not db.get(Supplier, supplier_id):
        raise NotFound("Supplier not found")

    rows = _build_items(db, items)
    total = money2(total_amount) if total_amount is not None else money2(sum((r.subtotal for r in rows), D0))

    purchase = Purchase(
        supplier_id=supplier_id,
        user_id=user_id,
        total_amount=total,
        status=PurchaseStatus(status),
        purchase_date=utcnow(),
    )
    purchase.items.extend(rows)
    db.add(purchase)
    db.commit()
    db.refresh(purchase)
    logger.info("Purchase %s recorded: supplier=%s lines=%d total=%s",
                purchase.id, supplier_id, len(rows), total)
    return purchase


def update_purchase(
    db: Session,
    *,
    purchase_id: int,
    supplier_id: Optional[int] = None,
    status: Optional[PurchaseStatus] = None,
    items: Optional[Iterable] = None,
    total_amount=None,
) -> Purchase:
    """Header edit + full item replacement. No stock movement."""
    purchase = db.get(Purchase, purchase_id)
    if not purchase:
        raise NotFound("Purchase not found")

    if supplier_id is not None:
        if not db.get(Supplier, supplier_id):
            raise NotFound("Supplier not found")
        purchase.supplier_id = supplier_id
    if status is not None:
        purchase.status = PurchaseStatus(status)

    if items is not None:
        rows = _build_items(db, items)
        purchase.items.clear()
        purchase.items.extend(rows)
        if total_amount is None:
            purchase.total_amount = money2(sum((r.subtotal for r in rows), D0))
    if total_amount is not None:
        purchase.total_amount = money2(total_amount)

    db.commit()
    db.refresh(purchase)
    return purchase


def update_purchase_item(
    db: Session,
    *,
    item_id: int,
    quantity: int,
    unit_price,
    user_id: Optional[str] = None,
) -> PurchaseItem:
    """
    Editing a received line moves stock by the quantity difference
    (ledger type update_purchase).
    """
    if int(quantity) <= 0:
        raise InvalidInput("quantity must be > 0")

    item = db.get(PurchaseItem, item_id)
    if not item:
        raise NotFound("Purchase item not found")
    if not db.get(Medicine, item.medicine_id):
        raise NotFound("Medicine not found")

    diff = int(quantity) - int(item.quantity)
    try:
        if diff:
            apply_stock_change(
                db,
                medicine_id=item.medicine_id,
                quantity_change=diff,
                change_type=StockChangeType.UPDATE_PURCHASE,
                user_id=user_id,
            )
        item.quantity = int(quantity)
        item.unit_price = money2(unit_price)
        item.subtotal = line_subtotal(quantity, unit_price)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(item)
    return item


def delete_purchase_item(db: Session, *, item_id: int, user_id: Optional[str] = None) -> None:
    """Removing a line takes its quantity back out of stock, when the medicine still exists."""
    item = db.get(PurchaseItem, item_id)
    if not item:
        raise NotFound("Purchase item not found")

    try:
        if db.get(Medicine, item.medicine_id) is not None and item.quantity:
            apply_stock_change(
                db,
                medicine_id=item.medicine_id,
                quantity_change=-int(item.quantity),
                change_type=StockChangeType.UPDATE_PURCHASE,
                user_id=user_id,
            )
        db.delete(item)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Purchase item %s deleted", item_id)
