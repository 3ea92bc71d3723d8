from __future__ import annotations

import logging
from typing import List, Optional, Type

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidState, NotFound
from app.db.base import Base
from app.models.catalog import Category, Customer, Medicine, Supplier
from app.models.purchase import Purchase
from app.models.sales import Sale, SaleItem
from app.models.stock import StockChangeType, StockLog
from app.services.inventory import apply_stock_change

logger = logging.getLogger(__name__)

_LABELS = {
    Category: "Category",
    Supplier: "Supplier",
    Customer: "Customer",
    Medicine: "Medicine",
}


def get_or_404(db: Session, model: Type[Base], obj_id: int):
    obj = db.get(model, obj_id)
    if not obj:
        raise NotFound(f"{_LABELS.get(model, model.__name__)} not found")
    return obj


def _check_refs(db: Session, *, category_id: Optional[int], supplier_id: Optional[int]) -> None:
    if category_id is not None and not db.get(Category, category_id):
        raise NotFound("Category not found")
    if supplier_id is not None and not db.get(Supplier, supplier_id):
        raise NotFound("Supplier not found")


# ---------- Generic masters ----------


def create_master(db: Session, model: Type[Base], data: dict):
    obj = model(**data)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def update_master(db: Session, model: Type[Base], obj_id: int, data: dict):
    obj = get_or_404(db, model, obj_id)
    for k, v in data.items():
        setattr(obj, k, v)
    db.commit()
    db.refresh(obj)
    return obj


def delete_master(db: Session, model: Type[Base], obj_id: int) -> None:
    """Categories, suppliers and customers cannot be deleted while still referenced."""
    obj = get_or_404(db, model, obj_id)
    label = _LABELS.get(model, model.__name__)

    in_use = False
    if model is Category:
        in_use = db.query(Medicine.id).filter(Medicine.category_id == obj_id).first() is not None
    elif model is Supplier:
        in_use = (
            db.query(Medicine.id).filter(Medicine.supplier_id == obj_id).first() is not None
            or db.query(Purchase.id).filter(Purchase.supplier_id == obj_id).first() is not None
        )
    elif model is Customer:
        in_use = db.query(Sale.id).filter(Sale.customer_id == obj_id).first() is not None
    if in_use:
        raise InvalidState(f"{label} is in use and cannot be deleted")

    db.delete(obj)
    db.commit()


# ---------- Medicines ----------


def list_medicines(
    db: Session,
    *,
    q: Optional[str] = None,
    category_id: Optional[int] = None,
    supplier_id: Optional[int] = None,
    low_stock: bool = False,
) -> List[Medicine]:
    query = db.query(Medicine)
    if q:
        query = query.filter(Medicine.name.ilike(f"%{q.strip()}%"))
    if category_id:
        query = query.filter(Medicine.category_id == category_id)
    if supplier_id:
        query = query.filter(Medicine.supplier_id == supplier_id)
    if low_stock:
        query = query.filter(Medicine.quantity_in_stock < settings.LOW_STOCK_THRESHOLD)
    return query.order_by(Medicine.name.asc(), Medicine.id.asc()).all()


def create_medicine(db: Session, *, data: dict, user_id: Optional[str] = None) -> Medicine:
    """
    New medicines start at zero stock; any opening quantity is booked through
    the reconciler as an adjustment so the ledger sums to the stock figure.
    """
    opening = int(data.pop("quantity_in_stock", 0) or 0)
    _check_refs(db, category_id=data.get("category_id"), supplier_id=data.get("supplier_id"))

    med = Medicine(**data, quantity_in_stock=0)
    try:
        db.add(med)
        db.flush()
        if opening:
            apply_stock_change(
                db,
                medicine_id=med.id,
                quantity_change=opening,
                change_type=StockChangeType.ADJUSTMENT,
                user_id=user_id,
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(med)
    logger.info("Medicine %s created (%s) opening stock=%s", med.id, med.name, opening)
    return med


def update_medicine(db: Session, *, medicine_id: int, data: dict) -> Medicine:
    med = get_or_404(db, Medicine, medicine_id)
    data.pop("quantity_in_stock", None)
    _check_refs(db, category_id=data.get("category_id"), supplier_id=data.get("supplier_id"))
    for k, v in data.items():
        setattr(med, k, v)
    db.commit()
    db.refresh(med)
    return med


def delete_medicine(db: Session, *, medicine_id: int) -> None:
    med = get_or_404(db, Medicine, medicine_id)
    has_ledger = db.query(StockLog.id).filter(StockLog.medicine_id == medicine_id).first()
    has_sales = db.query(SaleItem.id).filter(SaleItem.medicine_id == medicine_id).first()
    if has_ledger or has_sales:
        raise InvalidState(f"{med.name} has stock history and cannot be deleted")
    db.delete(med)
    db.commit()
    logger.info("Medicine %s deleted", medicine_id)
