from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload

from app.api.deps import get_db, current_user_id
from app.api.response import ok
from app.core.errors import NotFound
from app.models.purchase import Purchase, PurchaseItem
from app.schemas.purchase import (
    PurchaseCreate,
    PurchaseItemOut,
    PurchaseItemUpdate,
    PurchaseOut,
    PurchaseUpdate,
)
from app.services.purchases import (
    create_purchase,
    delete_purchase_item,
    update_purchase,
    update_purchase_item,
)

router = APIRouter(tags=["Purchases"])


# -------------------- Purchases --------------------

@router.post("/purchases", response_model=PurchaseOut, status_code=201)
def create_purchase_route(
    payload: PurchaseCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return create_purchase(
        db,
        supplier_id=payload.supplier_id,
        items=payload.items,
        user_id=user_id,
        total_amount=payload.total_amount,
        status=payload.status,
    )


@router.get("/purchases", response_model=List[PurchaseOut])
def list_purchases(
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
    supplier_id: Optional[int] = Query(None),
):
    q = db.query(Purchase).options(selectinload(Purchase.items))
    if supplier_id:
        q = q.filter(Purchase.supplier_id == supplier_id)
    return q.order_by(Purchase.purchase_date.desc(), Purchase.id.desc()).all()


@router.get("/purchases/{purchase_id}", response_model=PurchaseOut)
def get_purchase(
    purchase_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    p = db.query(Purchase).options(selectinload(Purchase.items)).filter(Purchase.id == purchase_id).first()
    if not p:
        raise NotFound("Purchase not found")
    return p


@router.put("/purchases/{purchase_id}", response_model=PurchaseOut)
def update_purchase_route(
    purchase_id: int,
    payload: PurchaseUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return update_purchase(
        db,
        purchase_id=purchase_id,
        supplier_id=payload.supplier_id,
        status=payload.status,
        items=payload.items,
        total_amount=payload.total_amount,
    )


# -------------------- Purchase items --------------------

@router.get("/purchase-items", response_model=List[PurchaseItemOut])
def list_purchase_items(
    purchase_id: int = Query(...),
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return (
        db.query(PurchaseItem)
        .filter(PurchaseItem.purchase_id == purchase_id)
        .order_by(PurchaseItem.id.asc())
        .all()
    )


@router.put("/purchase-items/{item_id}", response_model=PurchaseItemOut)
def update_purchase_item_route(
    item_id: int,
    payload: PurchaseItemUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return update_purchase_item(
        db,
        item_id=item_id,
        quantity=payload.quantity,
        unit_price=payload.unit_price,
        user_id=user_id,
    )


@router.delete("/purchase-items/{item_id}")
def delete_purchase_item_route(
    item_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    delete_purchase_item(db, item_id=item_id, user_id=user_id)
    return ok("Purchase item deleted")
