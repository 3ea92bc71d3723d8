from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, current_user_id
from app.api.response import ok
from app.models.catalog import Medicine
from app.schemas.catalog import (
    MedicineCreate,
    MedicineUpdate,
    MedicineOut,
    StockAdjustIn,
    StockAdjustOut,
)
from app.services.catalog import (
    create_medicine,
    delete_medicine,
    get_or_404,
    list_medicines,
    update_medicine,
)
from app.services.inventory import adjust_stock

router = APIRouter(prefix="/medicines", tags=["Medicines"])


@router.get("", response_model=List[MedicineOut])
def list_medicines_route(
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
    q: Optional[str] = Query(None, description="Name contains"),
    category_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    low_stock: bool = Query(False),
):
    return list_medicines(
        db, q=q, category_id=category_id, supplier_id=supplier_id, low_stock=low_stock)


@router.get("/{medicine_id}", response_model=MedicineOut)
def get_medicine(
    medicine_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return get_or_404(db, Medicine, medicine_id)


@router.post("", response_model=MedicineOut, status_code=201)
def create_medicine_route(
    payload: MedicineCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return create_medicine(db, data=payload.model_dump(), user_id=user_id)


@router.put("/{medicine_id}", response_model=MedicineOut)
def update_medicine_route(
    medicine_id: int,
    payload: MedicineUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return update_medicine(db, medicine_id=medicine_id, data=payload.model_dump(exclude_unset=True))


@router.delete("/{medicine_id}")
def delete_medicine_route(
    medicine_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    delete_medicine(db, medicine_id=medicine_id)
    return ok("Medicine deleted")


@router.post("/{medicine_id}/stock", response_model=StockAdjustOut)
def adjust_medicine_stock(
    medicine_id: int,
    payload: StockAdjustIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    new_qty, log = adjust_stock(
        db,
        medicine_id=medicine_id,
        quantity_change=payload.quantity_change,
        change_type=payload.change_type,
        user_id=user_id,
    )
    return StockAdjustOut(
        message="Stock updated",
        medicine_id=medicine_id,
        stock=new_qty,
        log_id=log.id,
    )
