from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, selectinload

from app.api.deps import get_db, current_user_id
from app.core.errors import NotFound
from app.models.sales import Sale
from app.schemas.sales import SaleCreate, SaleOut
from app.services.sales import record_sale

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("", response_model=SaleOut, status_code=201)
def create_sale(
    payload: SaleCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return record_sale(
        db,
        customer_id=payload.customer_id,
        user_id=user_id,
        items=payload.items,
        sale_type=payload.sale_type,
        amount_paid=payload.amount_paid,
        sale_date=payload.sale_date,
        payment_method=payload.payment_method,
    )


@router.get("", response_model=List[SaleOut])
def list_sales(
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .all()
    )


@router.get("/customer/{customer_id}", response_model=List[SaleOut])
def list_customer_sales(
    customer_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return (
        db.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.customer_id == customer_id)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .all()
    )


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    sale = db.query(Sale).options(selectinload(Sale.items)).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFound("Sale not found")
    return sale
