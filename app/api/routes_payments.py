from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, current_user_id
from app.models.sales import PaymentType
from app.schemas.sales import (
    PaymentCreate,
    PaymentOut,
    PaymentRecordedOut,
    PaymentStatsOut,
)
from app.services.payments import create_payment, list_payments, payment_stats

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentRecordedOut, status_code=201)
def create_payment_route(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    out = create_payment(
        db,
        related_id=payload.related_id,
        type=payload.type,
        amount=payload.amount,
        method=payload.method,
        customer_id=payload.customer_id,
        reference=payload.reference,
        user_id=user_id,
    )
    return {
        "message": "Payment recorded",
        "payment": out.payment,
        "debt": out.debt,
        "sale": out.sale,
    }


@router.get("", response_model=List[PaymentOut])
def list_payments_route(
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
    type: Optional[PaymentType] = Query(None),
):
    return list_payments(db, type=type)


@router.get("/stats", response_model=PaymentStatsOut)
def payment_stats_route(
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return payment_stats(db)


@router.get("/customer/{customer_id}", response_model=List[PaymentOut])
def list_customer_payments(
    customer_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    return list_payments(db, customer_id=customer_id)
