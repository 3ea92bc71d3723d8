from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, current_user_id
from app.api.response import ok
from app.models.sales import DebtStatus
from app.schemas.sales import (
    DebtOut,
    DebtPayIn,
    DebtUpdate,
    DebtUpdatedOut,
    PaymentRecordedOut,
)
from app.services.debts import delete_debt, list_debts, pay_debt, update_debt_terms

router = APIRouter(prefix="/debts", tags=["Debts"])


@router.get("", response_model=List[DebtOut])
def list_debts_route(
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
    customer_id: Optional[int] = Query(None),
    status: Optional[DebtStatus] = Query(None),
):
    return list_debts(db, customer_id=customer_id, status=status)


@router.post("/{debt_id}/pay", response_model=PaymentRecordedOut)
def pay_debt_route(
    debt_id: int,
    payload: DebtPayIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    out = pay_debt(db, debt_id=debt_id, amount=payload.amount, method=payload.method, user_id=user_id)
    return {
        "message": "Payment applied",
        "payment": out.payment,
        "debt": out.debt,
        "sale": out.sale,
    }


@router.put("/{debt_id}", response_model=DebtUpdatedOut)
def update_debt_route(
    debt_id: int,
    payload: DebtUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    debt = update_debt_terms(
        db, debt_id=debt_id, total_owed=payload.total_owed, due_date=payload.due_date)
    return {"message": "Debt updated", "debt": debt}


@router.delete("/{debt_id}")
def delete_debt_route(
    debt_id: int,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
):
    delete_debt(db, debt_id=debt_id)
    return ok("Debt deleted")
