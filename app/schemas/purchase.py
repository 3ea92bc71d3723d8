from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, condecimal

from app.models.purchase import PurchaseStatus

Money = condecimal(max_digits=14, decimal_places=2, ge=0)


class PurchaseItemIn(BaseModel):
    medicine_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Money


class PurchaseCreate(BaseModel):
    supplier_id: int
    items: List[PurchaseItemIn] = Field(..., min_length=1)
    status: PurchaseStatus = PurchaseStatus.PAID
    # defaults to the sum of line subtotals
    total_amount: Optional[Money] = None


class PurchaseUpdate(BaseModel):
    supplier_id: Optional[int] = None
    status: Optional[PurchaseStatus] = None
    items: Optional[List[PurchaseItemIn]] = None
    total_amount: Optional[Money] = None


class PurchaseItemUpdate(BaseModel):
    quantity: int = Field(..., gt=0)
    unit_price: Money


class PurchaseItemOut(BaseModel):
    id: int
    purchase_id: int
    medicine_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = ConfigDict(from_attributes=True)


class PurchaseOut(BaseModel):
    id: int
    supplier_id: int
    user_id: Optional[str] = None
    total_amount: Decimal
    status: PurchaseStatus
    purchase_date: datetime
    items: List[PurchaseItemOut] = []

    model_config = ConfigDict(from_attributes=True)
