from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, condecimal

from app.models.sales import DebtStatus, PaymentMethod, PaymentType, SaleType

Money = condecimal(max_digits=14, decimal_places=2, ge=0)
PositiveMoney = condecimal(max_digits=14, decimal_places=2, gt=0)


# ---------- Sales ----------


class SaleItemIn(BaseModel):
    medicine_id: int
    quantity: int = Field(..., gt=0)
    # defaults to the medicine's selling price
    unit_price: Optional[Money] = None


class SaleCreate(BaseModel):
    customer_id: int
    items: List[SaleItemIn] = Field(..., min_length=1)
    sale_type: Optional[SaleType] = None
    amount_paid: Money = Decimal("0")
    payment_method: PaymentMethod = PaymentMethod.CASH
    sale_date: Optional[datetime] = None


class SaleItemOut(BaseModel):
    id: int
    medicine_id: int
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = ConfigDict(from_attributes=True)


class SaleOut(BaseModel):
    id: int
    customer_id: int
    user_id: Optional[str] = None
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    sale_type: SaleType
    sale_date: datetime
    items: List[SaleItemOut] = []

    model_config = ConfigDict(from_attributes=True)


# ---------- Debts ----------


class DebtOut(BaseModel):
    id: int
    customer_id: int
    sale_id: int
    total_owed: Decimal
    amount_paid: Decimal
    remaining_balance: Decimal
    due_date: datetime
    status: DebtStatus
    last_payment_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DebtPayIn(BaseModel):
    amount: PositiveMoney
    method: PaymentMethod = PaymentMethod.CASH


class DebtUpdate(BaseModel):
    total_owed: Optional[Money] = None
    due_date: Optional[datetime] = None


class DebtUpdatedOut(BaseModel):
    message: str
    debt: DebtOut


# ---------- Payments ----------


class PaymentCreate(BaseModel):
    customer_id: Optional[int] = None
    related_id: int
    type: PaymentType
    amount: PositiveMoney
    method: PaymentMethod = PaymentMethod.CASH
    reference: Optional[str] = Field(None, max_length=64)


class PaymentOut(BaseModel):
    id: int
    customer_id: Optional[int] = None
    related_id: int
    type: PaymentType
    amount: Decimal
    method: PaymentMethod
    status: str
    reference: str
    user_id: Optional[str] = None
    date: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentRecordedOut(BaseModel):
    message: str
    payment: PaymentOut
    debt: Optional[DebtOut] = None
    sale: Optional[SaleOut] = None


class PaymentStatsOut(BaseModel):
    total_payments: int
    today_payments: int
    total_amount: Decimal
    today_amount: Decimal
