from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, condecimal, field_validator

from app.models.stock import StockChangeType

Money = condecimal(max_digits=14, decimal_places=2, ge=0)


def _strip_required(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("must not be blank")
    return v


# ---------- Categories ----------


class CategoryBase(BaseModel):
    name: str
    description: str | None = ""

    @field_validator("name")
    @classmethod
    def v_name(cls, v: str) -> str:
        return _strip_required(v)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class CategoryOut(CategoryBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------- Suppliers ----------


class SupplierBase(BaseModel):
    name: str
    contact_person: str | None = ""
    phone: str | None = ""
    email: str | None = ""
    address: str | None = ""

    @field_validator("name")
    @classmethod
    def v_name(cls, v: str) -> str:
        return _strip_required(v)


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    name: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class SupplierOut(SupplierBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------- Customers ----------


class CustomerBase(BaseModel):
    name: str
    phone: str | None = ""
    email: str | None = ""
    address: str | None = ""

    @field_validator("name")
    @classmethod
    def v_name(cls, v: str) -> str:
        return _strip_required(v)


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class CustomerOut(CustomerBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------- Medicines ----------


class MedicineBase(BaseModel):
    name: str
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    buying_price: Money
    selling_price: Money
    expiry_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def v_name(cls, v: str) -> str:
        return _strip_required(v)


class MedicineCreate(MedicineBase):
    # opening stock, booked as an adjustment in the stock ledger
    quantity_in_stock: int = Field(0, ge=0)


class MedicineUpdate(BaseModel):
    """Stock is not editable here; use the stock adjustment endpoint."""
    name: Optional[str] = None
    category_id: Optional[int] = None
    supplier_id: Optional[int] = None
    buying_price: Optional[Money] = None
    selling_price: Optional[Money] = None
    expiry_date: Optional[date] = None


class MedicineOut(MedicineBase):
    id: int
    quantity_in_stock: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------- Stock ledger ----------


class StockAdjustIn(BaseModel):
    quantity_change: int
    change_type: StockChangeType = StockChangeType.ADJUSTMENT

    @field_validator("quantity_change")
    @classmethod
    def _non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("quantity_change must be non-zero")
        return v


class StockAdjustOut(BaseModel):
    message: str
    medicine_id: int
    stock: int
    log_id: int


class StockLogOut(BaseModel):
    id: int
    medicine_id: int
    medicine_name: Optional[str] = None
    change_type: StockChangeType
    quantity_change: int
    user_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
