# FILE: app/models/catalog.py
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Numeric, ForeignKey,
    CheckConstraint, Index,
)
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.utils.timezone import utcnow

Money = Numeric(14, 2)


# -------------------------
# Masters
# -------------------------
class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    description = Column(String(500), default="")

    created_at = Column(DateTime, default=utcnow, nullable=False)

    medicines = relationship("Medicine", back_populates="category")


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    contact_person = Column(String(255), default="")
    phone = Column(String(50), default="")
    email = Column(String(255), default="")
    address = Column(String(1000), default="")

    created_at = Column(DateTime, default=utcnow, nullable=False)

    medicines = relationship("Medicine", back_populates="supplier")
    purchases = relationship("Purchase", back_populates="supplier")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), default="")
    email = Column(String(255), default="")
    address = Column(String(1000), default="")

    created_at = Column(DateTime, default=utcnow, nullable=False)

    sales = relationship("Sale", back_populates="customer")
    debts = relationship("Debt", back_populates="customer")


class Medicine(Base):
    """
    Catalog row + the current stock snapshot.
    quantity_in_stock is written only by the inventory reconciler
    (app.services.inventory), never by catalog updates.
    """
    __tablename__ = "medicines"
    __table_args__ = (
        CheckConstraint("quantity_in_stock >= 0", name="ck_medicine_qty_non_negative"),
        Index("ix_medicine_category", "category_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True, index=True)

    quantity_in_stock = Column(Integer, nullable=False, default=0)
    buying_price = Column(Money, nullable=False, default=Decimal("0"))
    selling_price = Column(Money, nullable=False, default=Decimal("0"))
    expiry_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    category = relationship("Category", back_populates="medicines")
    supplier = relationship("Supplier", back_populates="medicines")
    stock_logs = relationship("StockLog", back_populates="medicine")
