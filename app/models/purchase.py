# FILE: app/models/purchase.py
from __future__ import annotations

import enum
from decimal import Decimal

from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Enum
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.utils.timezone import utcnow

Money = Numeric(14, 2)


class PurchaseStatus(str, enum.Enum):
    PAID = "paid"
    PENDING = "pending"


class Purchase(Base):
    """
    Supplier purchase header. Creating or editing a purchase never moves stock;
    only item-level edits go through the inventory reconciler.
    """
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=True)
    total_amount = Column(Money, nullable=False, default=Decimal("0"))
    status = Column(
        Enum(PurchaseStatus, values_callable=lambda e: [m.value for m in e],
             name="purchase_status"),
        nullable=False,
        default=PurchaseStatus.PAID,
    )
    purchase_date = Column(DateTime, default=utcnow, nullable=False, index=True)

    supplier = relationship("Supplier", back_populates="purchases")
    items = relationship(
        "PurchaseItem",
        back_populates="purchase",
        cascade="all, delete-orphan",
        order_by="PurchaseItem.id",
    )


class PurchaseItem(Base):
    __tablename__ = "purchase_items"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Money, nullable=False, default=Decimal("0"))
    subtotal = Column(Money, nullable=False, default=Decimal("0"))

    purchase = relationship("Purchase", back_populates="items")
    medicine = relationship("Medicine")
