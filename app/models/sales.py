# FILE: app/models/sales.py
from __future__ import annotations

import enum
from decimal import Decimal

from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, ForeignKey, Enum, Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.utils.timezone import utcnow

Money = Numeric(14, 2)


# -------------------------
# Enums
# -------------------------
class SaleType(str, enum.Enum):
    CASH = "cash"
    CREDIT = "credit"


class DebtStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    CLEARED = "cleared"
    OVERDUE = "overdue"


class PaymentType(str, enum.Enum):
    CUSTOMER_PAYMENT = "customer_payment"
    SUPPLIER_PAYMENT = "supplier_payment"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CREDIT = "credit"
    MOBILE = "mobile"


def _enum(cls, name: str) -> Enum:
    # store the lower-case values, not the member names
    return Enum(cls, values_callable=lambda e: [m.value for m in e], name=name)


# -------------------------
# Sales
# -------------------------
class Sale(Base):
    """
    One sale transaction. amount_paid / balance are mirrors kept in sync
    with the linked Debt by app.services.debts.
    """
    __tablename__ = "sales"
    __table_args__ = (
        Index("ix_sales_customer_date", "customer_id", "sale_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    user_id = Column(String(64), nullable=True)

    total_amount = Column(Money, nullable=False, default=Decimal("0"))
    amount_paid = Column(Money, nullable=False, default=Decimal("0"))
    balance = Column(Money, nullable=False, default=Decimal("0"))
    sale_type = Column(_enum(SaleType, "sale_type"), nullable=False, default=SaleType.CASH)
    sale_date = Column(DateTime, default=utcnow, nullable=False, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    customer = relationship("Customer", back_populates="sales")
    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )
    debt = relationship("Debt", back_populates="sale", uselist=False)


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False, index=True)
    name = Column(String(255), default="")  # name at time of sale

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Money, nullable=False, default=Decimal("0"))
    subtotal = Column(Money, nullable=False, default=Decimal("0"))

    sale = relationship("Sale", back_populates="items")
    medicine = relationship("Medicine")


# -------------------------
# Debts
# -------------------------
class Debt(Base):
    """
    Outstanding balance of one credit sale.
    status is derived (app.services.debts.derive_status), never set directly.
    """
    __tablename__ = "debts"
    __table_args__ = (
        UniqueConstraint("sale_id", name="uq_debts_sale"),
        Index("ix_debts_customer_status", "customer_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False)

    total_owed = Column(Money, nullable=False, default=Decimal("0"))
    amount_paid = Column(Money, nullable=False, default=Decimal("0"))
    remaining_balance = Column(Money, nullable=False, default=Decimal("0"))
    due_date = Column(DateTime, nullable=False)
    status = Column(_enum(DebtStatus, "debt_status"), nullable=False, default=DebtStatus.UNPAID)
    last_payment_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    customer = relationship("Customer", back_populates="debts")
    sale = relationship("Sale", back_populates="debt")


# -------------------------
# Payments (immutable ledger)
# -------------------------
class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_customer_date", "customer_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    related_id = Column(Integer, nullable=False, index=True)  # sale id or purchase id
    type = Column(_enum(PaymentType, "payment_type"), nullable=False)
    amount = Column(Money, nullable=False)
    method = Column(_enum(PaymentMethod, "payment_method"), nullable=False, default=PaymentMethod.CASH)
    status = Column(String(20), nullable=False, default="completed")
    reference = Column(String(64), unique=True, nullable=False)
    user_id = Column(String(64), nullable=True)

    date = Column(DateTime, default=utcnow, nullable=False)

    customer = relationship("Customer")
