# FILE: app/models/stock.py
from __future__ import annotations

import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.utils.timezone import utcnow


class StockChangeType(str, enum.Enum):
    PURCHASE = "purchase"
    UPDATE_PURCHASE = "update_purchase"
    SALE = "sale"
    ADJUSTMENT = "adjustment"


class StockLog(Base):
    """
    Append-only stock ledger.
    Sum of quantity_change per medicine == medicines.quantity_in_stock.
    """
    __tablename__ = "stock_logs"
    __table_args__ = (
        Index("ix_stock_logs_medicine_date", "medicine_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id"), nullable=False, index=True)
    change_type = Column(
        Enum(StockChangeType, values_callable=lambda e: [m.value for m in e],
             name="stock_change_type"),
        nullable=False,
    )
    quantity_change = Column(Integer, nullable=False)  # +200 / -100
    user_id = Column(String(64), nullable=True)  # opaque caller id

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    medicine = relationship("Medicine", back_populates="stock_logs")

    @property
    def medicine_name(self):
        return self.medicine.name if self.medicine else None
