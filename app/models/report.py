import enum

from sqlalchemy import Column, Integer, String, DateTime, JSON, Enum, Index

from app.db.base import Base
from app.utils.timezone import utcnow


class ReportType(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class Report(Base):
    """
    Immutable profitability snapshot.
    A new row per generation call; rows are never updated.
    """
    __tablename__ = "reports"
    __table_args__ = (
        Index("ix_reports_period", "period_start", "period_end"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    type = Column(
        Enum(ReportType, values_callable=lambda e: [m.value for m in e],
             name="report_type"),
        nullable=False,
        default=ReportType.CUSTOM,
    )
    period_start = Column(DateTime, nullable=False)
    period_end = Column(DateTime, nullable=False)
    generated_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    generated_by = Column(String(64), nullable=True)

    filters = Column(JSON, nullable=False, default=dict)
    totals = Column(JSON, nullable=False, default=dict)
    by_medicine = Column(JSON, nullable=False, default=list)
    by_category = Column(JSON, nullable=False, default=list)
    executive_summary = Column(JSON, nullable=False, default=dict)
