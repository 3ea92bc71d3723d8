from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.models.report import ReportType


class ReportCreate(BaseModel):
    # accepts both snake_case and the dashboard's camelCase keys
    start_date: Optional[date] = Field(None, validation_alias=AliasChoices("start_date", "startDate"))
    end_date: Optional[date] = Field(None, validation_alias=AliasChoices("end_date", "endDate"))
    type: ReportType = ReportType.CUSTOM
    include_zero_sales: bool = False


class ReportListItem(BaseModel):
    id: int
    title: str
    type: ReportType
    period_start: datetime
    period_end: datetime
    generated_at: datetime
    generated_by: Optional[str] = None
    totals: Dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class ReportOut(ReportListItem):
    filters: Dict[str, Any]
    by_medicine: List[Dict[str, Any]]
    by_category: List[Dict[str, Any]]
    executive_summary: Dict[str, Any]
