from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from app.api.deps import get_db, current_user_id
from app.models.stock import StockChangeType, StockLog
from app.schemas.catalog import StockLogOut

router = APIRouter(prefix="/stock-logs", tags=["Stock Ledger"])


@router.get("", response_model=List[StockLogOut])
def list_stock_logs(
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
    medicine_id: Optional[int] = Query(None),
    change_type: Optional[StockChangeType] = Query(None),
    limit: int = Query(500, ge=1, le=2000),
):
    q = db.query(StockLog).options(joinedload(StockLog.medicine))
    if medicine_id:
        q = q.filter(StockLog.medicine_id == medicine_id)
    if change_type:
        q = q.filter(StockLog.change_type == change_type)
    return q.order_by(StockLog.created_at.desc(), StockLog.id.desc()).limit(limit).all()
