# FILE: app/services/inventory.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from app.core.errors import InvalidInput, InvalidState, NotFound
from app.models.catalog import Medicine
from app.models.stock import StockLog, StockChangeType
from app.utils.timezone import utcnow

logger = logging.getLogger(__name__)


def _change_type(value) -> StockChangeType:
    if isinstance(value, StockChangeType):
        return value
    try:
        return StockChangeType(str(value))
    except ValueError:
        allowed = ", ".join(t.value for t in StockChangeType)
        raise InvalidInput(f"Invalid change_type '{value}'. Use one of: {allowed}")


def apply_stock_change(
    db: Session,
    *,
    medicine_id: int,
    quantity_change: int,
    change_type,
    user_id: Optional[str] = None,
) -> Tuple[int, StockLog]:
    """
    Move stock for one medicine and append the matching ledger row.

    - Single conditional UPDATE (compare-and-swap): the row is only touched
      when quantity_in_stock + delta stays >= 0, so two concurrent sales can
      never both pass against the same stale quantity.
    - Ledger row is added in the same session/transaction; the caller commits
      or rolls back both together.
    - Returns (new_quantity, stock_log). Does not commit.
    """
    ctype = _change_type(change_type)
    if isinstance(quantity_change, bool) or not isinstance(quantity_change, int):
        raise InvalidInput("quantity_change must be an integer")
    if quantity_change == 0:
        raise InvalidInput("quantity_change must be non-zero")

    res = db.execute(
        update(Medicine)
        .where(
            Medicine.id == medicine_id,
            Medicine.quantity_in_stock + quantity_change >= 0,
        )
        .values(
            quantity_in_stock=Medicine.quantity_in_stock + quantity_change,
            updated_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )

    # refresh any copy already loaded in this session
    med = db.get(Medicine, medicine_id, populate_existing=True)
    if med is None:
        raise NotFound(f"Medicine {medicine_id} not found")
    if res.rowcount == 0:
        raise InvalidState(
            f"Insufficient stock for {med.name}: available {med.quantity_in_stock}, "
            f"requested change {quantity_change}")

    log = StockLog(
        medicine_id=medicine_id,
        change_type=ctype,
        quantity_change=quantity_change,
        user_id=user_id,
        created_at=utcnow(),
    )
    db.add(log)
    db.flush()

    logger.info(
        "Stock %s medicine=%s change=%+d new_qty=%s log=%s",
        ctype.value, medicine_id, quantity_change, med.quantity_in_stock, log.id)
    return int(med.quantity_in_stock), log


def adjust_stock(
    db: Session,
    *,
    medicine_id: int,
    quantity_change: int,
    change_type=StockChangeType.ADJUSTMENT,
    user_id: Optional[str] = None,
) -> Tuple[int, StockLog]:
    """Manual stock adjustment as its own unit of work (commits)."""
    try:
        new_qty, log = apply_stock_change(
            db,
            medicine_id=medicine_id,
            quantity_change=quantity_change,
            change_type=change_type,
            user_id=user_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(log)
    return new_qty, log


def ledger_quantity(
    db: Session,
    medicine_id: int,
    *,
    before: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> int:
    """
    Stock level reconstructed from the ledger.
    before: strictly earlier entries (opening stock); until: inclusive bound.
    """
    q = select(func.coalesce(func.sum(StockLog.quantity_change), 0)).where(
        StockLog.medicine_id == medicine_id)
    if before is not None:
        q = q.where(StockLog.created_at < before)
    if until is not None:
        q = q.where(StockLog.created_at <= until)
    return int(db.execute(q).scalar_one() or 0)
