# FILE: app/services/report_generator.py
from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from app.core.errors import InvalidInput
from app.models.catalog import Medicine
from app.models.report import Report, ReportType
from app.models.sales import Sale, SaleItem
from app.models.stock import StockChangeType, StockLog
from app.services.money import D, D0, as_float, money2, pct
from app.utils.timezone import end_of_day, start_of_day, utcnow

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
TOP_N = 5


# ----------------------------
# Classification
# ----------------------------
def profit_status(profit) -> str:
    p = D(profit)
    if p > 0:
        return "profit"
    if p < 0:
        return "loss"
    return "break_even"


def performance_tier(margin) -> str:
    m = D(margin)
    if m > 50:
        return "excellent"
    if m > 25:
        return "good"
    if m < 0:
        return "poor"
    return "average"


def overall_performance(gross_margin) -> str:
    m = D(gross_margin)
    if m > 50:
        return "Excellent"
    if m > 25:
        return "Good"
    if m > 0:
        return "Fair"
    return "Poor"


# ----------------------------
# Data collection
# ----------------------------
def _sales_by_medicine(db: Session, start: datetime, end: datetime) -> Dict[int, Tuple[int, Decimal]]:
    rows = db.execute(
        select(
            SaleItem.medicine_id,
            func.coalesce(func.sum(SaleItem.quantity), 0),
            func.coalesce(func.sum(SaleItem.subtotal), 0),
        )
        .join(Sale, Sale.id == SaleItem.sale_id)
        .where(Sale.sale_date >= start, Sale.sale_date <= end)
        .group_by(SaleItem.medicine_id)
    ).all()
    return {int(mid): (int(qty or 0), money2(rev)) for mid, qty, rev in rows}


def _ledger_sums(db: Session, *conditions) -> Dict[int, int]:
    rows = db.execute(
        select(StockLog.medicine_id, func.coalesce(func.sum(StockLog.quantity_change), 0))
        .where(*conditions)
        .group_by(StockLog.medicine_id)
    ).all()
    return {int(mid): int(qty or 0) for mid, qty in rows}


# ----------------------------
# Pure computation
# ----------------------------
def build_medicine_row(
    med: Medicine,
    *,
    sold_qty: int,
    sold_revenue,
    opening_stock: int = 0,
    purchased_qty: int = 0,
    closing_stock: int = 0,
) -> Dict[str, Any]:
    """
    One by_medicine entry.
    buying_cost uses the *current* stock snapshot, not stock at period end;
    opening/closing stock from the ledger are informational only.
    """
    revenue = money2(sold_revenue)
    buying_cost = money2(D(med.buying_price) * int(med.quantity_in_stock or 0))
    profit = money2(revenue - buying_cost)
    margin = pct(profit, revenue)

    return {
        "medicine_id": med.id,
        "name": med.name,
        "category_id": med.category_id,
        "category_name": med.category.name if med.category else UNCATEGORIZED,
        "buying_price": as_float(med.buying_price),
        "selling_price": as_float(med.selling_price),
        "quantity_in_stock": int(med.quantity_in_stock or 0),
        "opening_stock": opening_stock,
        "purchased_qty": purchased_qty,
        "closing_stock": closing_stock,
        "sold_qty": int(sold_qty),
        "sold_revenue": as_float(revenue),
        "buying_cost": as_float(buying_cost),
        "profit": as_float(profit),
        "profit_margin": as_float(margin),
        "status": profit_status(profit),
        "performance": performance_tier(margin),
    }


def aggregate_categories(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    groups: Dict[Optional[int], Dict[str, Any]] = {}
    for r in rows:
        g = groups.setdefault(r["category_id"], {
            "category_id": r["category_id"],
            "name": r["category_name"],
            "medicine_count": 0,
            "sold_qty": 0,
            "sold_revenue": D0,
            "buying_cost": D0,
            "profit": D0,
        })
        g["medicine_count"] += 1
        g["sold_qty"] += r["sold_qty"]
        g["sold_revenue"] += D(r["sold_revenue"])
        g["buying_cost"] += D(r["buying_cost"])
        g["profit"] += D(r["profit"])

    out = []
    for g in groups.values():
        margin = pct(g["profit"], g["sold_revenue"])
        out.append({
            **g,
            "sold_revenue": as_float(g["sold_revenue"]),
            "buying_cost": as_float(g["buying_cost"]),
            "profit": as_float(g["profit"]),
            "profit_margin": as_float(margin),
            "status": profit_status(g["profit"]),
        })
    out.sort(key=lambda c: (-c["profit"], c["name"]))
    return out


def compute_totals(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    revenue = sum((D(r["sold_revenue"]) for r in rows), D0)
    cost = sum((D(r["buying_cost"]) for r in rows), D0)
    profit = sum((D(r["profit"]) for r in rows), D0)
    return {
        "medicine_count": len(rows),
        "total_sold_qty": sum(r["sold_qty"] for r in rows),
        "total_purchased_qty": sum(r["purchased_qty"] for r in rows),
        "total_revenue": as_float(revenue),
        "total_buying_cost": as_float(cost),
        "total_profit": as_float(profit),
        "gross_margin": as_float(pct(profit, revenue)),
        "profitable_count": sum(1 for r in rows if r["status"] == "profit"),
        "loss_count": sum(1 for r in rows if r["status"] == "loss"),
        "break_even_count": sum(1 for r in rows if r["status"] == "break_even"),
    }


def _brief(r: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "medicine_id": r["medicine_id"],
        "name": r["name"],
        "profit": r["profit"],
        "profit_margin": r["profit_margin"],
        "sold_qty": r["sold_qty"],
    }


def key_insights(totals: Dict[str, Any], rows: List[Dict[str, Any]], categories: List[Dict[str, Any]]) -> List[str]:
    out: List[str] = []
    gm = totals["gross_margin"]

    if not totals["total_sold_qty"]:
        out.append("No sales were recorded in this period.")
    elif gm > 50:
        out.append(f"Excellent gross margin of {gm:.2f}% across all medicines.")
    elif gm > 25:
        out.append(f"Healthy gross margin of {gm:.2f}%.")
    elif gm >= 0:
        out.append(f"Thin gross margin of {gm:.2f}%; review pricing and stock levels.")
    else:
        out.append(f"Stock cost exceeds revenue: gross margin is {gm:.2f}%.")

    if totals["loss_count"]:
        out.append(f"{totals['loss_count']} of {totals['medicine_count']} medicines are running at a loss.")

    excellent = sum(1 for r in rows if r["performance"] == "excellent")
    if excellent:
        out.append(f"{excellent} medicines have a profit margin above 50%.")

    selling = [c for c in categories if c["sold_revenue"] > 0]
    if selling:
        best = max(selling, key=lambda c: c["profit"])
        out.append(f"Top category by profit: {best['name']} ({best['profit']:.2f}).")
    return out


def executive_summary(totals: Dict[str, Any], rows: List[Dict[str, Any]], categories: List[Dict[str, Any]]) -> Dict[str, Any]:
    profit_makers = sorted((r for r in rows if r["profit"] > 0), key=lambda r: r["profit"], reverse=True)
    loss_makers = sorted((r for r in rows if r["profit"] < 0), key=lambda r: r["profit"])
    return {
        "top_profit_makers": [_brief(r) for r in profit_makers[:TOP_N]],
        "top_loss_makers": [_brief(r) for r in loss_makers[:TOP_N]],
        "key_insights": key_insights(totals, rows, categories),
        "overall_performance": overall_performance(totals["gross_margin"]),
    }


# ----------------------------
# Entry point
# ----------------------------
def generate_report(
    db: Session,
    *,
    start_date: date | datetime | None,
    end_date: date | datetime | None,
    generated_by: Optional[str] = None,
    type: ReportType | str = ReportType.CUSTOM,
    include_zero_sales: bool = False,
) -> Report:
    """
    Build a profitability snapshot for [start_date, end_date] and persist it.
    Every call creates a new Report row; stored reports are never recomputed.
    """
    if start_date is None or end_date is None:
        raise InvalidInput("startDate and endDate are required")
    try:
        rtype = ReportType(type)
    except ValueError:
        raise InvalidInput(f"Invalid report type '{type}'")

    start = start_of_day(start_date)
    end = end_of_day(end_date)
    if end < start:
        raise InvalidInput("endDate must not be before startDate")

    sales = _sales_by_medicine(db, start, end)
    opening = _ledger_sums(db, StockLog.created_at < start)
    purchased = _ledger_sums(
        db,
        StockLog.change_type.in_([StockChangeType.PURCHASE, StockChangeType.UPDATE_PURCHASE]),
        StockLog.created_at >= start,
        StockLog.created_at <= end,
    )
    closing = _ledger_sums(db, StockLog.created_at <= end)

    q = db.query(Medicine).options(joinedload(Medicine.category))
    if not include_zero_sales:
        if not sales:
            medicines: List[Medicine] = []
        else:
            medicines = q.filter(Medicine.id.in_(list(sales))).order_by(Medicine.name, Medicine.id).all()
    else:
        medicines = q.order_by(Medicine.name, Medicine.id).all()

    rows = []
    for med in medicines:
        sold_qty, revenue = sales.get(med.id, (0, D0))
        rows.append(build_medicine_row(
            med,
            sold_qty=sold_qty,
            sold_revenue=revenue,
            opening_stock=opening.get(med.id, 0),
            purchased_qty=purchased.get(med.id, 0),
            closing_stock=closing.get(med.id, 0),
        ))

    categories = aggregate_categories(rows)
    totals = compute_totals(rows)
    summary = executive_summary(totals, rows, categories)

    report = Report(
        title=f"Report {start:%Y-%m-%d} -> {end:%Y-%m-%d}",
        type=rtype,
        period_start=start,
        period_end=end,
        generated_at=utcnow(),
        generated_by=generated_by,
        filters={"include_zero_sales": bool(include_zero_sales)},
        totals=totals,
        by_medicine=rows,
        by_category=categories,
        executive_summary=summary,
    )
    db.add(report)
    db.commit()
    db.refresh(report)

    logger.info(
        "Report %s generated for %s..%s: medicines=%d revenue=%s profit=%s",
        report.id, start.date(), end.date(), totals["medicine_count"],
        totals["total_revenue"], totals["total_profit"])
    return report
