# FILE: app/services/pdf_report.py
from __future__ import annotations
from io import BytesIO
from datetime import datetime, date
from typing import Iterable, Sequence, Any

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from reportlab.lib.units import mm
from reportlab.lib import colors

from app.core.config import settings
from app.models.report import Report


def _fmt_date(d: Any) -> str:
    if not d:
        return ""
    if isinstance(d, (datetime, date)):
        return d.strftime("%d-%m-%Y")
    return str(d)


def _fmt_dt(dt: Any) -> str:
    if not dt:
        return ""
    if isinstance(dt, datetime):
        return dt.strftime("%d-%m-%Y %H:%M")
    return str(dt)


def _money(x: Any) -> str:
    return f"{float(x or 0):,.2f}"


def _new_canvas() -> tuple[canvas.Canvas, BytesIO]:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    return c, buf


def _draw_header(c: canvas.Canvas,
                 main_title: str,
                 sub_title: str = "") -> float:
    w, h = A4
    x = 18 * mm
    y = h - 20 * mm

    c.setFont("Helvetica-Bold", 14)
    c.drawString(x, y, settings.PROJECT_NAME)

    y -= 7 * mm
    c.setFont("Helvetica-Bold", 12)
    c.drawString(x, y, main_title)

    if sub_title:
        y -= 5 * mm
        c.setFont("Helvetica", 10)
        c.drawString(x, y, sub_title)

    y -= 4 * mm
    c.setStrokeColor(colors.grey)
    c.setLineWidth(0.6)
    c.line(x, y, w - x, y)
    y -= 6 * mm
    return y


def _table_head(c: canvas.Canvas, y: float, headers: Sequence[str], col_points: Sequence[float]) -> float:
    x0 = 18 * mm
    c.setFont("Helvetica-Bold", 9)
    for i, htxt in enumerate(headers):
        c.drawString(x0 + sum(col_points[:i]), y, htxt)
    y -= 4 * mm
    c.setLineWidth(0.4)
    c.line(x0, y, x0 + sum(col_points), y)
    y -= 5 * mm
    c.setFont("Helvetica", 9)
    return y


def _table(
    c: canvas.Canvas,
    y: float,
    headers: Sequence[str],
    rows: Iterable[Sequence[str]],
    col_widths_mm: Sequence[float],
) -> float:
    """Simple generic table, repeats the header on each new page."""
    x0 = 18 * mm
    col_points = [w * mm for w in col_widths_mm]

    y = _table_head(c, y, headers, col_points)
    for row in rows:
        if y < 25 * mm:
            c.showPage()
            y = _draw_header(c, "Continued", "")
            y -= 4 * mm
            y = _table_head(c, y, headers, col_points)

        for i, cell in enumerate(row):
            c.drawString(x0 + sum(col_points[:i]), y, (cell or "")[:40])
        y -= 4 * mm

    return y


def _lines(c: canvas.Canvas, y: float, lines: Iterable[str]) -> float:
    x = 18 * mm
    c.setFont("Helvetica", 9)
    for line in lines:
        if y < 25 * mm:
            c.showPage()
            y = _draw_header(c, "Continued", "")
            c.setFont("Helvetica", 9)
        c.drawString(x, y, line[:110])
        y -= 4 * mm
    return y


def build_report_pdf(report: Report) -> BytesIO:
    """Profitability report: summary block, per-medicine table, per-category table."""
    c, buf = _new_canvas()
    y = _draw_header(
        c, report.title,
        f"{_fmt_date(report.period_start)} to {_fmt_date(report.period_end)}"
        f"  |  generated {_fmt_dt(report.generated_at)}")

    t = report.totals or {}
    s = report.executive_summary or {}
    y = _lines(c, y, [
        f"Overall performance : {s.get('overall_performance', '')}",
        f"Revenue : {_money(t.get('total_revenue'))}    Buying cost : {_money(t.get('total_buying_cost'))}"
        f"    Profit : {_money(t.get('total_profit'))}    Margin : {t.get('gross_margin', 0):.2f}%",
        f"Sold qty : {t.get('total_sold_qty', 0)}    Profitable : {t.get('profitable_count', 0)}"
        f"    Loss : {t.get('loss_count', 0)}    Break-even : {t.get('break_even_count', 0)}",
    ])
    y -= 2 * mm
    y = _lines(c, y, [f"- {s_}" for s_ in s.get("key_insights", [])])
    y -= 4 * mm

    y = _table(
        c, y,
        ["S.No", "Medicine", "Sold", "Revenue", "Cost", "Profit", "Margin %", "Tier"],
        [[
            str(idx),
            r.get("name", ""),
            str(r.get("sold_qty", 0)),
            _money(r.get("sold_revenue")),
            _money(r.get("buying_cost")),
            _money(r.get("profit")),
            f"{r.get('profit_margin', 0):.2f}",
            r.get("performance", ""),
        ] for idx, r in enumerate(report.by_medicine or [], start=1)],
        [10, 55, 15, 22, 22, 22, 18, 18],
    )
    y -= 6 * mm

    _table(
        c, y,
        ["Category", "Medicines", "Sold", "Revenue", "Cost", "Profit", "Margin %"],
        [[
            cat.get("name", ""),
            str(cat.get("medicine_count", 0)),
            str(cat.get("sold_qty", 0)),
            _money(cat.get("sold_revenue")),
            _money(cat.get("buying_cost")),
            _money(cat.get("profit")),
            f"{cat.get('profit_margin', 0):.2f}",
        ] for cat in (report.by_category or [])],
        [50, 18, 15, 25, 25, 25, 20],
    )

    c.showPage()
    c.save()
    buf.seek(0)
    return buf
