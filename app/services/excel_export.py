from __future__ import annotations

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from app.models.report import Report


def _sheet(wb: Workbook, title: str, headers, rows, *, first: bool = False):
    ws = wb.active if first else wb.create_sheet()
    ws.title = title
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for r in rows:
        ws.append(r)

    # autosize
    for col in range(1, len(headers) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 18
    return ws


def build_report_excel(fp, report: Report) -> None:
    """Three sheets: Summary, By Medicine, By Category."""
    wb = Workbook()
    totals = report.totals or {}
    summary = report.executive_summary or {}

    summary_rows = [
        ["Title", report.title],
        ["Type", report.type.value if hasattr(report.type, "value") else report.type],
        ["Period Start", report.period_start],
        ["Period End", report.period_end],
        ["Generated At", report.generated_at],
        ["Generated By", report.generated_by or ""],
        ["Overall Performance", summary.get("overall_performance", "")],
    ]
    summary_rows += [[k.replace("_", " ").title(), v] for k, v in totals.items()]
    summary_rows += [["Insight", s] for s in summary.get("key_insights", [])]
    _sheet(wb, "Summary", ["Field", "Value"], summary_rows, first=True)

    med_headers = [
        "Medicine", "Category", "Sold Qty", "Revenue", "In Stock",
        "Buying Cost", "Profit", "Margin %", "Status", "Performance",
        "Opening Stock", "Purchased Qty", "Closing Stock",
    ]
    _sheet(wb, "By Medicine", med_headers, [[
        r.get("name", ""),
        r.get("category_name", ""),
        r.get("sold_qty", 0),
        r.get("sold_revenue", 0),
        r.get("quantity_in_stock", 0),
        r.get("buying_cost", 0),
        r.get("profit", 0),
        r.get("profit_margin", 0),
        r.get("status", ""),
        r.get("performance", ""),
        r.get("opening_stock", 0),
        r.get("purchased_qty", 0),
        r.get("closing_stock", 0),
    ] for r in (report.by_medicine or [])])

    cat_headers = ["Category", "Medicines", "Sold Qty", "Revenue", "Buying Cost", "Profit", "Margin %", "Status"]
    _sheet(wb, "By Category", cat_headers, [[
        c.get("name", ""),
        c.get("medicine_count", 0),
        c.get("sold_qty", 0),
        c.get("sold_revenue", 0),
        c.get("buying_cost", 0),
        c.get("profit", 0),
        c.get("profit_margin", 0),
        c.get("status", ""),
    ] for c in (report.by_category or [])])

    wb.save(fp)
