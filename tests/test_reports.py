# tests/test_reports.py
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from app.core.errors import InvalidInput
from app.models.report import Report
from app.schemas.sales import SaleItemIn
from app.services.report_generator import (
    generate_report,
    overall_performance,
    performance_tier,
    profit_status,
)
from app.services.sales import record_sale
from app.utils.timezone import end_of_day, start_of_day, utcnow


def _today():
    return utcnow().date()


@pytest.fixture()
def sold(db, make):
    """Medicine X: stock 10, buying 2, selling 5; 4 units sold in full today."""
    cat = make.category("Analgesics")
    cust = make.customer()
    x = make.medicine("X", qty=10, buying="2", selling="5", category_id=cat.id)
    idle = make.medicine("Idle", qty=3, buying="4", selling="9")
    record_sale(
        db, customer_id=cust.id, user_id="u-1",
        items=[SaleItemIn(medicine_id=x.id, quantity=4)],
        amount_paid=Decimal("20"))
    return x, idle


@pytest.mark.parametrize("margin, tier", [
    (Decimal("50.01"), "excellent"),
    (Decimal("50"), "good"),
    (Decimal("25.01"), "good"),
    (Decimal("25"), "average"),
    (Decimal("0"), "average"),
    (Decimal("-0.01"), "poor"),
])
def test_performance_tier(margin, tier):
    assert performance_tier(margin) == tier


def test_profit_status_and_overall():
    assert profit_status(Decimal("1")) == "profit"
    assert profit_status(Decimal("-1")) == "loss"
    assert profit_status(Decimal("0")) == "break_even"
    assert overall_performance(60) == "Excellent"
    assert overall_performance(40) == "Good"
    assert overall_performance(10) == "Fair"
    assert overall_performance(0) == "Poor"


def test_profitability_uses_current_stock_cost(db, sold):
    x, idle = sold
    report = generate_report(db, start_date=_today(), end_date=_today(), generated_by="u-1")

    assert [r["name"] for r in report.by_medicine] == ["X"]
    row = report.by_medicine[0]
    assert row["sold_qty"] == 4
    assert row["sold_revenue"] == 20.0
    assert row["quantity_in_stock"] == 6
    assert row["buying_cost"] == 12.0
    assert row["profit"] == 8.0
    assert row["profit_margin"] == 40.0
    assert row["performance"] == "good"
    assert row["status"] == "profit"
    assert row["opening_stock"] == 0
    assert row["closing_stock"] == 6

    t = report.totals
    assert t["total_buying_cost"] == 12.0
    assert t["total_profit"] == 8.0
    assert t["gross_margin"] == 40.0
    assert t["profitable_count"] == 1

    assert report.by_category[0]["name"] == "Analgesics"
    assert report.by_category[0]["profit_margin"] == 40.0
    assert report.executive_summary["overall_performance"] == "Good"
    assert report.executive_summary["top_profit_makers"][0]["name"] == "X"
    assert report.generated_by == "u-1"
    assert report.title == f"Report {_today():%Y-%m-%d} -> {_today():%Y-%m-%d}"


def test_include_zero_sales_lists_every_medicine(db, sold):
    report = generate_report(db, start_date=_today(), end_date=_today(), include_zero_sales=True)
    names = {r["name"]: r for r in report.by_medicine}
    assert set(names) == {"X", "Idle"}
    assert names["Idle"]["profit"] == -12.0
    assert names["Idle"]["status"] == "loss"
    assert names["Idle"]["category_name"] == "Uncategorized"
    assert report.totals["loss_count"] == 1


def test_zero_sales_period(db, sold):
    report = generate_report(
        db, start_date=date(2020, 1, 1), end_date=date(2020, 1, 31), include_zero_sales=True)

    assert len(report.by_medicine) == 2
    for row in report.by_medicine:
        assert row["sold_qty"] == 0
        assert row["profit"] == -row["buying_cost"]
    assert report.totals["total_sold_qty"] == 0
    assert report.executive_summary["top_profit_makers"] == []
    assert "No sales were recorded in this period." in report.executive_summary["key_insights"]

    empty = generate_report(db, start_date=date(2020, 1, 1), end_date=date(2020, 1, 31))
    assert empty.by_medicine == []
    assert empty.totals["medicine_count"] == 0


def test_every_call_stores_a_new_snapshot(db, sold):
    a = generate_report(db, start_date=_today(), end_date=_today())
    b = generate_report(db, start_date=_today(), end_date=_today())
    assert a.id != b.id
    assert db.query(Report).count() == 2


def test_day_bounds_floor_datetimes():
    assert start_of_day(datetime(2024, 5, 3, 15, 30)) == datetime(2024, 5, 3)
    assert start_of_day(date(2024, 5, 3)) == datetime(2024, 5, 3)
    assert end_of_day(datetime(2024, 5, 3, 1, 0)) == datetime.combine(date(2024, 5, 3), time.max)

    # 01:00 at UTC+5 is 20:00 the previous day in UTC
    aware = datetime(2024, 5, 3, 1, 0, tzinfo=timezone(timedelta(hours=5)))
    assert start_of_day(aware) == datetime(2024, 5, 2)


def test_datetime_range_covers_whole_days(db, sold):
    late = datetime.combine(_today(), time(23, 59, 59))
    report = generate_report(db, start_date=late, end_date=late)
    assert [r["name"] for r in report.by_medicine] == ["X"]
    assert report.totals["total_revenue"] == 20.0


def test_invalid_ranges(db):
    with pytest.raises(InvalidInput):
        generate_report(db, start_date=None, end_date=_today())
    with pytest.raises(InvalidInput):
        generate_report(db, start_date=date(2024, 2, 1), end_date=date(2024, 1, 31))
    with pytest.raises(InvalidInput):
        generate_report(db, start_date=_today(), end_date=_today(), type="yearly")


# ---------- API ----------

def test_report_endpoints_and_exports(client, sold):
    today = _today().isoformat()
    r = client.post("/api/reports", json={"startDate": today, "endDate": today, "type": "daily"})
    assert r.status_code == 201, r.text
    rep = r.json()
    assert rep["type"] == "daily"
    assert rep["generated_by"] == "user-1"
    assert rep["totals"]["total_revenue"] == 20.0

    listed = client.get("/api/reports").json()
    assert [x["id"] for x in listed] == [rep["id"]]
    assert client.get(f"/api/reports/{rep['id']}").json()["by_medicine"][0]["name"] == "X"

    x = client.get(f"/api/reports/{rep['id']}/export.xlsx")
    assert x.status_code == 200
    assert x.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    assert x.content[:2] == b"PK"

    p = client.get(f"/api/reports/{rep['id']}/export.pdf")
    assert p.status_code == 200
    assert p.headers["content-type"] == "application/pdf"
    assert p.content[:4] == b"%PDF"

    assert client.get("/api/reports/999").status_code == 404
    assert client.get("/api/reports/999/export.pdf").status_code == 404


def test_report_api_validation(client):
    r = client.post("/api/reports", json={"start_date": "2024-02-01", "end_date": "2024-01-01"})
    assert r.status_code == 400
    assert r.json() == {"message": "endDate must not be before startDate"}

    r = client.post("/api/reports", json={})
    assert r.status_code == 400
    assert r.json() == {"message": "startDate and endDate are required"}
