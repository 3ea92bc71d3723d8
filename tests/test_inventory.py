# tests/test_inventory.py
from decimal import Decimal

import pytest

from app.core.errors import InvalidInput, InvalidState, NotFound
from app.models.catalog import Medicine
from app.models.sales import Payment, Sale
from app.models.stock import StockChangeType, StockLog
from app.schemas.sales import SaleItemIn
from app.services.inventory import adjust_stock, apply_stock_change, ledger_quantity
from app.services.sales import record_sale


def _logs(db, medicine_id):
    return (
        db.query(StockLog)
        .filter(StockLog.medicine_id == medicine_id)
        .order_by(StockLog.id.asc())
        .all()
    )


def test_opening_stock_is_booked_as_adjustment(db, make):
    med = make.medicine(qty=10)

    logs = _logs(db, med.id)
    assert len(logs) == 1
    assert logs[0].change_type == StockChangeType.ADJUSTMENT
    assert logs[0].quantity_change == 10
    assert med.quantity_in_stock == 10


def test_adjust_stock_moves_quantity_and_appends_log(db, make):
    med = make.medicine(qty=10)

    new_qty, log = adjust_stock(
        db, medicine_id=med.id, quantity_change=5,
        change_type=StockChangeType.PURCHASE, user_id="u-9")
    assert new_qty == 15
    assert log.change_type == StockChangeType.PURCHASE
    assert log.user_id == "u-9"

    new_qty, _ = adjust_stock(db, medicine_id=med.id, quantity_change=-15)
    assert new_qty == 0
    assert ledger_quantity(db, med.id) == 0


def test_decrement_below_zero_is_rejected_without_side_effects(db, make):
    med = make.medicine(qty=3)

    with pytest.raises(InvalidState) as ei:
        adjust_stock(db, medicine_id=med.id, quantity_change=-4)
    assert "Paracetamol" in ei.value.detail
    assert "available 3" in ei.value.detail

    db.expire_all()
    assert db.get(Medicine, med.id).quantity_in_stock == 3
    assert len(_logs(db, med.id)) == 1


@pytest.mark.parametrize("delta", [0, 1.5, "2", True])
def test_non_integer_or_zero_delta_is_invalid(db, make, delta):
    med = make.medicine(qty=3)
    with pytest.raises(InvalidInput):
        apply_stock_change(db, medicine_id=med.id, quantity_change=delta,
                           change_type=StockChangeType.ADJUSTMENT)


def test_unknown_change_type_is_invalid(db, make):
    med = make.medicine(qty=3)
    with pytest.raises(InvalidInput) as ei:
        apply_stock_change(db, medicine_id=med.id, quantity_change=1, change_type="gift")
    assert "adjustment" in ei.value.detail


def test_missing_medicine_is_not_found(db):
    with pytest.raises(NotFound):
        adjust_stock(db, medicine_id=999, quantity_change=1)


def test_stale_reader_cannot_oversell(session_factory, make):
    med = make.medicine(qty=5)

    a = session_factory()
    b = session_factory()
    try:
        # both sessions saw 5 in stock
        assert a.get(Medicine, med.id).quantity_in_stock == 5
        assert b.get(Medicine, med.id).quantity_in_stock == 5

        apply_stock_change(b, medicine_id=med.id, quantity_change=-5, change_type=StockChangeType.SALE)
        b.commit()

        with pytest.raises(InvalidState):
            apply_stock_change(a, medicine_id=med.id, quantity_change=-5, change_type=StockChangeType.SALE)
        a.rollback()

        a.expire_all()
        assert a.get(Medicine, med.id).quantity_in_stock == 0
        assert ledger_quantity(a, med.id) == 0
    finally:
        a.close()
        b.close()


def test_ledger_quantity_bounds(db, make):
    med = make.medicine(qty=4)
    _, log = adjust_stock(db, medicine_id=med.id, quantity_change=6)

    assert ledger_quantity(db, med.id, before=log.created_at) == 4
    assert ledger_quantity(db, med.id, until=log.created_at) == 10
    assert ledger_quantity(db, med.id) == db.get(Medicine, med.id).quantity_in_stock


def test_failed_debit_rolls_back_the_whole_sale(session_factory, make):
    cust = make.customer()
    m1 = make.medicine("First", qty=5)
    m2 = make.medicine("Second", qty=5)

    a = session_factory()
    b = session_factory()
    try:
        # session a validates against stock it read before b drained m2
        a.get(Medicine, m1.id)
        a.get(Medicine, m2.id)
        apply_stock_change(b, medicine_id=m2.id, quantity_change=-5, change_type=StockChangeType.SALE)
        b.commit()

        with pytest.raises(InvalidState):
            record_sale(
                a, customer_id=cust.id, user_id="u-1",
                items=[SaleItemIn(medicine_id=m1.id, quantity=2),
                       SaleItemIn(medicine_id=m2.id, quantity=2)],
                amount_paid=Decimal("5"))

        a.expire_all()
        assert a.query(Sale).count() == 0
        assert a.query(Payment).count() == 0
        assert a.get(Medicine, m1.id).quantity_in_stock == 5
        assert ledger_quantity(a, m1.id) == 5
        assert [l.quantity_change for l in _logs(a, m1.id)] == [5]
    finally:
        a.close()
        b.close()
