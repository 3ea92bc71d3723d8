# tests/test_purchases.py
from tests.conftest import dec


def _setup(client, make, *, stock=0):
    sup = make.supplier()
    med = make.medicine("Amoxicillin", qty=stock, buying="3", selling="6")
    r = client.post("/api/purchases", json={
        "supplier_id": sup.id,
        "items": [
            {"medicine_id": med.id, "quantity": 5, "unit_price": "3"},
            {"medicine_id": med.id, "quantity": 2, "unit_price": "2.50"},
        ],
    })
    assert r.status_code == 201, r.text
    return sup, med, r.json()


def _stock(client, medicine_id):
    return client.get(f"/api/medicines/{medicine_id}").json()["quantity_in_stock"]


def _purchase_logs(client, medicine_id):
    return client.get(
        "/api/stock-logs",
        params={"medicine_id": medicine_id, "change_type": "update_purchase"},
    ).json()


def test_create_purchase_does_not_move_stock(client, make):
    sup, med, purchase = _setup(client, make, stock=4)

    assert purchase["status"] == "paid"
    assert purchase["user_id"] == "user-1"
    assert dec(purchase["total_amount"]) == dec("20")
    assert [dec(i["subtotal"]) for i in purchase["items"]] == [dec("15"), dec("5")]
    assert _stock(client, med.id) == 4
    assert _purchase_logs(client, med.id) == []


def test_create_purchase_validation(client, make):
    sup = make.supplier()
    med = make.medicine(qty=0)

    r = client.post("/api/purchases", json={
        "supplier_id": 999, "items": [{"medicine_id": med.id, "quantity": 1, "unit_price": "1"}]})
    assert r.status_code == 404
    assert r.json() == {"message": "Supplier not found"}

    r = client.post("/api/purchases", json={
        "supplier_id": sup.id, "items": [{"medicine_id": 999, "quantity": 1, "unit_price": "1"}]})
    assert r.status_code == 404

    r = client.post("/api/purchases", json={"supplier_id": sup.id, "items": []})
    assert r.status_code == 400

    assert client.get("/api/purchases").json() == []


def test_explicit_total_and_header_update(client, make):
    sup, med, purchase = _setup(client, make)
    other = make.supplier("Beta Labs")

    r = client.put(f"/api/purchases/{purchase['id']}", json={
        "supplier_id": other.id, "status": "pending", "total_amount": "18"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["supplier_id"] == other.id
    assert body["status"] == "pending"
    assert dec(body["total_amount"]) == dec("18")
    assert len(body["items"]) == 2

    r = client.put(f"/api/purchases/{purchase['id']}", json={
        "items": [{"medicine_id": med.id, "quantity": 1, "unit_price": "4"}]})
    body = r.json()
    assert len(body["items"]) == 1
    assert dec(body["total_amount"]) == dec("4")
    assert _stock(client, med.id) == 0

    assert client.put("/api/purchases/999", json={"status": "paid"}).status_code == 404


def test_item_update_moves_stock_by_difference(client, make):
    sup, med, purchase = _setup(client, make, stock=10)
    item = purchase["items"][0]

    r = client.put(f"/api/purchase-items/{item['id']}", json={"quantity": 8, "unit_price": "3"})
    assert r.status_code == 200, r.text
    assert r.json()["quantity"] == 8
    assert dec(r.json()["subtotal"]) == dec("24")
    assert _stock(client, med.id) == 13

    r = client.put(f"/api/purchase-items/{item['id']}", json={"quantity": 6, "unit_price": "3"})
    assert _stock(client, med.id) == 11

    # price-only edit leaves stock alone
    client.put(f"/api/purchase-items/{item['id']}", json={"quantity": 6, "unit_price": "3.20"})
    assert _stock(client, med.id) == 11

    assert sorted(l["quantity_change"] for l in _purchase_logs(client, med.id)) == [-2, 3]


def test_item_update_cannot_drive_stock_negative(client, make):
    sup, med, purchase = _setup(client, make, stock=0)
    item = purchase["items"][0]

    r = client.put(f"/api/purchase-items/{item['id']}", json={"quantity": 1, "unit_price": "3"})
    assert r.status_code == 400
    assert "Insufficient stock" in r.json()["message"]

    items = client.get("/api/purchase-items", params={"purchase_id": purchase["id"]}).json()
    assert items[0]["quantity"] == 5
    assert _stock(client, med.id) == 0


def test_item_delete_takes_quantity_back_out(client, make):
    sup, med, purchase = _setup(client, make, stock=10)
    item = purchase["items"][1]

    r = client.delete(f"/api/purchase-items/{item['id']}")
    assert r.status_code == 200
    assert r.json() == {"message": "Purchase item deleted"}
    assert _stock(client, med.id) == 8
    assert [l["quantity_change"] for l in _purchase_logs(client, med.id)] == [-2]

    items = client.get("/api/purchase-items", params={"purchase_id": purchase["id"]}).json()
    assert [i["id"] for i in items] == [purchase["items"][0]["id"]]

    assert client.delete(f"/api/purchase-items/{item['id']}").status_code == 404


def test_purchase_listing(client, make):
    sup, med, first = _setup(client, make)
    second = client.post("/api/purchases", json={
        "supplier_id": sup.id,
        "items": [{"medicine_id": med.id, "quantity": 1, "unit_price": "3"}],
        "status": "pending",
    }).json()

    assert [p["id"] for p in client.get("/api/purchases").json()] == [second["id"], first["id"]]
    assert client.get(f"/api/purchases/{first['id']}").json()["id"] == first["id"]
    assert client.get("/api/purchases/999").status_code == 404
