# tests/test_catalog_api.py
import pytest

from tests.conftest import dec


def test_health(anon_client):
    r = anon_client.get("/")
    assert r.status_code == 200
    assert "running" in r.json()["message"]


def test_missing_token_is_rejected(anon_client):
    r = anon_client.get("/api/medicines")
    assert r.status_code == 401
    assert r.json() == {"message": "Missing token"}

    r = anon_client.get("/api/categories")
    assert r.status_code == 401


def test_bad_token_is_rejected(anon_client):
    r = anon_client.get("/api/sales", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json() == {"message": "Invalid token"}


@pytest.mark.parametrize("path, payload, changed", [
    ("/api/categories", {"name": "Antibiotics", "description": "Rx only"}, {"description": "OTC"}),
    ("/api/suppliers", {"name": "Acme", "contact_person": "Ann"}, {"phone": "555-0101"}),
    ("/api/customers", {"name": "Jane", "email": "jane@example.com"}, {"address": "1 Main St"}),
])
def test_master_crud(client, path, payload, changed):
    r = client.post(path, json=payload)
    assert r.status_code == 201, r.text
    obj = r.json()
    assert obj["name"] == payload["name"]

    assert [o["id"] for o in client.get(path).json()] == [obj["id"]]
    assert client.get(f"{path}/{obj['id']}").json()["name"] == payload["name"]

    r = client.put(f"{path}/{obj['id']}", json=changed)
    assert r.status_code == 200
    for k, v in changed.items():
        assert r.json()[k] == v

    r = client.delete(f"{path}/{obj['id']}")
    assert r.status_code == 200
    assert client.get(f"{path}/{obj['id']}").status_code == 404
    assert client.delete(f"{path}/{obj['id']}").status_code == 404


def test_blank_name_is_rejected(client):
    r = client.post("/api/customers", json={"name": "   "})
    assert r.status_code == 400
    assert "name" in r.json()["message"]


def test_referenced_masters_cannot_be_deleted(client, make):
    cat = make.category()
    sup = make.supplier()
    make.medicine(qty=0, category_id=cat.id, supplier_id=sup.id)

    r = client.delete(f"/api/categories/{cat.id}")
    assert r.status_code == 400
    assert r.json() == {"message": "Category is in use and cannot be deleted"}
    assert client.delete(f"/api/suppliers/{sup.id}").status_code == 400


def test_medicine_create_books_opening_stock(client, make):
    cat = make.category()
    r = client.post("/api/medicines", json={
        "name": "Cetirizine",
        "category_id": cat.id,
        "buying_price": "1.20",
        "selling_price": "2.50",
        "quantity_in_stock": 40,
        "expiry_date": "2027-06-30",
    })
    assert r.status_code == 201, r.text
    med = r.json()
    assert med["quantity_in_stock"] == 40
    assert dec(med["selling_price"]) == dec("2.50")
    assert med["expiry_date"] == "2027-06-30"

    logs = client.get("/api/stock-logs", params={"medicine_id": med["id"]}).json()
    assert len(logs) == 1
    assert logs[0]["change_type"] == "adjustment"
    assert logs[0]["quantity_change"] == 40
    assert logs[0]["medicine_name"] == "Cetirizine"
    assert logs[0]["user_id"] == "user-1"


def test_medicine_create_validation(client):
    base = {"name": "Cetirizine", "buying_price": "1", "selling_price": "2"}
    assert client.post("/api/medicines", json={**base, "quantity_in_stock": -1}).status_code == 400
    assert client.post("/api/medicines", json={**base, "buying_price": "-1"}).status_code == 400

    r = client.post("/api/medicines", json={**base, "category_id": 999})
    assert r.status_code == 404
    assert r.json() == {"message": "Category not found"}


def test_medicine_update_cannot_touch_stock(client, make):
    med = make.medicine(qty=10)

    r = client.put(f"/api/medicines/{med.id}", json={"selling_price": "6", "quantity_in_stock": 99})
    assert r.status_code == 200, r.text
    assert r.json()["quantity_in_stock"] == 10
    assert dec(r.json()["selling_price"]) == dec("6")


def test_medicine_list_filters(client, make):
    cat = make.category()
    sup = make.supplier()
    make.medicine("Paracetamol 500", qty=50, category_id=cat.id)
    low = make.medicine("Ibuprofen 200", qty=3, supplier_id=sup.id)
    make.medicine("Paracetamol Syrup", qty=9)

    names = lambda r: [m["name"] for m in r.json()]

    assert names(client.get("/api/medicines", params={"q": "paracetamol"})) == [
        "Paracetamol 500", "Paracetamol Syrup"]
    assert names(client.get("/api/medicines", params={"category_id": cat.id})) == ["Paracetamol 500"]
    assert names(client.get("/api/medicines", params={"supplier_id": sup.id})) == [low.name]
    assert names(client.get("/api/medicines", params={"low_stock": True})) == [
        "Ibuprofen 200", "Paracetamol Syrup"]


def test_medicine_delete_guard(client, make):
    fresh = make.medicine("Fresh", qty=0)
    stocked = make.medicine("Stocked", qty=5)

    r = client.delete(f"/api/medicines/{stocked.id}")
    assert r.status_code == 400
    assert "cannot be deleted" in r.json()["message"]

    assert client.delete(f"/api/medicines/{fresh.id}").json() == {"message": "Medicine deleted"}
    assert client.get(f"/api/medicines/{fresh.id}").status_code == 404


def test_adjust_stock_endpoint(client, make):
    med = make.medicine(qty=10)

    r = client.post(f"/api/medicines/{med.id}/stock", json={"quantity_change": -3})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["stock"] == 7
    assert body["medicine_id"] == med.id

    r = client.post(f"/api/medicines/{med.id}/stock", json={"quantity_change": -8})
    assert r.status_code == 400
    assert r.json()["message"].startswith("Insufficient stock for Paracetamol")

    assert client.post(f"/api/medicines/{med.id}/stock", json={"quantity_change": 0}).status_code == 400
    assert client.post(
        f"/api/medicines/{med.id}/stock",
        json={"quantity_change": 1, "change_type": "gift"}).status_code == 400
    assert client.post("/api/medicines/999/stock", json={"quantity_change": 1}).status_code == 404

    logs = client.get("/api/stock-logs", params={"medicine_id": med.id}).json()
    assert [l["quantity_change"] for l in logs] == [-3, 10]


def test_stock_log_filters_and_limit(client, make):
    med = make.medicine(qty=10)
    for _ in range(3):
        client.post(f"/api/medicines/{med.id}/stock", json={"quantity_change": 1, "change_type": "purchase"})

    purchases = client.get("/api/stock-logs", params={"change_type": "purchase"}).json()
    assert len(purchases) == 3
    assert len(client.get("/api/stock-logs", params={"limit": 2}).json()) == 2
    assert client.get("/api/stock-logs", params={"limit": 0}).status_code == 400
    assert client.get("/api/stock-logs", params={"limit": 2001}).status_code == 400
