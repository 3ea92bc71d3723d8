# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - Every test gets a fresh in-memory SQLite database (StaticPool, one
#   shared connection) with all tables created.
# - `db` is a plain session for service-level tests.
# - `client` talks to the FastAPI app with get_db overridden and a
#   bearer token already attached.
# - `make` seeds catalog rows through the services (committed).
# ---------------------------------------------------------------------

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import create_access_token, get_db
from app.db.base import Base
from app import models  # noqa: F401
from app.main import app
from app.models.catalog import Category, Customer, Supplier
from app.services.catalog import create_master, create_medicine

USER_ID = "user-1"


def dec(v) -> Decimal:
    """JSON money comes back as a string; compare as Decimal."""
    return Decimal(str(v))


# ---------- Database ----------
@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(bind=eng)
        eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, future=True)


@pytest.fixture()
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


# ---------- API ----------
@pytest.fixture()
def token() -> str:
    return create_access_token(USER_ID)


@pytest.fixture()
def client(session_factory, token):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    c = TestClient(app)
    c.headers.update({"Authorization": f"Bearer {token}"})
    try:
        yield c
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def anon_client(session_factory):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


# ---------- Seed helpers ----------
class Maker:
    def __init__(self, db):
        self.db = db

    def category(self, name="Analgesics"):
        return create_master(self.db, Category, {"name": name, "description": ""})

    def supplier(self, name="Acme Pharma"):
        return create_master(self.db, Supplier, {"name": name})

    def customer(self, name="Jane Doe"):
        return create_master(self.db, Customer, {"name": name, "phone": "0700000000"})

    def medicine(self, name="Paracetamol", *, qty=10, buying="2", selling="5",
                 category_id=None, supplier_id=None):
        return create_medicine(
            self.db,
            data={
                "name": name,
                "category_id": category_id,
                "supplier_id": supplier_id,
                "buying_price": Decimal(buying),
                "selling_price": Decimal(selling),
                "quantity_in_stock": qty,
            },
            user_id=USER_ID,
        )


@pytest.fixture()
def make(db):
    return Maker(db)
