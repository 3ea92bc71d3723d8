# app/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """All pharmacy tables (catalog, ledger, sales, debts, reports) inherit from this."""
    pass
