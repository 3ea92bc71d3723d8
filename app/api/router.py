# app/api/router.py
from fastapi import APIRouter
from app.api import (
    # Catalog
    routes_catalog,
    routes_medicines,
    routes_stock_logs,

    # Sales / money
    routes_sales,
    routes_debts,
    routes_payments,

    # Procurement
    routes_purchases,

    # Reporting
    routes_reports,
)

api_router = APIRouter()

api_router.include_router(routes_catalog.router)
api_router.include_router(routes_medicines.router)
api_router.include_router(routes_stock_logs.router)

api_router.include_router(routes_sales.router)
api_router.include_router(routes_debts.router)
api_router.include_router(routes_payments.router)

api_router.include_router(routes_purchases.router)

api_router.include_router(routes_reports.router)
