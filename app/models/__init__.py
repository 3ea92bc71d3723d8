# app/models/__init__.py
from .catalog import Category, Supplier, Customer, Medicine
from .stock import StockLog, StockChangeType
from .sales import (
    Sale,
    SaleItem,
    SaleType,
    Debt,
    DebtStatus,
    Payment,
    PaymentType,
    PaymentMethod,
)
from .purchase import Purchase, PurchaseItem, PurchaseStatus
from .report import Report, ReportType

__all__ = [
    "Category",
    "Supplier",
    "Customer",
    "Medicine",
    "StockLog",
    "StockChangeType",
    "Sale",
    "SaleItem",
    "SaleType",
    "Debt",
    "DebtStatus",
    "Payment",
    "PaymentType",
    "PaymentMethod",
    "Purchase",
    "PurchaseItem",
    "PurchaseStatus",
    "Report",
    "ReportType",
]
