from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, current_user_id
from app.api.response import ok
from app.models.catalog import Category, Customer, Supplier
from app.schemas.catalog import (
    CategoryCreate, CategoryUpdate, CategoryOut,
    SupplierCreate, SupplierUpdate, SupplierOut,
    CustomerCreate, CustomerUpdate, CustomerOut,
)
from app.services.catalog import create_master, delete_master, get_or_404, update_master

router = APIRouter(tags=["Catalog"], dependencies=[Depends(current_user_id)])


# ---------- Categories ----------

@router.get("/categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return db.query(Category).order_by(Category.name.asc()).all()


@router.get("/categories/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Category, category_id)


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryCreate, db: Session = Depends(get_db)):
    return create_master(db, Category, payload.model_dump())


@router.put("/categories/{category_id}", response_model=CategoryOut)
def update_category(category_id: int, payload: CategoryUpdate, db: Session = Depends(get_db)):
    return update_master(db, Category, category_id, payload.model_dump(exclude_unset=True))


@router.delete("/categories/{category_id}")
def delete_category(category_id: int, db: Session = Depends(get_db)):
    delete_master(db, Category, category_id)
    return ok("Category deleted")


# ---------- Suppliers ----------

@router.get("/suppliers", response_model=List[SupplierOut])
def list_suppliers(db: Session = Depends(get_db)):
    return db.query(Supplier).order_by(Supplier.name.asc()).all()


@router.get("/suppliers/{supplier_id}", response_model=SupplierOut)
def get_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Supplier, supplier_id)


@router.post("/suppliers", response_model=SupplierOut, status_code=201)
def create_supplier(payload: SupplierCreate, db: Session = Depends(get_db)):
    return create_master(db, Supplier, payload.model_dump())


@router.put("/suppliers/{supplier_id}", response_model=SupplierOut)
def update_supplier(supplier_id: int, payload: SupplierUpdate, db: Session = Depends(get_db)):
    return update_master(db, Supplier, supplier_id, payload.model_dump(exclude_unset=True))


@router.delete("/suppliers/{supplier_id}")
def delete_supplier(supplier_id: int, db: Session = Depends(get_db)):
    delete_master(db, Supplier, supplier_id)
    return ok("Supplier deleted")


# ---------- Customers ----------

@router.get("/customers", response_model=List[CustomerOut])
def list_customers(db: Session = Depends(get_db)):
    return db.query(Customer).order_by(Customer.name.asc()).all()


@router.get("/customers/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Customer, customer_id)


@router.post("/customers", response_model=CustomerOut, status_code=201)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    return create_master(db, Customer, payload.model_dump())


@router.put("/customers/{customer_id}", response_model=CustomerOut)
def update_customer(customer_id: int, payload: CustomerUpdate, db: Session = Depends(get_db)):
    return update_master(db, Customer, customer_id, payload.model_dump(exclude_unset=True))


@router.delete("/customers/{customer_id}")
def delete_customer(customer_id: int, db: Session = Depends(get_db)):
    delete_master(db, Customer, customer_id)
    return ok("Customer deleted")
