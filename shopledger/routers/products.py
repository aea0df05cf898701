# shopledger/routers/products.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopledger.crud import products as crud
from shopledger.database import atomic, get_db
from shopledger.schemas.common import Page
from shopledger.schemas.filters import ProductFilter
from shopledger.schemas.products import (
    ProductCreate, ProductRead, ProductUpdate, RestoreQuantity, StockQuantity
)
from shopledger.services import stock
from shopledger.utils.pagination import page_payload

router = APIRouter()


def _page(rows, total, f: ProductFilter):
    return page_payload([ProductRead.model_validate(p) for p in rows], total, f)


# -----------------------------
# 1. Lists
# -----------------------------
@router.get("/", response_model=Page[ProductRead])
def read_products(f: Annotated[ProductFilter, Query()], db: Session = Depends(get_db)):
    rows, total = crud.get_products(db, f)
    return _page(rows, total, f)


@router.get("/low-stock", response_model=Page[ProductRead])
def read_low_stock(f: Annotated[ProductFilter, Query()], db: Session = Depends(get_db)):
    """Products at or below their low stock threshold."""
    rows, total = crud.get_low_stock_products(db, f)
    return _page(rows, total, f)


@router.get("/damaged", response_model=Page[ProductRead])
def read_damaged(f: Annotated[ProductFilter, Query()], db: Session = Depends(get_db)):
    rows, total = crud.get_damaged_products(db, f)
    return _page(rows, total, f)


# -----------------------------
# 2. CRUD
# -----------------------------
@router.get("/{product_id}", response_model=ProductRead)
def read_product(product_id: int, db: Session = Depends(get_db)):
    return crud.get_product(db, product_id)


@router.post("/", response_model=ProductRead, status_code=201)
def create_product(product_in: ProductCreate, db: Session = Depends(get_db)):
    return crud.create_product(db, product_in)


@router.put("/{product_id}", response_model=ProductRead)
def update_product(product_id: int, product_in: ProductUpdate, db: Session = Depends(get_db)):
    return crud.update_product(db, product_id, product_in)


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    crud.delete_product(db, product_id)
    return {"message": "Product deleted"}


# -----------------------------
# 3. Damaged goods
# -----------------------------
@router.post("/{product_id}/damage", response_model=ProductRead)
def mark_damaged(product_id: int, body: StockQuantity, db: Session = Depends(get_db)):
    with atomic(db):
        product = stock.mark_damaged(db, product_id, body.quantity)
    return product


@router.post("/{product_id}/restore", response_model=ProductRead)
def restore_damaged(product_id: int, body: RestoreQuantity, db: Session = Depends(get_db)):
    with atomic(db):
        product = stock.restore_damaged(db, product_id, body.quantity)
    return product
