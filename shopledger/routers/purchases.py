# shopledger/routers/purchases.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopledger.database import get_db
from shopledger.schemas.common import Page
from shopledger.schemas.filters import ListFilter, PurchaseFilter
from shopledger.schemas.purchases import PurchaseCreate, PurchaseRead, PurchaseUpdate
from shopledger.services import purchases as purchases_service, views
from shopledger.utils.pagination import page_payload

router = APIRouter()


@router.get("/", response_model=Page[PurchaseRead])
def read_purchases(f: Annotated[PurchaseFilter, Query()], db: Session = Depends(get_db)):
    rows, total = purchases_service.list_purchases(db, f)
    return page_payload([views.purchase_read(p) for p in rows], total, f)


@router.get("/pending-payments", response_model=Page[PurchaseRead])
def read_pending_purchases(f: Annotated[ListFilter, Query()], db: Session = Depends(get_db)):
    """Purchases with an amount still due to the vendor."""
    rows, total = purchases_service.pending_purchases(db, f)
    return page_payload([views.purchase_read(p) for p in rows], total, f)


@router.get("/{purchase_id}", response_model=PurchaseRead)
def read_purchase(purchase_id: int, db: Session = Depends(get_db)):
    return views.purchase_read(purchases_service.get_purchase(db, purchase_id))


@router.post("/", response_model=PurchaseRead, status_code=201)
def create_purchase(purchase_in: PurchaseCreate, db: Session = Depends(get_db)):
    purchase = purchases_service.create_purchase(db, purchase_in)
    return views.purchase_read(purchases_service.get_purchase(db, purchase.id))


@router.put("/{purchase_id}", response_model=PurchaseRead)
def update_purchase(purchase_id: int, purchase_in: PurchaseUpdate, db: Session = Depends(get_db)):
    purchases_service.update_purchase(db, purchase_id, purchase_in)
    return views.purchase_read(purchases_service.get_purchase(db, purchase_id))


@router.delete("/{purchase_id}")
def delete_purchase(purchase_id: int, db: Session = Depends(get_db)):
    purchases_service.delete_purchase(db, purchase_id)
    return {"message": "Purchase deleted, stock reversed"}
