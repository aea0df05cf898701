# shopledger/routers/sales.py
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopledger.database import get_db
from shopledger.schemas.common import Page
from shopledger.schemas.filters import ListFilter, SaleFilter
from shopledger.schemas.returns import RefundCreate, ReturnRead
from shopledger.schemas.sales import SaleCreate, SaleDetail, SaleRead, SaleUpdate
from shopledger.services import refunds, returns as returns_service, sales as sales_service, views
from shopledger.utils.pagination import page_payload

router = APIRouter()


# -----------------------------
# 1. Lists
# -----------------------------
@router.get("/", response_model=Page[SaleRead])
def read_sales(f: Annotated[SaleFilter, Query()], db: Session = Depends(get_db)):
    rows, total = sales_service.list_sales(db, f)
    return page_payload([views.sale_read(s) for s in rows], total, f)


@router.get("/pending-payments", response_model=Page[SaleRead])
def read_pending_payments(f: Annotated[ListFilter, Query()], db: Session = Depends(get_db)):
    """Sales with money still owed by the customer."""
    rows, total = sales_service.pending_payments(db, f)
    return page_payload([views.sale_read(s, b) for s, b in rows], total, f)


@router.get("/credit-balance", response_model=Page[SaleRead])
def read_credit_balances(f: Annotated[ListFilter, Query()], db: Session = Depends(get_db)):
    """Sales where the customer is owed a refund."""
    rows, total = sales_service.credit_balances(db, f)
    return page_payload([views.sale_read(s, b) for s, b in rows], total, f)


# -----------------------------
# 2. Detail
# -----------------------------
@router.get("/{sale_id}", response_model=SaleDetail)
def read_sale(sale_id: int, db: Session = Depends(get_db)):
    return sales_service.get_sale_with_status(db, sale_id)


@router.get("/{sale_id}/returns", response_model=List[ReturnRead])
def read_sale_returns(sale_id: int, db: Session = Depends(get_db)):
    return [views.return_read(r) for r in returns_service.returns_for_sale(db, sale_id)]


# -----------------------------
# 3. Writes
# -----------------------------
@router.post("/", response_model=SaleDetail, status_code=201)
def create_sale(sale_in: SaleCreate, db: Session = Depends(get_db)):
    sale = sales_service.create_sale(db, sale_in)
    return sales_service.get_sale_with_status(db, sale.id)


@router.put("/{sale_id}", response_model=SaleDetail)
def update_sale(sale_id: int, sale_in: SaleUpdate, db: Session = Depends(get_db)):
    sales_service.update_sale(db, sale_id, sale_in)
    return sales_service.get_sale_with_status(db, sale_id)


@router.delete("/{sale_id}")
def delete_sale(sale_id: int, db: Session = Depends(get_db)):
    sales_service.delete_sale(db, sale_id)
    return {"message": "Sale deleted, stock restored"}


@router.post("/{sale_id}/pay-credit", response_model=SaleDetail)
def pay_sale_credit(
    sale_id: int,
    body: Optional[RefundCreate] = None,
    db: Session = Depends(get_db),
):
    """Pays out the customer's credit on the whole sale, all of it or `amount`."""
    refunds.pay_refund(db, sale_id=sale_id, amount=body.amount if body else None)
    return sales_service.get_sale_with_status(db, sale_id)
