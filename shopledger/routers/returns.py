# shopledger/routers/returns.py
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopledger.database import get_db
from shopledger.schemas.common import Page
from shopledger.schemas.filters import ReturnFilter
from shopledger.schemas.returns import RefundCreate, ReturnCreate, ReturnRead
from shopledger.services import refunds, returns as returns_service, views
from shopledger.utils.pagination import page_payload

router = APIRouter()


@router.get("/", response_model=Page[ReturnRead])
def read_returns(f: Annotated[ReturnFilter, Query()], db: Session = Depends(get_db)):
    rows, total = returns_service.list_returns(db, f)
    return page_payload([views.return_read(r) for r in rows], total, f)


@router.post("/", response_model=ReturnRead, status_code=201)
def create_return(return_in: ReturnCreate, db: Session = Depends(get_db)):
    """Goods brought back from a sale. The sale balance is updated at once."""
    ret = returns_service.create_return(db, return_in)
    return views.return_read(returns_service.get_return(db, ret.id))


@router.post("/{return_id}/pay-credit", response_model=ReturnRead)
def pay_return_credit(
    return_id: int,
    body: Optional[RefundCreate] = None,
    db: Session = Depends(get_db),
):
    refunds.pay_refund(db, return_id=return_id, amount=body.amount if body else None)
    return views.return_read(returns_service.get_return(db, return_id))
