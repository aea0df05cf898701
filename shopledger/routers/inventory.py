# shopledger/routers/inventory.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopledger.database import atomic, get_db
from shopledger.schemas.inventory import AdjustmentCreate, MovementRead
from shopledger.services import stock

router = APIRouter()


@router.post("/adjust", response_model=MovementRead)
def create_adjustment(adj: AdjustmentCreate, db: Session = Depends(get_db)):
    """Manual stock correction: positive quantity adds units, negative removes them."""
    with atomic(db):
        movement = stock.adjust(db, adj.product_id, adj.quantity, reason=adj.reason, notes=adj.notes)
    return movement


@router.get("/kardex/{product_id}", response_model=List[MovementRead])
def get_kardex(
    product_id: int,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Stock movements of a product, newest first."""
    return stock.movements_for(db, product_id, limit=limit)
