from decimal import Decimal
from typing import Generic, List, TypeVar
from pydantic import BaseModel

from shopledger.services.balance import PaymentStatus

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    total_pages: int


# --- Balance Calculator output ---
class BalanceRead(BaseModel):
    gross_amount: Decimal
    returned_amount: Decimal
    net_amount: Decimal
    paid_amount: Decimal
    total_refunded: Decimal
    balance: Decimal
    status: PaymentStatus
    amount_due: Decimal
    credit_amount: Decimal

    class Config:
        from_attributes = True
