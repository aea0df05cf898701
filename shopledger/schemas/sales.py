from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import date, datetime

from shopledger.models.sales import RefundState
from shopledger.schemas.common import BalanceRead
from shopledger.schemas.returns import ReturnRead

# --- Models for creation / edition ---

class SaleItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    price: Decimal = Field(..., gt=0)  # Unit price agreed at the counter


class SaleCreate(BaseModel):
    items: List[SaleItemCreate] = Field(..., min_length=1)
    discount: Decimal = Field(Decimal("0"), ge=0)
    paid_amount: Decimal = Field(Decimal("0"), ge=0)
    contact_id: Optional[int] = None
    sale_date: Optional[date] = None  # YYYY-MM-DD, defaults to today
    description: Optional[str] = None


class SaleUpdate(SaleCreate):
    pass


# --- Models for reading ---

class SaleItemRead(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    price: Decimal
    purchase_price: Decimal
    subtotal: Decimal
    returned_quantity: int = 0
    remaining_quantity: int = 0


class ConsolidatedItemRead(BaseModel):
    """Lines of the same product summed up, for invoices and the detail view."""
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    subtotal: Decimal
    returned_quantity: int = 0
    remaining_quantity: int = 0


class SaleRead(BaseModel):
    id: int
    bill_number: str
    sale_date: datetime
    contact_id: Optional[int] = None
    contact_name: Optional[str] = None
    description: Optional[str] = None

    original_total_amount: Decimal
    discount: Decimal
    total_amount: Decimal
    paid_amount: Decimal

    refund_state: RefundState
    refund_amount: Decimal
    refund_date: Optional[datetime] = None

    balance: BalanceRead


class SaleDetail(SaleRead):
    items: List[SaleItemRead] = []
    consolidated_items: List[ConsolidatedItemRead] = []
    returns: List[ReturnRead] = []
