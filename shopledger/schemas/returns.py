# shopledger/schemas/returns.py

from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime


class ReturnItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=0)  # Zero lines are ignored
    # Empty = the price the item was sold at
    price: Optional[Decimal] = Field(None, gt=0)


class ReturnCreate(BaseModel):
    sale_id: int
    items: List[ReturnItemCreate] = Field(..., min_length=1)
    reason: Optional[str] = None
    remove_from_stock: bool = False


class RefundCreate(BaseModel):
    # Empty = the full refundable amount
    amount: Optional[Decimal] = Field(None, gt=0)


class ReturnItemRead(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    price: Decimal
    subtotal: Decimal


class ReturnRead(BaseModel):
    id: int
    return_number: str
    sale_id: int
    bill_number: Optional[str] = None
    total_amount: Decimal
    reason: Optional[str] = None
    remove_from_stock: bool
    refund_amount: Decimal
    refund_paid: bool
    refund_date: Optional[datetime] = None
    return_date: datetime
    items: List[ReturnItemRead] = []
