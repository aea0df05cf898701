from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import date, datetime


class PurchaseItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    purchase_price: Decimal = Field(..., gt=0)


class PurchaseCreate(BaseModel):
    contact_id: int  # Vendor
    items: List[PurchaseItemCreate] = Field(..., min_length=1)
    paid_amount: Decimal = Field(Decimal("0"), ge=0)
    invoice_number: Optional[str] = None  # Generated when empty
    purchase_date: Optional[date] = None


class PurchaseUpdate(PurchaseCreate):
    pass


class PurchaseItemRead(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    purchase_price: Decimal
    subtotal: Decimal


class PurchaseRead(BaseModel):
    id: int
    invoice_number: str
    contact_id: int
    contact_name: Optional[str] = None
    total_amount: Decimal
    paid_amount: Decimal
    amount_due: Decimal
    purchase_date: datetime
    items: List[PurchaseItemRead] = []
