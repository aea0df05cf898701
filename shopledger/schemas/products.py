from typing import Optional
from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import datetime

from shopledger.core.config import settings


# --- Product create / edit (input) ---
class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    sku: Optional[str] = None

    price: Decimal = Field(..., gt=0)            # Sale price
    purchase_price: Decimal = Field(Decimal("0"), ge=0)

    # Opening stock, recorded in the kardex as ADJUSTMENT_IN
    quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(settings.DEFAULT_LOW_STOCK_THRESHOLD, ge=0)


class ProductUpdate(BaseModel):
    # No quantity here: stock only moves through sales, returns, purchases and adjustments
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[Decimal] = Field(None, gt=0)
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)


class StockQuantity(BaseModel):
    quantity: int = Field(..., gt=0)


class RestoreQuantity(BaseModel):
    quantity: Optional[int] = Field(None, gt=0)  # Empty = restore everything


# --- Product read (output) ---
class ProductRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    price: Decimal
    purchase_price: Decimal
    quantity: int
    damaged_quantity: int
    low_stock_threshold: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
