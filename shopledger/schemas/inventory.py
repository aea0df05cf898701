from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from shopledger.models.inventory import MovementType


# Input for a manual adjustment
class AdjustmentCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., description="Positive adds stock, negative removes it")
    reason: str = Field(..., min_length=1)  # "Stock count", "Lost", "Opening stock"
    notes: Optional[str] = None


# Output for the kardex
class MovementRead(BaseModel):
    id: int
    product_id: int
    movement_type: MovementType
    qty_change: int
    qty_before: int
    qty_after: int
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
