# shopledger/models/inventory.py
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, Enum, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shopledger.database import Base


class MovementType(str, enum.Enum):
    PURCHASE_IN = "PURCHASE_IN"              # Bulk purchase received
    PURCHASE_REVERSAL = "PURCHASE_REVERSAL"  # Purchase edited / deleted
    SALE_OUT = "SALE_OUT"                    # Sold
    SALE_REVERSAL = "SALE_REVERSAL"          # Sale edited / deleted
    RETURN_IN = "RETURN_IN"                  # Returned goods back on the shelf
    RETURN_DISCARD = "RETURN_DISCARD"        # Returned goods written off
    RETURN_REVERSAL = "RETURN_REVERSAL"      # Sale deleted, return undone
    DAMAGE_OUT = "DAMAGE_OUT"
    DAMAGE_RESTORE = "DAMAGE_RESTORE"
    ADJUSTMENT_IN = "ADJUSTMENT_IN"          # Manual correction (+) / initial stock
    ADJUSTMENT_OUT = "ADJUSTMENT_OUT"        # Manual correction (-)


class InventoryMovement(Base):
    """Kardex: one row per stock change, with the quantity before and after."""
    __tablename__ = "inventory_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    movement_type = Column(Enum(MovementType), nullable=False)
    qty_change = Column(Integer, nullable=False)  # +10 or -5
    qty_before = Column(Integer, nullable=False)
    qty_after = Column(Integer, nullable=False)

    reference = Column(String, nullable=True)  # Bill number, return number, invoice...
    notes = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    product = relationship("Product")
