# shopledger/models/sales.py
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shopledger.database import Base


class RefundState(str, enum.Enum):
    UNREFUNDED = "UNREFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"  # Paid return by return
    FULLY_REFUNDED = "FULLY_REFUNDED"          # Paid against the whole sale


# --- Sale header ---
class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    bill_number = Column(String(7), unique=True, index=True, nullable=False)

    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True)

    # Pre-discount subtotal, rewritten only when the sale is edited
    original_total_amount = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), default=0, nullable=False)
    # Cached net amount (after discount and returns); services/balance.py is authoritative
    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), default=0, nullable=False)

    refund_state = Column(Enum(RefundState), default=RefundState.UNREFUNDED, nullable=False)
    # Whole-sale refund only; per-return refunds live on SaleReturn
    refund_amount = Column(Numeric(12, 2), default=0, nullable=False)
    refund_date = Column(DateTime(timezone=True), nullable=True)

    description = Column(String, nullable=True)
    sale_date = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    contact = relationship("Contact", back_populates="sales")
    items = relationship(
        "SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id"
    )
    returns = relationship(
        "SaleReturn", back_populates="sale", cascade="all, delete-orphan", order_by="SaleReturn.id"
    )


# --- Sale lines ---
class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)           # Frozen at sale time
    purchase_price = Column(Numeric(12, 2), default=0)       # Cost frozen at sale time

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")
