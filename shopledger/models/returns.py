# shopledger/models/returns.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shopledger.database import Base


class SaleReturn(Base):
    """Append-only: after creation only the refund_* fields change."""
    __tablename__ = "sale_returns"

    id = Column(Integer, primary_key=True, index=True)
    return_number = Column(String, unique=True, index=True, nullable=False)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)

    total_amount = Column(Numeric(12, 2), nullable=False)
    reason = Column(String, nullable=True)  # e.g. Defective, wrong size
    # True: goods written off. False: goods put back on the shelf
    remove_from_stock = Column(Boolean, default=False, nullable=False)

    refund_amount = Column(Numeric(12, 2), default=0, nullable=False)
    refund_paid = Column(Boolean, default=False, nullable=False)
    refund_date = Column(DateTime(timezone=True), nullable=True)

    return_date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    sale = relationship("Sale", back_populates="returns")
    items = relationship(
        "SaleReturnItem", back_populates="parent_return", cascade="all, delete-orphan",
        order_by="SaleReturnItem.id",
    )


class SaleReturnItem(Base):
    __tablename__ = "sale_return_items"

    id = Column(Integer, primary_key=True, index=True)
    return_id = Column(Integer, ForeignKey("sale_returns.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # Frozen at return time

    parent_return = relationship("SaleReturn", back_populates="items")
    product = relationship("Product")
