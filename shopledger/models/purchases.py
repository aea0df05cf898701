# shopledger/models/purchases.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shopledger.database import Base


class BulkPurchase(Base):
    __tablename__ = "bulk_purchases"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String, unique=True, index=True, nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False)  # Vendor

    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), default=0, nullable=False)

    purchase_date = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    contact = relationship("Contact", back_populates="purchases")
    items = relationship(
        "BulkPurchaseItem", back_populates="purchase", cascade="all, delete-orphan",
        order_by="BulkPurchaseItem.id",
    )


class BulkPurchaseItem(Base):
    __tablename__ = "bulk_purchase_items"

    id = Column(Integer, primary_key=True, index=True)
    bulk_purchase_id = Column(Integer, ForeignKey("bulk_purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    purchase_price = Column(Numeric(12, 2), nullable=False)

    purchase = relationship("BulkPurchase", back_populates="items")
    product = relationship("Product")
