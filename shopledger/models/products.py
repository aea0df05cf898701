# shopledger/models/products.py
from sqlalchemy import Column, Integer, String, Numeric, DateTime, CheckConstraint
from sqlalchemy.sql import func

from shopledger.core.config import settings
from shopledger.database import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint("damaged_quantity >= 0", name="ck_products_damaged_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    description = Column(String, nullable=True)
    sku = Column(String, index=True, nullable=True)  # not unique: several sizes can share one code

    price = Column(Numeric(12, 2), nullable=False)                # Sale price
    purchase_price = Column(Numeric(12, 2), default=0, nullable=False)  # Last purchase cost

    # On hand. Written only by services/stock.py
    quantity = Column(Integer, default=0, nullable=False)
    damaged_quantity = Column(Integer, default=0, nullable=False)
    low_stock_threshold = Column(Integer, default=settings.DEFAULT_LOW_STOCK_THRESHOLD, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
