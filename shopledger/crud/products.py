import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from shopledger.database import atomic
from shopledger.errors import Conflict, NotFound
from shopledger.models import BulkPurchaseItem, MovementType, Product, SaleItem, SaleReturnItem
from shopledger.schemas.filters import ProductFilter
from shopledger.schemas.products import ProductCreate, ProductUpdate
from shopledger.services import stock
from shopledger.utils.money import D
from shopledger.utils.pagination import paginate

logger = logging.getLogger(__name__)


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFound("Product", product_id)
    return product


def _search(query, f: ProductFilter):
    term = f.search_term
    if term:
        s = f"%{term}%"
        query = query.filter(or_(Product.name.ilike(s), Product.sku.ilike(s), Product.description.ilike(s)))
    return query


def get_products(db: Session, f: ProductFilter):
    return paginate(_search(db.query(Product), f).order_by(Product.name), f)


def get_low_stock_products(db: Session, f: ProductFilter):
    query = db.query(Product).filter(Product.quantity <= Product.low_stock_threshold)
    return paginate(_search(query, f).order_by(Product.quantity, Product.name), f)


def get_damaged_products(db: Session, f: ProductFilter):
    query = db.query(Product).filter(Product.damaged_quantity > 0)
    return paginate(_search(query, f).order_by(Product.damaged_quantity.desc(), Product.name), f)


def _check_name(db: Session, name: str, product_id: int = None):
    query = db.query(Product.id).filter(Product.name == name)
    if product_id is not None:
        query = query.filter(Product.id != product_id)
    if query.first():
        raise Conflict(f"A product named '{name}' already exists")


def create_product(db: Session, product_in: ProductCreate) -> Product:
    with atomic(db):
        _check_name(db, product_in.name)
        product = Product(
            name=product_in.name,
            description=product_in.description,
            sku=product_in.sku,
            price=D(product_in.price),
            purchase_price=D(product_in.purchase_price),
            quantity=0,
            damaged_quantity=0,
            low_stock_threshold=product_in.low_stock_threshold,
        )
        db.add(product)
        db.flush()  # id needed by the kardex row

        # Opening stock goes through the kardex like any other movement
        if product_in.quantity:
            stock.release(
                db, product.id, product_in.quantity,
                MovementType.ADJUSTMENT_IN, reference="Opening stock",
            )

    logger.info("Product %s (%s) created with %d unit(s)", product.id, product.name, product.quantity)
    return product


def update_product(db: Session, product_id: int, product_in: ProductUpdate) -> Product:
    with atomic(db):
        product = get_product(db, product_id)
        data = product_in.model_dump(exclude_unset=True)
        if data.get("name"):
            _check_name(db, data["name"], product_id)
        for field, value in data.items():
            if value is None:
                continue
            setattr(product, field, value)
    return product


def delete_product(db: Session, product_id: int) -> None:
    with atomic(db):
        product = get_product(db, product_id)
        for model in (SaleItem, SaleReturnItem, BulkPurchaseItem):
            if db.query(model.id).filter(model.product_id == product_id).first():
                raise Conflict(f"Product {product.name} is used in sales, returns or purchases")
        db.delete(product)

    logger.info("Product %s deleted", product_id)
