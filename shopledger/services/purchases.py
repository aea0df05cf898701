# shopledger/services/purchases.py
"""Bulk purchases from vendors: stock in, amount owed to the vendor."""
import logging
from typing import List, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from shopledger.database import atomic
from shopledger.errors import Conflict, NotFound
from shopledger.models import BulkPurchase, BulkPurchaseItem, Contact, MovementType
from shopledger.schemas.filters import ListFilter, PurchaseFilter
from shopledger.schemas.purchases import PurchaseCreate, PurchaseUpdate
from shopledger.services import stock
from shopledger.utils import folios
from shopledger.utils.dates import business_datetime
from shopledger.utils.money import D, line_total, money_sum
from shopledger.utils.pagination import filter_dates, paginate

logger = logging.getLogger(__name__)


def _check_vendor(db: Session, contact_id: int) -> int:
    if not db.query(Contact.id).filter(Contact.id == contact_id).first():
        raise NotFound("Contact", contact_id)
    return contact_id


def _invoice_number(db: Session, wanted: str, current: BulkPurchase = None) -> str:
    wanted = (wanted or "").strip()
    if not wanted:
        if current is not None:
            return current.invoice_number
        return folios.allocate_number(
            db, BulkPurchase.invoice_number, folios.draw_invoice_number, label="invoice number"
        )

    clash = db.query(BulkPurchase.id).filter(BulkPurchase.invoice_number == wanted)
    if current is not None:
        clash = clash.filter(BulkPurchase.id != current.id)
    if clash.first():
        raise Conflict(f"Invoice number {wanted} already exists")
    return wanted


def _receive_items(db: Session, purchase: BulkPurchase, purchase_in: PurchaseCreate) -> None:
    for item_in in purchase_in.items:
        product = stock.release(
            db, item_in.product_id, item_in.quantity,
            MovementType.PURCHASE_IN, reference=purchase.invoice_number,
        )
        # Last purchase cost becomes the product cost
        product.purchase_price = D(item_in.purchase_price)
        purchase.items.append(BulkPurchaseItem(
            product_id=product.id,
            quantity=item_in.quantity,
            purchase_price=D(item_in.purchase_price),
        ))


def _reverse_items(db: Session, purchase: BulkPurchase) -> None:
    # Fails with InsufficientStock when the purchased units were already sold
    for item in purchase.items:
        stock.reserve(
            db, item.product_id, item.quantity,
            MovementType.PURCHASE_REVERSAL, reference=purchase.invoice_number,
        )


def _total(purchase_in: PurchaseCreate):
    return money_sum(line_total(i.purchase_price, i.quantity) for i in purchase_in.items)


# -----------------------------
# Reads
# -----------------------------
def get_purchase(db: Session, purchase_id: int) -> BulkPurchase:
    purchase = (
        db.query(BulkPurchase)
        .options(
            joinedload(BulkPurchase.contact),
            joinedload(BulkPurchase.items).joinedload(BulkPurchaseItem.product),
        )
        .filter(BulkPurchase.id == purchase_id)
        .populate_existing()
        .first()
    )
    if not purchase:
        raise NotFound("Purchase", purchase_id)
    return purchase


def _list_query(db: Session, f: ListFilter):
    query = (
        db.query(BulkPurchase)
        .join(Contact, BulkPurchase.contact_id == Contact.id)
        .options(
            joinedload(BulkPurchase.contact),
            joinedload(BulkPurchase.items).joinedload(BulkPurchaseItem.product),
        )
    )
    term = f.search_term
    if term:
        s = f"%{term}%"
        query = query.filter(or_(BulkPurchase.invoice_number.ilike(s), Contact.name.ilike(s)))
    return query.order_by(BulkPurchase.purchase_date.desc(), BulkPurchase.id.desc())


def list_purchases(db: Session, f: PurchaseFilter) -> Tuple[List[BulkPurchase], int]:
    query = _list_query(db, f)
    if f.contact_id is not None:
        query = query.filter(BulkPurchase.contact_id == f.contact_id)
    query = filter_dates(query, BulkPurchase.purchase_date, f)
    return paginate(query, f)


def pending_purchases(db: Session, f: ListFilter) -> Tuple[List[BulkPurchase], int]:
    """Purchases the shop has not fully paid yet."""
    query = _list_query(db, f).filter(BulkPurchase.total_amount > BulkPurchase.paid_amount)
    return paginate(query, f)


# -----------------------------
# Writes
# -----------------------------
def create_purchase(db: Session, purchase_in: PurchaseCreate) -> BulkPurchase:
    with atomic(db):
        contact_id = _check_vendor(db, purchase_in.contact_id)
        purchase = BulkPurchase(
            invoice_number=_invoice_number(db, purchase_in.invoice_number),
            contact_id=contact_id,
            total_amount=_total(purchase_in),
            paid_amount=D(purchase_in.paid_amount),
            purchase_date=business_datetime(purchase_in.purchase_date),
        )
        db.add(purchase)
        _receive_items(db, purchase, purchase_in)

    logger.info(
        "Purchase %s created: total %s, paid %s",
        purchase.invoice_number, purchase.total_amount, purchase.paid_amount,
    )
    return purchase


def update_purchase(db: Session, purchase_id: int, purchase_in: PurchaseUpdate) -> BulkPurchase:
    with atomic(db):
        purchase = get_purchase(db, purchase_id)
        contact_id = _check_vendor(db, purchase_in.contact_id)
        invoice_number = _invoice_number(db, purchase_in.invoice_number, current=purchase)

        _reverse_items(db, purchase)
        purchase.items.clear()
        db.flush()

        purchase.invoice_number = invoice_number
        purchase.contact_id = contact_id
        purchase.total_amount = _total(purchase_in)
        purchase.paid_amount = D(purchase_in.paid_amount)
        if purchase_in.purchase_date is not None:
            purchase.purchase_date = business_datetime(purchase_in.purchase_date)

        _receive_items(db, purchase, purchase_in)

    logger.info("Purchase %s updated: total %s", purchase.invoice_number, purchase.total_amount)
    return purchase


def delete_purchase(db: Session, purchase_id: int) -> None:
    with atomic(db):
        purchase = get_purchase(db, purchase_id)
        invoice_number = purchase.invoice_number
        _reverse_items(db, purchase)
        db.delete(purchase)

    logger.info("Purchase %s deleted", invoice_number)
