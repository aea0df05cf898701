# shopledger/services/sales.py
"""
Sale engine: create, edit and delete sales as single transactions.

Stock moves only through services/stock.py; money figures that depend on
returns or refunds come from services/balance.py.
"""
import logging
from collections import defaultdict
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from shopledger.database import atomic
from shopledger.errors import NotFound, RefundExceedsCeiling, ValidationError
from shopledger.models import (
    Contact, MovementType, RefundState, Sale, SaleItem, SaleReturn, SaleReturnItem
)
from shopledger.schemas.filters import ListFilter, SaleFilter
from shopledger.schemas.sales import SaleCreate, SaleDetail, SaleUpdate
from shopledger.services import stock, views
from shopledger.services.balance import (
    PaymentStatus, compute_balance, returned_quantities, total_refunded
)
from shopledger.utils import folios
from shopledger.utils.dates import business_datetime
from shopledger.utils.money import D, ZERO, line_total, money_sum
from shopledger.utils.pagination import filter_dates, paginate, slice_page

logger = logging.getLogger(__name__)


# -----------------------------
# Helpers
# -----------------------------
def _reference(sale: Sale) -> str:
    return f"Sale #{sale.bill_number}"


def _check_contact(db: Session, contact_id: Optional[int]) -> Optional[int]:
    if contact_id is None:
        return None
    if not db.query(Contact.id).filter(Contact.id == contact_id).first():
        raise NotFound("Contact", contact_id)
    return contact_id


def _totals(sale_in: SaleCreate) -> Tuple:
    original = money_sum(line_total(i.price, i.quantity) for i in sale_in.items)
    discount = D(sale_in.discount)
    if discount > original:
        raise ValidationError(f"Discount {discount} is larger than the sale subtotal {original}")
    return original, discount


def _add_items(db: Session, sale: Sale, sale_in: SaleCreate) -> None:
    # Request order: the first product short on stock is the one reported
    for item_in in sale_in.items:
        product = stock.reserve(
            db, item_in.product_id, item_in.quantity,
            MovementType.SALE_OUT, reference=_reference(sale),
        )
        sale.items.append(SaleItem(
            product_id=product.id,
            quantity=item_in.quantity,
            price=D(item_in.price),
            purchase_price=D(product.purchase_price),
        ))


def _release_items(db: Session, sale: Sale) -> None:
    for item in sale.items:
        stock.release(
            db, item.product_id, item.quantity,
            MovementType.SALE_REVERSAL, reference=_reference(sale),
        )


def _sale_query(db: Session):
    return db.query(Sale).options(
        joinedload(Sale.contact),
        joinedload(Sale.items).joinedload(SaleItem.product),
        joinedload(Sale.returns).joinedload(SaleReturn.items).joinedload(SaleReturnItem.product),
    )


# -----------------------------
# Reads
# -----------------------------
def lock_sale(db: Session, sale_id: int) -> None:
    """
    Takes the write lock on a sale before anything of it is read.

    The UPDATE holds the row lock (the database write lock on SQLite) until the
    transaction ends, so a second writer of the same sale waits and then reads
    every return and refund the first one committed.
    """
    touched = (
        db.query(Sale)
        .filter(Sale.id == sale_id)
        .update({Sale.updated_at: func.now()}, synchronize_session=False)
    )
    if not touched:
        raise NotFound("Sale", sale_id)


def get_sale(db: Session, sale_id: int, lock: bool = False) -> Sale:
    """
    Sale, items, returns and return items from one SELECT.
    lock=True serialises writers on the sale first (see lock_sale).
    """
    query = _sale_query(db).filter(Sale.id == sale_id)
    if lock:
        lock_sale(db, sale_id)
        query = query.with_for_update(of=Sale)
    sale = query.populate_existing().first()
    if not sale:
        raise NotFound("Sale", sale_id)
    return sale


def get_sale_with_status(db: Session, sale_id: int) -> SaleDetail:
    return views.sale_detail(get_sale(db, sale_id))


def _list_query(db: Session, f: ListFilter):
    query = db.query(Sale).outerjoin(Contact, Sale.contact_id == Contact.id).options(
        joinedload(Sale.contact),
        selectinload(Sale.returns).selectinload(SaleReturn.items),
    )
    term = f.search_term
    if term:
        s = f"%{term}%"
        query = query.filter(or_(
            Sale.bill_number.ilike(s),
            Sale.description.ilike(s),
            Contact.name.ilike(s),
        ))
    return query.order_by(Sale.sale_date.desc(), Sale.id.desc())


def list_sales(db: Session, f: SaleFilter) -> Tuple[List[Sale], int]:
    query = _list_query(db, f)
    if f.contact_id is not None:
        query = query.filter(Sale.contact_id == f.contact_id)
    query = filter_dates(query, Sale.sale_date, f)
    return paginate(query, f)


def _by_status(db: Session, f: ListFilter, status: PaymentStatus):
    # Status depends on returns and refunds, so it is computed, not queried
    matches = []
    for sale in _list_query(db, f).all():
        balance = compute_balance(sale)
        if balance.status == status:
            matches.append((sale, balance))
    return slice_page(matches, f)


def pending_payments(db: Session, f: ListFilter):
    """Sales the customer still owes money on, as (sale, balance) pairs."""
    return _by_status(db, f, PaymentStatus.PAYMENT_DUE)


def credit_balances(db: Session, f: ListFilter):
    """Sales where the shop holds unrefunded credit for the customer."""
    return _by_status(db, f, PaymentStatus.CREDIT_BALANCE)


# -----------------------------
# Writes
# -----------------------------
def create_sale(db: Session, sale_in: SaleCreate) -> Sale:
    with atomic(db):
        contact_id = _check_contact(db, sale_in.contact_id)
        original, discount = _totals(sale_in)

        # 1. Bill number
        bill_number = folios.allocate_number(
            db, Sale.bill_number, folios.draw_bill_number, label="bill number"
        )

        # 2. Header
        sale = Sale(
            bill_number=bill_number,
            contact_id=contact_id,
            original_total_amount=original,
            discount=discount,
            total_amount=original - discount,
            paid_amount=D(sale_in.paid_amount),
            refund_state=RefundState.UNREFUNDED,
            refund_amount=ZERO,
            description=sale_in.description,
            sale_date=business_datetime(sale_in.sale_date),
        )
        db.add(sale)

        # 3. Lines + stock
        _add_items(db, sale, sale_in)

    logger.info(
        "Sale %s created: %d line(s), total %s, paid %s",
        sale.bill_number, len(sale_in.items), original - discount, D(sale_in.paid_amount),
    )
    return sale


def update_sale(db: Session, sale_id: int, sale_in: SaleUpdate) -> Sale:
    """Full replacement of the lines, totals, payment and contact."""
    with atomic(db):
        sale = get_sale(db, sale_id, lock=True)
        contact_id = _check_contact(db, sale_in.contact_id)
        original, discount = _totals(sale_in)

        # Lines can shrink, but not below what the customer already brought back
        requested = defaultdict(int)
        for item_in in sale_in.items:
            requested[item_in.product_id] += item_in.quantity
        for product_id, returned in returned_quantities(sale.returns).items():
            if requested.get(product_id, 0) < returned:
                raise ValidationError(
                    f"Product {product_id}: {returned} unit(s) already returned, "
                    f"the sale cannot keep fewer ({requested.get(product_id, 0)})"
                )

        paid = D(sale_in.paid_amount)
        refunded = total_refunded(sale, sale.returns)
        if paid < refunded:
            raise RefundExceedsCeiling(requested=refunded, ceiling=paid)

        # 1. Undo the old lines
        _release_items(db, sale)
        sale.items.clear()
        db.flush()

        # 2. New lines
        _add_items(db, sale, sale_in)

        # 3. Header
        sale.contact_id = contact_id
        sale.original_total_amount = original
        sale.discount = discount
        sale.paid_amount = paid
        sale.description = sale_in.description
        if sale_in.sale_date is not None:
            sale.sale_date = business_datetime(sale_in.sale_date)
        sale.total_amount = compute_balance(sale).net_amount

    logger.info("Sale %s updated: total %s, paid %s", sale.bill_number, original - discount, paid)
    return sale


def delete_sale(db: Session, sale_id: int) -> None:
    with atomic(db):
        sale = get_sale(db, sale_id, lock=True)
        bill_number = sale.bill_number

        _release_items(db, sale)

        # Undo what each return did to stock
        for ret in sale.returns:
            for item in ret.items:
                if ret.remove_from_stock:
                    stock.release(
                        db, item.product_id, item.quantity,
                        MovementType.RETURN_REVERSAL, reference=ret.return_number,
                    )
                else:
                    stock.reserve(
                        db, item.product_id, item.quantity,
                        MovementType.RETURN_REVERSAL, reference=ret.return_number,
                    )

        db.delete(sale)

    logger.info("Sale %s deleted", bill_number)
