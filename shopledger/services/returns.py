# shopledger/services/returns.py
import logging
from collections import defaultdict
from typing import List, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from shopledger.database import atomic
from shopledger.errors import NotFound, OverReturn, ValidationError
from shopledger.models import MovementType, Sale, SaleReturn, SaleReturnItem
from shopledger.schemas.filters import ReturnFilter
from shopledger.schemas.returns import ReturnCreate
from shopledger.services import stock
from shopledger.services.balance import compute_balance, returnable_quantities
from shopledger.services.sales import get_sale
from shopledger.utils import folios
from shopledger.utils.dates import now_local
from shopledger.utils.money import D, ZERO, line_total
from shopledger.utils.pagination import filter_dates, paginate

logger = logging.getLogger(__name__)


def create_return(db: Session, return_in: ReturnCreate) -> SaleReturn:
    """
    Registers goods coming back from a sale (partial or full).

    remove_from_stock=True writes the goods off, otherwise they go back on the
    shelf. The sale's cached net amount is refreshed in the same transaction.
    """
    with atomic(db):
        sale = get_sale(db, return_in.sale_id, lock=True)

        lines = [line for line in return_in.items if line.quantity > 0]
        if not lines:
            raise ValidationError("A return needs at least one item with a quantity above zero")

        # --- 1. Returnable quantities, per product ---
        requested = defaultdict(int)
        for line in lines:
            requested[line.product_id] += line.quantity

        returnable = returnable_quantities(sale)
        for product_id, qty in requested.items():
            available = returnable.get(product_id, 0)
            if qty > available:
                raise OverReturn(product_id, requested=qty, returnable=available)

        # --- 2. Header ---
        sale_prices = {}
        for item in sale.items:
            sale_prices.setdefault(item.product_id, D(item.price))

        return_number = folios.allocate_number(
            db, SaleReturn.return_number, folios.draw_return_number, label="return number"
        )
        ret = SaleReturn(
            return_number=return_number,
            reason=return_in.reason,
            remove_from_stock=return_in.remove_from_stock,
            total_amount=ZERO,
            refund_amount=ZERO,
            refund_paid=False,
            return_date=now_local(),
        )
        sale.returns.append(ret)

        # --- 3. Lines + stock ---
        total = ZERO
        for line in lines:
            sold_at = sale_prices[line.product_id]
            price = sold_at if line.price is None else D(line.price)
            if price != sold_at:
                logger.warning(
                    "Return %s: product %s priced at %s, sold at %s",
                    return_number, line.product_id, price, sold_at,
                )

            ret.items.append(SaleReturnItem(
                product_id=line.product_id, quantity=line.quantity, price=price
            ))
            total += line_total(price, line.quantity)

            if ret.remove_from_stock:
                stock.reserve(
                    db, line.product_id, line.quantity,
                    MovementType.RETURN_DISCARD, reference=return_number,
                )
            else:
                stock.release(
                    db, line.product_id, line.quantity,
                    MovementType.RETURN_IN, reference=return_number,
                )

        ret.total_amount = total

        # --- 4. Cached net amount of the sale ---
        sale.total_amount = compute_balance(sale).net_amount

    logger.info("Return %s on sale %s: %s", ret.return_number, sale.bill_number, total)
    return ret


def get_return(db: Session, return_id: int) -> SaleReturn:
    ret = (
        db.query(SaleReturn)
        .options(joinedload(SaleReturn.sale), joinedload(SaleReturn.items).joinedload(SaleReturnItem.product))
        .filter(SaleReturn.id == return_id)
        .first()
    )
    if not ret:
        raise NotFound("Return", return_id)
    return ret


def list_returns(db: Session, f: ReturnFilter) -> Tuple[List[SaleReturn], int]:
    query = (
        db.query(SaleReturn)
        .join(Sale, SaleReturn.sale_id == Sale.id)
        .options(joinedload(SaleReturn.sale), joinedload(SaleReturn.items).joinedload(SaleReturnItem.product))
    )
    term = f.search_term
    if term:
        s = f"%{term}%"
        query = query.filter(or_(
            SaleReturn.return_number.ilike(s),
            SaleReturn.reason.ilike(s),
            Sale.bill_number.ilike(s),
        ))
    if f.sale_id is not None:
        query = query.filter(SaleReturn.sale_id == f.sale_id)
    query = filter_dates(query, SaleReturn.return_date, f)
    return paginate(query.order_by(SaleReturn.return_date.desc(), SaleReturn.id.desc()), f)


def returns_for_sale(db: Session, sale_id: int) -> List[SaleReturn]:
    return list(get_sale(db, sale_id).returns)
