# shopledger/services/refunds.py
"""
Refund engine. Money goes back to the customer along one of two paths:

- per return: each return is refunded up to its own total, capped by what
  the customer paid and has not yet got back;
- whole sale: lump sums against the sale, capped by its remaining credit.

Either path may be paid in several instalments until nothing is left to
refund. Sale.refund_state keeps the two paths mutually exclusive, and every
refund locks the sale first so two payments never see the same ceiling.
"""
import logging
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy.orm import Session

from shopledger.database import atomic
from shopledger.errors import AlreadyRefunded, NotFound, RefundExceedsCeiling, ValidationError
from shopledger.models import RefundState, Sale, SaleReturn
from shopledger.services.balance import compute_balance, total_refunded
from shopledger.services.sales import get_sale
from shopledger.utils.dates import now_local
from shopledger.utils.money import D, ZERO

logger = logging.getLogger(__name__)


def _settle(amount: Optional[Decimal], ceiling: Decimal) -> Decimal:
    if ceiling <= 0:
        raise RefundExceedsCeiling(requested=amount if amount is not None else ZERO, ceiling=max(ceiling, ZERO))
    if amount is None:
        return ceiling
    if amount > ceiling:
        raise RefundExceedsCeiling(requested=amount, ceiling=ceiling)
    return amount


def _refund_return(db: Session, return_id: int, amount: Optional[Decimal]):
    sale_id = db.query(SaleReturn.sale_id).filter(SaleReturn.id == return_id).scalar()
    if sale_id is None:
        raise NotFound("Return", return_id)

    sale = get_sale(db, sale_id, lock=True)
    ret = next(r for r in sale.returns if r.id == return_id)

    if sale.refund_state == RefundState.FULLY_REFUNDED:
        raise AlreadyRefunded(f"Sale {sale.bill_number} was refunded as a whole")

    already = D(ret.refund_amount) if ret.refund_paid else ZERO
    left_on_return = D(ret.total_amount) - already
    if left_on_return <= 0:
        raise AlreadyRefunded(f"Return {ret.return_number} has already been refunded")

    ceiling = min(left_on_return, D(sale.paid_amount) - total_refunded(sale, sale.returns))
    amount = _settle(amount, ceiling)

    ret.refund_amount = already + amount
    ret.refund_paid = True
    ret.refund_date = now_local()
    sale.refund_state = RefundState.PARTIALLY_REFUNDED
    sale.total_amount = compute_balance(sale).net_amount
    return ret, amount


def _refund_sale(db: Session, sale_id: int, amount: Optional[Decimal]):
    sale = get_sale(db, sale_id, lock=True)

    if sale.refund_state == RefundState.PARTIALLY_REFUNDED:
        raise AlreadyRefunded(f"Sale {sale.bill_number} is being refunded return by return")

    credit = compute_balance(sale).credit_amount
    if sale.refund_state == RefundState.FULLY_REFUNDED and credit <= 0:
        raise AlreadyRefunded(f"Sale {sale.bill_number} has already been refunded")

    amount = _settle(amount, credit)

    already = D(sale.refund_amount) if sale.refund_state == RefundState.FULLY_REFUNDED else ZERO
    sale.refund_amount = already + amount
    sale.refund_date = now_local()
    sale.refund_state = RefundState.FULLY_REFUNDED
    sale.total_amount = compute_balance(sale).net_amount
    return sale, amount


def pay_refund(
    db: Session,
    return_id: int = None,
    sale_id: int = None,
    amount=None,
) -> Union[SaleReturn, Sale]:
    """
    Pays a refund against exactly one return or one sale.
    Without `amount`, everything still refundable on the target is paid.
    Returns the refunded SaleReturn or Sale; its refund_amount is the running
    total paid on it.
    """
    if (return_id is None) == (sale_id is None):
        raise ValidationError("A refund targets exactly one return or one sale")
    if amount is not None:
        amount = D(amount)
        if amount <= 0:
            raise ValidationError("Refund amount must be positive")

    with atomic(db):
        if return_id is not None:
            target, paid_out = _refund_return(db, return_id, amount)
            label = f"return {target.return_number}"
        else:
            target, paid_out = _refund_sale(db, sale_id, amount)
            label = f"sale {target.bill_number}"

    logger.info("Refund of %s paid on %s (%s in total)", paid_out, label, target.refund_amount)
    return target
