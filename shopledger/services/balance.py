# shopledger/services/balance.py
"""
Balance calculator shared by every read path (sale detail, list badges,
pending / credit lists, contact statements).

Pure functions: they read attributes of a sale and its returns and never
touch the session. Any object exposing the same attributes works, ORM rows or
plain namespaces alike.

    gross          = original_total_amount - discount
    returned       = sum(return.total_amount)
    net            = max(gross - returned, 0)
    total_refunded = sum(paid return refunds) + whole-sale refund
    balance        = net - paid_amount + total_refunded

balance > 0 means the customer still owes money, balance < 0 means the shop
holds credit for the customer.
"""
import enum
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable

from shopledger.models.sales import RefundState
from shopledger.utils.money import D, ZERO, money_sum


class PaymentStatus(str, enum.Enum):
    PAYMENT_DUE = "PAYMENT_DUE"
    CREDIT_BALANCE = "CREDIT_BALANCE"
    REFUNDED = "REFUNDED"
    FULLY_PAID = "FULLY_PAID"


@dataclass(frozen=True)
class SaleBalance:
    gross_amount: Decimal
    returned_amount: Decimal
    net_amount: Decimal
    paid_amount: Decimal
    total_refunded: Decimal
    balance: Decimal
    status: PaymentStatus
    amount_due: Decimal
    credit_amount: Decimal


def gross_amount(sale) -> Decimal:
    return D(sale.original_total_amount) - D(sale.discount)


def returned_amount(returns: Iterable) -> Decimal:
    return money_sum(r.total_amount for r in returns)


def net_amount(sale, returns: Iterable) -> Decimal:
    return max(gross_amount(sale) - returned_amount(returns), ZERO)


def sale_level_refund(sale) -> Decimal:
    if getattr(sale, "refund_state", None) == RefundState.FULLY_REFUNDED:
        return D(sale.refund_amount)
    return ZERO


def total_refunded(sale, returns: Iterable) -> Decimal:
    per_return = money_sum(r.refund_amount for r in returns if r.refund_paid)
    return per_return + sale_level_refund(sale)


def _refunds_settled(sale, returns: list, balance: Decimal) -> bool:
    # Settled means nothing is left to pay on the refund path in use
    if getattr(sale, "refund_state", None) == RefundState.FULLY_REFUNDED:
        return balance >= 0
    return bool(returns) and all(
        r.refund_paid and D(r.refund_amount) >= D(r.total_amount) for r in returns
    )


def compute_balance(sale, returns: Iterable = None) -> SaleBalance:
    returns = list(sale.returns if returns is None else returns)

    gross = gross_amount(sale)
    returned = returned_amount(returns)
    net = max(gross - returned, ZERO)
    paid = D(sale.paid_amount)
    refunded = total_refunded(sale, returns)
    balance = net - paid + refunded

    refunds_done = refunded > 0 and _refunds_settled(sale, returns, balance)
    amount_due = ZERO
    credit = ZERO

    if balance > 0:
        status = PaymentStatus.PAYMENT_DUE
        amount_due = balance
    elif balance < 0:
        # Never show more credit than the customer actually paid
        credit = min(-balance, paid)
        status = PaymentStatus.REFUNDED if refunds_done else PaymentStatus.CREDIT_BALANCE
    else:
        status = PaymentStatus.REFUNDED if refunds_done else PaymentStatus.FULLY_PAID

    return SaleBalance(
        gross_amount=gross,
        returned_amount=returned,
        net_amount=net,
        paid_amount=paid,
        total_refunded=refunded,
        balance=balance,
        status=status,
        amount_due=amount_due,
        credit_amount=credit,
    )


# --- Quantities per product ---

def sold_quantities(items: Iterable) -> Dict[int, int]:
    sold = defaultdict(int)
    for item in items:
        sold[item.product_id] += item.quantity
    return dict(sold)


def returned_quantities(returns: Iterable) -> Dict[int, int]:
    returned = defaultdict(int)
    for r in returns:
        for item in r.items:
            returned[item.product_id] += item.quantity
    return dict(returned)


def returnable_quantities(sale) -> Dict[int, int]:
    """Sold minus already returned, per product. Never negative."""
    returned = returned_quantities(sale.returns)
    return {
        product_id: max(qty - returned.get(product_id, 0), 0)
        for product_id, qty in sold_quantities(sale.items).items()
    }
