import itertools
from decimal import Decimal
from types import SimpleNamespace

import pytest

from shopledger.models import RefundState
from shopledger.services.balance import (
    PaymentStatus, compute_balance, returnable_quantities, returned_quantities
)


def make_sale(original="500", discount="0", paid="0", refund_state=RefundState.UNREFUNDED, refund_amount="0"):
    return SimpleNamespace(
        original_total_amount=Decimal(original),
        discount=Decimal(discount),
        paid_amount=Decimal(paid),
        refund_state=refund_state,
        refund_amount=Decimal(refund_amount),
        items=[],
        returns=[],
    )


def make_return(total, refund_paid=False, refund_amount="0", items=()):
    return SimpleNamespace(
        total_amount=Decimal(total),
        refund_paid=refund_paid,
        refund_amount=Decimal(refund_amount),
        items=[SimpleNamespace(product_id=p, quantity=q) for p, q in items],
    )


def test_payment_due():
    b = compute_balance(make_sale(original="500", discount="50", paid="300"))
    assert b.gross_amount == Decimal("450.00")
    assert b.net_amount == Decimal("450.00")
    assert b.balance == Decimal("150.00")
    assert b.status == PaymentStatus.PAYMENT_DUE
    assert b.amount_due == Decimal("150.00")
    assert b.credit_amount == Decimal("0.00")


def test_fully_paid():
    b = compute_balance(make_sale(paid="500"))
    assert b.balance == Decimal("0.00")
    assert b.status == PaymentStatus.FULLY_PAID


def test_credit_after_return():
    b = compute_balance(make_sale(paid="500"), [make_return("200")])
    assert b.net_amount == Decimal("300.00")
    assert b.status == PaymentStatus.CREDIT_BALANCE
    assert b.credit_amount == Decimal("200.00")


def test_credit_never_exceeds_paid_amount():
    sale = make_sale(original="100", paid="30")
    b = compute_balance(sale, [make_return("100")])
    assert b.net_amount == Decimal("0.00")
    assert b.balance == Decimal("-30.00")
    assert b.credit_amount == Decimal("30.00")


def test_net_never_negative():
    sale = make_sale(original="100", discount="20", paid="80")
    b = compute_balance(sale, [make_return("100")])
    assert b.net_amount == Decimal("0.00")


def test_refunded_when_all_refunds_paid():
    sale = make_sale(paid="500", refund_state=RefundState.PARTIALLY_REFUNDED)
    b = compute_balance(sale, [make_return("200", refund_paid=True, refund_amount="200")])
    assert b.balance == Decimal("0.00")
    assert b.status == PaymentStatus.REFUNDED


def test_unpaid_return_keeps_credit_status():
    sale = make_sale(paid="500", refund_state=RefundState.PARTIALLY_REFUNDED)
    b = compute_balance(sale, [
        make_return("100", refund_paid=True, refund_amount="100"),
        make_return("100"),
    ])
    assert b.balance == Decimal("-100.00")
    assert b.status == PaymentStatus.CREDIT_BALANCE


def test_whole_sale_refund_counts():
    sale = make_sale(paid="500", refund_state=RefundState.FULLY_REFUNDED, refund_amount="200")
    b = compute_balance(sale, [make_return("200")])
    assert b.total_refunded == Decimal("200.00")
    assert b.balance == Decimal("0.00")
    assert b.status == PaymentStatus.REFUNDED


def test_part_of_a_whole_sale_refund_leaves_credit():
    sale = make_sale(paid="500", refund_state=RefundState.FULLY_REFUNDED, refund_amount="150")
    b = compute_balance(sale, [make_return("200")])
    assert b.balance == Decimal("-50.00")
    assert b.credit_amount == Decimal("50.00")
    assert b.status == PaymentStatus.CREDIT_BALANCE


def test_part_of_a_return_refund_leaves_credit():
    sale = make_sale(paid="500", refund_state=RefundState.PARTIALLY_REFUNDED)
    b = compute_balance(sale, [make_return("200", refund_paid=True, refund_amount="120")])
    assert b.credit_amount == Decimal("80.00")
    assert b.status == PaymentStatus.CREDIT_BALANCE


def test_sale_refund_ignored_unless_fully_refunded():
    sale = make_sale(paid="500", refund_amount="200")
    b = compute_balance(sale, [make_return("200")])
    assert b.total_refunded == Decimal("0.00")


def test_status_is_idempotent_and_order_independent():
    sale = make_sale(original="1000", paid="900", refund_state=RefundState.PARTIALLY_REFUNDED)
    rets = [
        make_return("100", refund_paid=True, refund_amount="100"),
        make_return("250"),
        make_return("75.50", refund_paid=True, refund_amount="50"),
    ]
    expected = compute_balance(sale, rets)
    assert compute_balance(sale, rets) == expected
    for perm in itertools.permutations(rets):
        assert compute_balance(sale, list(perm)) == expected


def test_defaults_to_sale_returns():
    sale = make_sale(paid="500")
    sale.returns = [make_return("200")]
    assert compute_balance(sale).credit_amount == Decimal("200.00")


@pytest.mark.parametrize("value", [0.1 + 0.2, "0.30", Decimal("0.299")])
def test_money_is_quantized(value):
    b = compute_balance(make_sale(original=str(Decimal(str(value)))))
    assert b.gross_amount == Decimal("0.30")


def test_returnable_quantities():
    sale = make_sale()
    sale.items = [
        SimpleNamespace(product_id=1, quantity=3),
        SimpleNamespace(product_id=2, quantity=1),
        SimpleNamespace(product_id=1, quantity=2),
    ]
    sale.returns = [make_return("0", items=[(1, 4)]), make_return("0", items=[(2, 1)])]

    assert returned_quantities(sale.returns) == {1: 4, 2: 1}
    assert returnable_quantities(sale) == {1: 1, 2: 0}
