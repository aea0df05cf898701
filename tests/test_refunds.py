from decimal import Decimal

import pytest

from shopledger.errors import AlreadyRefunded, Conflict, NotFound, RefundExceedsCeiling, ValidationError
from shopledger.models import RefundState
from shopledger.schemas.filters import ListFilter
from shopledger.schemas.returns import ReturnCreate
from shopledger.services import refunds, returns, sales
from shopledger.services.balance import PaymentStatus


def _return(db, sale, product, qty):
    return returns.create_return(
        db, ReturnCreate(sale_id=sale.id, items=[{"product_id": product.id, "quantity": qty}])
    )


def _status(db, sale):
    return sales.get_sale_with_status(db, sale.id).balance


def test_round_trip_whole_sale_refund(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="500")
    _return(db, sale, product, 2)

    balance = _status(db, sale)
    assert balance.net_amount == Decimal("300.00")
    assert balance.status == PaymentStatus.CREDIT_BALANCE
    assert balance.credit_amount == Decimal("200.00")

    refunded = refunds.pay_refund(db, sale_id=sale.id)
    assert refunded.refund_amount == Decimal("200.00")
    assert refunded.refund_state == RefundState.FULLY_REFUNDED

    balance = _status(db, sale)
    assert balance.balance == Decimal("0.00")
    assert balance.total_refunded == Decimal("200.00")
    assert balance.status == PaymentStatus.REFUNDED


def test_round_trip_per_return_refund(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="500")
    ret = _return(db, sale, product, 2)

    paid = refunds.pay_refund(db, return_id=ret.id)

    assert paid.refund_paid is True
    assert paid.refund_amount == Decimal("200.00")
    assert paid.refund_date is not None
    assert sales.get_sale(db, sale.id).refund_state == RefundState.PARTIALLY_REFUNDED
    balance = _status(db, sale)
    assert balance.balance == Decimal("0.00")
    assert balance.status == PaymentStatus.REFUNDED


def test_refund_is_capped_by_paid_amount(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="100")
    ret = _return(db, sale, product, 2)

    with pytest.raises(RefundExceedsCeiling) as exc:
        refunds.pay_refund(db, return_id=ret.id, amount="150")
    assert exc.value.ceiling == Decimal("100.00")

    paid = refunds.pay_refund(db, return_id=ret.id)
    assert paid.refund_amount == Decimal("100.00")


def test_refunds_never_exceed_what_was_paid(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="250")
    first = _return(db, sale, product, 2)
    second = _return(db, sale, product, 2)

    refunds.pay_refund(db, return_id=first.id)
    paid = refunds.pay_refund(db, return_id=second.id)
    assert paid.refund_amount == Decimal("50.00")

    third = _return(db, sale, product, 1)
    with pytest.raises(RefundExceedsCeiling):
        refunds.pay_refund(db, return_id=third.id)

    balance = _status(db, sale)
    assert balance.total_refunded <= balance.paid_amount


def test_unpaid_sale_has_nothing_to_refund(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 2, "100")])
    ret = _return(db, sale, product, 1)

    with pytest.raises(RefundExceedsCeiling):
        refunds.pay_refund(db, return_id=ret.id)
    with pytest.raises(RefundExceedsCeiling):
        refunds.pay_refund(db, sale_id=sale.id)


def test_partial_amount_on_whole_sale(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="500")
    _return(db, sale, product, 2)

    with pytest.raises(RefundExceedsCeiling):
        refunds.pay_refund(db, sale_id=sale.id, amount=Decimal("250"))

    refunds.pay_refund(db, sale_id=sale.id, amount=Decimal("150"))
    balance = _status(db, sale)
    assert balance.balance == Decimal("-50.00")
    assert balance.credit_amount == Decimal("50.00")
    assert balance.status == PaymentStatus.CREDIT_BALANCE

    # The rest of the credit can still be paid out, and no more than that
    with pytest.raises(RefundExceedsCeiling) as exc:
        refunds.pay_refund(db, sale_id=sale.id, amount=Decimal("60"))
    assert exc.value.ceiling == Decimal("50.00")

    refunded = refunds.pay_refund(db, sale_id=sale.id, amount=Decimal("50"))
    assert refunded.refund_amount == Decimal("200.00")
    balance = _status(db, sale)
    assert balance.balance == Decimal("0.00")
    assert balance.total_refunded == Decimal("200.00")
    assert balance.status == PaymentStatus.REFUNDED

    with pytest.raises(AlreadyRefunded):
        refunds.pay_refund(db, sale_id=sale.id)


def test_partly_refunded_sale_stays_in_credit_list(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="500")
    _return(db, sale, product, 2)

    refunds.pay_refund(db, sale_id=sale.id, amount=Decimal("150"))

    rows, total = sales.credit_balances(db, ListFilter())
    assert total == 1
    listed, balance = rows[0]
    assert listed.id == sale.id
    assert balance.credit_amount == Decimal("50.00")


def test_return_refund_in_instalments(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="500")
    ret = _return(db, sale, product, 2)

    first = refunds.pay_refund(db, return_id=ret.id, amount=Decimal("120"))
    assert first.refund_amount == Decimal("120.00")
    assert _status(db, sale).status == PaymentStatus.CREDIT_BALANCE

    with pytest.raises(RefundExceedsCeiling) as exc:
        refunds.pay_refund(db, return_id=ret.id, amount=Decimal("100"))
    assert exc.value.ceiling == Decimal("80.00")

    rest = refunds.pay_refund(db, return_id=ret.id)
    assert rest.refund_amount == Decimal("200.00")
    balance = _status(db, sale)
    assert balance.balance == Decimal("0.00")
    assert balance.status == PaymentStatus.REFUNDED

    with pytest.raises(AlreadyRefunded):
        refunds.pay_refund(db, return_id=ret.id)


def test_return_refunded_only_once(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="500")
    ret = _return(db, sale, product, 1)

    refunds.pay_refund(db, return_id=ret.id)
    with pytest.raises(AlreadyRefunded):
        refunds.pay_refund(db, return_id=ret.id)


def test_whole_sale_refund_blocks_per_return_refunds(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="500")
    ret = _return(db, sale, product, 2)

    refunds.pay_refund(db, sale_id=sale.id)

    with pytest.raises(AlreadyRefunded):
        refunds.pay_refund(db, return_id=ret.id)
    with pytest.raises(AlreadyRefunded):
        refunds.pay_refund(db, sale_id=sale.id)


def test_per_return_refund_blocks_whole_sale_refund(db, make_product, make_sale):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="500")
    ret = _return(db, sale, product, 1)
    _return(db, sale, product, 1)

    refunds.pay_refund(db, return_id=ret.id)

    with pytest.raises(AlreadyRefunded):
        refunds.pay_refund(db, sale_id=sale.id)

def test_concurrent_refunds_cannot_share_the_same_ceiling(db, impatient_session, make_product, make_sale, monkeypatch):
    product = make_product(quantity=10)
    sale = make_sale([(product, 5, "100")], paid="250")
    first = _return(db, sale, product, 2)
    second = _return(db, sale, product, 2)
    sale_id, second_id = sale.id, second.id
    refunded_so_far = refunds.total_refunded
    competitor = []

    def total_with_competitor(locked_sale, rets):
        # Another request refunds the second return while the first is being priced
        if not competitor:
            competitor.append("started")
            try:
                refunds.pay_refund(impatient_session, return_id=second_id)
                competitor.append("committed")
            except Conflict:
                competitor.append("blocked")
        return refunded_so_far(locked_sale, rets)

    monkeypatch.setattr(refunds, "total_refunded", total_with_competitor)

    paid = refunds.pay_refund(db, return_id=first.id)
    assert paid.refund_amount == Decimal("200.00")
    assert competitor == ["started", "blocked"]

    retried = refunds.pay_refund(impatient_session, return_id=second_id)
    assert retried.refund_amount == Decimal("50.00")

    balance = sales.get_sale_with_status(db, sale_id).balance
    assert balance.total_refunded == Decimal("250.00")
    assert balance.total_refunded <= balance.paid_amount



@pytest.mark.parametrize("kwargs", [{}, {"return_id": 1, "sale_id": 1}])
def test_exactly_one_target(db, kwargs):
    with pytest.raises(ValidationError):
        refunds.pay_refund(db, **kwargs)


def test_amount_must_be_positive(db):
    with pytest.raises(ValidationError):
        refunds.pay_refund(db, sale_id=1, amount=0)


def test_unknown_targets(db):
    with pytest.raises(NotFound):
        refunds.pay_refund(db, return_id=5)
    with pytest.raises(NotFound):
        refunds.pay_refund(db, sale_id=5)
