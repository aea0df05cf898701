# shopledger/services/views.py
"""
Read models: ORM rows -> response schemas.

Every money figure shown to the client that depends on returns or refunds
comes from compute_balance, never from the cached Sale.total_amount.
"""
from collections import OrderedDict

from shopledger.services.balance import compute_balance, returned_quantities
from shopledger.schemas.common import BalanceRead
from shopledger.schemas.purchases import PurchaseItemRead, PurchaseRead
from shopledger.schemas.returns import ReturnItemRead, ReturnRead
from shopledger.schemas.sales import (
    ConsolidatedItemRead, SaleDetail, SaleItemRead, SaleRead
)
from shopledger.utils.money import D, line_total


def _product_name(row):
    return row.product.name if row.product is not None else None


def _sale_fields(sale, balance) -> dict:
    return dict(
        id=sale.id,
        bill_number=sale.bill_number,
        sale_date=sale.sale_date,
        contact_id=sale.contact_id,
        contact_name=sale.contact.name if sale.contact is not None else None,
        description=sale.description,
        original_total_amount=D(sale.original_total_amount),
        discount=D(sale.discount),
        total_amount=D(sale.total_amount),
        paid_amount=D(sale.paid_amount),
        refund_state=sale.refund_state,
        refund_amount=D(sale.refund_amount),
        refund_date=sale.refund_date,
        balance=BalanceRead.model_validate(balance),
    )


def sale_read(sale, balance=None) -> SaleRead:
    balance = balance or compute_balance(sale)
    return SaleRead(**_sale_fields(sale, balance))


def sale_detail(sale) -> SaleDetail:
    balance = compute_balance(sale)

    # Returned units are attributed to the lines of a product in order
    to_attribute = returned_quantities(sale.returns)
    items = []
    for item in sale.items:
        returned = min(item.quantity, to_attribute.get(item.product_id, 0))
        to_attribute[item.product_id] = to_attribute.get(item.product_id, 0) - returned
        items.append(SaleItemRead(
            id=item.id,
            product_id=item.product_id,
            product_name=_product_name(item),
            quantity=item.quantity,
            price=D(item.price),
            purchase_price=D(item.purchase_price),
            subtotal=line_total(item.price, item.quantity),
            returned_quantity=returned,
            remaining_quantity=item.quantity - returned,
        ))

    consolidated = OrderedDict()
    for line in items:
        row = consolidated.get(line.product_id)
        if row is None:
            consolidated[line.product_id] = line.model_dump(
                include={"product_id", "product_name", "quantity", "subtotal",
                         "returned_quantity", "remaining_quantity"}
            )
            continue
        row["quantity"] += line.quantity
        row["subtotal"] += line.subtotal
        row["returned_quantity"] += line.returned_quantity
        row["remaining_quantity"] += line.remaining_quantity

    return SaleDetail(
        **_sale_fields(sale, balance),
        items=items,
        consolidated_items=[ConsolidatedItemRead(**row) for row in consolidated.values()],
        returns=[return_read(r) for r in sale.returns],
    )


def return_read(ret) -> ReturnRead:
    return ReturnRead(
        id=ret.id,
        return_number=ret.return_number,
        sale_id=ret.sale_id,
        bill_number=ret.sale.bill_number if ret.sale is not None else None,
        total_amount=D(ret.total_amount),
        reason=ret.reason,
        remove_from_stock=bool(ret.remove_from_stock),
        refund_amount=D(ret.refund_amount),
        refund_paid=bool(ret.refund_paid),
        refund_date=ret.refund_date,
        return_date=ret.return_date,
        items=[
            ReturnItemRead(
                id=i.id,
                product_id=i.product_id,
                product_name=_product_name(i),
                quantity=i.quantity,
                price=D(i.price),
                subtotal=line_total(i.price, i.quantity),
            )
            for i in ret.items
        ],
    )


def purchase_read(purchase) -> PurchaseRead:
    total = D(purchase.total_amount)
    paid = D(purchase.paid_amount)
    return PurchaseRead(
        id=purchase.id,
        invoice_number=purchase.invoice_number,
        contact_id=purchase.contact_id,
        contact_name=purchase.contact.name if purchase.contact is not None else None,
        total_amount=total,
        paid_amount=paid,
        amount_due=total - paid,
        purchase_date=purchase.purchase_date,
        items=[
            PurchaseItemRead(
                id=i.id,
                product_id=i.product_id,
                product_name=_product_name(i),
                quantity=i.quantity,
                purchase_price=D(i.purchase_price),
                subtotal=line_total(i.purchase_price, i.quantity),
            )
            for i in purchase.items
        ],
    )
