from decimal import Decimal

import pytest

from shopledger.crud import contacts
from shopledger.errors import Conflict, NotFound
from shopledger.models import LoanTransaction, LoanType
from shopledger.schemas.crm import ContactUpdate, LoanCreate
from shopledger.schemas.filters import ContactFilter
from shopledger.schemas.purchases import PurchaseCreate
from shopledger.schemas.returns import ReturnCreate
from shopledger.services import loans, purchases, returns


def test_contact_names_are_unique(db, make_contact):
    make_contact(name="Bilal")
    with pytest.raises(Conflict):
        make_contact(name="Bilal")


def test_update_contact(db, make_contact):
    contact = make_contact(name="Sana", phone_number="0300")
    other = make_contact(name="Zara")

    updated = contacts.update_contact(db, contact.id, ContactUpdate(address="Main Bazaar"))
    assert updated.address == "Main Bazaar"
    assert updated.phone_number == "0300"
    assert updated.name == "Sana"

    with pytest.raises(Conflict):
        contacts.update_contact(db, other.id, ContactUpdate(name="Sana"))


def test_search_contacts(db, make_contact):
    make_contact(name="Hamza Electronics", phone_number="0321-555")
    make_contact(name="Noor Textiles")

    rows, total = contacts.get_contacts(db, ContactFilter(search="555"))
    assert total == 1 and rows[0].name == "Hamza Electronics"


def test_delete_contact(db, make_contact, make_product, make_sale):
    idle = make_contact()
    loans.add_loan(db, idle.id, LoanCreate(amount=Decimal("10"), type=LoanType.GIVEN))
    contacts.delete_contact(db, idle.id)
    with pytest.raises(NotFound):
        contacts.get_contact(db, idle.id)
    assert db.query(LoanTransaction).count() == 0

    customer = make_contact()
    make_sale([(make_product(), 1, "10")], contact_id=customer.id)
    with pytest.raises(Conflict):
        contacts.delete_contact(db, customer.id)


def test_loan_summary(db, make_contact):
    contact = make_contact()
    for loan_type, amount in [
        (LoanType.GIVEN, "1000"),
        (LoanType.RETURNED_BY_CONTACT, "300"),
        (LoanType.TAKEN, "500"),
        (LoanType.RETURNED_TO_CONTACT, "100"),
    ]:
        loans.add_loan(db, contact.id, LoanCreate(amount=Decimal(amount), type=loan_type))

    summary = loans.loan_summary(db, contact.id)
    assert summary.total_given == Decimal("1000.00")
    assert summary.total_taken == Decimal("500.00")
    assert summary.balance == Decimal("300.00")
    assert len(summary.transactions) == 4


def test_delete_loan_must_belong_to_contact(db, make_contact):
    owner = make_contact()
    stranger = make_contact()
    loan = loans.add_loan(db, owner.id, LoanCreate(amount=Decimal("50"), type=LoanType.TAKEN))

    with pytest.raises(NotFound):
        loans.delete_loan(db, stranger.id, loan.id)

    loans.delete_loan(db, owner.id, loan.id)
    assert loans.loan_summary(db, owner.id).balance == Decimal("0.00")


def test_loans_of_unknown_contact(db):
    with pytest.raises(NotFound):
        loans.add_loan(db, 99, LoanCreate(amount=Decimal("1"), type=LoanType.GIVEN))
    with pytest.raises(NotFound):
        loans.loan_summary(db, 99)


def test_contact_statement(db, make_contact, make_product, make_sale):
    contact = make_contact(remaining_amount=Decimal("75"))
    product = make_product(quantity=20)

    make_sale([(product, 2, "100")], paid="50", contact_id=contact.id)
    credit_sale = make_sale([(product, 3, "100")], paid="300", contact_id=contact.id)
    returns.create_return(db, ReturnCreate(sale_id=credit_sale.id, items=[{"product_id": product.id, "quantity": 1}]))
    purchases.create_purchase(db, PurchaseCreate(
        contact_id=contact.id,
        items=[{"product_id": product.id, "quantity": 4, "purchase_price": Decimal("25")}],
        paid_amount=Decimal("60"),
    ))
    loans.add_loan(db, contact.id, LoanCreate(amount=Decimal("40"), type=LoanType.TAKEN))

    statement = contacts.contact_statement(db, contact.id)

    assert statement.sales_due == Decimal("150.00")
    assert statement.sales_credit == Decimal("100.00")
    assert statement.purchases_due == Decimal("40.00")
    assert statement.loan_balance == Decimal("-40.00")
    assert statement.receivable == Decimal("225.00")
