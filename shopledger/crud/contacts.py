import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from shopledger.database import atomic
from shopledger.errors import Conflict, NotFound
from shopledger.models import BulkPurchase, Contact, Sale, SaleReturn
from shopledger.schemas.crm import ContactCreate, ContactStatement, ContactUpdate
from shopledger.schemas.filters import ContactFilter
from shopledger.services.balance import compute_balance
from shopledger.services.loans import loan_summary
from shopledger.utils.money import D, ZERO, money_sum
from shopledger.utils.pagination import paginate

logger = logging.getLogger(__name__)


def get_contact(db: Session, contact_id: int) -> Contact:
    contact = db.query(Contact).filter(Contact.id == contact_id).first()
    if not contact:
        raise NotFound("Contact", contact_id)
    return contact


def get_contacts(db: Session, f: ContactFilter):
    query = db.query(Contact)
    term = f.search_term
    if term:
        s = f"%{term}%"
        query = query.filter(or_(
            Contact.name.ilike(s), Contact.phone_number.ilike(s), Contact.address.ilike(s)
        ))
    return paginate(query.order_by(Contact.name), f)


def _check_name(db: Session, name: str, contact_id: int = None):
    query = db.query(Contact.id).filter(Contact.name == name)
    if contact_id is not None:
        query = query.filter(Contact.id != contact_id)
    if query.first():
        raise Conflict(f"A contact named '{name}' already exists")


def create_contact(db: Session, contact_in: ContactCreate) -> Contact:
    with atomic(db):
        _check_name(db, contact_in.name)
        contact = Contact(
            name=contact_in.name,
            address=contact_in.address,
            phone_number=contact_in.phone_number,
            remaining_amount=D(contact_in.remaining_amount),
        )
        db.add(contact)

    logger.info("Contact %s (%s) created", contact.id, contact.name)
    return contact


def update_contact(db: Session, contact_id: int, contact_in: ContactUpdate) -> Contact:
    with atomic(db):
        contact = get_contact(db, contact_id)
        data = contact_in.model_dump(exclude_unset=True)
        if data.get("name"):
            _check_name(db, data["name"], contact_id)
        for field, value in data.items():
            if field in ("name", "remaining_amount") and value is None:
                continue
            setattr(contact, field, value)
    return contact


def delete_contact(db: Session, contact_id: int) -> None:
    with atomic(db):
        contact = get_contact(db, contact_id)
        if db.query(Sale.id).filter(Sale.contact_id == contact_id).first():
            raise Conflict(f"Contact {contact.name} has sales and cannot be deleted")
        if db.query(BulkPurchase.id).filter(BulkPurchase.contact_id == contact_id).first():
            raise Conflict(f"Contact {contact.name} has purchases and cannot be deleted")
        # Loans go with the contact (cascade)
        db.delete(contact)

    logger.info("Contact %s deleted", contact_id)


def contact_statement(db: Session, contact_id: int) -> ContactStatement:
    """What the contact owes the shop and what the shop owes the contact."""
    contact = get_contact(db, contact_id)

    sales = (
        db.query(Sale)
        .options(selectinload(Sale.returns).selectinload(SaleReturn.items))
        .filter(Sale.contact_id == contact_id)
        .all()
    )
    balances = [compute_balance(s) for s in sales]
    sales_due = money_sum(b.amount_due for b in balances)
    sales_credit = money_sum(b.credit_amount for b in balances)

    purchases = db.query(BulkPurchase).filter(BulkPurchase.contact_id == contact_id).all()
    purchases_due = money_sum(
        max(D(p.total_amount) - D(p.paid_amount), ZERO) for p in purchases
    )

    remaining = D(contact.remaining_amount)
    return ContactStatement(
        contact_id=contact.id,
        name=contact.name,
        remaining_amount=remaining,
        sales_due=sales_due,
        sales_credit=sales_credit,
        purchases_due=purchases_due,
        loan_balance=loan_summary(db, contact_id).balance,
        receivable=remaining + sales_due,
    )
