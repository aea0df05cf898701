# shopledger/services/loans.py
import logging

from sqlalchemy.orm import Session

from shopledger.database import atomic
from shopledger.errors import NotFound
from shopledger.models import Contact, LoanTransaction, LoanType
from shopledger.schemas.crm import LoanCreate, LoanRead, LoanSummary
from shopledger.utils.dates import now_local
from shopledger.utils.money import D, ZERO

logger = logging.getLogger(__name__)


def _contact(db: Session, contact_id: int) -> Contact:
    contact = db.query(Contact).filter(Contact.id == contact_id).first()
    if not contact:
        raise NotFound("Contact", contact_id)
    return contact


def add_loan(db: Session, contact_id: int, loan_in: LoanCreate) -> LoanTransaction:
    with atomic(db):
        _contact(db, contact_id)
        loan = LoanTransaction(
            contact_id=contact_id,
            type=loan_in.type,
            amount=D(loan_in.amount),
            description=loan_in.description,
            date=now_local(),
        )
        db.add(loan)

    logger.info("Loan %s of %s recorded for contact %s", loan.type.value, loan.amount, contact_id)
    return loan


def delete_loan(db: Session, contact_id: int, loan_id: int) -> None:
    with atomic(db):
        loan = (
            db.query(LoanTransaction)
            .filter(LoanTransaction.id == loan_id, LoanTransaction.contact_id == contact_id)
            .first()
        )
        if not loan:
            raise NotFound("Loan transaction", loan_id)
        db.delete(loan)

    logger.info("Loan transaction %s of contact %s deleted", loan_id, contact_id)


def loan_summary(db: Session, contact_id: int) -> LoanSummary:
    """
    Totals per type and the signed balance:
    given - returned_by_contact - taken + returned_to_contact.
    Positive means the contact owes the shop.
    """
    _contact(db, contact_id)
    transactions = (
        db.query(LoanTransaction)
        .filter(LoanTransaction.contact_id == contact_id)
        .order_by(LoanTransaction.date.desc(), LoanTransaction.id.desc())
        .all()
    )

    totals = {t: ZERO for t in LoanType}
    for tx in transactions:
        totals[tx.type] += D(tx.amount)

    balance = (
        totals[LoanType.GIVEN]
        - totals[LoanType.RETURNED_BY_CONTACT]
        - totals[LoanType.TAKEN]
        + totals[LoanType.RETURNED_TO_CONTACT]
    )
    return LoanSummary(
        total_given=totals[LoanType.GIVEN],
        total_taken=totals[LoanType.TAKEN],
        total_returned_by_contact=totals[LoanType.RETURNED_BY_CONTACT],
        total_returned_to_contact=totals[LoanType.RETURNED_TO_CONTACT],
        balance=balance,
        transactions=[LoanRead.model_validate(tx) for tx in transactions],
    )
