# shopledger/routers/contacts.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopledger.crud import contacts as crud
from shopledger.database import get_db
from shopledger.schemas.common import Page
from shopledger.schemas.crm import (
    ContactCreate, ContactRead, ContactStatement, ContactUpdate,
    LoanCreate, LoanRead, LoanSummary
)
from shopledger.schemas.filters import ContactFilter
from shopledger.services import loans
from shopledger.utils.pagination import page_payload

router = APIRouter()

# --------------------------------------------------------------------------
# 1. CONTACTS
# --------------------------------------------------------------------------
@router.get("/", response_model=Page[ContactRead])
def read_contacts(f: Annotated[ContactFilter, Query()], db: Session = Depends(get_db)):
    rows, total = crud.get_contacts(db, f)
    return page_payload([ContactRead.model_validate(c) for c in rows], total, f)


@router.get("/{contact_id}", response_model=ContactRead)
def read_contact(contact_id: int, db: Session = Depends(get_db)):
    return crud.get_contact(db, contact_id)


@router.post("/", response_model=ContactRead, status_code=201)
def create_contact(contact_in: ContactCreate, db: Session = Depends(get_db)):
    return crud.create_contact(db, contact_in)


@router.put("/{contact_id}", response_model=ContactRead)
def update_contact(contact_id: int, contact_in: ContactUpdate, db: Session = Depends(get_db)):
    return crud.update_contact(db, contact_id, contact_in)


@router.delete("/{contact_id}")
def delete_contact(contact_id: int, db: Session = Depends(get_db)):
    crud.delete_contact(db, contact_id)
    return {"message": "Contact deleted"}


@router.get("/{contact_id}/statement", response_model=ContactStatement)
def read_statement(contact_id: int, db: Session = Depends(get_db)):
    """Receivables from sales and payables from purchases for one contact."""
    return crud.contact_statement(db, contact_id)

# --------------------------------------------------------------------------
# 2. LOANS
# --------------------------------------------------------------------------
@router.get("/{contact_id}/loans", response_model=LoanSummary)
def read_loans(contact_id: int, db: Session = Depends(get_db)):
    return loans.loan_summary(db, contact_id)


@router.post("/{contact_id}/loans", response_model=LoanRead, status_code=201)
def add_loan(contact_id: int, loan_in: LoanCreate, db: Session = Depends(get_db)):
    return loans.add_loan(db, contact_id, loan_in)


@router.delete("/{contact_id}/loans/{loan_id}")
def delete_loan(contact_id: int, loan_id: int, db: Session = Depends(get_db)):
    loans.delete_loan(db, contact_id, loan_id)
    return {"message": "Loan transaction deleted"}
