from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from shopledger.models.crm import LoanType

# --- Contacts ---

class ContactBase(BaseModel):
    name: str = Field(..., min_length=1)
    address: Optional[str] = None
    phone_number: Optional[str] = None
    remaining_amount: Decimal = Decimal("0.00")  # Balance carried over


class ContactCreate(ContactBase):
    pass


class ContactUpdate(ContactBase):
    name: Optional[str] = Field(None, min_length=1)
    remaining_amount: Optional[Decimal] = None


class ContactRead(ContactBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContactStatement(BaseModel):
    contact_id: int
    name: str
    remaining_amount: Decimal
    sales_due: Decimal         # What the contact still owes on sales
    sales_credit: Decimal      # What the shop still owes back on sales
    purchases_due: Decimal     # What the shop still owes the contact on purchases
    loan_balance: Decimal      # + contact owes the shop, - shop owes the contact
    receivable: Decimal        # remaining_amount + sales_due


# --- Loans ---

class LoanCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    type: LoanType
    description: Optional[str] = None


class LoanRead(BaseModel):
    id: int
    contact_id: int
    type: LoanType
    amount: Decimal
    description: Optional[str] = None
    date: datetime

    class Config:
        from_attributes = True


class LoanSummary(BaseModel):
    total_given: Decimal
    total_taken: Decimal
    total_returned_by_contact: Decimal
    total_returned_to_contact: Decimal
    balance: Decimal
    transactions: List[LoanRead] = []
