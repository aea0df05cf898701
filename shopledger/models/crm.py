# shopledger/models/crm.py
import enum

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shopledger.database import Base


class Contact(Base):
    """Customer or vendor; the same person can be both."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    address = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)

    # Balance carried over from before this system (or from paper records)
    remaining_amount = Column(Numeric(12, 2), default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sales = relationship("Sale", back_populates="contact")
    purchases = relationship("BulkPurchase", back_populates="contact")
    loans = relationship(
        "LoanTransaction", back_populates="contact", cascade="all, delete-orphan"
    )


class LoanType(str, enum.Enum):
    GIVEN = "GIVEN"                              # Shop lent money to the contact
    TAKEN = "TAKEN"                              # Shop borrowed from the contact
    RETURNED_BY_CONTACT = "RETURNED_BY_CONTACT"  # Contact paid back
    RETURNED_TO_CONTACT = "RETURNED_TO_CONTACT"  # Shop paid back


class LoanTransaction(Base):
    """
    Money ledger of loans with a contact.
    The balance is always the signed sum of these rows, never stored.
    """
    __tablename__ = "loan_transactions"

    id = Column(Integer, primary_key=True, index=True)
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)

    type = Column(Enum(LoanType), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)

    contact = relationship("Contact", back_populates="loans")
