import enum

from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
from exceptions import InvalidStateTransitionError
from models.audit_mixin import TimestampMixin


class ExpenseStatus(enum.Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    POSTED = "posted"
    REJECTED = "rejected"


class FundingSource(enum.Enum):
    WALLET = "wallet"  # supplier credit
    BANK = "bank"


ALLOWED_TRANSITIONS = {
    ExpenseStatus.DRAFT: {ExpenseStatus.PENDING_APPROVAL, ExpenseStatus.REJECTED},
    ExpenseStatus.PENDING_APPROVAL: {ExpenseStatus.POSTED, ExpenseStatus.REJECTED},
    ExpenseStatus.POSTED: set(),
    ExpenseStatus.REJECTED: set(),
}


class Expense(Base, TimestampMixin):
    """A payment draft. Nothing is deducted or posted until it is approved."""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True)
    title = Column(String, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    expense_date = Column(Date, nullable=False)
    # Debit side of the eventual posting (Accounts Payable for purchase orders)
    account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=False)
    # Credit side; the bank's linked account, or the supplier advance account for wallet payments
    payment_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    funding_source = Column(Enum(FundingSource), nullable=False)
    bank_id = Column(Integer, ForeignKey("banks.id"), nullable=True)
    supplier_id = Column(Integer, ForeignKey("business_partners.id"), nullable=True)
    reference_type = Column(String(100), nullable=True)
    reference_id = Column(Integer, nullable=True)
    reference_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(Enum(ExpenseStatus), default=ExpenseStatus.DRAFT, nullable=False)
    paid_by = Column(String, nullable=True)
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(String, nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)

    account = relationship("ChartOfAccounts", foreign_keys=[account_id])
    payment_account = relationship("ChartOfAccounts", foreign_keys=[payment_account_id])
    bank = relationship("Bank")
    supplier = relationship("BusinessPartner")
    journal_entry = relationship("JournalEntry")

    def can_transition_to(self, target: ExpenseStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, target: ExpenseStatus) -> None:
        if not self.can_transition_to(target):
            raise InvalidStateTransitionError("Expense", self.id, self.status.value, target.value)
        self.status = target
