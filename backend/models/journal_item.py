from decimal import Decimal

from sqlalchemy import Column, Integer, Numeric, ForeignKey, CheckConstraint, String
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class JournalItem(Base, TimestampMixin):
    __tablename__ = "journal_items"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(Integer, ForeignKey("chart_of_accounts.id", ondelete="RESTRICT"), nullable=False)
    debit = Column(Numeric(15, 2), CheckConstraint('debit >= 0'), nullable=False, default=Decimal("0.00"))
    credit = Column(Numeric(15, 2), CheckConstraint('credit >= 0'), nullable=False, default=Decimal("0.00"))

    # Relationships
    journal_entry = relationship("JournalEntry", back_populates="items")
    account = relationship("ChartOfAccounts")

    __table_args__ = (
        CheckConstraint(
            '(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0)',
            name='check_debit_or_credit_exclusive'
        ),
    )

    @property
    def account_code(self):
        return self.account.code if self.account else None

    @property
    def account_name(self):
        return self.account.name if self.account else None
