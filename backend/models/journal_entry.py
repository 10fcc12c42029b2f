from decimal import Decimal

from sqlalchemy import Column, Integer, String, Date, Text, Numeric, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship, backref, synonym
from database import Base
from models.audit_mixin import TimestampMixin


class JournalEntry(Base, TimestampMixin):
    __tablename__ = "journal_entries"
    __table_args__ = (
        UniqueConstraint('tenant_id', 'entry_number', name='_tenant_entry_number_uc'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    entry_number = Column(String(50), nullable=False, index=True)
    sequence_number = Column(Integer, nullable=False, index=True)  # numeric part of entry_number
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    reference_type = Column(String(100), nullable=True)
    reference_id = Column(Integer, nullable=True)
    total_debit = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    total_credit = Column(Numeric(15, 2), nullable=False, default=Decimal("0.00"))
    is_reversed = Column(Boolean, nullable=False, default=False)
    reversed_at = Column(DateTime(timezone=True), nullable=True)
    reversed_by = Column(String, nullable=True)
    reversal_of_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True, unique=True)

    # Used by the audit trail's identifier lookup
    number = synonym("entry_number")

    # Relationships
    items = relationship(
        "JournalItem",
        back_populates="journal_entry",
        cascade="all, delete-orphan",
        order_by="JournalItem.id",
    )
    reversal_of = relationship(
        "JournalEntry",
        remote_side=[id],
        foreign_keys=[reversal_of_entry_id],
        backref=backref("reversal", uselist=False),
    )

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit
