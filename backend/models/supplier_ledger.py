import enum

from sqlalchemy import Column, Integer, String, Numeric, Enum, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class SupplierLedgerType(enum.Enum):
    CREDIT = "credit"  # adds to the supplier wallet
    DEBIT = "debit"    # consumes the supplier wallet


class SupplierLedgerEntry(Base, TimestampMixin):
    """Append-only history of a supplier's wallet balance."""
    __tablename__ = "supplier_ledger_entries"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True)
    supplier_id = Column(Integer, ForeignKey("business_partners.id"), nullable=False, index=True)
    type = Column(Enum(SupplierLedgerType), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    balance = Column(Numeric(15, 2), nullable=False)  # running balance after this entry
    transaction_id = Column(String, nullable=True)
    reason = Column(String, nullable=True)

    supplier = relationship("BusinessPartner", back_populates="ledger_entries")
