from decimal import Decimal
import enum

from sqlalchemy import Column, Integer, String, Text, Enum, Boolean, Numeric
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class PartnerStatus(enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    BLOCKED = "Blocked"


class BusinessPartner(Base, TimestampMixin):
    __tablename__ = "business_partners"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True)
    name = Column(String, nullable=False)
    contact_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    email = Column(String, nullable=True)
    status = Column(Enum(PartnerStatus), default=PartnerStatus.ACTIVE, nullable=False)
    is_vendor = Column(Boolean, default=True, nullable=False)
    is_customer = Column(Boolean, default=False, nullable=False)
    # Prepaid credit held with this supplier, consumed before bank funds
    wallet_balance = Column(Numeric(15, 2), default=Decimal("0.00"), nullable=False)

    # Relationships
    purchase_orders = relationship("PurchaseOrder", back_populates="vendor", foreign_keys="PurchaseOrder.vendor_id")
    ledger_entries = relationship(
        "SupplierLedgerEntry",
        back_populates="supplier",
        order_by="SupplierLedgerEntry.id",
    )
