from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class Bank(Base, TimestampMixin):
    __tablename__ = "banks"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True)
    name = Column(String(100), nullable=False)
    account_number = Column(String(50), nullable=True)
    # Overdraft is permitted, so this may go negative
    current_balance = Column(Numeric(15, 2), default=Decimal("0.00"), nullable=False)
    chart_of_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    chart_of_account = relationship("ChartOfAccounts")
