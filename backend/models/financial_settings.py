from sqlalchemy import Column, Integer, String, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class FinancialSettings(Base, TimestampMixin):
    __tablename__ = "financial_settings"

    tenant_id = Column(String, primary_key=True, index=True)
    is_initialized = Column(Boolean, default=False, nullable=False)

    # Default Accounts
    default_cash_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    default_accounts_payable_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)
    default_supplier_advance_account_id = Column(Integer, ForeignKey("chart_of_accounts.id"), nullable=True)

    # Relationships
    default_cash_account = relationship("ChartOfAccounts", foreign_keys=[default_cash_account_id])
    default_accounts_payable_account = relationship("ChartOfAccounts", foreign_keys=[default_accounts_payable_account_id])
    default_supplier_advance_account = relationship("ChartOfAccounts", foreign_keys=[default_supplier_advance_account_id])
