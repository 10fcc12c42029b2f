from decimal import Decimal
import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, Enum, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin


class AccountType(enum.Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


# Debits increase these; every other type is credit-normal
DEBIT_NORMAL_TYPES = {AccountType.ASSET, AccountType.EXPENSE}


class ChartOfAccounts(Base, TimestampMixin):
    __tablename__ = "chart_of_accounts"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    account_type = Column(Enum(AccountType), nullable=False)
    sub_type = Column(String(50), nullable=True)  # e.g. "current", "fixed"
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    # Derived from postings; only the posting engine writes it
    balance = Column(Numeric(15, 2), default=Decimal("0.00"), nullable=False)
    tenant_id = Column(String, index=True)

    __table_args__ = (
        UniqueConstraint('tenant_id', 'code', name='_tenant_account_code_uc'),
    )

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in DEBIT_NORMAL_TYPES

    def balance_effect(self, debit: Decimal, credit: Decimal) -> Decimal:
        """Signed change to this account's balance from one posted line."""
        if self.is_debit_normal:
            return debit - credit
        return credit - debit
