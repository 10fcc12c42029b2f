from pydantic import BaseModel
from typing import Optional

from .chart_of_accounts import ChartOfAccounts


class FinancialSettingsBase(BaseModel):
    default_cash_account_id: Optional[int] = None
    default_accounts_payable_account_id: Optional[int] = None
    default_supplier_advance_account_id: Optional[int] = None


class FinancialSettingsUpdate(FinancialSettingsBase):
    pass


class FinancialSettings(FinancialSettingsBase):
    tenant_id: str
    is_initialized: bool

    class Config:
        from_attributes = True


class DefaultAccounts(BaseModel):
    """The configured default accounts, resolved to full records."""
    cash: ChartOfAccounts
    accounts_payable: ChartOfAccounts
    supplier_advance: ChartOfAccounts
