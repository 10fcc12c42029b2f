from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from models.chart_of_accounts import AccountType


class ChartOfAccountsBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    account_type: AccountType
    sub_type: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True


class ChartOfAccountsCreate(ChartOfAccountsBase):
    pass


class ChartOfAccountsUpdate(BaseModel):
    name: Optional[str] = None
    account_type: Optional[AccountType] = None
    sub_type: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ChartOfAccounts(ChartOfAccountsBase):
    id: int
    tenant_id: str
    balance: Decimal
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
