from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal


class BankBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    account_number: Optional[str] = None
    chart_of_account_id: Optional[int] = None
    is_active: bool = True


class BankCreate(BankBase):
    opening_balance: Decimal = Field(Decimal("0.00"), decimal_places=2)


class Bank(BankBase):
    id: int
    tenant_id: Optional[str] = None
    current_balance: Decimal

    class Config:
        from_attributes = True
