from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from decimal import Decimal

from models.expenses import ExpenseStatus, FundingSource


class Expense(BaseModel):
    id: int
    tenant_id: Optional[str] = None
    title: str
    amount: Decimal
    expense_date: date
    account_id: int
    payment_account_id: Optional[int] = None
    funding_source: FundingSource
    bank_id: Optional[int] = None
    supplier_id: Optional[int] = None
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    status: ExpenseStatus
    paid_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    journal_entry_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpenseReject(BaseModel):
    reason: Optional[str] = None
