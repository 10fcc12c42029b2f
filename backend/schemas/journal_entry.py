from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal

from .journal_item import JournalItemCreate, JournalItem
from .chart_of_accounts import ChartOfAccounts


class JournalEntryBase(BaseModel):
    date: date
    description: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None


class JournalEntryCreate(JournalEntryBase):
    # Pre-filled by the UI from /next-number; the server always issues the authoritative number
    entry_number: Optional[str] = None
    items: List[JournalItemCreate] = Field(..., min_length=2)


class JournalEntryUpdate(BaseModel):
    date: Optional[date] = None
    description: Optional[str] = None
    items: List[JournalItemCreate] = Field(..., min_length=2)


class JournalEntryReverse(BaseModel):
    reason: Optional[str] = None
    date: Optional[date] = None


class JournalEntry(JournalEntryBase):
    id: int
    tenant_id: str
    entry_number: str
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool
    is_reversed: bool
    reversal_of_entry_id: Optional[int] = None
    reversed_at: Optional[datetime] = None
    reversed_by: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[JournalItem] = []

    class Config:
        from_attributes = True


class NextEntryNumber(BaseModel):
    next_entry_number: str


class JournalEntryStatistics(BaseModel):
    total_entries: int
    reversed_entries: int
    active_entries: int
    total_debit_amount: Decimal
    total_credit_amount: Decimal
    recent_entries: List[JournalEntry] = []


class AccountLedger(BaseModel):
    account: ChartOfAccounts
    entries: List[JournalEntry]
    total_debit: Decimal
    total_credit: Decimal
