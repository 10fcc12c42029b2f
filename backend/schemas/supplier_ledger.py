from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from models.supplier_ledger import SupplierLedgerType


class SupplierLedgerEntry(BaseModel):
    id: int
    supplier_id: int
    type: SupplierLedgerType
    amount: Decimal
    balance: Decimal
    transaction_id: Optional[str] = None
    reason: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WalletCredit(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    reason: Optional[str] = None
    transaction_id: Optional[str] = None
