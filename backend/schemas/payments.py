from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

from .expenses import Expense


class PaymentBreakdown(BaseModel):
    from_credit: Decimal
    from_bank: Decimal
    total: Decimal


class FinalBalance(BaseModel):
    final_balance: Decimal
    is_negative: bool
    difference: Decimal


class PaymentValidation(BaseModel):
    can_proceed: bool
    reason: Optional[str] = None


class PurchaseOrderPaymentRequest(BaseModel):
    bank_id: Optional[int] = None
    # Base-currency amount; defaults to whatever is still due on the order
    amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    # Alternative to `amount`, converted with the current exchange rate
    foreign_amount: Optional[Decimal] = Field(None, gt=0)
    # Off: drafts stay in draft until POST /expenses/{id}/submit
    submit_for_approval: bool = True


class PaymentPreview(BaseModel):
    purchase_order_id: int
    supplier_credit_balance: Decimal
    breakdown: PaymentBreakdown
    description: str
    bank_balance: Optional[FinalBalance] = None
    validation: PaymentValidation


class PaymentProcessResult(BaseModel):
    breakdown: PaymentBreakdown
    description: str
    wallet_expense: Optional[Expense] = None
    bank_expense: Optional[Expense] = None
