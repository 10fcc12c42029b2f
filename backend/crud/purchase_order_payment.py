"""
Purchase order payment allocation.

The calculation helpers are pure: they only look at their arguments. A payment
is funded from the supplier's credit wallet first and from a bank for the
remainder. ``process_payment`` turns a breakdown into payment drafts awaiting
approval; no wallet or bank balance moves until a draft is approved (see
crud/expenses.py).
"""

import logging
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy.orm import Session

from exceptions import MissingChartOfAccountLinkError, ValidationError
from models.audit_log import AuditAction
from models.banks import Bank
from models.business_partners import BusinessPartner
from models.expenses import Expense, ExpenseStatus, FundingSource
from models.purchase_orders import PurchaseOrder
from models.supplier_ledger import SupplierLedgerEntry
from schemas.payments import PaymentBreakdown, FinalBalance, PaymentValidation
from crud.audit_log import log_event
from crud.financial_settings import get_financial_settings
from crud.supplier_ledger import debit_wallet
from utils import format_currency, local_now, to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def calculate_payment_breakdown(total_due, counterparty_credit_balance) -> PaymentBreakdown:
    """Use counterparty credit first, then the bank for the remainder."""
    total_due = Decimal(str(total_due))
    credit = Decimal(str(counterparty_credit_balance))

    from_credit = min(max(total_due, ZERO), max(ZERO, credit))
    from_bank = max(ZERO, total_due - from_credit)

    return PaymentBreakdown(
        from_credit=to_money(from_credit),
        from_bank=to_money(from_bank),
        total=to_money(total_due),
    )


def calculate_final_balance(current_balance, payment_amount) -> FinalBalance:
    final_balance = Decimal(str(current_balance)) - Decimal(str(payment_amount))
    return FinalBalance(
        final_balance=to_money(final_balance),
        is_negative=final_balance < 0,
        difference=to_money(payment_amount),
    )


def validate_payment(bank_balance, payment_amount) -> PaymentValidation:
    # Overdraft is allowed by business policy, so every payment may proceed
    return PaymentValidation(can_proceed=True)


def generate_payment_description(reference: str, breakdown: PaymentBreakdown) -> str:
    parts = [f"Payment for {reference}"]
    if breakdown.from_credit > 0:
        parts.append(f"Used supplier credit: {format_currency(breakdown.from_credit)}")
    if breakdown.from_bank > 0:
        parts.append(f"Paid from bank: {format_currency(breakdown.from_bank)}")
    return " - ".join(parts)


def deduct_supplier_credit(db: Session, supplier: BusinessPartner, amount, note: str, transaction_id: str = None, user_id: str = None) -> Optional[SupplierLedgerEntry]:
    """Debit the supplier wallet and record it in the supplier ledger. No-op for amounts <= 0."""
    if to_money(amount) <= 0:
        return None
    return debit_wallet(db, supplier, amount, reason=note, transaction_id=transaction_id, user_id=user_id)


def deduct_from_bank(db: Session, bank: Bank, amount) -> bool:
    """Reduce the bank's balance; overdraft allowed. No-op for amounts <= 0."""
    amount = to_money(amount)
    if amount <= 0:
        return False
    bank.current_balance = Bank.current_balance - amount
    db.flush()
    return True


def pending_draft_total(db: Session, po: PurchaseOrder) -> Decimal:
    drafts = db.query(Expense.amount).filter(
        Expense.tenant_id == po.tenant_id,
        Expense.reference_type == "PurchaseOrder",
        Expense.reference_id == po.id,
        Expense.status.in_([ExpenseStatus.DRAFT, ExpenseStatus.PENDING_APPROVAL]),
    ).all()
    return sum((row.amount for row in drafts), ZERO)


def _create_draft(
    db: Session,
    po: PurchaseOrder,
    title: str,
    amount: Decimal,
    notes: str,
    funding_source: FundingSource,
    account_id: int,
    payment_account_id: Optional[int],
    bank_id: Optional[int],
    user_id: Optional[str],
    submit_for_approval: bool,
) -> Expense:
    expense = Expense(
        tenant_id=po.tenant_id,
        title=title,
        amount=amount,
        expense_date=local_now().date(),
        account_id=account_id,
        payment_account_id=payment_account_id,
        funding_source=funding_source,
        bank_id=bank_id,
        supplier_id=po.vendor_id,
        reference_type="PurchaseOrder",
        reference_id=po.id,
        reference_number=po.reference_number,
        notes=notes,
        status=ExpenseStatus.DRAFT,
        paid_by=user_id,
        created_by=user_id,
    )
    db.add(expense)
    db.flush()
    if submit_for_approval:
        expense.transition_to(ExpenseStatus.PENDING_APPROVAL)
    log_event(db, expense, AuditAction.CREATED, performed_by=user_id)
    return expense


def process_payment(
    db: Session,
    po: PurchaseOrder,
    bank: Optional[Bank],
    breakdown: PaymentBreakdown,
    user_id: Optional[str] = None,
    submit_for_approval: bool = True,
) -> Dict[str, Optional[Expense]]:
    """
    Create one payment draft per non-zero part of the breakdown.

    Drafts go straight to pending approval unless `submit_for_approval` is off,
    in which case they stay in draft until submitted. Nothing is deducted here. Raises MissingChartOfAccountLinkError when the bank
    part is non-zero and the bank has no account to post against.
    """
    outstanding = po.amount_due - pending_draft_total(db, po)
    if breakdown.total > outstanding:
        raise ValidationError(
            f"Payment amount ({breakdown.total}) exceeds remaining due amount ({outstanding}) for {po.reference_number}."
        )

    if breakdown.from_bank > 0:
        if bank is None:
            raise ValidationError("A bank account is required for the bank-funded part of this payment")
        if not bank.chart_of_account_id:
            raise MissingChartOfAccountLinkError(bank.id, bank.name)

    settings = get_financial_settings(db, po.tenant_id)
    supplier_name = po.vendor.name if po.vendor else f"supplier #{po.vendor_id}"
    drafts = {"wallet_expense": None, "bank_expense": None}

    try:
        if breakdown.from_credit > 0:
            drafts["wallet_expense"] = _create_draft(
                db, po,
                title=f"{po.reference_number} - Payment to {supplier_name} from wallet",
                amount=breakdown.from_credit,
                notes=f"Supplier wallet payment for {po.reference_number}. Supplier credit: {format_currency(breakdown.from_credit)}",
                funding_source=FundingSource.WALLET,
                account_id=settings.default_accounts_payable_account_id,
                payment_account_id=settings.default_supplier_advance_account_id,
                bank_id=None,
                user_id=user_id,
                submit_for_approval=submit_for_approval,
            )

        if breakdown.from_bank > 0:
            drafts["bank_expense"] = _create_draft(
                db, po,
                title=f"{po.reference_number} - Payment to {supplier_name} from {bank.name}",
                amount=breakdown.from_bank,
                notes=f"Bank payment for {po.reference_number}. Bank: {bank.name}, Amount: {format_currency(breakdown.from_bank)}",
                funding_source=FundingSource.BANK,
                account_id=settings.default_accounts_payable_account_id,
                payment_account_id=bank.chart_of_account_id,
                bank_id=bank.id,
                user_id=user_id,
                submit_for_approval=submit_for_approval,
            )

        db.commit()
    except Exception:
        db.rollback()
        raise

    for draft in drafts.values():
        if draft is not None:
            db.refresh(draft)
    logger.info(
        f"Payment drafts created for {po.reference_number} by {user_id}: "
        f"wallet={breakdown.from_credit}, bank={breakdown.from_bank}"
    )
    return drafts
