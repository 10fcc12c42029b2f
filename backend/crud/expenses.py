"""
Payment drafts and their approval workflow.

DRAFT -> PENDING_APPROVAL -> POSTED, with REJECTED reachable from either open
state. Approval is the only step that moves money: it deducts the wallet or
bank, posts the journal entry and updates the purchase order in one
transaction.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from exceptions import MissingChartOfAccountLinkError, ValidationError
from models.audit_log import AuditAction
from models.expenses import Expense, ExpenseStatus, FundingSource
from models.purchase_orders import PurchaseOrder, PurchaseOrderStatus
from schemas.journal_item import JournalItemCreate
from crud.audit_log import log_event
from crud.entry_numbering import run_numbered_transaction
from crud.journal_entry import create_entry
from crud.purchase_order_payment import deduct_from_bank, deduct_supplier_credit
from utils import local_now

logger = logging.getLogger(__name__)


def get_expense(db: Session, expense_id: int, tenant_id: str) -> Optional[Expense]:
    return db.query(Expense).filter(
        Expense.id == expense_id,
        Expense.tenant_id == tenant_id,
    ).first()


def get_expenses(
    db: Session,
    tenant_id: str,
    status: Optional[ExpenseStatus] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Expense]:
    query = db.query(Expense).filter(Expense.tenant_id == tenant_id)
    if status:
        query = query.filter(Expense.status == status)
    if reference_type:
        query = query.filter(Expense.reference_type == reference_type)
    if reference_id is not None:
        query = query.filter(Expense.reference_id == reference_id)
    return query.order_by(Expense.id.desc()).offset(skip).limit(limit).all()


def _get_expense_or_raise(db: Session, expense_id: int, tenant_id: str) -> Expense:
    expense = get_expense(db, expense_id, tenant_id)
    if expense is None:
        raise ValueError(f"Expense with id {expense_id} not found")
    return expense


def submit_expense(db: Session, expense_id: int, tenant_id: str, user_id: Optional[str] = None) -> Expense:
    expense = _get_expense_or_raise(db, expense_id, tenant_id)
    try:
        expense.transition_to(ExpenseStatus.PENDING_APPROVAL)
        expense.updated_by = user_id
        log_event(db, expense, AuditAction.UPDATED, performed_by=user_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(expense)
    return expense


def _settle_purchase_order(db: Session, expense: Expense) -> None:
    if expense.reference_type != "PurchaseOrder" or expense.reference_id is None:
        return
    po = db.query(PurchaseOrder).filter(
        PurchaseOrder.id == expense.reference_id,
        PurchaseOrder.tenant_id == expense.tenant_id,
    ).first()
    if po is None:
        logger.warning(f"Expense {expense.id} references missing purchase order {expense.reference_id}")
        return
    po.total_amount_paid = (po.total_amount_paid or 0) + expense.amount
    po.status = PurchaseOrderStatus.PAID if po.amount_due <= 0 else PurchaseOrderStatus.PARTIALLY_PAID


def approve_expense(db: Session, expense_id: int, tenant_id: str, user_id: Optional[str] = None) -> Expense:
    """
    Approve a pending draft: deduct its funding source and post
    Dr <expense account> / Cr <payment account> for its amount.
    """

    def work():
        expense = _get_expense_or_raise(db, expense_id, tenant_id)
        expense.transition_to(ExpenseStatus.POSTED)

        if expense.funding_source == FundingSource.WALLET:
            if expense.supplier is None:
                raise ValidationError(f"Expense {expense.id} is funded from a wallet but has no supplier")
            deduct_supplier_credit(
                db, expense.supplier, expense.amount,
                note=expense.title,
                transaction_id=expense.reference_number,
                user_id=user_id,
            )
        else:
            bank = expense.bank
            if bank is None:
                raise ValidationError(f"Expense {expense.id} is funded from a bank but has no bank account")
            if not bank.chart_of_account_id:
                raise MissingChartOfAccountLinkError(bank.id, bank.name)
            expense.payment_account_id = bank.chart_of_account_id
            deduct_from_bank(db, bank, expense.amount)

        if not expense.payment_account_id:
            raise ValidationError(f"Expense {expense.id} has no payment account to credit")

        entry = create_entry(
            db,
            tenant_id=tenant_id,
            entry_date=expense.expense_date,
            description=expense.title,
            items=[
                JournalItemCreate(account_id=expense.account_id, debit=expense.amount, credit=0),
                JournalItemCreate(account_id=expense.payment_account_id, debit=0, credit=expense.amount),
            ],
            user_id=user_id,
            reference_type="Expense",
            reference_id=expense.id,
        )

        expense.journal_entry_id = entry.id
        expense.approved_by = user_id
        expense.approved_at = local_now()
        _settle_purchase_order(db, expense)

        log_event(db, expense, AuditAction.APPROVED, performed_by=user_id)
        return expense

    expense = run_numbered_transaction(db, tenant_id, work)
    logger.info(f"Expense {expense.id} approved by {user_id}; posted {expense.amount}")
    db.refresh(expense)
    return expense


def reject_expense(db: Session, expense_id: int, tenant_id: str, reason: Optional[str] = None, user_id: Optional[str] = None) -> Expense:
    """Close a draft without moving any money."""
    expense = _get_expense_or_raise(db, expense_id, tenant_id)
    try:
        expense.transition_to(ExpenseStatus.REJECTED)
        expense.rejected_by = user_id
        expense.rejected_at = local_now()
        expense.rejection_reason = reason
        log_event(
            db, expense, AuditAction.REJECTED,
            description=f"Rejected Expense: {expense.title}" + (f". Reason: {reason}" if reason else ""),
            performed_by=user_id,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(expense)
    logger.info(f"Expense {expense.id} rejected by {user_id}")
    return expense
