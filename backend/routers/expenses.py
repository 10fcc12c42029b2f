from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from database import get_db
from exceptions import LedgerError
from models.expenses import ExpenseStatus
from schemas.expenses import Expense, ExpenseReject
from crud import expenses as expenses_crud
from utils.tenancy import get_tenant_id
from utils.auth_utils import require_group, get_user_identifier
from utils.http_errors import to_http_exception

router = APIRouter(prefix="/expenses", tags=["Expenses"])


def _get_expense_or_404(db: Session, expense_id: int, tenant_id: str):
    expense = expenses_crud.get_expense(db, expense_id, tenant_id)
    if expense is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return expense


@router.get("/", response_model=List[Expense])
def read_expenses(
    status: Optional[ExpenseStatus] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin", "payment-group"])),
    tenant_id: str = Depends(get_tenant_id)
):
    return expenses_crud.get_expenses(db, tenant_id, status, reference_type, reference_id, skip, limit)


@router.get("/{expense_id}", response_model=Expense)
def read_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin", "payment-group"])),
    tenant_id: str = Depends(get_tenant_id)
):
    return _get_expense_or_404(db, expense_id, tenant_id)


@router.post("/{expense_id}/submit", response_model=Expense)
def submit_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin", "payment-group"])),
    tenant_id: str = Depends(get_tenant_id)
):
    _get_expense_or_404(db, expense_id, tenant_id)
    try:
        return expenses_crud.submit_expense(db, expense_id, tenant_id, get_user_identifier(user))
    except LedgerError as e:
        raise to_http_exception(e)


@router.post("/{expense_id}/approve", response_model=Expense)
def approve_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin"])),
    tenant_id: str = Depends(get_tenant_id)
):
    """Deduct the funding source and post the payment to the ledger."""
    _get_expense_or_404(db, expense_id, tenant_id)
    try:
        return expenses_crud.approve_expense(db, expense_id, tenant_id, get_user_identifier(user))
    except LedgerError as e:
        raise to_http_exception(e)


@router.post("/{expense_id}/reject", response_model=Expense)
def reject_expense(
    expense_id: int,
    rejection: Optional[ExpenseReject] = None,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin"])),
    tenant_id: str = Depends(get_tenant_id)
):
    _get_expense_or_404(db, expense_id, tenant_id)
    reason = rejection.reason if rejection else None
    try:
        return expenses_crud.reject_expense(db, expense_id, tenant_id, reason, get_user_identifier(user))
    except LedgerError as e:
        raise to_http_exception(e)
