from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from database import get_db
from models.chart_of_accounts import AccountType
from schemas.chart_of_accounts import ChartOfAccounts, ChartOfAccountsCreate, ChartOfAccountsUpdate
from crud import chart_of_accounts as chart_of_accounts_crud
from utils.tenancy import get_tenant_id
from utils.auth_utils import require_group, get_user_identifier

router = APIRouter(
    prefix="/chart-of-accounts",
    tags=["Chart of Accounts"],
)


@router.post("/", response_model=ChartOfAccounts, status_code=status.HTTP_201_CREATED)
def create_account(
    account: ChartOfAccountsCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    try:
        return chart_of_accounts_crud.create_account(db, account, tenant_id, get_user_identifier(user))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/initialize", response_model=List[ChartOfAccounts], status_code=status.HTTP_201_CREATED)
def initialize_accounts(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """Seed the default chart of accounts; returns only the accounts it created."""
    return chart_of_accounts_crud.initialize_default_accounts(db, tenant_id, get_user_identifier(user))


@router.get("/", response_model=List[ChartOfAccounts])
def get_accounts(
    account_type: Optional[AccountType] = None,
    include_inactive: bool = False,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    return chart_of_accounts_crud.get_accounts(db, tenant_id, account_type, include_inactive, skip, limit)


@router.get("/{account_id}", response_model=ChartOfAccounts)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    account = chart_of_accounts_crud.get_account(db, account_id, tenant_id)
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account with id {account_id} not found"
        )
    return account


@router.patch("/{account_id}", response_model=ChartOfAccounts)
def update_account(
    account_id: int,
    account_update: ChartOfAccountsUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    try:
        account = chart_of_accounts_crud.update_account(db, account_id, account_update, tenant_id, get_user_identifier(user))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account with id {account_id} not found"
        )
    return account


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """Deactivates the account; accounts are never physically removed."""
    try:
        deactivated = chart_of_accounts_crud.deactivate_account(db, account_id, tenant_id, get_user_identifier(user))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not deactivated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account with id {account_id} not found"
        )
    return None
