from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from database import get_db
from schemas.supplier_ledger import SupplierLedgerEntry, WalletCredit
from crud import supplier_ledger as supplier_ledger_crud
from utils.tenancy import get_tenant_id
from utils.auth_utils import require_group, get_user_identifier

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


def _get_supplier_or_404(db: Session, supplier_id: int, tenant_id: str):
    supplier = supplier_ledger_crud.get_supplier(db, supplier_id, tenant_id)
    if supplier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    return supplier


@router.get("/{supplier_id}/ledger", response_model=List[SupplierLedgerEntry])
def read_supplier_ledger(
    supplier_id: int,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin"])),
    tenant_id: str = Depends(get_tenant_id)
):
    """Wallet history of a supplier, oldest first, with running balances."""
    _get_supplier_or_404(db, supplier_id, tenant_id)
    return supplier_ledger_crud.get_supplier_ledger(db, supplier_id, tenant_id, skip, limit)


@router.post("/{supplier_id}/wallet/credit", response_model=SupplierLedgerEntry, status_code=status.HTTP_201_CREATED)
def credit_supplier_wallet(
    supplier_id: int,
    credit: WalletCredit,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin"])),
    tenant_id: str = Depends(get_tenant_id)
):
    supplier = _get_supplier_or_404(db, supplier_id, tenant_id)
    try:
        return supplier_ledger_crud.top_up_wallet(
            db, supplier, credit.amount,
            reason=credit.reason,
            transaction_id=credit.transaction_id,
            user_id=get_user_identifier(user),
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
