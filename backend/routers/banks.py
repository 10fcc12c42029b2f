from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
import logging
from database import get_db
from models.audit_log import AuditAction
from models.banks import Bank as BankModel
from models.chart_of_accounts import ChartOfAccounts as ChartOfAccountsModel
from schemas.banks import Bank, BankCreate
from crud.audit_log import record_audit_event
from utils.tenancy import get_tenant_id
from utils.auth_utils import require_group, get_user_identifier

router = APIRouter(prefix="/banks", tags=["Banks"])
logger = logging.getLogger("banks")


@router.post("/", response_model=Bank, status_code=status.HTTP_201_CREATED)
def create_bank(
    bank: BankCreate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin"])),
    tenant_id: str = Depends(get_tenant_id)
):
    if bank.chart_of_account_id is not None:
        account = db.query(ChartOfAccountsModel).filter(
            ChartOfAccountsModel.id == bank.chart_of_account_id,
            ChartOfAccountsModel.tenant_id == tenant_id
        ).first()
        if account is None:
            raise HTTPException(status_code=400, detail=f"Account with id {bank.chart_of_account_id} not found")

    data = bank.model_dump(exclude={"opening_balance"})
    db_bank = BankModel(**data, current_balance=bank.opening_balance, tenant_id=tenant_id, created_by=get_user_identifier(user))
    db.add(db_bank)
    db.commit()
    db.refresh(db_bank)
    record_audit_event(db, db_bank, AuditAction.CREATED, performed_by=get_user_identifier(user))
    logger.info(f"Bank '{db_bank.name}' created by user {get_user_identifier(user)} for tenant {tenant_id}")
    return db_bank


@router.get("/", response_model=List[Bank])
def read_banks(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin"])),
    tenant_id: str = Depends(get_tenant_id)
):
    return db.query(BankModel).filter(
        BankModel.tenant_id == tenant_id,
        BankModel.is_active.is_(True)
    ).offset(skip).limit(limit).all()


@router.get("/{bank_id}", response_model=Bank)
def read_bank(
    bank_id: int,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin"])),
    tenant_id: str = Depends(get_tenant_id)
):
    db_bank = db.query(BankModel).filter(BankModel.id == bank_id, BankModel.tenant_id == tenant_id).first()
    if db_bank is None:
        raise HTTPException(status_code=404, detail="Bank not found")
    return db_bank
