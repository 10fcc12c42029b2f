import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from schemas.chart_of_accounts import ChartOfAccounts
from schemas.financial_settings import DefaultAccounts, FinancialSettings, FinancialSettingsUpdate
from crud import financial_settings as financial_settings_crud
from utils.tenancy import get_tenant_id
from utils.auth_utils import require_group, get_user_identifier

router = APIRouter(prefix="/financial-settings", tags=["Financial Settings"])
logger = logging.getLogger("financial_settings")


@router.get("/", response_model=FinancialSettings)
def read_financial_settings(
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin"])),
    tenant_id: str = Depends(get_tenant_id)
):
    """Current defaults; missing default accounts are seeded on first read."""
    return financial_settings_crud.get_financial_settings(db, tenant_id)


@router.get("/accounts", response_model=DefaultAccounts)
def read_default_accounts(
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin"])),
    tenant_id: str = Depends(get_tenant_id)
):
    accounts = financial_settings_crud.get_default_accounts(db, tenant_id)
    return DefaultAccounts(**{role: ChartOfAccounts.model_validate(account) for role, account in accounts.items()})


@router.patch("/", response_model=FinancialSettings)
def update_financial_settings(
    settings_update: FinancialSettingsUpdate,
    db: Session = Depends(get_db),
    user: dict = Depends(require_group(["admin"])),
    tenant_id: str = Depends(get_tenant_id)
):
    try:
        return financial_settings_crud.update_financial_settings(
            db, settings_update, tenant_id, get_user_identifier(user)
        )
    except ValueError as e:
        logger.warning(f"Rejected financial settings update for tenant {tenant_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
