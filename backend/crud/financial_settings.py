from sqlalchemy.orm import Session
from models.financial_settings import FinancialSettings
from models.chart_of_accounts import ChartOfAccounts, AccountType
from models.audit_log import AuditAction
from schemas.audit_log import AuditLogCreate
from schemas.financial_settings import FinancialSettingsUpdate
from crud.audit_log import create_audit_log
import logging

logger = logging.getLogger(__name__)

# (field, name, code, type, sub_type)
DEFAULT_SETTING_ACCOUNTS = [
    ("default_cash_account_id", "Cash", "1000", AccountType.ASSET, "current"),
    ("default_supplier_advance_account_id", "Advances to Suppliers", "1300", AccountType.ASSET, "current"),
    ("default_accounts_payable_account_id", "Accounts Payable", "2000", AccountType.LIABILITY, "current"),
]


def get_or_create_account(db: Session, tenant_id: str, name: str, code: str, account_type: AccountType, sub_type: str = None) -> ChartOfAccounts:
    """Helper to find an account by code or name, or create it if missing."""
    account = db.query(ChartOfAccounts).filter(
        ChartOfAccounts.code == code,
        ChartOfAccounts.tenant_id == tenant_id
    ).first()

    if not account:
        account = db.query(ChartOfAccounts).filter(
            ChartOfAccounts.name == name,
            ChartOfAccounts.tenant_id == tenant_id
        ).first()

    if not account:
        logger.info(f"Seeding default account '{name}' ({code}) for tenant {tenant_id}")
        account = ChartOfAccounts(
            tenant_id=tenant_id,
            code=code,
            name=name,
            account_type=account_type,
            sub_type=sub_type,
            is_active=True,
            description=f"Default {name} account"
        )
        db.add(account)
        db.flush()

    return account


def get_financial_settings(db: Session, tenant_id: str) -> FinancialSettings:
    """
    Load the tenant's settings, seeding (and committing) any missing default accounts.

    Call this before opening a ledger transaction, never inside one.
    """
    settings = db.query(FinancialSettings).filter(FinancialSettings.tenant_id == tenant_id).first()

    if not settings:
        logger.info(f"No financial settings found for tenant {tenant_id}. Initializing defaults.")
        settings = FinancialSettings(tenant_id=tenant_id)
        db.add(settings)

    updated = False
    for field, name, code, account_type, sub_type in DEFAULT_SETTING_ACCOUNTS:
        # Backfill anything missing, e.g. settings created before a field existed
        if not getattr(settings, field):
            account = get_or_create_account(db, tenant_id, name, code, account_type, sub_type)
            setattr(settings, field, account.id)
            updated = True

    if updated:
        settings.is_initialized = True
        db.commit()
        db.refresh(settings)

    return settings


def update_financial_settings(db: Session, settings_update: FinancialSettingsUpdate, tenant_id: str, user_id: str = None) -> FinancialSettings:
    """
    Point the tenant's default accounts elsewhere.

    Every referenced account must belong to the tenant, and a configured
    default can be replaced but never cleared. The change is written to the
    audit trail with the previous and new account ids.
    """
    settings = get_financial_settings(db, tenant_id)
    update_data = settings_update.model_dump(exclude_unset=True)

    old_values = {}
    for field, account_id in update_data.items():
        if account_id is None:
            raise ValueError(f"{field} cannot be cleared")
        account = db.query(ChartOfAccounts).filter(
            ChartOfAccounts.id == account_id,
            ChartOfAccounts.tenant_id == tenant_id,
        ).first()
        if not account:
            raise ValueError(f"Account with id {account_id} not found")
        old_values[field] = getattr(settings, field)
        setattr(settings, field, account_id)

    settings.updated_by = user_id
    db.commit()
    db.refresh(settings)
    logger.info(f"Financial settings updated for tenant {tenant_id} by {user_id}: {update_data}")

    if update_data:
        create_audit_log(
            db,
            AuditLogCreate(
                entity_type="FinancialSettings",
                entity_id=0,
                entity_identifier=tenant_id,
                action=AuditAction.UPDATED,
                old_values=old_values,
                new_values=update_data,
            ),
            performed_by=user_id,
            tenant_id=tenant_id,
        )
    return settings


def get_default_accounts(db: Session, tenant_id: str) -> dict:
    settings = get_financial_settings(db, tenant_id)
    return {
        "cash": settings.default_cash_account,
        "accounts_payable": settings.default_accounts_payable_account,
        "supplier_advance": settings.default_supplier_advance_account,
    }
