from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Optional

from models.chart_of_accounts import ChartOfAccounts, AccountType
from models.journal_item import JournalItem
from models.financial_settings import FinancialSettings
from models.audit_log import AuditAction
from schemas.chart_of_accounts import ChartOfAccountsCreate, ChartOfAccountsUpdate
from crud.audit_log import log_event

DEFAULT_ACCOUNTS = [
    {"code": "1000", "name": "Cash", "account_type": AccountType.ASSET, "sub_type": "current"},
    {"code": "1010", "name": "Bank", "account_type": AccountType.ASSET, "sub_type": "current"},
    {"code": "1100", "name": "Accounts Receivable", "account_type": AccountType.ASSET, "sub_type": "current"},
    {"code": "1200", "name": "Inventory", "account_type": AccountType.ASSET, "sub_type": "current"},
    {"code": "1300", "name": "Advances to Suppliers", "account_type": AccountType.ASSET, "sub_type": "current"},
    {"code": "2000", "name": "Accounts Payable", "account_type": AccountType.LIABILITY, "sub_type": "current"},
    {"code": "3000", "name": "Owner's Equity", "account_type": AccountType.EQUITY},
    {"code": "4000", "name": "Sales Revenue", "account_type": AccountType.REVENUE},
    {"code": "5000", "name": "Cost of Goods Sold", "account_type": AccountType.EXPENSE},
    {"code": "6000", "name": "Operating Expenses", "account_type": AccountType.EXPENSE},
]


def get_account(db: Session, account_id: int, tenant_id: str) -> Optional[ChartOfAccounts]:
    return db.query(ChartOfAccounts).filter(
        ChartOfAccounts.id == account_id,
        ChartOfAccounts.tenant_id == tenant_id
    ).first()


def get_account_by_code(db: Session, code: str, tenant_id: str) -> Optional[ChartOfAccounts]:
    return db.query(ChartOfAccounts).filter(
        ChartOfAccounts.code == code,
        ChartOfAccounts.tenant_id == tenant_id
    ).first()


def get_accounts(db: Session, tenant_id: str, account_type: AccountType = None, include_inactive: bool = False, skip: int = 0, limit: int = 100):
    query = db.query(ChartOfAccounts).filter(ChartOfAccounts.tenant_id == tenant_id)

    if not include_inactive:
        query = query.filter(ChartOfAccounts.is_active.is_(True))
    if account_type:
        query = query.filter(ChartOfAccounts.account_type == account_type)

    return query.order_by(ChartOfAccounts.code).offset(skip).limit(limit).all()


def is_account_in_use(db: Session, account_id: int, tenant_id: str) -> bool:
    """True while journal items or financial settings reference the account."""
    in_use_journal = db.query(JournalItem.id).filter(
        JournalItem.account_id == account_id,
        JournalItem.tenant_id == tenant_id
    ).first()
    if in_use_journal is not None:
        return True

    in_use_settings = db.query(FinancialSettings.tenant_id).filter(
        FinancialSettings.tenant_id == tenant_id,
        or_(
            FinancialSettings.default_cash_account_id == account_id,
            FinancialSettings.default_accounts_payable_account_id == account_id,
            FinancialSettings.default_supplier_advance_account_id == account_id,
        )
    ).first()
    return in_use_settings is not None


def create_account(db: Session, account: ChartOfAccountsCreate, tenant_id: str, user_id: str = None) -> ChartOfAccounts:
    if get_account_by_code(db, account.code, tenant_id):
        raise ValueError(f"Account with code {account.code} already exists")

    db_account = ChartOfAccounts(**account.model_dump(), tenant_id=tenant_id, created_by=user_id)
    db.add(db_account)
    db.flush()
    log_event(db, db_account, AuditAction.CREATED, performed_by=user_id)
    db.commit()
    db.refresh(db_account)
    return db_account


def update_account(db: Session, account_id: int, account_update: ChartOfAccountsUpdate, tenant_id: str, user_id: str = None) -> Optional[ChartOfAccounts]:
    db_account = get_account(db, account_id, tenant_id)
    if not db_account:
        return None

    update_data = account_update.model_dump(exclude_unset=True)

    in_use = is_account_in_use(db, account_id, tenant_id)
    if in_use and 'account_type' in update_data and update_data['account_type'] != db_account.account_type:
        raise ValueError("Cannot change account type for an account that is in use by journal entries or financial settings.")
    if in_use and update_data.get('is_active') is False:
        raise ValueError("Cannot deactivate account because it is referenced by journal items or financial settings.")

    for key, value in update_data.items():
        setattr(db_account, key, value)
    db_account.updated_by = user_id

    log_event(db, db_account, AuditAction.UPDATED, performed_by=user_id)
    db.commit()
    db.refresh(db_account)
    return db_account


def deactivate_account(db: Session, account_id: int, tenant_id: str, user_id: str = None) -> bool:
    db_account = get_account(db, account_id, tenant_id)
    if not db_account:
        return False

    # Accounts are never removed while anything references them
    if is_account_in_use(db, account_id, tenant_id):
        raise ValueError(f"Account {db_account.code} is referenced by journal items or financial settings and cannot be deactivated")

    db_account.is_active = False
    db_account.updated_by = user_id
    log_event(db, db_account, AuditAction.UPDATED, performed_by=user_id)
    db.commit()
    return True


def initialize_default_accounts(db: Session, tenant_id: str, user_id: str = None):
    """Initialize default chart of accounts for a new tenant"""
    created = []
    for account_data in DEFAULT_ACCOUNTS:
        existing = get_account_by_code(db, account_data["code"], tenant_id)
        if not existing:
            created.append(create_account(db, ChartOfAccountsCreate(**account_data), tenant_id, user_id))
    return created
