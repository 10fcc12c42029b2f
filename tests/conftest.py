import os
import tempfile
from datetime import date
from decimal import Decimal

# Must be set before anything imports config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="ledger-logs-"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
import models  # noqa: F401
from models.banks import Bank
from models.business_partners import BusinessPartner
from models.chart_of_accounts import ChartOfAccounts, AccountType
from models.purchase_orders import PurchaseOrder, PurchaseOrderStatus
from schemas.journal_entry import JournalEntryCreate
from schemas.journal_item import JournalItemCreate

TENANT = "tenant-1"
USER = "tester"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def _account(db, code, name, account_type, sub_type=None):
    account = ChartOfAccounts(
        tenant_id=TENANT,
        code=code,
        name=name,
        account_type=account_type,
        sub_type=sub_type,
        is_active=True,
        balance=Decimal("0.00"),
    )
    db.add(account)
    return account


@pytest.fixture
def accounts(db):
    """A small chart of accounts, keyed by a short name."""
    chart = {
        "cash": _account(db, "1000", "Cash", AccountType.ASSET, "current"),
        "bank": _account(db, "1010", "Bank", AccountType.ASSET, "current"),
        "advances": _account(db, "1300", "Advances to Suppliers", AccountType.ASSET, "current"),
        "payable": _account(db, "2000", "Accounts Payable", AccountType.LIABILITY, "current"),
        "equity": _account(db, "3000", "Owner's Equity", AccountType.EQUITY),
        "revenue": _account(db, "4000", "Sales Revenue", AccountType.REVENUE),
        "expense": _account(db, "6000", "Operating Expenses", AccountType.EXPENSE),
    }
    db.commit()
    return chart


@pytest.fixture
def supplier(db):
    partner = BusinessPartner(tenant_id=TENANT, name="Acme Feed Ltd", is_vendor=True, wallet_balance=Decimal("400.00"))
    db.add(partner)
    db.commit()
    return partner


@pytest.fixture
def bank(db, accounts):
    db_bank = Bank(
        tenant_id=TENANT,
        name="City Bank",
        account_number="0012-345",
        current_balance=Decimal("5000.00"),
        chart_of_account_id=accounts["bank"].id,
    )
    db.add(db_bank)
    db.commit()
    return db_bank


@pytest.fixture
def purchase_order(db, supplier):
    po = PurchaseOrder(
        tenant_id=TENANT,
        po_number=12,
        vendor_id=supplier.id,
        order_date=date(2024, 3, 1),
        total_amount=Decimal("1000.00"),
        total_amount_paid=Decimal("0.00"),
        status=PurchaseOrderStatus.APPROVED,
    )
    db.add(po)
    db.commit()
    return po


def make_entry(lines, entry_date=date(2024, 3, 15), description="Cash sale"):
    """Build a JournalEntryCreate from (account, debit, credit) tuples."""
    return JournalEntryCreate(
        date=entry_date,
        description=description,
        items=[
            JournalItemCreate(account_id=account.id, debit=debit, credit=credit)
            for account, debit, credit in lines
        ],
    )


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient

    from database import get_db
    from main import app
    from utils.auth_utils import get_current_user

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: {"username": USER, "cognito:groups": ["admin"]}
    with TestClient(app, headers={"X-Tenant-ID": TENANT}) as test_client:
        yield test_client
    app.dependency_overrides.clear()
