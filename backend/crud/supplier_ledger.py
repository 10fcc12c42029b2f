import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from models.business_partners import BusinessPartner
from models.supplier_ledger import SupplierLedgerEntry, SupplierLedgerType
from utils import to_money

logger = logging.getLogger(__name__)


def get_supplier(db: Session, supplier_id: int, tenant_id: str) -> Optional[BusinessPartner]:
    return db.query(BusinessPartner).filter(
        BusinessPartner.id == supplier_id,
        BusinessPartner.tenant_id == tenant_id,
        BusinessPartner.is_vendor.is_(True),
    ).first()


def _append_entry(
    db: Session,
    supplier: BusinessPartner,
    entry_type: SupplierLedgerType,
    amount: Decimal,
    reason: Optional[str],
    transaction_id: Optional[str],
    user_id: Optional[str],
) -> SupplierLedgerEntry:
    signed = amount if entry_type == SupplierLedgerType.CREDIT else -amount
    # "wallet_balance = wallet_balance + :signed", read back after the flush for the running balance
    supplier.wallet_balance = BusinessPartner.wallet_balance + signed
    db.flush()

    entry = SupplierLedgerEntry(
        tenant_id=supplier.tenant_id,
        supplier_id=supplier.id,
        type=entry_type,
        amount=amount,
        balance=to_money(supplier.wallet_balance),
        transaction_id=transaction_id,
        reason=reason,
        created_by=user_id,
    )
    db.add(entry)
    return entry


def credit_wallet(db: Session, supplier: BusinessPartner, amount, reason: str = None, transaction_id: str = None, user_id: str = None) -> SupplierLedgerEntry:
    """Add prepaid credit to a supplier. Does not commit."""
    amount = to_money(amount)
    if amount <= 0:
        raise ValueError("Wallet credit amount must be positive")
    return _append_entry(db, supplier, SupplierLedgerType.CREDIT, amount, reason, transaction_id, user_id)


def debit_wallet(db: Session, supplier: BusinessPartner, amount, reason: str = None, transaction_id: str = None, user_id: str = None) -> SupplierLedgerEntry:
    """Consume supplier credit. Does not commit; the balance may go negative."""
    amount = to_money(amount)
    if amount <= 0:
        raise ValueError("Wallet debit amount must be positive")
    entry = _append_entry(db, supplier, SupplierLedgerType.DEBIT, amount, reason, transaction_id, user_id)
    if entry.balance < 0:
        logger.warning(f"Supplier {supplier.id} wallet is negative after debit: {entry.balance}")
    return entry


def top_up_wallet(db: Session, supplier: BusinessPartner, amount, reason: str = None, transaction_id: str = None, user_id: str = None) -> SupplierLedgerEntry:
    try:
        entry = credit_wallet(db, supplier, amount, reason or "Wallet top-up", transaction_id, user_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(entry)
    logger.info(f"Supplier {supplier.id} wallet credited with {entry.amount}; balance {entry.balance}")
    return entry


def get_supplier_ledger(db: Session, supplier_id: int, tenant_id: str, skip: int = 0, limit: int = 100) -> List[SupplierLedgerEntry]:
    return db.query(SupplierLedgerEntry).filter(
        SupplierLedgerEntry.supplier_id == supplier_id,
        SupplierLedgerEntry.tenant_id == tenant_id,
    ).order_by(SupplierLedgerEntry.id.asc()).offset(skip).limit(limit).all()
