"""
Journal posting engine.

Validates balanced multi-line entries, persists them with a freshly issued
entry number and keeps every referenced account's derived balance in step.
Each public mutation commits exactly once; on failure nothing is written.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from config import BALANCE_TOLERANCE
from exceptions import (
    EntryNotFoundError,
    ImmutableEntryError,
    InvalidLineError,
    UnbalancedEntryError,
    UnknownAccountError,
    ValidationError,
)
from models.audit_log import AuditAction
from models.chart_of_accounts import ChartOfAccounts
from models.expenses import Expense
from models.journal_entry import JournalEntry
from models.journal_item import JournalItem
from schemas.journal_entry import JournalEntryCreate, JournalEntryUpdate
from schemas.journal_item import JournalItemCreate
from crud.audit_log import log_event
from crud.entry_numbering import (
    format_entry_number,
    get_next_sequence,
    run_numbered_transaction,
)
from utils import to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

# (account_id, debit, credit)
Line = Tuple[int, Decimal, Decimal]


def validate_items(items: Sequence[JournalItemCreate]) -> Tuple[List[Line], Decimal, Decimal]:
    """
    Check line shape and balance, returning the rounded lines and totals.

    Every line carries exactly one strictly positive amount. Amounts are
    rounded to two places before summing, so a balanced entry balances exactly.
    """
    if len(items) < 2:
        raise ValidationError("A journal entry must contain at least two items")

    lines = []
    for index, item in enumerate(items):
        debit = to_money(item.debit)
        credit = to_money(item.credit)
        if debit < 0 or credit < 0:
            raise InvalidLineError(index, "cannot have negative amounts", debit, credit)
        if debit > 0 and credit > 0:
            raise InvalidLineError(index, "cannot have both debit and credit values", debit, credit)
        if debit == 0 and credit == 0:
            raise InvalidLineError(index, "must have either debit or credit value", debit, credit)
        lines.append((item.account_id, debit, credit))

    total_debit = sum((line[1] for line in lines), ZERO)
    total_credit = sum((line[2] for line in lines), ZERO)
    if abs(total_debit - total_credit) >= BALANCE_TOLERANCE:
        raise UnbalancedEntryError(total_debit, total_credit)

    return lines, total_debit, total_credit


def load_accounts(db: Session, tenant_id: str, account_ids: Iterable[int]) -> Dict[int, ChartOfAccounts]:
    wanted = set(account_ids)
    accounts = db.query(ChartOfAccounts).filter(
        ChartOfAccounts.id.in_(wanted),
        ChartOfAccounts.tenant_id == tenant_id,
    ).all()
    found = {account.id: account for account in accounts}
    for account_id in sorted(wanted):
        if account_id not in found:
            raise UnknownAccountError(account_id)
    return found


def _add_effects(deltas: Dict[int, Decimal], accounts: Dict[int, ChartOfAccounts], lines: Iterable[Line], sign: int = 1) -> None:
    for account_id, debit, credit in lines:
        effect = accounts[account_id].balance_effect(debit, credit)
        deltas[account_id] = deltas.get(account_id, ZERO) + sign * effect


def _apply_balance_deltas(accounts: Dict[int, ChartOfAccounts], deltas: Dict[int, Decimal]) -> None:
    # Emitted as "balance = balance + :delta" so concurrent postings never lose an update
    for account_id, delta in deltas.items():
        if delta:
            accounts[account_id].balance = ChartOfAccounts.balance + delta


def _existing_lines(entry: JournalEntry) -> List[Line]:
    return [(item.account_id, item.debit, item.credit) for item in entry.items]


def _append_items(entry: JournalEntry, lines: List[Line]) -> None:
    for account_id, debit, credit in lines:
        entry.items.append(JournalItem(
            tenant_id=entry.tenant_id,
            account_id=account_id,
            debit=debit,
            credit=credit,
        ))


def create_entry(
    db: Session,
    tenant_id: str,
    entry_date: date,
    description: Optional[str],
    items: Sequence[JournalItemCreate],
    user_id: Optional[str] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    reversal_of_entry_id: Optional[int] = None,
) -> JournalEntry:
    """
    Validate and stage a new entry in the current transaction without committing.

    Callers that need the entry to land atomically with other changes (reversal,
    payment approval) use this inside ``run_numbered_transaction``.
    """
    lines, total_debit, total_credit = validate_items(items)
    accounts = load_accounts(db, tenant_id, [line[0] for line in lines])

    sequence = get_next_sequence(db, tenant_id)
    db_entry = JournalEntry(
        tenant_id=tenant_id,
        entry_number=format_entry_number(sequence),
        sequence_number=sequence,
        date=entry_date,
        description=description,
        reference_type=reference_type,
        reference_id=reference_id,
        total_debit=total_debit,
        total_credit=total_credit,
        is_reversed=False,
        reversal_of_entry_id=reversal_of_entry_id,
        created_by=user_id,
    )
    db.add(db_entry)
    _append_items(db_entry, lines)
    deltas: Dict[int, Decimal] = {}
    _add_effects(deltas, accounts, lines)
    _apply_balance_deltas(accounts, deltas)
    db.flush()

    log_event(db, db_entry, AuditAction.CREATED, performed_by=user_id)
    return db_entry


def post_journal_entry(db: Session, entry: JournalEntryCreate, tenant_id: str, user_id: Optional[str] = None) -> JournalEntry:
    """
    Post a balanced entry and commit it.

    Validation happens before any numbering so malformed input is never retried.
    """
    validate_items(entry.items)

    def work():
        return create_entry(
            db,
            tenant_id=tenant_id,
            entry_date=entry.date,
            description=entry.description,
            items=entry.items,
            user_id=user_id,
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
        )

    db_entry = run_numbered_transaction(db, tenant_id, work)
    if entry.entry_number and entry.entry_number != db_entry.entry_number:
        logger.info(f"Requested entry number {entry.entry_number} was taken; issued {db_entry.entry_number}")
    logger.info(
        f"Journal entry {db_entry.entry_number} posted for tenant {tenant_id} by {user_id} "
        f"(debit={db_entry.total_debit}, credit={db_entry.total_credit})"
    )
    db.refresh(db_entry)
    return db_entry


def get_journal_entry(db: Session, entry_id: int, tenant_id: str) -> Optional[JournalEntry]:
    """
    Retrieves a single journal entry by its ID.
    """
    return db.query(JournalEntry).options(
        selectinload(JournalEntry.items).selectinload(JournalItem.account)
    ).filter(
        JournalEntry.id == entry_id,
        JournalEntry.tenant_id == tenant_id
    ).populate_existing().first()


def get_journal_entry_or_raise(db: Session, entry_id: int, tenant_id: str) -> JournalEntry:
    db_entry = get_journal_entry(db, entry_id, tenant_id)
    if db_entry is None:
        raise EntryNotFoundError(entry_id)
    return db_entry


def _ensure_editable(db: Session, db_entry: JournalEntry, tenant_id: str) -> None:
    """Reversed entries, reversal entries and entries settling a payment only change by reversal."""
    if db_entry.is_reversed:
        raise ImmutableEntryError(db_entry.id, db_entry.entry_number)
    if db_entry.reversal_of_entry_id is not None:
        raise ImmutableEntryError(db_entry.id, db_entry.entry_number, reason="it is the reversal of another entry")

    settled_by = db.query(Expense.id).filter(
        Expense.journal_entry_id == db_entry.id,
        Expense.tenant_id == tenant_id,
    ).first()
    if settled_by is not None:
        raise ImmutableEntryError(db_entry.id, db_entry.entry_number, reason="it settles a payment")


def update_journal_entry(db: Session, entry_id: int, update: JournalEntryUpdate, tenant_id: str, user_id: Optional[str] = None) -> JournalEntry:
    """Replace an entry's lines, moving account balances from the old lines to the new ones."""
    lines, total_debit, total_credit = validate_items(update.items)

    def work():
        # Re-read under the lock so a concurrent reversal is seen
        db_entry = get_journal_entry_or_raise(db, entry_id, tenant_id)
        _ensure_editable(db, db_entry, tenant_id)

        old_lines = _existing_lines(db_entry)
        accounts = load_accounts(db, tenant_id, [line[0] for line in old_lines + lines])
        deltas: Dict[int, Decimal] = {}
        _add_effects(deltas, accounts, old_lines, sign=-1)
        _add_effects(deltas, accounts, lines)

        db_entry.items.clear()
        _append_items(db_entry, lines)
        _apply_balance_deltas(accounts, deltas)

        db_entry.total_debit = total_debit
        db_entry.total_credit = total_credit
        if update.date is not None:
            db_entry.date = update.date
        if update.description is not None:
            db_entry.description = update.description
        db_entry.updated_by = user_id

        log_event(db, db_entry, AuditAction.UPDATED, performed_by=user_id)
        return db_entry

    db_entry = run_numbered_transaction(db, tenant_id, work)
    logger.info(f"Journal entry {db_entry.entry_number} updated for tenant {tenant_id} by {user_id}")
    db.refresh(db_entry)
    return db_entry


def delete_journal_entry(db: Session, entry_id: int, tenant_id: str, user_id: Optional[str] = None) -> str:
    """Remove an editable entry and take its effect back out of the account balances."""

    def work():
        db_entry = get_journal_entry_or_raise(db, entry_id, tenant_id)
        _ensure_editable(db, db_entry, tenant_id)

        old_lines = _existing_lines(db_entry)
        accounts = load_accounts(db, tenant_id, [line[0] for line in old_lines])
        deltas: Dict[int, Decimal] = {}
        _add_effects(deltas, accounts, old_lines, sign=-1)
        _apply_balance_deltas(accounts, deltas)

        log_event(db, db_entry, AuditAction.DELETED, performed_by=user_id)
        db.delete(db_entry)
        return db_entry.entry_number

    entry_number = run_numbered_transaction(db, tenant_id, work)
    logger.info(f"Journal entry {entry_number} deleted for tenant {tenant_id} by {user_id}")
    return entry_number


def get_journal_entries(
    db: Session,
    tenant_id: str,
    entry_number: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    is_reversed: Optional[bool] = None,
    search: Optional[str] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100
) -> List[JournalEntry]:
    """
    Retrieves a list of journal entries with optional filtering.
    """
    query = db.query(JournalEntry).options(
        selectinload(JournalEntry.items).selectinload(JournalItem.account)
    ).filter(JournalEntry.tenant_id == tenant_id)

    if entry_number:
        query = query.filter(JournalEntry.entry_number.ilike(f"%{entry_number}%"))
    if start_date:
        query = query.filter(JournalEntry.date >= start_date)
    if end_date:
        query = query.filter(JournalEntry.date <= end_date)
    if is_reversed is not None:
        query = query.filter(JournalEntry.is_reversed.is_(is_reversed))
    if search:
        query = query.filter(JournalEntry.description.ilike(f"%{search}%"))
    if reference_type and reference_id is not None:
        query = query.filter(
            JournalEntry.reference_type == reference_type,
            JournalEntry.reference_id == reference_id,
        )

    return query.order_by(JournalEntry.date.desc(), JournalEntry.id.desc()).offset(skip).limit(limit).all()


def get_statistics(db: Session, tenant_id: str, start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
    query = db.query(JournalEntry).filter(JournalEntry.tenant_id == tenant_id)
    if start_date:
        query = query.filter(JournalEntry.date >= start_date)
    if end_date:
        query = query.filter(JournalEntry.date <= end_date)

    total_entries = query.count()
    reversed_entries = query.filter(JournalEntry.is_reversed.is_(True)).count()
    active = query.filter(JournalEntry.is_reversed.is_(False))
    total_debit, total_credit = active.with_entities(
        func.coalesce(func.sum(JournalEntry.total_debit), 0),
        func.coalesce(func.sum(JournalEntry.total_credit), 0),
    ).one()

    return {
        "total_entries": total_entries,
        "reversed_entries": reversed_entries,
        "active_entries": total_entries - reversed_entries,
        "total_debit_amount": to_money(total_debit),
        "total_credit_amount": to_money(total_credit),
        "recent_entries": query.order_by(JournalEntry.date.desc(), JournalEntry.id.desc()).limit(10).all(),
    }


def get_account_ledger(db: Session, account: ChartOfAccounts, start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
    """General-ledger view: every entry touching `account`, oldest first."""
    query = db.query(JournalEntry).join(JournalItem).filter(
        JournalItem.account_id == account.id,
        JournalEntry.tenant_id == account.tenant_id,
    )
    if start_date:
        query = query.filter(JournalEntry.date >= start_date)
    if end_date:
        query = query.filter(JournalEntry.date <= end_date)
    entries = query.distinct().order_by(JournalEntry.date.asc(), JournalEntry.id.asc()).all()

    total_debit, total_credit = db.query(
        func.coalesce(func.sum(JournalItem.debit), 0),
        func.coalesce(func.sum(JournalItem.credit), 0),
    ).filter(
        JournalItem.journal_entry_id.in_([entry.id for entry in entries]),
        JournalItem.account_id == account.id,
    ).one()

    return {
        "account": account,
        "entries": entries,
        "total_debit": to_money(total_debit),
        "total_credit": to_money(total_credit),
    }
