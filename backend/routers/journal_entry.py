from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from database import get_db
from exceptions import LedgerError
from schemas.journal_entry import (
    AccountLedger,
    JournalEntry,
    JournalEntryCreate,
    JournalEntryReverse,
    JournalEntryStatistics,
    JournalEntryUpdate,
    NextEntryNumber,
)
from schemas.chart_of_accounts import ChartOfAccounts
from crud import journal_entry as journal_entry_crud
from crud import journal_reversal as journal_reversal_crud
from crud import chart_of_accounts as chart_of_accounts_crud
from crud.entry_numbering import get_next_entry_number
from utils.tenancy import get_tenant_id
from utils.auth_utils import require_group, get_user_identifier
from utils.http_errors import to_http_exception

router = APIRouter(
    prefix="/journal-entries",
    tags=["Journal Entries"],
)


@router.post("/", response_model=JournalEntry, status_code=status.HTTP_201_CREATED)
def create_journal_entry(
    entry: JournalEntryCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """
    Post a new journal entry.
    Debits must equal credits; the entry number is issued by the server.
    """
    try:
        return journal_entry_crud.post_journal_entry(db=db, entry=entry, tenant_id=tenant_id, user_id=get_user_identifier(user))
    except LedgerError as e:
        raise to_http_exception(e)


@router.get("/", response_model=List[JournalEntry])
def get_journal_entries(
    entry_number: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    is_reversed: Optional[bool] = None,
    search: Optional[str] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """
    Retrieve a list of journal entries.
    """
    return journal_entry_crud.get_journal_entries(
        db=db,
        tenant_id=tenant_id,
        entry_number=entry_number,
        start_date=start_date,
        end_date=end_date,
        is_reversed=is_reversed,
        search=search,
        reference_type=reference_type,
        reference_id=reference_id,
        skip=skip,
        limit=limit
    )


@router.get("/next-number", response_model=NextEntryNumber)
def next_entry_number(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """Preview of the next entry number; not reserved."""
    return NextEntryNumber(next_entry_number=get_next_entry_number(db, tenant_id))


@router.get("/statistics", response_model=JournalEntryStatistics)
def get_statistics(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    stats = journal_entry_crud.get_statistics(db, tenant_id, start_date, end_date)
    stats["recent_entries"] = [JournalEntry.model_validate(entry) for entry in stats["recent_entries"]]
    return stats


@router.get("/by-account/{account_id}", response_model=AccountLedger)
def get_entries_by_account(
    account_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    account = chart_of_accounts_crud.get_account(db, account_id, tenant_id)
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Account with id {account_id} not found")
    ledger = journal_entry_crud.get_account_ledger(db, account, start_date, end_date)
    return AccountLedger(
        account=ChartOfAccounts.model_validate(ledger["account"]),
        entries=[JournalEntry.model_validate(entry) for entry in ledger["entries"]],
        total_debit=ledger["total_debit"],
        total_credit=ledger["total_credit"],
    )


@router.get("/{entry_id}", response_model=JournalEntry)
def get_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """
    Retrieve a single journal entry by its ID.
    """
    db_entry = journal_entry_crud.get_journal_entry(db=db, entry_id=entry_id, tenant_id=tenant_id)
    if db_entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")
    return db_entry


@router.put("/{entry_id}", response_model=JournalEntry)
def update_journal_entry(
    entry_id: int,
    update: JournalEntryUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """Replace the lines of an editable entry; reversed, reversal and payment-settling entries are refused."""
    try:
        return journal_entry_crud.update_journal_entry(db, entry_id, update, tenant_id, get_user_identifier(user))
    except LedgerError as e:
        raise to_http_exception(e)


@router.delete("/{entry_id}")
def delete_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    try:
        entry_number = journal_entry_crud.delete_journal_entry(db, entry_id, tenant_id, get_user_identifier(user))
    except LedgerError as e:
        raise to_http_exception(e)
    return {"message": f"Journal entry {entry_number} deleted successfully"}


@router.post("/{entry_id}/reverse", response_model=JournalEntry, status_code=status.HTTP_201_CREATED)
def reverse_journal_entry(
    entry_id: int,
    reversal: Optional[JournalEntryReverse] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """
    Post the mirror of an entry and mark the original reversed.
    Returns the new reversal entry.
    """
    reversal = reversal or JournalEntryReverse()
    try:
        return journal_reversal_crud.reverse_journal_entry(
            db,
            entry_id,
            tenant_id,
            reason=reversal.reason,
            user_id=get_user_identifier(user),
            reversal_date=reversal.date,
        )
    except LedgerError as e:
        raise to_http_exception(e)
