"""
Reversal engine.

A posted entry is never removed once it is part of history: it is offset by a
mirror entry (every debit becomes a credit and vice versa) and flagged
reversed, after which it can no longer be edited, deleted or reversed again.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from exceptions import AlreadyReversedError
from models.audit_log import AuditAction
from models.journal_entry import JournalEntry
from schemas.journal_item import JournalItemCreate
from crud.audit_log import find_latest_audit, log_reversal
from crud.entry_numbering import run_numbered_transaction
from crud.journal_entry import create_entry, get_journal_entry_or_raise
from utils import local_now

logger = logging.getLogger(__name__)

DEFAULT_REVERSAL_REASON = "Not specified"


def reversal_description(reason: str) -> str:
    return f"Reversed original transaction. Reason: {reason}"


def mirror_items(entry: JournalEntry):
    return [
        JournalItemCreate(account_id=item.account_id, debit=item.credit, credit=item.debit)
        for item in entry.items
    ]


def reverse_journal_entry(
    db: Session,
    entry_id: int,
    tenant_id: str,
    reason: Optional[str] = None,
    user_id: Optional[str] = None,
    reversal_date: Optional[date] = None,
) -> JournalEntry:
    """
    Post the mirror of `entry_id` and mark the original reversed, in one transaction.

    Returns the new reversal entry.
    """
    reason = reason or DEFAULT_REVERSAL_REASON

    def work():
        original = get_journal_entry_or_raise(db, entry_id, tenant_id)
        if original.is_reversed:
            raise AlreadyReversedError(original.id, original.entry_number)

        reversal = create_entry(
            db,
            tenant_id=tenant_id,
            entry_date=reversal_date or local_now().date(),
            description=reversal_description(reason),
            items=mirror_items(original),
            user_id=user_id,
            reference_type=original.reference_type,
            reference_id=original.reference_id,
            reversal_of_entry_id=original.id,
        )

        original.is_reversed = True
        original.reversed_at = local_now()
        original.reversed_by = user_id

        created_audit = find_latest_audit(db, type(original).__name__, original.id, AuditAction.CREATED)
        log_reversal(
            db,
            original,
            original_audit_id=created_audit.id if created_audit else None,
            reason=reason,
            performed_by=user_id,
        )
        return reversal

    try:
        reversal = run_numbered_transaction(db, tenant_id, work)
    except IntegrityError as exc:
        # Another process reversed it first; the unique reversal link caught it
        if "reversal_of_entry_id" in str(exc.orig):
            original = get_journal_entry_or_raise(db, entry_id, tenant_id)
            raise AlreadyReversedError(original.id, original.entry_number) from exc
        raise

    logger.info(f"Journal entry #{entry_id} reversed by {reversal.entry_number} for tenant {tenant_id} ({reason})")
    db.refresh(reversal)
    return reversal
