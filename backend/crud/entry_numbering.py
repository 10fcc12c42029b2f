"""
Journal entry numbering.

Numbers look like ``JE-000001`` and increase by one per tenant. The next value
is the current maximum plus one; two writers are kept apart in-process by
``numbering_lock``, and across processes by the unique constraint on
(tenant_id, entry_number): a losing writer rolls back and retries.
"""

import logging
import re
import threading
from typing import Callable, Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import JOURNAL_ENTRY_PREFIX, JOURNAL_ENTRY_PAD_WIDTH, NUMBERING_MAX_RETRIES
from exceptions import NumberingConflictError
from models.journal_entry import JournalEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

numbering_lock = threading.Lock()

_ENTRY_NUMBER_RE = re.compile(rf"^{re.escape(JOURNAL_ENTRY_PREFIX)}-(\d+)$")


def format_entry_number(sequence: int) -> str:
    return f"{JOURNAL_ENTRY_PREFIX}-{sequence:0{JOURNAL_ENTRY_PAD_WIDTH}d}"


def parse_entry_number(entry_number: str) -> Optional[int]:
    match = _ENTRY_NUMBER_RE.match(entry_number or "")
    return int(match.group(1)) if match else None


def get_next_sequence(db: Session, tenant_id: str) -> int:
    last_sequence = db.query(func.max(JournalEntry.sequence_number)).filter(
        JournalEntry.tenant_id == tenant_id
    ).scalar() or 0
    return last_sequence + 1


def get_next_entry_number(db: Session, tenant_id: str) -> str:
    """Next number for UI pre-fill. Not reserved; posting may issue a later one."""
    return format_entry_number(get_next_sequence(db, tenant_id))


def is_numbering_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return "entry_number" in message or "_tenant_entry_number_uc" in message


def run_numbered_transaction(db: Session, tenant_id: str, work: Callable[[], T]) -> T:
    """
    Run `work` and commit it as one transaction that may issue entry numbers.

    `work` must re-read everything it touches, since a numbering conflict
    rolls the session back and calls it again. Any other error rolls back and
    propagates unchanged.
    """
    for attempt in range(1, NUMBERING_MAX_RETRIES + 1):
        with numbering_lock:
            try:
                result = work()
                db.commit()
                return result
            except IntegrityError as exc:
                db.rollback()
                if not is_numbering_conflict(exc):
                    raise
                logger.warning(
                    f"Entry number conflict for tenant {tenant_id} "
                    f"(attempt {attempt}/{NUMBERING_MAX_RETRIES}); retrying"
                )
            except Exception:
                db.rollback()
                raise

    raise NumberingConflictError(get_next_entry_number(db, tenant_id), NUMBERING_MAX_RETRIES)
