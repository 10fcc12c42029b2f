"""
Typed exceptions raised by the ledger core.

Every exception carries a machine-readable ``code`` and the structured data a
caller needs to build a user-facing message (entry id, offending amounts).
Routers translate them to HTTP responses; nothing in the ledger converts them
into generic errors.

    LedgerError
    +-- ValidationError
    |   +-- UnbalancedEntryError
    |   +-- InvalidLineError
    +-- UnknownAccountError
    +-- EntryNotFoundError
    +-- ImmutableEntryError
    |   +-- AlreadyReversedError
    +-- MissingChartOfAccountLinkError
    +-- NumberingConflictError
    +-- InvalidStateTransitionError
    +-- AuditLogImmutableError
"""

from decimal import Decimal
from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ValidationError(LedgerError):
    """A journal entry or one of its lines is malformed."""

    code: str = "VALIDATION_ERROR"


class UnbalancedEntryError(ValidationError):
    """Total debit differs from total credit by more than the tolerance."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        self.difference = abs(total_debit - total_credit)
        super().__init__(
            "Journal entry must be balanced (debits must equal credits): "
            f"debit={total_debit}, credit={total_credit}, difference={self.difference}"
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            total_debit=str(self.total_debit),
            total_credit=str(self.total_credit),
            difference=str(self.difference),
        )
        return data


class InvalidLineError(ValidationError):
    """A line has both debit and credit set, neither, or a negative amount."""

    code: str = "INVALID_LINE"

    def __init__(self, index: int, reason: str, debit: Any = None, credit: Any = None):
        self.index = index
        self.reason = reason
        self.debit = debit
        self.credit = credit
        super().__init__(f"Item at index {index} {reason}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(index=self.index, debit=str(self.debit), credit=str(self.credit))
        return data


class UnknownAccountError(LedgerError):
    """A line references an account that does not exist for the tenant."""

    code: str = "UNKNOWN_ACCOUNT"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account with id {account_id} not found")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["account_id"] = self.account_id
        return data


class EntryNotFoundError(LedgerError):
    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(f"Journal entry {entry_id} not found")


class ImmutableEntryError(LedgerError):
    """Edit, delete or reversal attempted on an entry that can no longer change."""

    code: str = "IMMUTABLE_ENTRY"

    def __init__(self, entry_id: int, entry_number: Optional[str] = None, reason: str = "it has been reversed"):
        self.entry_id = entry_id
        self.entry_number = entry_number
        self.reason = reason
        label = entry_number or f"#{entry_id}"
        super().__init__(f"Journal entry {label} cannot be changed because {reason}")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(entry_id=self.entry_id, entry_number=self.entry_number)
        return data


class AlreadyReversedError(ImmutableEntryError):
    code: str = "ALREADY_REVERSED"

    def __init__(self, entry_id: int, entry_number: Optional[str] = None):
        super().__init__(entry_id, entry_number, reason="it has already been reversed")


class MissingChartOfAccountLinkError(LedgerError):
    """A bank has no chart-of-accounts entry to post against."""

    code: str = "MISSING_CHART_OF_ACCOUNT_LINK"

    def __init__(self, bank_id: int, bank_name: str):
        self.bank_id = bank_id
        self.bank_name = bank_name
        super().__init__(f"Bank account ({bank_name}) is not linked to a chart of account")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(bank_id=self.bank_id, bank_name=self.bank_name)
        return data


class NumberingConflictError(LedgerError):
    """Two writers claimed the same entry number; retryable."""

    code: str = "NUMBERING_CONFLICT"

    def __init__(self, entry_number: str, attempts: int):
        self.entry_number = entry_number
        self.attempts = attempts
        super().__init__(f"Could not issue a unique entry number after {attempts} attempts (last tried {entry_number})")


class InvalidStateTransitionError(LedgerError):
    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, entity: str, entity_id: int, current: str, target: str):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.target = target
        super().__init__(f"{entity} {entity_id} cannot move from '{current}' to '{target}'")


class AuditLogImmutableError(LedgerError):
    code: str = "AUDIT_LOG_IMMUTABLE"

    def __init__(self, audit_id: int, operation: str):
        self.audit_id = audit_id
        self.operation = operation
        super().__init__(f"Audit log {audit_id} is write-once; {operation} is not allowed")
