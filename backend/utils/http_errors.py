from fastapi import HTTPException, status

from exceptions import (
    AuditLogImmutableError,
    EntryNotFoundError,
    ImmutableEntryError,
    InvalidStateTransitionError,
    LedgerError,
    MissingChartOfAccountLinkError,
    NumberingConflictError,
    UnknownAccountError,
    ValidationError,
)

# Checked in order, so subclasses come before their bases
STATUS_BY_ERROR = [
    (EntryNotFoundError, status.HTTP_404_NOT_FOUND),
    (NumberingConflictError, status.HTTP_409_CONFLICT),
    (UnknownAccountError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ImmutableEntryError, status.HTTP_400_BAD_REQUEST),
    (InvalidStateTransitionError, status.HTTP_400_BAD_REQUEST),
    (MissingChartOfAccountLinkError, status.HTTP_400_BAD_REQUEST),
    (AuditLogImmutableError, status.HTTP_400_BAD_REQUEST),
]


def to_http_exception(exc: LedgerError) -> HTTPException:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.to_dict())
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict())
