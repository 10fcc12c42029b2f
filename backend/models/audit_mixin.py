from sqlalchemy import Column, DateTime, String

from utils import local_now


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info.

    Ledger rows are never soft-deleted: entries are either hard-deleted (while
    still editable) or reversed, so there are no deleted_at/deleted_by columns.
    """
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=local_now)
    updated_at = Column(DateTime(timezone=True), onupdate=local_now)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
