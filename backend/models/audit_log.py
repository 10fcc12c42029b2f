import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, ForeignKey, event
from database import Base
from exceptions import AuditLogImmutableError
from utils import local_now


class AuditAction(enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    RESTORED = "restored"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVERSED = "reversed"
    ACCESSED = "accessed"


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=True)
    entity_type = Column(String(100), nullable=False, index=True)
    entity_id = Column(Integer, nullable=False, index=True)
    entity_identifier = Column(String, nullable=True)
    action = Column(String(20), nullable=False, index=True)
    description = Column(Text, nullable=True)
    old_values = Column(JSON)
    new_values = Column(JSON)
    changed_fields = Column(JSON)
    original_audit_id = Column(Integer, ForeignKey("audit_log.id"), nullable=True)
    reversal_reason = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    audit_metadata = Column("metadata", JSON)
    performed_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=local_now, index=True)


@event.listens_for(AuditLog, "before_update")
def reject_audit_update(mapper, connection, target):
    raise AuditLogImmutableError(target.id, "update")


@event.listens_for(AuditLog, "before_delete")
def reject_audit_delete(mapper, connection, target):
    raise AuditLogImmutableError(target.id, "delete")
