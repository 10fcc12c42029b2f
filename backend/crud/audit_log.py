"""
Audit trail.

Writes one AuditLog row per mutating event. Rows are write-once: the model's
mapper events refuse updates and deletes, and nothing here ever modifies an
existing record.

``log_event`` only adds the record to the session so it commits (or rolls
back) together with the change it describes. ``record_audit_event`` is the
fire-and-forget entry point for other subsystems and commits on its own.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import Base
from models.audit_log import AuditLog, AuditAction
from schemas.audit_log import AuditLogCreate
from utils import sqlalchemy_to_dict, to_json_value

logger = logging.getLogger(__name__)

IdentifierAccessor = Callable[[Any], Any]


def _field(name: str) -> IdentifierAccessor:
    def accessor(entity):
        return getattr(entity, name, None)
    return accessor


# Checked in order; the first non-empty value labels the entity
IDENTIFIER_ACCESSORS: List[IdentifierAccessor] = [
    _field(name) for name in (
        "name", "title", "code", "number", "reference_number",
        "invoice_number", "account_number", "transaction_number",
    )
]

DEFAULT_DESCRIPTIONS = {
    AuditAction.CREATED: "Created new {model}: {identifier}",
    AuditAction.UPDATED: "Updated {model}: {identifier}",
    AuditAction.DELETED: "Deleted {model}: {identifier}",
    AuditAction.RESTORED: "Restored {model}: {identifier}",
    AuditAction.APPROVED: "Approved {model}: {identifier}",
    AuditAction.REJECTED: "Rejected {model}: {identifier}",
    AuditAction.REVERSED: "Reversed {model}: {identifier}",
    AuditAction.ACCESSED: "Accessed {model}: {identifier}",
}


def resolve_entity_identifier(entity, accessors: Sequence[IdentifierAccessor] = IDENTIFIER_ACCESSORS) -> str:
    for accessor in accessors:
        value = accessor(entity)
        if value is not None and value != "":
            return str(value)
    return f"#{entity.id}"


def get_changes(entity) -> Dict[str, Dict[str, Any]]:
    """
    Pending column changes of an ORM object, keyed by field name.

    Must run before the session flushes, while attribute history is still
    available. Fields assigned their current value are not reported.
    """
    state = inspect(entity)
    changes = {}
    for attr in state.mapper.column_attrs:
        history = state.attrs[attr.key].history
        if not history.has_changes():
            continue
        old = history.deleted[0] if history.deleted else None
        new = history.added[0] if history.added else None
        if old == new:
            continue
        changes[attr.key] = {"old": to_json_value(old), "new": to_json_value(new)}
    return changes


def table_for_entity_type(entity_type: str) -> str:
    """Table behind a mapped class name; reports about unmapped types land under audit_log."""
    for mapper in Base.registry.mappers:
        if mapper.class_.__name__ == entity_type:
            return mapper.local_table.name
    return AuditLog.__tablename__


def _storage_metadata(db: Session, table: str) -> Dict[str, Any]:
    bind = db.get_bind()
    return {
        "connection": bind.dialect.name,
        "database": bind.url.database,
        "table": table,
    }


def log_event(
    db: Session,
    entity,
    action: AuditAction,
    description: Optional[str] = None,
    performed_by: Optional[str] = None,
    tenant_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    identifier_accessors: Sequence[IdentifierAccessor] = IDENTIFIER_ACCESSORS,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Record `action` on an ORM entity.

    For updates only the changed fields are captured (old and new values);
    every other action captures the full attribute snapshot as new_values.
    """
    entity_type = entity_type or type(entity).__name__
    identifier = resolve_entity_identifier(entity, identifier_accessors)

    old_values = None
    changed_fields = None
    if action == AuditAction.UPDATED:
        changes = get_changes(entity)
        old_values = {field: change["old"] for field, change in changes.items()}
        new_values = {field: change["new"] for field, change in changes.items()}
        changed_fields = list(changes.keys())
    else:
        new_values = sqlalchemy_to_dict(entity)

    audit_metadata = _storage_metadata(db, entity.__tablename__)
    if metadata:
        audit_metadata.update(metadata)

    record = AuditLog(
        tenant_id=tenant_id or getattr(entity, "tenant_id", None),
        entity_type=entity_type,
        entity_id=entity.id,
        entity_identifier=identifier,
        action=action.value,
        description=description or DEFAULT_DESCRIPTIONS[action].format(model=entity_type, identifier=identifier),
        old_values=old_values,
        new_values=new_values,
        changed_fields=changed_fields,
        audit_metadata=audit_metadata,
        performed_by=performed_by,
    )
    db.add(record)
    return record


def log_reversal(
    db: Session,
    entity,
    original_audit_id: Optional[int],
    reason: str,
    performed_by: Optional[str] = None,
    entity_type: Optional[str] = None,
) -> AuditLog:
    entity_type = entity_type or type(entity).__name__
    record = AuditLog(
        tenant_id=getattr(entity, "tenant_id", None),
        entity_type=entity_type,
        entity_id=entity.id,
        entity_identifier=resolve_entity_identifier(entity),
        action=AuditAction.REVERSED.value,
        description=f"Reversed original transaction. Reason: {reason}",
        old_values=sqlalchemy_to_dict(entity),
        original_audit_id=original_audit_id,
        reversal_reason=reason,
        audit_metadata={**_storage_metadata(db, entity.__tablename__), "reversal": True},
        performed_by=performed_by,
    )
    db.add(record)
    return record


def log_import(db: Session, entity_type: str, records: Sequence[Any], performed_by: Optional[str] = None, tenant_id: Optional[str] = None) -> AuditLog:
    record = AuditLog(
        tenant_id=tenant_id,
        entity_type=entity_type,
        entity_id=0,
        action=AuditAction.CREATED.value,
        description=f"Bulk imported {len(records)} {entity_type} records",
        new_values={"imported_count": len(records)},
        audit_metadata={
            **_storage_metadata(db, table_for_entity_type(entity_type)),
            "bulk_operation": True,
            "record_count": len(records),
            "source": "import",
        },
        performed_by=performed_by,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def log_api_access(db: Session, endpoint: str, method: str, performed_by: Optional[str] = None, tenant_id: Optional[str] = None) -> AuditLog:
    record = AuditLog(
        tenant_id=tenant_id,
        entity_type="ApiRequest",
        entity_id=0,
        entity_identifier=f"{method} {endpoint}",
        action=AuditAction.ACCESSED.value,
        description=f"API endpoint accessed: {method} {endpoint}",
        audit_metadata={
            **_storage_metadata(db, AuditLog.__tablename__),
            "endpoint": endpoint,
            "method": method,
            "source": "api",
        },
        performed_by=performed_by,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def create_audit_log(db: Session, log_entry: AuditLogCreate, performed_by: Optional[str] = None, tenant_id: Optional[str] = None) -> AuditLog:
    """Store an audit event described by another subsystem."""
    identifier = log_entry.entity_identifier or f"#{log_entry.entity_id}"
    description = log_entry.description or DEFAULT_DESCRIPTIONS[log_entry.action].format(
        model=log_entry.entity_type, identifier=identifier
    )
    changed_fields = log_entry.changed_fields
    if log_entry.action == AuditAction.UPDATED and changed_fields is None:
        old = log_entry.old_values or {}
        new = log_entry.new_values or {}
        changed_fields = [key for key in new if old.get(key) != new[key]]

    db_log_entry = AuditLog(
        tenant_id=tenant_id,
        entity_type=log_entry.entity_type,
        entity_id=log_entry.entity_id,
        entity_identifier=identifier,
        action=log_entry.action.value,
        description=description,
        old_values=log_entry.old_values,
        new_values=log_entry.new_values,
        changed_fields=changed_fields,
        # The storage location always wins over caller-supplied keys
        audit_metadata={**log_entry.metadata, **_storage_metadata(db, table_for_entity_type(log_entry.entity_type))},
        performed_by=performed_by,
    )
    db.add(db_log_entry)
    db.commit()
    db.refresh(db_log_entry)
    return db_log_entry


def record_audit_event(db: Session, entity, action: AuditAction, description: Optional[str] = None, performed_by: Optional[str] = None) -> Optional[AuditLog]:
    """
    Fire-and-forget logging for callers outside the ledger.

    A failure to write the audit row is logged and never breaks the caller.
    """
    label = f"{type(entity).__name__} #{entity.id}"
    try:
        record = log_event(db, entity, action, description=description, performed_by=performed_by)
        db.commit()
        return record
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to write audit record for {label}")
        return None


def find_latest_audit(db: Session, entity_type: str, entity_id: int, action: Optional[AuditAction] = None) -> Optional[AuditLog]:
    query = db.query(AuditLog).filter(
        AuditLog.entity_type == entity_type,
        AuditLog.entity_id == entity_id,
    )
    if action:
        query = query.filter(AuditLog.action == action.value)
    return query.order_by(AuditLog.id.desc()).first()


def get_history(db: Session, entity_type: str, entity_id: int, tenant_id: str, limit: int = 50) -> List[AuditLog]:
    return db.query(AuditLog).filter(
        AuditLog.entity_type == entity_type,
        AuditLog.entity_id == entity_id,
        AuditLog.tenant_id == tenant_id,
    ).order_by(AuditLog.id.desc()).limit(limit).all()


def search_audit_logs(
    db: Session,
    tenant_id: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[AuditAction] = None,
    performed_by: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[AuditLog]:
    query = db.query(AuditLog).filter(AuditLog.tenant_id == tenant_id)

    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == entity_id)
    if action:
        query = query.filter(AuditLog.action == action.value)
    if performed_by:
        query = query.filter(AuditLog.performed_by == performed_by)
    if start_date:
        query = query.filter(AuditLog.created_at >= start_date)
    if end_date:
        query = query.filter(AuditLog.created_at <= end_date)
    if search:
        query = query.filter(AuditLog.description.ilike(f"%{search}%"))

    return query.order_by(AuditLog.id.desc()).offset(skip).limit(limit).all()
