from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from datetime import datetime

from models.audit_log import AuditAction


class AuditLogCreate(BaseModel):
    """Audit event reported by another subsystem."""
    entity_type: str
    entity_id: int
    entity_identifier: Optional[str] = None
    action: AuditAction
    description: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    changed_fields: Optional[List[str]] = None
    metadata: Dict[str, Any] = {}


class AuditLog(BaseModel):
    id: int
    tenant_id: Optional[str] = None
    entity_type: str
    entity_id: int
    entity_identifier: Optional[str] = None
    action: str
    description: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    changed_fields: Optional[List[str]] = None
    original_audit_id: Optional[int] = None
    reversal_reason: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="audit_metadata")
    performed_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
