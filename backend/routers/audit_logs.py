from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from database import get_db
from models.audit_log import AuditAction
from schemas.audit_log import AuditLog, AuditLogCreate
from crud import audit_log as audit_log_crud
from utils.tenancy import get_tenant_id
from utils.auth_utils import get_current_user, require_group, get_user_identifier

router = APIRouter(
    prefix="/audit-logs",
    tags=["Audit Logs"],
)


@router.post("/", response_model=AuditLog, status_code=status.HTTP_201_CREATED)
def create_audit_log(
    log_entry: AuditLogCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    """Record an audit event reported by another part of the system."""
    return audit_log_crud.create_audit_log(db, log_entry, get_user_identifier(user), tenant_id)


@router.get("/", response_model=List[AuditLog])
def search_audit_logs(
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[AuditAction] = None,
    performed_by: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    return audit_log_crud.search_audit_logs(
        db,
        tenant_id=tenant_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        performed_by=performed_by,
        start_date=start_date,
        end_date=end_date,
        search=search,
        skip=skip,
        limit=limit,
    )


@router.get("/{entity_type}/{entity_id}", response_model=List[AuditLog])
def get_entity_history(
    entity_type: str,
    entity_id: int,
    limit: int = 50,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """Audit history of one entity, newest first."""
    return audit_log_crud.get_history(db, entity_type, entity_id, tenant_id, limit)
