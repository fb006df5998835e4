from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.auth import require_role, User
from app.core.errors import ValidationError
from app.models.audit_log import AuditLog
from app.schemas.audit_log import AuditLogOut

router = APIRouter(prefix="/audit-logs", tags=["audit-logs"])


def _parse_datetime(value: str, name: str) -> datetime:
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date-time")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@router.get("", response_model=List[AuditLogOut])
def list_audit_logs(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role("admin")),
    start_date: Optional[str] = Query(None, description="ISO date-time"),
    end_date: Optional[str] = Query(None, description="ISO date-time"),
    actor: Optional[str] = Query(None, description="Filter by actor email"),
    entity_type: Optional[str] = Query(None, description="lease|payment|deposit|property"),
    lease_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None),
    source: Optional[str] = Query(None, description="api|sweep|cli"),
    risk_level: Optional[str] = Query(None, description="low|medium|high"),
    high_risk_only: Optional[bool] = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    q = db.query(AuditLog)

    if start_date:
        q = q.filter(AuditLog.created_at >= _parse_datetime(start_date, "start_date"))
    if end_date:
        q = q.filter(AuditLog.created_at <= _parse_datetime(end_date, "end_date"))
    if actor:
        q = q.filter(AuditLog.actor_email == actor)
    if entity_type:
        q = q.filter(AuditLog.entity_type == entity_type)
    if lease_id is not None:
        q = q.filter(AuditLog.lease_id == lease_id)
    if action:
        q = q.filter(AuditLog.action == action)
    if source:
        q = q.filter(AuditLog.source == source)
    if high_risk_only:
        q = q.filter(AuditLog.risk_level == "high")
    elif risk_level:
        q = q.filter(AuditLog.risk_level == risk_level)

    return q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(offset).limit(limit).all()


@router.get("/stats")
def audit_log_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role("admin")),
):
    now = datetime.now(timezone.utc)
    start_today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    total = db.query(AuditLog).count()
    today = db.query(AuditLog).filter(AuditLog.created_at >= start_today).count()
    high_risk = db.query(AuditLog).filter(AuditLog.risk_level == "high").count()
    terminations = (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == "lease", AuditLog.action == "terminated")
        .count()
    )

    return {
        "total": total,
        "today": today,
        "high_risk": high_risk,
        "terminations": terminations,
    }
