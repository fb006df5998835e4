from typing import Optional

from app.core.auth import User
from app.models.audit_log import AuditLog
from sqlalchemy.orm import Session

_HIGH_RISK = {
    ("lease", "terminated"),
    ("payment", "overdue"),
    ("deposit", "forfeited"),
    ("property", "reconciled"),
}
_MEDIUM_RISK = {
    ("lease", "rejected"),
    ("lease", "expired"),
    ("deposit", "partial_release"),
}


def _compute_risk_level(
    entity_type: str,
    status: Optional[str],
    explicit: Optional[str] = None,
) -> str:
    if explicit:
        return explicit
    key = (entity_type, (status or "").lower())
    if key in _HIGH_RISK:
        return "high"
    if key in _MEDIUM_RISK:
        return "medium"
    return "low"


def log_audit(
    db: Session,
    *,
    actor: User,
    action: str,
    entity_type: str,
    entity_id: str,
    source: str = "api",
    status: Optional[str] = None,
    lease_id: Optional[int] = None,
    property_id: Optional[int] = None,
    description: Optional[str] = None,
    risk_level: Optional[str] = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction; the caller commits."""
    log = AuditLog(
        actor_id=actor.id,
        actor_email=actor.email,
        actor_role=actor.role,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        source=source,
        status=status,
        lease_id=lease_id,
        property_id=property_id,
        description=description,
        risk_level=_compute_risk_level(entity_type, status, risk_level),
    )
    db.add(log)
    return log
