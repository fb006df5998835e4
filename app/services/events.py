from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.auth import User
from app.core.email_templates import render
from app.models.event import LeaseEvent
from app.models.lease import Lease
from app.services.authorization import Relation, authorize


def queue_event(
    db: Session,
    kind: str,
    lease: Lease,
    recipient_id: str,
    recipient_email: Optional[str],
    notes: Optional[str] = None,
) -> LeaseEvent:
    """Stage a notification in the caller's transaction. Delivery happens after commit."""
    address = lease.property.address if lease.property is not None else f"lease #{lease.id}"
    subject, body = render(kind, lease.id, address, notes)
    event = LeaseEvent(
        kind=kind,
        lease_id=lease.id,
        property_id=lease.property_id,
        recipient_id=recipient_id,
        recipient_email=recipient_email,
        subject=subject,
        body=body,
        delivery_status="queued",
    )
    db.add(event)
    db.flush()
    return event


def notify_tenant(db: Session, kind: str, lease: Lease, notes: Optional[str] = None) -> LeaseEvent:
    return queue_event(db, kind, lease, lease.tenant_id, lease.tenant_email, notes)


def notify_landlord(db: Session, kind: str, lease: Lease, notes: Optional[str] = None) -> LeaseEvent:
    return queue_event(db, kind, lease, lease.landlord_id, lease.landlord_email, notes)


def list_for_lease(db: Session, principal: User, lease: Lease) -> List[LeaseEvent]:
    authorize(principal, lease, Relation.PARTICIPANT, "You don't have access to this lease")
    return (
        db.query(LeaseEvent)
        .filter(LeaseEvent.lease_id == lease.id)
        .order_by(LeaseEvent.created_at.desc(), LeaseEvent.id.desc())
        .all()
    )
