"""
Lease Lifecycle Engine.

    draft -> sent_to_tenant -> tenant_signed -> approved -> terminated | expired
                                    |     ^
                                    |     +-- revision_requested (re-sign)
                                    +-> rejected

Every operation runs the same way: resolve the lease, authorize, check the
current status, then write. The status write is a compare-and-set and is
always the first write, so a lost race fails cleanly with InvalidState.
Property availability, payments, the deposit, audit rows and queued
notifications are written in the same transaction as the status change.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.audit import log_audit
from app.core.auth import SYSTEM_USER, User
from app.core.config import settings
from app.core.errors import InvalidState, LedgerWriteError, NotFound, ValidationError
from app.core.storage import ALLOWED_LEASE_DOCUMENT_TYPES, FileStore
from app.models.deposit import Deposit
from app.models.lease import Lease, LeaseStatus
from app.models.payment import Payment
from app.models.property import Property
from app.services import deposits as deposit_service
from app.services import payments as payment_service
from app.services.authorization import Relation, authorize, require_principal
from app.services.deltas import (
    LeaseApproved,
    LeaseDelta,
    LeaseExpired,
    LeaseRejected,
    LeaseRevisionRequested,
    LeaseSent,
    LeaseSigned,
    LeaseTerminated,
    PropertyAvailability,
)
from app.services.events import notify_landlord, notify_tenant
from app.services.store import commit, compare_and_set, today_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    lease: Lease
    event_ids: List[int] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)
    deposit: Optional[Deposit] = None


@dataclass
class SweepResult:
    lease_ids: List[int] = field(default_factory=list)
    event_ids: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.lease_ids)


@dataclass
class ReconcileResult:
    made_unavailable: List[int] = field(default_factory=list)
    made_available: List[int] = field(default_factory=list)


# ----------------------------------------------------------------------------
# helpers
# ----------------------------------------------------------------------------

def get_lease(db: Session, lease_id: int) -> Lease:
    lease = db.get(Lease, lease_id)
    if not lease:
        raise NotFound("Lease not found")
    return lease


def _require_status(lease: Lease, allowed: Sequence[str], message: str) -> None:
    if lease.status not in allowed:
        raise InvalidState(message)


def _apply(db: Session, lease: Lease, expected: Sequence[str], delta: LeaseDelta, message: str) -> Lease:
    return compare_and_set(db, Lease, lease, expected, delta.values(), message)


def _set_availability(db: Session, delta: PropertyAvailability) -> None:
    db.query(Property).filter(Property.id == delta.property_id).update(
        delta.values(), synchronize_session=False
    )


def _audit(db: Session, actor: User, action: str, lease: Lease, description: str, source: str = "api") -> None:
    log_audit(
        db,
        actor=actor,
        action=action,
        entity_type="lease",
        entity_id=str(lease.id),
        source=source,
        status=lease.status,
        lease_id=lease.id,
        property_id=lease.property_id,
        description=description,
    )


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    text = text.strip()
    return text or None


def _validate_terms(start_date: date, end_date: date, monthly_rent: Decimal, deposit_amount: Decimal, due_day: int) -> None:
    if end_date <= start_date:
        raise ValidationError("end_date must be after start_date")
    if monthly_rent is None or monthly_rent <= 0:
        raise ValidationError("monthly_rent must be greater than zero")
    if deposit_amount < 0:
        raise ValidationError("deposit_amount cannot be negative")
    if not 1 <= due_day <= 28:
        raise ValidationError("payment_due_day must be between 1 and 28")


# ----------------------------------------------------------------------------
# creation and queries
# ----------------------------------------------------------------------------

def create_lease(
    db: Session,
    principal: Optional[User],
    *,
    property_id: int,
    tenant_id: str,
    tenant_email: Optional[str],
    start_date: date,
    end_date: date,
    monthly_rent: Decimal,
    deposit_amount: Optional[Decimal] = None,
    payment_due_day: Optional[int] = None,
    lease_document: Optional[dict] = None,
) -> Lease:
    """Draft a lease on one of the principal's properties (admins: any property)."""
    require_principal(principal)
    prop = db.get(Property, property_id)
    if not prop:
        raise NotFound("Property not found")
    authorize(principal, prop, Relation.LANDLORD, "Only the property owner can create leases")

    deposit_amount = Decimal(str(deposit_amount or 0))
    monthly_rent = Decimal(str(monthly_rent))
    due_day = payment_due_day if payment_due_day is not None else settings.PAYMENT_DUE_DAY
    _validate_terms(start_date, end_date, monthly_rent, deposit_amount, due_day)
    if not tenant_id or tenant_id == prop.landlord_id:
        raise ValidationError("The tenant must be someone other than the landlord")

    lease = Lease(
        property_id=prop.id,
        tenant_id=tenant_id,
        tenant_email=tenant_email,
        landlord_id=prop.landlord_id,
        landlord_email=principal.email if principal.id == prop.landlord_id else None,
        start_date=start_date,
        end_date=end_date,
        monthly_rent=monthly_rent,
        deposit_amount=deposit_amount,
        payment_due_day=due_day,
        lease_document=lease_document,
        tenant_documents=[],
        status=LeaseStatus.DRAFT,
    )
    db.add(lease)
    db.flush()
    _audit(db, principal, "created", lease, f"Lease drafted for property {prop.id}")
    commit(db)
    db.refresh(lease)
    logger.info("Lease %s drafted on property %s", lease.id, prop.id)
    return lease


def get_lease_for(db: Session, principal: Optional[User], lease_id: int) -> Lease:
    require_principal(principal)
    lease = get_lease(db, lease_id)
    authorize(principal, lease, Relation.PARTICIPANT, "You don't have access to this lease")
    return lease


def list_leases(
    db: Session,
    principal: Optional[User],
    as_role: str = "landlord",
    status: Optional[str] = None,
) -> List[Lease]:
    require_principal(principal)
    if status is not None and status not in LeaseStatus.ALL:
        raise ValidationError(f"Unknown lease status: {status}")
    column = Lease.landlord_id if as_role == "landlord" else Lease.tenant_id
    q = db.query(Lease).filter(column == principal.id)
    if status:
        q = q.filter(Lease.status == status)
    return q.order_by(Lease.created_at.desc(), Lease.id.desc()).all()


# ----------------------------------------------------------------------------
# transitions
# ----------------------------------------------------------------------------

def send_to_tenant(db: Session, principal: Optional[User], lease_id: int) -> TransitionResult:
    require_principal(principal)
    lease = get_lease(db, lease_id)
    authorize(principal, lease, Relation.LANDLORD, "Only the landlord can send the lease")
    _require_status(lease, (LeaseStatus.DRAFT,), "Only draft leases can be sent")

    _apply(db, lease, (LeaseStatus.DRAFT,), LeaseSent(sent_at=utcnow()), "Only draft leases can be sent")
    event = notify_tenant(db, "lease_sent", lease)
    _audit(db, principal, "sent", lease, "Lease sent to tenant")
    commit(db)
    return TransitionResult(lease=lease, event_ids=[event.id])


def tenant_sign(
    db: Session,
    principal: Optional[User],
    lease_id: int,
    signature_data: str,
    documents: Iterable[dict],
    file_store: FileStore,
) -> TransitionResult:
    """
    Tenant signs and uploads supporting documents.

    documents: [{"type": "id_front", "storage_id": "..."}]. Each file is
    checked for type and size with the file store before anything is written.
    """
    require_principal(principal)
    lease = get_lease(db, lease_id)
    authorize(principal, lease, Relation.TENANT, "Only the tenant can sign")
    signable = (LeaseStatus.SENT_TO_TENANT, LeaseStatus.REVISION_REQUESTED)
    _require_status(lease, signable, "Lease not ready for signing")

    if not signature_data or not signature_data.strip():
        raise ValidationError("A signature is required")

    documents = list(documents)
    provided = {doc.get("type") for doc in documents}
    missing = [t for t in settings.REQUIRED_TENANT_DOCUMENT_TYPES if t not in provided]
    if missing:
        raise ValidationError(f"Missing required documents: {', '.join(missing)}")

    signed_at = utcnow()
    stored = []
    for doc in documents:
        if not doc.get("type") or not doc.get("storage_id"):
            raise ValidationError("Each document needs a type and a storage_id")
        file_store.validate(doc["storage_id"], ALLOWED_LEASE_DOCUMENT_TYPES)
        uploaded_at = doc.get("uploaded_at") or signed_at
        stored.append(
            {
                "type": doc["type"],
                "storage_id": doc["storage_id"],
                "uploaded_at": uploaded_at.isoformat() if isinstance(uploaded_at, datetime) else str(uploaded_at),
            }
        )

    delta = LeaseSigned(
        tenant_signature_data=signature_data,
        tenant_documents=tuple(stored),
        signed_at=signed_at,
    )
    _apply(db, lease, signable, delta, "Lease not ready for signing")
    event = notify_landlord(db, "tenant_signed", lease)
    _audit(db, principal, "signed", lease, f"Tenant signed with {len(stored)} documents")
    commit(db)
    return TransitionResult(lease=lease, event_ids=[event.id])


def approve(
    db: Session,
    principal: Optional[User],
    lease_id: int,
    signature_data: Optional[str] = None,
    notes: Optional[str] = None,
) -> TransitionResult:
    """
    Approve a signed lease.

    Unlists the property, schedules the first rent payment(s) and opens the
    deposit escrow when the lease carries a deposit.
    """
    require_principal(principal)
    lease = get_lease(db, lease_id)
    authorize(principal, lease, Relation.LANDLORD, "Only the landlord can approve")
    _require_status(lease, (LeaseStatus.TENANT_SIGNED,), "Lease not ready for approval")

    # Serializes approvals on the same property until commit
    db.query(Property).filter(Property.id == lease.property_id).with_for_update().one()
    other_approved = (
        db.query(Lease.id)
        .filter(
            Lease.property_id == lease.property_id,
            Lease.status == LeaseStatus.APPROVED,
            Lease.id != lease.id,
        )
        .first()
    )
    if other_approved:
        raise InvalidState("Property already has an approved lease")

    delta = LeaseApproved(
        approved_at=utcnow(),
        landlord_signature_data=signature_data,
        landlord_notes=_clean(notes),
    )
    _apply(db, lease, (LeaseStatus.TENANT_SIGNED,), delta, "Lease not ready for approval")
    _set_availability(db, PropertyAvailability(property_id=lease.property_id, is_available=False))

    payments = payment_service.insert_schedule(db, lease, settings.APPROVAL_SCHEDULE_MONTHS)

    deposit = None
    deposit_amount = Decimal(str(lease.deposit_amount or 0))
    if deposit_amount > 0:
        deposit = deposit_service.find_for_lease(db, lease.id)
        if deposit is None:
            deposit = deposit_service.open_for_lease(db, lease, deposit_amount)
        else:
            logger.info("Lease %s already has deposit %s; not opening another", lease.id, deposit.id)

    event = notify_tenant(db, "lease_approved", lease)
    _audit(
        db,
        principal,
        "approved",
        lease,
        f"Lease approved; property {lease.property_id} unlisted; {len(payments)} payments scheduled",
    )
    commit(db)
    logger.info("Lease %s approved", lease.id)
    return TransitionResult(lease=lease, event_ids=[event.id], payments=payments, deposit=deposit)


def reject(db: Session, principal: Optional[User], lease_id: int, notes: Optional[str] = None) -> TransitionResult:
    require_principal(principal)
    lease = get_lease(db, lease_id)
    authorize(principal, lease, Relation.LANDLORD, "Only the landlord can reject")
    _require_status(lease, (LeaseStatus.TENANT_SIGNED,), "Lease not ready for approval")

    notes = _clean(notes)
    _apply(db, lease, (LeaseStatus.TENANT_SIGNED,), LeaseRejected(landlord_notes=notes), "Lease not ready for approval")
    event = notify_tenant(db, "lease_rejected", lease, notes)
    _audit(db, principal, "rejected", lease, f"Lease rejected: {notes or 'no reason given'}")
    commit(db)
    return TransitionResult(lease=lease, event_ids=[event.id])


def decide(
    db: Session,
    principal: Optional[User],
    lease_id: int,
    approved: bool,
    signature_data: Optional[str] = None,
    notes: Optional[str] = None,
) -> TransitionResult:
    if approved:
        return approve(db, principal, lease_id, signature_data=signature_data, notes=notes)
    return reject(db, principal, lease_id, notes=notes)


def request_revision(db: Session, principal: Optional[User], lease_id: int, notes: str) -> TransitionResult:
    """Send a signed lease back to the tenant; the previous signature and documents are discarded."""
    require_principal(principal)
    lease = get_lease(db, lease_id)
    authorize(principal, lease, Relation.LANDLORD, "Only the landlord can request revisions")
    _require_status(lease, (LeaseStatus.TENANT_SIGNED,), "Lease not currently in review")

    notes = _clean(notes)
    if not notes:
        raise ValidationError("Revision notes are required")

    _apply(
        db,
        lease,
        (LeaseStatus.TENANT_SIGNED,),
        LeaseRevisionRequested(landlord_notes=notes),
        "Lease not currently in review",
    )
    event = notify_tenant(db, "revision_requested", lease, notes)
    _audit(db, principal, "revision_requested", lease, f"Revision requested: {notes}")
    commit(db)
    return TransitionResult(lease=lease, event_ids=[event.id])


def terminate(db: Session, principal: Optional[User], lease_id: int, reason: Optional[str] = None) -> TransitionResult:
    """
    End a lease early. Allowed from any non-terminal status; the property is
    relisted only when the lease being ended was approved.
    """
    require_principal(principal)
    lease = get_lease(db, lease_id)
    authorize(principal, lease, Relation.LANDLORD, "Only the landlord can terminate leases")
    previous = lease.status
    if previous in LeaseStatus.TERMINAL:
        raise InvalidState(f"Lease is already {previous}")

    reason = _clean(reason)
    _apply(
        db,
        lease,
        (previous,),
        LeaseTerminated(terminated_at=utcnow(), landlord_notes=reason),
        "Lease changed while terminating; reload and try again",
    )
    if previous == LeaseStatus.APPROVED:
        _set_availability(db, PropertyAvailability(property_id=lease.property_id, is_available=True))

    event_ids = []
    if previous != LeaseStatus.DRAFT:
        event_ids.append(notify_tenant(db, "lease_terminated", lease, reason).id)
    _audit(db, principal, "terminated", lease, f"Lease terminated from {previous}: {reason or 'no reason given'}")
    commit(db)
    logger.info("Lease %s terminated (was %s)", lease.id, previous)
    return TransitionResult(lease=lease, event_ids=event_ids)


# ----------------------------------------------------------------------------
# sweeps
# ----------------------------------------------------------------------------

def expire_stale_leases(db: Session, today: Optional[date] = None) -> SweepResult:
    """
    Sweep: approved leases whose end_date is before today become expired and
    their property is relisted. Each lease commits on its own; re-running is
    a no-op for leases already expired.
    """
    today = today or today_utc()
    result = SweepResult()
    candidates = (
        db.query(Lease.id)
        .filter(Lease.status == LeaseStatus.APPROVED, Lease.end_date < today)
        .order_by(Lease.id)
        .all()
    )
    for (lease_id,) in candidates:
        lease = db.get(Lease, lease_id)
        try:
            _apply(db, lease, (LeaseStatus.APPROVED,), LeaseExpired(), "Lease is no longer approved")
            _set_availability(db, PropertyAvailability(property_id=lease.property_id, is_available=True))
            event = notify_tenant(db, "lease_expired", lease)
            _audit(db, SYSTEM_USER, "expired", lease, f"Lease ended {lease.end_date.isoformat()}", source="sweep")
            commit(db)
        except InvalidState:
            logger.info("Lease %s left approved before the sweep reached it", lease_id)
            continue
        except (SQLAlchemyError, LedgerWriteError):
            db.rollback()
            logger.exception("Failed to expire lease %s", lease_id)
            result.failed.append(lease_id)
            continue
        result.lease_ids.append(lease_id)
        result.event_ids.append(event.id)

    logger.info("Expiry sweep: %s leases expired, %s failed", result.count, len(result.failed))
    return result


def reconcile_property_availability(db: Session) -> ReconcileResult:
    """
    Sweep: repair availability drift between properties and approved leases.

    - a property with an approved lease must be unavailable
    - a published property with no approved lease, whose lease history shows
      a lease that ended (terminated/expired), must be available again
    """
    result = ReconcileResult()

    approved_property_ids = {
        pid for (pid,) in db.query(Lease.property_id).filter(Lease.status == LeaseStatus.APPROVED).distinct()
    }
    ended_property_ids = {
        pid
        for (pid,) in db.query(Lease.property_id)
        .filter(Lease.status.in_((LeaseStatus.TERMINATED, LeaseStatus.EXPIRED)))
        .distinct()
    }

    if approved_property_ids:
        for prop in (
            db.query(Property)
            .filter(Property.id.in_(approved_property_ids), Property.is_available.is_(True))
            .all()
        ):
            prop.is_available = False
            result.made_unavailable.append(prop.id)

    relist_ids = ended_property_ids - approved_property_ids
    if relist_ids:
        for prop in (
            db.query(Property)
            .filter(
                Property.id.in_(relist_ids),
                Property.is_available.is_(False),
                Property.approval_status == "approved",
            )
            .all()
        ):
            prop.is_available = True
            result.made_available.append(prop.id)

    for property_id in result.made_unavailable + result.made_available:
        log_audit(
            db,
            actor=SYSTEM_USER,
            action="reconciled",
            entity_type="property",
            entity_id=str(property_id),
            source="sweep",
            status="reconciled",
            property_id=property_id,
            description=(
                "Unlisted: approved lease present"
                if property_id in result.made_unavailable
                else "Relisted: no approved lease"
            ),
        )
    commit(db)
    if result.made_unavailable or result.made_available:
        logger.warning(
            "Availability drift repaired: %s unlisted, %s relisted",
            result.made_unavailable,
            result.made_available,
        )
    return result
