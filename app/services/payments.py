"""
Payment Scheduler.

Expands a lease's billing terms into monthly rent obligations and keeps the
overdue flag current. Schedule generation is idempotent: due dates already
present for a lease are skipped, so re-running with the same horizon adds
nothing.
"""
import logging
from calendar import monthrange
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.audit import log_audit
from app.core.auth import SYSTEM_USER, User
from app.core.config import settings
from app.core.errors import InvalidState, NotFound, ValidationError
from app.models.lease import Lease, LeaseStatus
from app.models.payment import Payment, PaymentStatus
from app.services.authorization import Relation, authorize, require_principal
from app.services.store import commit, compare_and_set, today_utc, utcnow

logger = logging.getLogger(__name__)

MAX_HORIZON_MONTHS = 120


def _next_month(year: int, month: int) -> tuple:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def _on_day(year: int, month: int, day: int) -> date:
    """Day of the given month, clamped to month end (31 -> Feb 28/29)."""
    _, last_day = monthrange(year, month)
    return date(year, month, min(day, last_day))


def expand_due_dates(start: date, end: date, due_day: int = 1, horizon: int = 12) -> List[date]:
    """
    Monthly due dates for a lease.

    The first due date is the first `due_day` strictly after `start`; there is
    no pro-rated or backdated payment for the partial first period. At most
    `horizon` dates are produced and none falls after `end`.
    """
    if horizon <= 0:
        return []
    if not 1 <= due_day <= 31:
        raise ValidationError("Payment due day must be between 1 and 31")

    year, month = start.year, start.month
    if _on_day(year, month, due_day) <= start:
        year, month = _next_month(year, month)

    dates: List[date] = []
    for _ in range(horizon):
        due = _on_day(year, month, due_day)
        if due > end:
            break
        dates.append(due)
        year, month = _next_month(year, month)
    return dates


def insert_schedule(db: Session, lease: Lease, horizon: int) -> List[Payment]:
    """Stage the missing rent payments for `lease` in the caller's transaction."""
    existing = {
        row.due_date
        for row in db.query(Payment.due_date)
        .filter(Payment.lease_id == lease.id, Payment.kind == "rent")
        .all()
    }
    created: List[Payment] = []
    for due in expand_due_dates(lease.start_date, lease.end_date, lease.payment_due_day, horizon):
        if due in existing:
            continue
        payment = Payment(
            lease_id=lease.id,
            amount=lease.monthly_rent,
            kind="rent",
            status=PaymentStatus.PENDING,
            due_date=due,
        )
        db.add(payment)
        created.append(payment)
    db.flush()
    return created


def _get_lease(db: Session, lease_id: int) -> Lease:
    lease = db.get(Lease, lease_id)
    if not lease:
        raise NotFound("Lease not found")
    return lease


def generate_schedule(
    db: Session,
    principal: Optional[User],
    lease_id: int,
    months_ahead: Optional[int] = None,
) -> List[Payment]:
    require_principal(principal)
    lease = _get_lease(db, lease_id)
    authorize(principal, lease, Relation.LANDLORD, "Only the landlord can generate payments")
    if lease.status != LeaseStatus.APPROVED:
        raise InvalidState("Payments can only be scheduled for approved leases")

    horizon = months_ahead if months_ahead is not None else settings.PAYMENT_HORIZON_MONTHS
    if not 1 <= horizon <= MAX_HORIZON_MONTHS:
        raise ValidationError(f"months_ahead must be between 1 and {MAX_HORIZON_MONTHS}")

    created = insert_schedule(db, lease, horizon)
    log_audit(
        db,
        actor=principal,
        action="scheduled",
        entity_type="payment",
        entity_id=str(lease.id),
        status=PaymentStatus.PENDING,
        lease_id=lease.id,
        property_id=lease.property_id,
        description=f"{len(created)} rent payments generated ({horizon} months ahead)",
    )
    commit(db)
    logger.info("Lease %s: %s payments generated", lease.id, len(created))
    return created


def mark_paid(
    db: Session,
    principal: Optional[User],
    payment_id: int,
    payment_method: str,
    paid_at: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> Payment:
    require_principal(principal)
    payment = db.get(Payment, payment_id)
    if not payment:
        raise NotFound("Payment not found")
    lease = _get_lease(db, payment.lease_id)
    authorize(principal, lease, Relation.LANDLORD, "Only the landlord can record payments")
    if payment.status not in (PaymentStatus.PENDING, PaymentStatus.OVERDUE):
        raise InvalidState("Payment is already paid")
    if not payment_method or not payment_method.strip():
        raise ValidationError("payment_method is required")

    compare_and_set(
        db,
        Payment,
        payment,
        (PaymentStatus.PENDING, PaymentStatus.OVERDUE),
        {
            "status": PaymentStatus.PAID,
            "paid_at": paid_at or utcnow(),
            "payment_method": payment_method.strip(),
            "notes": notes,
        },
        "Payment is already paid",
    )
    log_audit(
        db,
        actor=principal,
        action="paid",
        entity_type="payment",
        entity_id=str(payment.id),
        status=PaymentStatus.PAID,
        lease_id=lease.id,
        property_id=lease.property_id,
        description=f"Payment due {payment.due_date.isoformat()} recorded via {payment.payment_method}",
    )
    commit(db)
    return payment


def mark_overdue(db: Session, today: Optional[date] = None) -> int:
    """Sweep: pending payments due strictly before today become overdue. Never reverts."""
    today = today or today_utc()
    updated = (
        db.query(Payment)
        .filter(Payment.status == PaymentStatus.PENDING, Payment.due_date < today)
        .update({"status": PaymentStatus.OVERDUE}, synchronize_session=False)
    )
    if updated:
        log_audit(
            db,
            actor=SYSTEM_USER,
            action="marked_overdue",
            entity_type="payment",
            entity_id="batch",
            source="sweep",
            status=PaymentStatus.OVERDUE,
            description=f"{updated} payments marked overdue as of {today.isoformat()}",
        )
    commit(db)
    logger.info("Overdue sweep: %s payments marked overdue", updated)
    return updated


def list_for_lease(db: Session, principal: Optional[User], lease_id: int) -> List[Payment]:
    require_principal(principal)
    lease = _get_lease(db, lease_id)
    authorize(principal, lease, Relation.PARTICIPANT, "You don't have access to this lease")
    return (
        db.query(Payment)
        .filter(Payment.lease_id == lease.id)
        .order_by(Payment.due_date.asc())
        .all()
    )


def _totals(rows) -> Dict[str, Decimal]:
    totals = {status: Decimal("0") for status in PaymentStatus.ALL}
    for status, amount in rows:
        totals[status] = Decimal(str(amount or 0))
    return totals


def summary_for_lease(db: Session, principal: Optional[User], lease_id: int) -> Dict[str, Decimal]:
    require_principal(principal)
    lease = _get_lease(db, lease_id)
    authorize(principal, lease, Relation.PARTICIPANT, "You don't have access to this lease")
    rows = (
        db.query(Payment.status, func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.lease_id == lease.id)
        .group_by(Payment.status)
        .all()
    )
    return _totals(rows)


def list_for_user(db: Session, principal: Optional[User], as_role: str = "landlord") -> List[Payment]:
    require_principal(principal)
    column = Lease.landlord_id if as_role == "landlord" else Lease.tenant_id
    return (
        db.query(Payment)
        .join(Lease, Lease.id == Payment.lease_id)
        .filter(column == principal.id)
        .order_by(Payment.due_date.desc())
        .all()
    )


def stats_for_user(db: Session, principal: Optional[User], as_role: str = "landlord") -> Dict[str, Decimal]:
    require_principal(principal)
    column = Lease.landlord_id if as_role == "landlord" else Lease.tenant_id
    rows = (
        db.query(Payment.status, func.coalesce(func.sum(Payment.amount), 0))
        .join(Lease, Lease.id == Payment.lease_id)
        .filter(column == principal.id)
        .group_by(Payment.status)
        .all()
    )
    return _totals(rows)
