"""
Deposit Escrow Manager.

pending -> held -> released | partial_release | forfeited

A held deposit may carry a release request from either party; the request is
metadata only and does not block the landlord from releasing or forfeiting.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.audit import log_audit
from app.core.auth import User
from app.core.errors import AlreadyExists, InvalidState, NotFound, ValidationError
from app.models.deposit import Deposit, DepositStatus, PAYMENT_METHODS
from app.models.lease import Lease
from app.services.authorization import Relation, authorize, require_principal
from app.services.store import commit, compare_and_set, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ReleaseResult:
    deposit: Deposit
    refund_amount: Decimal
    deducted_amount: Decimal


def _get_deposit(db: Session, deposit_id: int) -> Deposit:
    deposit = db.get(Deposit, deposit_id)
    if not deposit:
        raise NotFound("Deposit not found")
    return deposit


def _audit(db: Session, actor: User, action: str, deposit: Deposit, description: str, property_id=None) -> None:
    log_audit(
        db,
        actor=actor,
        action=action,
        entity_type="deposit",
        entity_id=str(deposit.id),
        status=deposit.status,
        lease_id=deposit.lease_id,
        property_id=property_id,
        description=description,
    )


def find_for_lease(db: Session, lease_id: int) -> Optional[Deposit]:
    return db.query(Deposit).filter(Deposit.lease_id == lease_id).first()


def open_for_lease(db: Session, lease: Lease, amount: Decimal) -> Deposit:
    """Stage a pending deposit for `lease` in the caller's transaction."""
    if find_for_lease(db, lease.id) is not None:
        raise AlreadyExists("Deposit already exists for this lease")
    deposit = Deposit(
        lease_id=lease.id,
        tenant_id=lease.tenant_id,
        landlord_id=lease.landlord_id,
        amount=amount,
        status=DepositStatus.PENDING,
        deduction_amount=Decimal("0"),
    )
    db.add(deposit)
    db.flush()
    return deposit


def create(db: Session, principal: Optional[User], lease_id: int, amount: Optional[Decimal] = None) -> Deposit:
    require_principal(principal)
    lease = db.get(Lease, lease_id)
    if not lease:
        raise NotFound("Lease not found")
    authorize(principal, lease, Relation.LANDLORD, "Only the landlord can create deposits")

    amount = Decimal(str(amount)) if amount is not None else Decimal(str(lease.deposit_amount or 0))
    if amount <= 0:
        raise ValidationError("Deposit amount must be greater than zero")

    deposit = open_for_lease(db, lease, amount)
    _audit(db, principal, "created", deposit, f"Deposit of {amount} opened", lease.property_id)
    commit(db)
    logger.info("Deposit %s opened for lease %s", deposit.id, lease.id)
    return deposit


def confirm(
    db: Session,
    principal: Optional[User],
    deposit_id: int,
    payment_method: str,
    payment_reference: Optional[str] = None,
) -> Deposit:
    """Landlord confirms receipt of the deposit."""
    require_principal(principal)
    deposit = _get_deposit(db, deposit_id)
    authorize(principal, deposit, Relation.LANDLORD, "Only the landlord can confirm deposits")
    if deposit.status != DepositStatus.PENDING:
        raise InvalidState("Deposit is not pending")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    compare_and_set(
        db,
        Deposit,
        deposit,
        (DepositStatus.PENDING,),
        {
            "status": DepositStatus.HELD,
            "paid_at": utcnow(),
            "payment_method": payment_method,
            "payment_reference": payment_reference,
        },
        "Deposit is not pending",
    )
    _audit(db, principal, "confirmed", deposit, f"Deposit received via {payment_method}")
    commit(db)
    return deposit


def request_release(db: Session, principal: Optional[User], deposit_id: int, reason: str) -> Deposit:
    require_principal(principal)
    deposit = _get_deposit(db, deposit_id)
    authorize(principal, deposit, Relation.PARTICIPANT, "Only lease participants can request a release")
    if deposit.status != DepositStatus.HELD:
        raise InvalidState("Deposit is not currently held")
    if not reason or not reason.strip():
        raise ValidationError("A reason is required to request a release")

    compare_and_set(
        db,
        Deposit,
        deposit,
        (DepositStatus.HELD,),
        {
            "release_requested_at": utcnow(),
            "release_requested_by": principal.id,
            "release_reason": reason.strip(),
        },
        "Deposit is not currently held",
    )
    _audit(db, principal, "release_requested", deposit, f"Release requested: {reason.strip()}")
    commit(db)
    return deposit


def release(
    db: Session,
    principal: Optional[User],
    deposit_id: int,
    deduction_amount: Optional[Decimal] = None,
    deduction_reason: Optional[str] = None,
) -> ReleaseResult:
    """Refund the deposit, optionally keeping `deduction_amount` of it."""
    require_principal(principal)
    deposit = _get_deposit(db, deposit_id)
    authorize(principal, deposit, Relation.LANDLORD, "Only the landlord can release deposits")
    if deposit.status != DepositStatus.HELD:
        raise InvalidState("Deposit is not currently held")

    amount = Decimal(str(deposit.amount))
    deduction = Decimal(str(deduction_amount or 0))
    if deduction < 0:
        raise ValidationError("Deduction amount cannot be negative")
    if deduction > amount:
        raise ValidationError("Deduction amount cannot exceed the deposit amount")
    if deduction > 0 and not (deduction_reason and deduction_reason.strip()):
        raise ValidationError("A deduction reason is required when keeping part of the deposit")

    status = DepositStatus.PARTIAL_RELEASE if deduction > 0 else DepositStatus.RELEASED
    compare_and_set(
        db,
        Deposit,
        deposit,
        (DepositStatus.HELD,),
        {
            "status": status,
            "deduction_amount": deduction,
            "deduction_reason": deduction_reason,
            "released_at": utcnow(),
        },
        "Deposit is not currently held",
    )
    refund = amount - deduction
    _audit(db, principal, "released", deposit, f"Refunded {refund}, deducted {deduction}")
    commit(db)
    return ReleaseResult(deposit=deposit, refund_amount=refund, deducted_amount=deduction)


def forfeit(db: Session, principal: Optional[User], deposit_id: int, reason: str) -> Deposit:
    require_principal(principal)
    deposit = _get_deposit(db, deposit_id)
    authorize(principal, deposit, Relation.LANDLORD, "Only the landlord can forfeit deposits")
    if deposit.status != DepositStatus.HELD:
        raise InvalidState("Deposit is not currently held")
    if not reason or not reason.strip():
        raise ValidationError("A reason is required to forfeit a deposit")

    compare_and_set(
        db,
        Deposit,
        deposit,
        (DepositStatus.HELD,),
        {
            "status": DepositStatus.FORFEITED,
            "deduction_amount": deposit.amount,
            "deduction_reason": reason.strip(),
            "released_at": utcnow(),
        },
        "Deposit is not currently held",
    )
    _audit(db, principal, "forfeited", deposit, f"Deposit forfeited: {reason.strip()}")
    commit(db)
    return deposit


def get_for_lease(db: Session, principal: Optional[User], lease_id: int) -> Deposit:
    require_principal(principal)
    lease = db.get(Lease, lease_id)
    if not lease:
        raise NotFound("Lease not found")
    authorize(principal, lease, Relation.PARTICIPANT, "You don't have access to this lease")
    deposit = find_for_lease(db, lease.id)
    if not deposit:
        raise NotFound("No deposit for this lease")
    return deposit


def list_for_user(db: Session, principal: Optional[User], as_role: str = "landlord") -> List[Deposit]:
    require_principal(principal)
    column = Deposit.landlord_id if as_role == "landlord" else Deposit.tenant_id
    return db.query(Deposit).filter(column == principal.id).order_by(Deposit.created_at.desc()).all()
