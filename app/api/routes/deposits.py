from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from app.api.deps import get_db
from app.core.auth import get_current_user, User
from app.core.errors import NotFound
from app.models.deposit import Deposit
from app.services import deposits as deposit_service
from app.services.authorization import Relation, authorize

from app.schemas.deposit import (
    DepositConfirmIn,
    DepositCreate,
    DepositForfeitIn,
    DepositOut,
    DepositReleaseIn,
    DepositReleaseOut,
    DepositReleaseRequestIn,
)

router = APIRouter(prefix="/deposits", tags=["deposits"])


@router.post("", response_model=DepositOut, status_code=201)
def create_deposit(
    payload: DepositCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return deposit_service.create(db, current_user, payload.lease_id, amount=payload.amount)


@router.get("", response_model=List[DepositOut])
def list_deposits(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    as_role: str = Query("landlord", pattern="^(landlord|tenant)$"),
):
    return deposit_service.list_for_user(db, current_user, as_role=as_role)


@router.get("/{deposit_id}", response_model=DepositOut)
def get_deposit(
    deposit_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deposit = db.query(Deposit).filter(Deposit.id == deposit_id).first()
    if not deposit:
        raise NotFound("Deposit not found")
    authorize(current_user, deposit, Relation.PARTICIPANT, "You don't have access to this deposit")
    return deposit


@router.post("/{deposit_id}/confirm", response_model=DepositOut)
def confirm_deposit(
    deposit_id: int,
    payload: DepositConfirmIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Landlord confirms the deposit was received; the deposit is then held.
    """
    return deposit_service.confirm(
        db,
        current_user,
        deposit_id,
        payment_method=payload.payment_method,
        payment_reference=payload.payment_reference,
    )


@router.post("/{deposit_id}/request-release", response_model=DepositOut)
def request_deposit_release(
    deposit_id: int,
    payload: DepositReleaseRequestIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return deposit_service.request_release(db, current_user, deposit_id, reason=payload.reason)


@router.post("/{deposit_id}/release", response_model=DepositReleaseOut)
def release_deposit(
    deposit_id: int,
    payload: DepositReleaseIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = deposit_service.release(
        db,
        current_user,
        deposit_id,
        deduction_amount=payload.deduction_amount,
        deduction_reason=payload.deduction_reason,
    )
    return {
        "deposit": result.deposit,
        "refund_amount": result.refund_amount,
        "deducted_amount": result.deducted_amount,
    }


@router.post("/{deposit_id}/forfeit", response_model=DepositOut)
def forfeit_deposit(
    deposit_id: int,
    payload: DepositForfeitIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return deposit_service.forfeit(db, current_user, deposit_id, reason=payload.reason)
