from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from app.api.deps import get_db
from app.core.auth import get_current_user, User
from app.services import payments as payment_service

from app.schemas.payment import MarkPaidIn, PaymentOut, PaymentTotalsOut

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("", response_model=List[PaymentOut])
def list_payments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    as_role: str = Query("landlord", pattern="^(landlord|tenant)$"),
):
    """
    Payments across every lease where the current user is the landlord
    (or the tenant, with as_role=tenant). Newest due date first.
    """
    return payment_service.list_for_user(db, current_user, as_role=as_role)


@router.get("/stats", response_model=PaymentTotalsOut)
def payment_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    as_role: str = Query("landlord", pattern="^(landlord|tenant)$"),
):
    return payment_service.stats_for_user(db, current_user, as_role=as_role)


@router.post("/{payment_id}/mark-paid", response_model=PaymentOut)
def mark_payment_paid(
    payment_id: int,
    payload: MarkPaidIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payment_service.mark_paid(
        db,
        current_user,
        payment_id,
        payment_method=payload.payment_method,
        paid_at=payload.paid_at,
        notes=payload.notes,
    )
