from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.api.deps import get_db, get_dispatcher, get_file_store
from app.core.auth import get_current_user, User
from app.core.notifications import NotificationDispatcher
from app.core.storage import FileStore
from app.services import deposits as deposit_service
from app.services import events as event_service
from app.services import leases as lease_service
from app.services import payments as payment_service
from app.services.leases import TransitionResult

from app.schemas.deposit import DepositOut
from app.schemas.event import LeaseEventOut
from app.schemas.lease import (
    LeaseApproveIn,
    LeaseCreate,
    LeaseDecisionIn,
    LeaseNotesIn,
    LeaseOut,
    LeaseRevisionIn,
    LeaseSignIn,
    LeaseTerminateIn,
)
from app.schemas.payment import PaymentOut, PaymentTotalsOut, ScheduleIn, ScheduleOut

router = APIRouter(prefix="/leases", tags=["leases"])


def _respond(result: TransitionResult, background_tasks: BackgroundTasks, dispatcher: NotificationDispatcher):
    # Events are committed already; delivery runs after the response is sent
    if result.event_ids:
        background_tasks.add_task(dispatcher.dispatch, list(result.event_ids))
    return result.lease


@router.post("", response_model=LeaseOut, status_code=201)
def create_lease(
    payload: LeaseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Draft a lease on one of the current user's properties.
    """
    data = payload.model_dump(exclude={"lease_document"})
    lease_document = payload.lease_document.model_dump() if payload.lease_document else None
    return lease_service.create_lease(db, current_user, lease_document=lease_document, **data)


@router.get("", response_model=List[LeaseOut])
def list_leases(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    as_role: str = Query("landlord", pattern="^(landlord|tenant)$"),
    status: Optional[str] = Query(None, description="draft|sent_to_tenant|tenant_signed|approved|..."),
):
    return lease_service.list_leases(db, current_user, as_role=as_role, status=status)


@router.get("/{lease_id}", response_model=LeaseOut)
def get_lease(
    lease_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return lease_service.get_lease_for(db, current_user, lease_id)


@router.post("/{lease_id}/send", response_model=LeaseOut)
def send_lease(
    lease_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = lease_service.send_to_tenant(db, current_user, lease_id)
    return _respond(result, background_tasks, dispatcher)


@router.post("/{lease_id}/sign", response_model=LeaseOut)
def sign_lease(
    lease_id: int,
    payload: LeaseSignIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    file_store: FileStore = Depends(get_file_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Tenant signs the lease. Documents must already be uploaded to storage;
    only their storage ids are sent here.
    """
    result = lease_service.tenant_sign(
        db,
        current_user,
        lease_id,
        signature_data=payload.signature_data,
        documents=[doc.model_dump() for doc in payload.documents],
        file_store=file_store,
    )
    return _respond(result, background_tasks, dispatcher)


@router.post("/{lease_id}/decision", response_model=LeaseOut)
def decide_lease(
    lease_id: int,
    payload: LeaseDecisionIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = lease_service.decide(
        db,
        current_user,
        lease_id,
        approved=payload.approved,
        signature_data=payload.signature_data,
        notes=payload.notes,
    )
    return _respond(result, background_tasks, dispatcher)


@router.post("/{lease_id}/approve", response_model=LeaseOut)
def approve_lease(
    lease_id: int,
    payload: LeaseApproveIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Approve a signed lease: unlists the property, schedules the first rent
    payment and opens the deposit escrow.
    """
    result = lease_service.approve(
        db,
        current_user,
        lease_id,
        signature_data=payload.signature_data,
        notes=payload.notes,
    )
    return _respond(result, background_tasks, dispatcher)


@router.post("/{lease_id}/reject", response_model=LeaseOut)
def reject_lease(
    lease_id: int,
    payload: LeaseNotesIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = lease_service.reject(db, current_user, lease_id, notes=payload.notes)
    return _respond(result, background_tasks, dispatcher)


@router.post("/{lease_id}/request-revision", response_model=LeaseOut)
def request_revision(
    lease_id: int,
    payload: LeaseRevisionIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = lease_service.request_revision(db, current_user, lease_id, notes=payload.notes)
    return _respond(result, background_tasks, dispatcher)


@router.post("/{lease_id}/terminate", response_model=LeaseOut)
def terminate_lease(
    lease_id: int,
    payload: LeaseTerminateIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = lease_service.terminate(db, current_user, lease_id, reason=payload.reason)
    return _respond(result, background_tasks, dispatcher)


@router.get("/{lease_id}/events", response_model=List[LeaseEventOut])
def list_lease_events(
    lease_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lease = lease_service.get_lease(db, lease_id)
    return event_service.list_for_lease(db, current_user, lease)


@router.get("/{lease_id}/payments", response_model=List[PaymentOut])
def list_lease_payments(
    lease_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payment_service.list_for_lease(db, current_user, lease_id)


@router.post("/{lease_id}/payments/generate", response_model=ScheduleOut)
def generate_lease_payments(
    lease_id: int,
    payload: ScheduleIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Extend the rent schedule of an approved lease. Due dates already on the
    schedule are skipped, so repeating the call adds nothing.
    """
    created = payment_service.generate_schedule(db, current_user, lease_id, months_ahead=payload.months_ahead)
    return {"payments_generated": len(created), "payments": created}


@router.get("/{lease_id}/payments/summary", response_model=PaymentTotalsOut)
def lease_payment_summary(
    lease_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payment_service.summary_for_lease(db, current_user, lease_id)


@router.get("/{lease_id}/deposit", response_model=DepositOut)
def get_lease_deposit(
    lease_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return deposit_service.get_for_lease(db, current_user, lease_id)
