"""
Admin-triggered runs of the periodic sweeps. The same sweeps run from cron
through `python -m app.cli`; every sweep is safe to repeat.
"""
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_dispatcher
from app.core.auth import require_role, User
from app.core.notifications import NotificationDispatcher
from app.services import leases as lease_service
from app.services import payments as payment_service
from app.schemas.audit_log import SweepOut

router = APIRouter(prefix="/sweeps", tags=["sweeps"])


@router.post("/expire-leases", response_model=SweepOut)
def expire_leases(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role("admin")),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = lease_service.expire_stale_leases(db)
    if result.event_ids:
        background_tasks.add_task(dispatcher.dispatch, list(result.event_ids))
    return {
        "name": "expire-leases",
        "affected": result.count,
        "ids": result.lease_ids,
        "failed": result.failed,
    }


@router.post("/mark-overdue-payments", response_model=SweepOut)
def mark_overdue_payments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role("admin")),
):
    updated = payment_service.mark_overdue(db)
    return {"name": "mark-overdue-payments", "affected": updated}


@router.post("/reconcile-availability", response_model=SweepOut)
def reconcile_availability(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role("admin")),
):
    result = lease_service.reconcile_property_availability(db)
    changed = result.made_unavailable + result.made_available
    return {"name": "reconcile-availability", "affected": len(changed), "ids": changed}
