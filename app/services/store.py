"""
Write helpers shared by the lease, payment and deposit services.

Status changes go through compare_and_set so that a transition only lands if
the row is still in the state the caller checked; two racing requests cannot
both apply the same transition.
"""
import logging
from datetime import date, datetime, timezone
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import InvalidState, LedgerWriteError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def compare_and_set(db: Session, model, row, expected: Sequence[str], values: dict, conflict_message: str):
    """
    UPDATE row SET values WHERE id = row.id AND status IN expected.

    Must be the first write of an operation: on conflict the transaction is
    rolled back and InvalidState is raised.
    """
    updated = (
        db.query(model)
        .filter(model.id == row.id, model.status.in_(tuple(expected)))
        .update(values, synchronize_session=False)
    )
    if updated != 1:
        db.rollback()
        logger.info("%s %s changed concurrently; expected status in %s", model.__tablename__, row.id, list(expected))
        raise InvalidState(conflict_message)
    db.refresh(row)
    return row


def commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Ledger write failed; transaction rolled back")
        raise LedgerWriteError() from e
