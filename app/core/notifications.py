"""
Delivery of queued lease events.

Lifecycle operations write LeaseEvent rows inside their own transaction.
After the commit, routes hand the new ids to NotificationDispatcher as a
background task. Delivery failures are logged and recorded on the row; they
never reach the caller and are not retried.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

import requests
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.event import LeaseEvent

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


class EmailClient:
    """Sends HTML email through the Resend HTTP API."""

    def __init__(self, api_key: Optional[str] = None, sender: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.sender = sender or settings.EMAIL_FROM

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, html: str) -> None:
        response = requests.post(
            RESEND_URL,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={"from": self.sender, "to": to, "subject": subject, "html": html},
            timeout=10,
        )
        response.raise_for_status()


class NotificationDispatcher:
    def __init__(self, session_factory: Callable[[], Session], mailer: EmailClient):
        self.session_factory = session_factory
        self.mailer = mailer

    def _deliver(self, event: LeaseEvent) -> str:
        if not event.recipient_email:
            logger.warning("Event %s (%s) has no recipient email; skipping", event.id, event.kind)
            return "skipped"
        if not self.mailer.configured:
            logger.warning("Email not configured. Event %s not sent: %s", event.id, event.subject)
            return "skipped"
        try:
            self.mailer.send(event.recipient_email, event.subject, event.body)
        except Exception:
            logger.exception("Failed to send event %s (%s) to %s", event.id, event.kind, event.recipient_email)
            return "failed"
        logger.info("Event %s (%s) sent to %s", event.id, event.kind, event.recipient_email)
        return "sent"

    def dispatch(self, event_ids: Iterable[int]) -> int:
        """Deliver the given queued events. Returns how many were sent."""
        ids = list(event_ids)
        if not ids:
            return 0
        db = self.session_factory()
        try:
            events = (
                db.query(LeaseEvent)
                .filter(LeaseEvent.id.in_(ids), LeaseEvent.delivery_status == "queued")
                .order_by(LeaseEvent.id)
                .all()
            )
            return self._dispatch_rows(db, events)
        finally:
            db.close()

    def dispatch_pending(self) -> int:
        """Deliver every event still queued, e.g. after a sweep run from cron."""
        db = self.session_factory()
        try:
            events = (
                db.query(LeaseEvent)
                .filter(LeaseEvent.delivery_status == "queued")
                .order_by(LeaseEvent.id)
                .all()
            )
            return self._dispatch_rows(db, events)
        finally:
            db.close()

    def _dispatch_rows(self, db: Session, events: list) -> int:
        sent = 0
        for event in events:
            event.delivery_status = self._deliver(event)
            event.dispatched_at = datetime.now(timezone.utc)
            if event.delivery_status == "sent":
                sent += 1
            # Commit per event so one bad row never re-sends the others
            db.commit()
        return sent
