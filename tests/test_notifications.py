"""Tests for queued lease events and their delivery."""
from unittest.mock import MagicMock

import pytest
import requests

from app.core.notifications import RESEND_URL, EmailClient, NotificationDispatcher
from app.models.event import LeaseEvent
from app.models.lease import LeaseStatus
from app.services.events import notify_landlord, notify_tenant

from conftest import LANDLORD, SIGN_PAYLOAD, TENANT, FakeMailer


@pytest.fixture
def queued_event(db, make_lease):
    lease = make_lease(status=LeaseStatus.SENT_TO_TENANT)
    event = notify_tenant(db, "lease_sent", lease)
    db.commit()
    return event


class TestQueueEvent:
    def test_event_is_rendered_for_recipient(self, db, make_lease):
        lease = make_lease()
        event = notify_landlord(db, "tenant_signed", lease)
        db.commit()

        assert event.recipient_id == LANDLORD.id
        assert event.recipient_email == LANDLORD.email
        assert event.subject == "Lease Signed: 12 Maple Street"
        assert f"/landlord/leases/{lease.id}" in event.body
        assert event.delivery_status == "queued"

    def test_body_escapes_notes_and_address(self, db, make_lease):
        lease = make_lease()
        lease.property.address = "12 <b>Maple</b> Street"
        event = notify_tenant(db, "lease_rejected", lease, '<script>alert("x")</script>')
        db.commit()

        assert event.subject == "Lease Application Update: 12 <b>Maple</b> Street"
        assert "<script>" not in event.body
        assert "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;" in event.body
        assert "12 &lt;b&gt;Maple&lt;/b&gt; Street" in event.body

    def test_unknown_kind_is_rejected(self, db, make_lease):
        lease = make_lease()
        with pytest.raises(KeyError):
            notify_tenant(db, "lease_exploded", lease)


class TestDispatcher:
    def test_sends_and_marks_sent(self, db, session_factory, queued_event):
        mailer = FakeMailer()
        sent = NotificationDispatcher(session_factory, mailer).dispatch([queued_event.id])

        assert sent == 1
        assert mailer.sent[0]["to"] == TENANT.email
        db.expire_all()
        event = db.get(LeaseEvent, queued_event.id)
        assert event.delivery_status == "sent"
        assert event.dispatched_at is not None

    def test_never_resends(self, session_factory, queued_event):
        mailer = FakeMailer()
        dispatcher = NotificationDispatcher(session_factory, mailer)
        dispatcher.dispatch([queued_event.id])

        assert dispatcher.dispatch([queued_event.id]) == 0
        assert dispatcher.dispatch_pending() == 0
        assert len(mailer.sent) == 1

    def test_failure_is_recorded_not_raised(self, db, session_factory, queued_event):
        sent = NotificationDispatcher(session_factory, FakeMailer(fail=True)).dispatch([queued_event.id])

        assert sent == 0
        db.expire_all()
        assert db.get(LeaseEvent, queued_event.id).delivery_status == "failed"

    def test_unconfigured_mailer_skips(self, db, session_factory, queued_event):
        mailer = FakeMailer(configured=False)
        NotificationDispatcher(session_factory, mailer).dispatch([queued_event.id])

        assert mailer.sent == []
        db.expire_all()
        assert db.get(LeaseEvent, queued_event.id).delivery_status == "skipped"

    def test_missing_recipient_email_skips(self, db, session_factory, make_lease):
        lease = make_lease()
        lease.tenant_email = None
        db.commit()
        event = notify_tenant(db, "lease_sent", lease)
        db.commit()

        mailer = FakeMailer()
        NotificationDispatcher(session_factory, mailer).dispatch([event.id])
        assert mailer.sent == []
        db.expire_all()
        assert db.get(LeaseEvent, event.id).delivery_status == "skipped"

    def test_empty_batch(self, session_factory):
        assert NotificationDispatcher(session_factory, FakeMailer()).dispatch([]) == 0

    def test_mail_failure_does_not_fail_the_transition(self, act_as, lease_payload, mailer):
        mailer.fail = True
        client = act_as(LANDLORD)
        lease_id = client.post("/leases", json=lease_payload()).json()["id"]

        response = client.post(f"/leases/{lease_id}/send")
        assert response.status_code == 200
        assert response.json()["status"] == "sent_to_tenant"

        response = act_as(TENANT).post(f"/leases/{lease_id}/sign", json=SIGN_PAYLOAD)
        assert response.status_code == 200

        events = client.get(f"/leases/{lease_id}/events").json()
        assert {e["delivery_status"] for e in events} == {"failed"}


class TestEmailClient:
    def test_posts_to_resend(self, monkeypatch):
        post = MagicMock()
        monkeypatch.setattr(requests, "post", post)

        EmailClient(api_key="re_test", sender="Leases <leases@example.com>").send(
            "tenant@example.com", "Hello", "<p>Hi</p>"
        )

        post.assert_called_once()
        args, kwargs = post.call_args
        assert args[0] == RESEND_URL
        assert kwargs["headers"] == {"Authorization": "Bearer re_test"}
        assert kwargs["json"]["to"] == "tenant@example.com"
        post.return_value.raise_for_status.assert_called_once()

    def test_configured_only_with_key(self):
        assert EmailClient(api_key="re_test").configured is True
        assert EmailClient(api_key="").configured is False
