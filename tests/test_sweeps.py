"""Tests for the periodic sweeps, through the admin API and the cron CLI."""
from datetime import date

import pytest

from app import cli
from app.models.lease import Lease, LeaseStatus
from app.models.payment import Payment, PaymentStatus
from app.models.property import Property
from app.services import leases as lease_service
from app.services import payments as payment_service

from conftest import ADMIN, LANDLORD


# =============================================================================
# Reconciliation
# =============================================================================

class TestReconcileAvailability:
    def test_unlists_property_with_approved_lease(self, db, make_property, make_lease):
        prop = make_property(is_available=True)
        make_lease(status=LeaseStatus.APPROVED, prop=prop)

        result = lease_service.reconcile_property_availability(db)
        assert result.made_unavailable == [prop.id]
        db.expire_all()
        assert db.get(Property, prop.id).is_available is False

    def test_relists_published_property_whose_lease_ended(self, db, make_property, make_lease):
        prop = make_property(is_available=False)
        make_lease(status=LeaseStatus.TERMINATED, prop=prop)

        result = lease_service.reconcile_property_availability(db)
        assert result.made_available == [prop.id]
        db.expire_all()
        assert db.get(Property, prop.id).is_available is True

    def test_leaves_unpublished_property_alone(self, db, make_property, make_lease):
        prop = make_property(is_available=False, approval_status="pending")
        make_lease(status=LeaseStatus.EXPIRED, prop=prop)

        result = lease_service.reconcile_property_availability(db)
        assert result.made_available == []

    def test_ended_lease_does_not_relist_while_another_is_approved(self, db, make_property, make_lease):
        prop = make_property(is_available=False)
        make_lease(status=LeaseStatus.EXPIRED, prop=prop)
        make_lease(status=LeaseStatus.APPROVED, prop=prop)

        result = lease_service.reconcile_property_availability(db)
        assert result.made_available == []
        assert result.made_unavailable == []

    def test_consistent_ledger_is_untouched(self, db, make_property, make_lease):
        make_lease(status=LeaseStatus.APPROVED, prop=make_property(is_available=False))
        make_lease(status=LeaseStatus.DRAFT, prop=make_property(name="Second"))

        result = lease_service.reconcile_property_availability(db)
        assert result.made_unavailable == []
        assert result.made_available == []


# =============================================================================
# Admin API
# =============================================================================

class TestSweepApi:
    def test_expire_leases_is_idempotent(self, act_as, make_property, make_lease, db, mailer):
        prop = make_property(is_available=False)
        lease = make_lease(status=LeaseStatus.APPROVED, prop=prop)  # ended 2025-12-31
        client = act_as(ADMIN)

        response = client.post("/sweeps/expire-leases")
        assert response.status_code == 200
        assert response.json() == {
            "name": "expire-leases",
            "affected": 1,
            "ids": [lease.id],
            "failed": [],
        }
        assert [m["subject"] for m in mailer.sent] == ["Lease Ended: 12 Maple Street"]

        response = client.post("/sweeps/expire-leases")
        assert response.json()["affected"] == 0
        assert len(mailer.sent) == 1

        db.expire_all()
        assert db.get(Lease, lease.id).status == LeaseStatus.EXPIRED
        assert db.get(Property, prop.id).is_available is True

    def test_mark_overdue(self, act_as, make_lease, db):
        lease = make_lease(status=LeaseStatus.APPROVED)
        payment_service.generate_schedule(db, LANDLORD, lease.id, months_ahead=2)

        response = act_as(ADMIN).post("/sweeps/mark-overdue-payments")
        assert response.json()["affected"] == 2

        db.expire_all()
        assert {p.status for p in db.query(Payment)} == {PaymentStatus.OVERDUE}

    def test_reconcile(self, act_as, make_property, make_lease):
        prop = make_property(is_available=True)
        make_lease(status=LeaseStatus.APPROVED, prop=prop)

        response = act_as(ADMIN).post("/sweeps/reconcile-availability")
        assert response.json() == {
            "name": "reconcile-availability",
            "affected": 1,
            "ids": [prop.id],
            "failed": [],
        }


# =============================================================================
# CLI
# =============================================================================

class TestCli:
    def test_all_runs_every_sweep_and_delivers_notifications(
        self, session_factory, dispatcher, make_property, make_lease, db, mailer, capsys
    ):
        prop = make_property(is_available=False)
        lease = make_lease(status=LeaseStatus.APPROVED, prop=prop, end_date=date(2025, 5, 31))
        payment_service.generate_schedule(db, LANDLORD, lease.id, months_ahead=3)

        status = cli.main(["all", "--today", "2025-06-01"], session_factory=session_factory, dispatcher=dispatcher)
        assert status == 0

        out = capsys.readouterr().out
        assert "expire-leases: 1 expired, 0 failed" in out
        assert "mark-overdue: 3 payments marked overdue" in out
        assert "reconcile: 0 unlisted, 0 relisted" in out
        assert len(mailer.sent) == 1

        db.expire_all()
        assert db.get(Lease, lease.id).status == LeaseStatus.EXPIRED

    def test_no_notify_leaves_events_queued(self, session_factory, dispatcher, make_lease, mailer):
        make_lease(status=LeaseStatus.APPROVED, end_date=date(2025, 5, 31))

        cli.main(["expire-leases", "--today", "2025-06-01", "--no-notify"], session_factory=session_factory, dispatcher=dispatcher)
        assert mailer.sent == []
        assert dispatcher.dispatch_pending() == 1

    def test_rejects_bad_date(self, session_factory):
        with pytest.raises(SystemExit):
            cli.main(["mark-overdue", "--today", "yesterday"], session_factory=session_factory)
