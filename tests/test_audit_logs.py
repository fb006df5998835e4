"""Tests for the audit trail written by lifecycle, payment and deposit operations."""
from app.core.audit import _compute_risk_level
from app.models.lease import LeaseStatus

from conftest import ADMIN, LANDLORD, SIGN_PAYLOAD, TENANT


class TestRiskLevel:
    def test_levels(self):
        assert _compute_risk_level("lease", "terminated") == "high"
        assert _compute_risk_level("deposit", "forfeited") == "high"
        assert _compute_risk_level("lease", "rejected") == "medium"
        assert _compute_risk_level("lease", "approved") == "low"
        assert _compute_risk_level("lease", "approved", "high") == "high"


class TestAuditTrail:
    def test_lifecycle_is_recorded(self, act_as, lease_payload):
        client = act_as(LANDLORD)
        lease_id = client.post("/leases", json=lease_payload()).json()["id"]
        client.post(f"/leases/{lease_id}/send")
        act_as(TENANT).post(f"/leases/{lease_id}/sign", json=SIGN_PAYLOAD)
        act_as(LANDLORD).post(f"/leases/{lease_id}/terminate", json={"reason": "tenant withdrew"})

        logs = act_as(ADMIN).get("/audit-logs", params={"lease_id": lease_id, "entity_type": "lease"}).json()
        assert [l["action"] for l in logs] == ["terminated", "signed", "sent", "created"]
        assert logs[0]["risk_level"] == "high"
        assert logs[0]["actor_id"] == LANDLORD.id
        assert logs[1]["actor_id"] == TENANT.id

        high = act_as(ADMIN).get("/audit-logs", params={"high_risk_only": True}).json()
        assert [l["action"] for l in high] == ["terminated"]

    def test_sweeps_are_recorded_as_system(self, act_as, make_lease):
        make_lease(status=LeaseStatus.APPROVED)
        act_as(ADMIN).post("/sweeps/expire-leases")

        logs = act_as(ADMIN).get("/audit-logs", params={"source": "sweep"}).json()
        assert [(l["action"], l["actor_id"]) for l in logs] == [("expired", "system")]

    def test_admin_only(self, act_as, client):
        assert act_as(LANDLORD).get("/audit-logs").status_code == 403
        assert act_as(LANDLORD).get("/audit-logs/stats").status_code == 403

    def test_stats(self, act_as, make_lease):
        lease = make_lease(status=LeaseStatus.APPROVED)
        act_as(LANDLORD).post(f"/leases/{lease.id}/terminate", json={})

        stats = act_as(ADMIN).get("/audit-logs/stats").json()
        assert stats["total"] == 1
        assert stats["high_risk"] == 1
        assert stats["terminations"] == 1

    def test_bad_date_filter(self, act_as, client):
        response = act_as(ADMIN).get("/audit-logs", params={"start_date": "not-a-date"})
        assert response.status_code == 422
