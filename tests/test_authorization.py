"""Tests for the shared authorization predicate and how the API applies it."""
from types import SimpleNamespace

import pytest

from app.core.auth import SYSTEM_USER, User
from app.core.errors import Unauthenticated, Unauthorized
from app.models.lease import LeaseStatus
from app.services.authorization import Decision, Relation, authorize, can_act

from conftest import ADMIN, LANDLORD, STRANGER, TENANT


LEASE = SimpleNamespace(landlord_id=LANDLORD.id, tenant_id=TENANT.id)
PROPERTY = SimpleNamespace(landlord_id=LANDLORD.id)


# =============================================================================
# Unit Tests: can_act
# =============================================================================

class TestCanAct:
    @pytest.mark.parametrize(
        "principal, relation, expected",
        [
            (TENANT, Relation.TENANT, Decision.ALLOWED),
            (LANDLORD, Relation.TENANT, Decision.UNAUTHORIZED),
            (ADMIN, Relation.TENANT, Decision.UNAUTHORIZED),
            (LANDLORD, Relation.LANDLORD, Decision.ALLOWED),
            (ADMIN, Relation.LANDLORD, Decision.ALLOWED),
            (TENANT, Relation.LANDLORD, Decision.UNAUTHORIZED),
            (TENANT, Relation.PARTICIPANT, Decision.ALLOWED),
            (LANDLORD, Relation.PARTICIPANT, Decision.ALLOWED),
            (ADMIN, Relation.PARTICIPANT, Decision.ALLOWED),
            (STRANGER, Relation.PARTICIPANT, Decision.UNAUTHORIZED),
        ],
    )
    def test_relations_on_a_lease(self, principal, relation, expected):
        assert can_act(principal, LEASE, relation) is expected

    def test_missing_principal_is_unauthenticated(self):
        assert can_act(None, LEASE, Relation.PARTICIPANT) is Decision.UNAUTHENTICATED
        assert can_act(User(user_id="", email=None), LEASE, Relation.PARTICIPANT) is Decision.UNAUTHENTICATED

    def test_system_principal_acts_as_admin(self):
        assert can_act(SYSTEM_USER, LEASE, Relation.LANDLORD) is Decision.ALLOWED

    def test_property_has_no_tenant(self):
        assert can_act(TENANT, PROPERTY, Relation.TENANT) is Decision.UNAUTHORIZED
        assert can_act(LANDLORD, PROPERTY, Relation.LANDLORD) is Decision.ALLOWED

    def test_authorize_raises_matching_errors(self):
        with pytest.raises(Unauthenticated):
            authorize(None, LEASE, Relation.TENANT, "nope")
        with pytest.raises(Unauthorized) as exc:
            authorize(STRANGER, LEASE, Relation.TENANT, "Only the tenant can sign")
        assert exc.value.detail == "Only the tenant can sign"
        assert authorize(TENANT, LEASE, Relation.TENANT, "nope") is TENANT


# =============================================================================
# API
# =============================================================================

class TestApiAuthorization:
    def test_missing_token_is_401(self, act_as, make_lease):
        lease = make_lease()
        response = act_as(None).get(f"/leases/{lease.id}")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json() == {"detail": "Not authenticated", "error": "unauthenticated"}

    def test_stranger_cannot_read_lease(self, act_as, make_lease):
        lease = make_lease()
        response = act_as(STRANGER).get(f"/leases/{lease.id}")
        assert response.status_code == 403
        assert response.json()["error"] == "unauthorized"

    def test_participants_and_admin_can_read_lease(self, act_as, make_lease):
        lease = make_lease()
        for user in (LANDLORD, TENANT, ADMIN):
            assert act_as(user).get(f"/leases/{lease.id}").status_code == 200

    def test_unknown_lease_is_404(self, act_as, client):
        response = act_as(LANDLORD).get("/leases/12345")
        assert response.status_code == 404
        assert response.json() == {"detail": "Lease not found", "error": "not_found"}

    def test_authorization_is_checked_before_state(self, act_as, make_lease):
        lease = make_lease(status=LeaseStatus.APPROVED)
        response = act_as(STRANGER).post(f"/leases/{lease.id}/send")
        assert response.status_code == 403

    def test_sweeps_are_admin_only(self, act_as, client):
        response = act_as(LANDLORD).post("/sweeps/expire-leases")
        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions. Required role: admin"

    def test_only_owner_can_edit_property(self, act_as, make_property):
        prop = make_property()
        response = act_as(STRANGER).patch(f"/properties/{prop.id}", json={"name": "Mine now"})
        assert response.status_code == 403

        response = act_as(LANDLORD).patch(f"/properties/{prop.id}", json={"name": "Maple Court"})
        assert response.status_code == 200
        assert response.json()["name"] == "Maple Court"
