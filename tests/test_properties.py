"""Tests for listing management."""
from app.models.property import Property

from conftest import ADMIN, LANDLORD, STRANGER


class TestProperties:
    def test_create_is_owned_by_caller_and_available(self, act_as):
        response = act_as(LANDLORD).post(
            "/properties", json={"name": " Birch Flat ", "address": "4 Birch Road", "city": "Leeds"}
        )
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Birch Flat"
        assert body["landlord_id"] == LANDLORD.id
        assert body["is_available"] is True
        assert body["approval_status"] == "pending"

    def test_blank_name_is_rejected(self, act_as):
        response = act_as(LANDLORD).post("/properties", json={"name": "  ", "address": "4 Birch Road"})
        assert response.status_code == 422

    def test_patch_strips_and_rejects_blank_names(self, act_as, make_property, db):
        prop = make_property()
        client = act_as(LANDLORD)

        response = client.patch(f"/properties/{prop.id}", json={"name": "  "})
        assert response.status_code == 422
        response = client.patch(f"/properties/{prop.id}", json={"address": ""})
        assert response.status_code == 422

        response = client.patch(f"/properties/{prop.id}", json={"name": " Cedar Court "})
        assert response.status_code == 200
        assert response.json()["name"] == "Cedar Court"
        db.expire_all()
        assert db.get(Property, prop.id).address == "12 Maple Street"

    def test_availability_cannot_be_patched(self, act_as, make_property, db):
        prop = make_property()
        response = act_as(LANDLORD).patch(f"/properties/{prop.id}", json={"is_available": False})
        assert response.status_code == 200
        db.expire_all()
        assert db.get(Property, prop.id).is_available is True

    def test_list_is_scoped_to_owner(self, act_as, make_property):
        make_property()
        make_property(landlord_id=STRANGER.id, name="Elm Cottage")

        assert [p["name"] for p in act_as(LANDLORD).get("/properties").json()] == ["Maple House"]
        assert len(act_as(ADMIN).get("/properties").json()) == 2

    def test_filter_by_availability(self, act_as, make_property):
        make_property()
        make_property(is_available=False, name="Let Out")

        available = act_as(LANDLORD).get("/properties", params={"available": "false"}).json()
        assert [p["name"] for p in available] == ["Let Out"]

    def test_unknown_property(self, act_as, client):
        assert act_as(LANDLORD).get("/properties/404").status_code == 404
