"""
Tests for Console resource endpoints (local mode).
"""

import pytest
from fastapi.testclient import TestClient

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import get_config
from shared.test_helpers import sample_data
from service_console.app.main import create_app

COLLECTIONS = ["partners", "clients", "licenses", "devices", "updates", "users"]

TIMESTAMP_FIELDS = {
    "clients": "createdAt",
    "licenses": "issuedDate",
    "devices": "registeredDate",
    "updates": "releaseDate",
}

# one mutable field per collection with a valid replacement value
PARTIAL_UPDATES = {
    "partners": {"status": "suspended"},
    "clients": {"type": "REGISTRY"},
    "licenses": {"status": "BLOCKED"},
    "devices": {"status": "ready"},
    "updates": {"is_required": True},
    "users": {"role": "admin"},
}


@pytest.fixture
def client():
    """Create test client for a local-mode console."""
    app = create_app(get_config("console", 5000, gateway_mode="local"))
    return TestClient(app)


def _create(client, collection, **overrides):
    response = client.post(f"/api/v1/{collection}/", json=sample_data.for_collection(collection, **overrides))
    assert response.status_code == 201, response.text
    return response.json()


class TestListing:
    """Collection listing."""

    @pytest.mark.parametrize("collection", COLLECTIONS)
    def test_empty_collection_returns_empty_array(self, client, collection):
        """A fresh collection lists as [] with 200, never 404."""
        response = client.get(f"/api/v1/{collection}/")
        assert response.status_code == 200
        assert response.json() == []

    def test_list_returns_created_records_in_id_order(self, client):
        """Records come back in creation order."""
        first = _create(client, "partners")
        second = _create(client, "partners")

        response = client.get("/api/v1/partners/")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [first["id"], second["id"]]

    def test_collection_path_without_trailing_slash(self, client):
        """The collection also answers without the trailing slash."""
        _create(client, "updates")

        response = client.get("/api/v1/updates")
        assert response.status_code == 200
        assert len(response.json()) == 1


class TestCreate:
    """Record creation."""

    @pytest.mark.parametrize("collection", COLLECTIONS)
    def test_create_assigns_increasing_ids(self, client, collection):
        """Server ids are unique and strictly increasing."""
        ids = [_create(client, collection)["id"] for _ in range(3)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 3

    @pytest.mark.parametrize("collection", COLLECTIONS)
    def test_ids_are_not_reused_after_delete(self, client, collection):
        """Deleting the newest record does not free its id."""
        first = _create(client, collection)
        assert client.delete(f"/api/v1/{collection}/{first['id']}").status_code == 204

        second = _create(client, collection)
        assert second["id"] > first["id"]

    @pytest.mark.parametrize("collection,field", sorted(TIMESTAMP_FIELDS.items()))
    def test_create_sets_server_timestamp(self, client, collection, field):
        """Server-set timestamps are present in camelCase."""
        record = _create(client, collection)
        assert record[field]

    def test_license_scenario(self, client):
        """License create returns the generated id and issue date; GET returns the same key."""
        response = client.post(
            "/api/v1/licenses/",
            json={"client_id": 3, "license_key": "ABC123", "status": "AVAIL"},
        )
        assert response.status_code == 201
        created = response.json()
        assert isinstance(created["id"], int)
        assert "issuedDate" in created

        fetched = client.get(f"/api/v1/licenses/{created['id']}").json()
        assert fetched["license_key"] == "ABC123"
        assert fetched["status"] == "AVAIL"

    def test_missing_required_field_is_reported(self, client):
        """A partner without email is rejected with a field-level error."""
        payload = sample_data.partner()
        del payload["email"]

        response = client.post("/api/v1/partners/", json=payload)
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Invalid partner data"
        assert "email" in [error["field"] for error in body["errors"]]

    def test_unknown_enum_value_is_rejected(self, client):
        """Enum membership is enforced at the schema boundary."""
        response = client.post("/api/v1/licenses/", json=sample_data.license(status="EXPIRED"))
        assert response.status_code == 400
        assert "status" in [error["field"] for error in response.json()["errors"]]

    def test_short_tax_identifier_is_rejected(self, client):
        """INN shorter than ten characters fails validation."""
        response = client.post("/api/v1/clients/", json=sample_data.client(inn="123"))
        assert response.status_code == 400
        assert "inn" in [error["field"] for error in response.json()["errors"]]

    def test_malformed_json_is_a_validation_error(self, client):
        """A body that is not JSON yields 400, not 500."""
        response = client.post(
            "/api/v1/partners/",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "body"

    def test_non_object_body_is_rejected(self, client):
        """A JSON array is not a valid create body."""
        response = client.post("/api/v1/updates/", json=[1, 2, 3])
        assert response.status_code == 400

    def test_server_assigned_fields_in_body_are_ignored(self, client):
        """Clients cannot choose ids or timestamps."""
        payload = sample_data.client(id=999, createdAt="2000-01-01T00:00:00Z")
        record = client.post("/api/v1/clients/", json=payload).json()

        assert record["id"] == 1
        assert not record["createdAt"].startswith("2000")

    def test_password_is_never_returned(self, client):
        """User responses omit the password on every path."""
        created = _create(client, "users")
        assert "password" not in created

        assert "password" not in client.get(f"/api/v1/users/{created['id']}").json()
        assert all("password" not in user for user in client.get("/api/v1/users/").json())

        updated = client.put(f"/api/v1/users/{created['id']}", json={"password": "another-secret"}).json()
        assert "password" not in updated


class TestGetById:
    """Fetching single records."""

    def test_non_numeric_id(self, client):
        """Identifiers that are not integers are rejected with 400."""
        response = client.get("/api/v1/partners/abc")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid ID format"

    @pytest.mark.parametrize("raw_id", ["1_0", "+3", " 3", "-1", "1.0", "0x1"])
    def test_identifiers_must_be_plain_digits(self, client, raw_id):
        """Signs, separators and whitespace are not valid identifiers."""
        for _ in range(12):
            _create(client, "partners")

        response = client.get(f"/api/v1/partners/{raw_id}")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid ID format"

    def test_zero_identifier_is_not_found(self, client):
        """Zero is a well-formed id that never exists."""
        response = client.get("/api/v1/partners/0")
        assert response.status_code == 404
        assert response.json()["message"] == "Partner not found"

    def test_missing_record(self, client):
        """Unknown ids yield 404."""
        response = client.get("/api/v1/devices/42")
        assert response.status_code == 404
        assert response.json()["message"] == "Device not found"


class TestUpdate:
    """Partial updates."""

    @pytest.mark.parametrize("collection", COLLECTIONS)
    def test_update_merges_only_provided_fields(self, client, collection):
        """Provided fields change; every other field is preserved."""
        before = _create(client, collection)
        partial = PARTIAL_UPDATES[collection]

        response = client.put(f"/api/v1/{collection}/{before['id']}", json=partial)
        assert response.status_code == 200

        after = client.get(f"/api/v1/{collection}/{before['id']}").json()
        for field, value in partial.items():
            assert after[field] == value
        for field, value in before.items():
            if field not in partial:
                assert after[field] == value

    def test_device_scenario(self, client):
        """Device 7 moves to ready; device 999 does not exist."""
        for _ in range(7):
            _create(client, "devices")
        before = client.get("/api/v1/devices/7").json()
        assert before["status"] == "not_configured"

        response = client.put("/api/v1/devices/7", json={"status": "ready"})
        assert response.status_code == 200
        after = response.json()
        assert after["status"] == "ready"
        assert {k: v for k, v in after.items() if k != "status"} == {
            k: v for k, v in before.items() if k != "status"
        }

        assert client.put("/api/v1/devices/999", json={"status": "ready"}).status_code == 404

    def test_patch_behaves_like_put(self, client):
        """PATCH is accepted as a partial update."""
        partner = _create(client, "partners")
        response = client.patch(f"/api/v1/partners/{partner['id']}", json={"name": "Renamed"})
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_invalid_partial_field(self, client):
        """Partial bodies are validated field by field."""
        partner = _create(client, "partners")
        response = client.put(f"/api/v1/partners/{partner['id']}", json={"type": "wholesaler"})
        assert response.status_code == 400
        assert "type" in [error["field"] for error in response.json()["errors"]]

    def test_unknown_and_null_fields_are_ignored(self, client):
        """Unknown keys and nulls leave the record unchanged."""
        partner = _create(client, "partners")
        response = client.put(
            f"/api/v1/partners/{partner['id']}",
            json={"favourite_colour": "green", "email": None},
        )
        assert response.status_code == 200
        assert response.json() == partner

    def test_timestamp_is_immutable(self, client):
        """createdAt cannot be overwritten through an update."""
        record = _create(client, "clients")
        response = client.put(f"/api/v1/clients/{record['id']}", json={"createdAt": "2000-01-01T00:00:00Z"})
        assert response.json()["createdAt"] == record["createdAt"]

    def test_update_with_bad_identifier(self, client):
        """Bad identifiers are rejected before the body is looked at."""
        assert client.put("/api/v1/licenses/x", json={}).status_code == 400


class TestDelete:
    """Record removal."""

    @pytest.mark.parametrize("collection", COLLECTIONS)
    def test_delete_then_get_is_not_found(self, client, collection):
        """Deleted records are gone."""
        record = _create(client, collection)

        response = client.delete(f"/api/v1/{collection}/{record['id']}")
        assert response.status_code == 204
        assert response.content == b""

        assert client.get(f"/api/v1/{collection}/{record['id']}").status_code == 404
        assert client.delete(f"/api/v1/{collection}/{record['id']}").status_code == 404

    def test_missing_record_message_matches_get_and_put(self, client):
        """GET, PUT and DELETE report a missing record the same way."""
        messages = {
            client.get("/api/v1/partners/5").json()["message"],
            client.put("/api/v1/partners/5", json={"name": "Renamed"}).json()["message"],
            client.delete("/api/v1/partners/5").json()["message"],
        }
        assert messages == {"Partner not found"}

    def test_delete_does_not_cascade(self, client):
        """Children keep their (now dangling) partner reference."""
        partner = _create(client, "partners")
        child = _create(client, "clients", partner_id=partner["id"])

        client.delete(f"/api/v1/partners/{partner['id']}")
        assert client.get(f"/api/v1/clients/{child['id']}").json()["partner_id"] == partner["id"]

    def test_delete_with_bad_identifier(self, client):
        """Non-numeric ids yield 400."""
        assert client.delete("/api/v1/users/me").status_code == 400
