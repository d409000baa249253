"""Unit tests for the mock patients service."""

import json

import pytest

from poco_records.mock_server.app import create_app, validate_patient_body
from poco_records.mock_server.config import MockServerConfig, load_mock_config
from poco_records.mock_server.store import PatientStore


@pytest.fixture
def app():
    return create_app(MockServerConfig(seed_data=False, max_page_size=50))


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def new_patient():
    return {
        "firstName": "Jane",
        "lastName": "Smith",
        "dateOfBirth": "1985-06-15",
        "gender": "female",
        "email": "jane.smith@example.com",
        "phoneNumber": "+1 555-0100",
    }


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["patient_count"] == 0
        assert "/api/v1/patients" in data["endpoints"]

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert response.get_json()["code"] == "NOT_FOUND"


class TestPatientsResource:
    def test_create_then_get(self, client, new_patient):
        # Act
        created = client.post("/api/v1/patients", json=new_patient)
        record = created.get_json()
        fetched = client.get(f"/api/v1/patients/{record['id']}")

        # Assert
        assert created.status_code == 201
        assert record["createdAt"].endswith("Z")
        assert fetched.status_code == 200
        assert fetched.get_json()["email"] == "jane.smith@example.com"

    def test_missing_fields_rejected(self, client, new_patient):
        del new_patient["email"]
        new_patient["gender"] = "robot"
        response = client.post("/api/v1/patients", json=new_patient)
        body = response.get_json()
        assert response.status_code == 400
        assert body["code"] == "VALIDATION_ERROR"
        assert body["errors"] == {"email": ["Email is required"], "gender": ["Invalid gender"]}

    def test_list_with_search_and_pages(self, client, new_patient):
        for i in range(12):
            client.post("/api/v1/patients", json=dict(new_patient, lastName=f"Smith{i}"))
        client.post("/api/v1/patients", json=dict(new_patient, firstName="Zed", lastName="Other"))

        page2 = client.get("/api/v1/patients?page=2&pageSize=10").get_json()
        assert page2["totalCount"] == 13
        assert page2["totalPages"] == 2
        assert len(page2["patients"]) == 3

        found = client.get("/api/v1/patients?search=zed%20other").get_json()
        assert found["totalCount"] == 1

    @pytest.mark.parametrize(
        "query, field",
        [("page=0", "page"), ("page=abc", "page"), ("pageSize=51", "pageSize")],
    )
    def test_invalid_pagination(self, client, query, field):
        response = client.get(f"/api/v1/patients?{query}")
        body = response.get_json()
        assert response.status_code == 400
        assert body["message"] == "Invalid pagination parameters"
        assert field in body["errors"]

    def test_update_keeps_identity(self, client, new_patient):
        record = client.post("/api/v1/patients", json=new_patient).get_json()
        response = client.put(
            f"/api/v1/patients/{record['id']}", json=dict(new_patient, lastName="Jones")
        )
        updated = response.get_json()
        assert response.status_code == 200
        assert updated["id"] == record["id"]
        assert updated["createdAt"] == record["createdAt"]
        assert updated["lastName"] == "Jones"

    def test_delete(self, client, new_patient):
        record = client.post("/api/v1/patients", json=new_patient).get_json()
        assert client.delete(f"/api/v1/patients/{record['id']}").status_code == 204
        assert client.delete(f"/api/v1/patients/{record['id']}").status_code == 404

    @pytest.mark.parametrize("method", ["get", "put", "delete"])
    def test_unknown_id(self, client, method, new_patient):
        response = getattr(client, method)("/api/v1/patients/missing", json=new_patient)
        assert response.status_code == 404
        assert response.get_json() == {"code": "NOT_FOUND", "message": "Patient not found"}


class TestValidatePatientBody:
    def test_future_birth_date(self, new_patient):
        new_patient["dateOfBirth"] = "2999-01-01"
        assert validate_patient_body(new_patient) == {
            "dateOfBirth": ["Date of birth cannot be in the future"]
        }

    def test_measurement_bounds(self, new_patient):
        errors = validate_patient_body(dict(new_patient, height=301, weight=0))
        assert set(errors) == {"height", "weight"}

    @pytest.mark.parametrize("field", ["height", "weight"])
    def test_boolean_measurement_rejected(self, new_patient, field):
        errors = validate_patient_body(dict(new_patient, **{field: True}))
        assert field in errors

    def test_non_object_body(self):
        assert "body" in validate_patient_body(["not", "an", "object"])


class TestStoreAndConfig:
    def test_seeded_store(self):
        store = PatientStore()
        page = store.list_page(1, 10, "john doe")
        assert page["totalCount"] == 1

    def test_config_file_and_env(self, tmp_path, monkeypatch):
        # Arrange
        path = tmp_path / "mock.json"
        path.write_text(json.dumps({"http_port": 9090, "api_prefix": "api/v2/"}))
        monkeypatch.setenv("MOCK_SERVER_RESPONSE_DELAY_MS", "25")

        # Act
        config = load_mock_config(path)

        # Assert
        assert config.http_port == 9090
        assert config.api_prefix == "/api/v2"
        assert config.response_delay_ms == 25

    def test_missing_explicit_config(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_mock_config(tmp_path / "absent.json")

    def test_invalid_port(self, tmp_path):
        path = tmp_path / "mock.json"
        path.write_text(json.dumps({"http_port": 70000}))
        with pytest.raises(ValueError, match="Configuration validation failed"):
            load_mock_config(path)
