# tests/services/test_locations_routes.py
"""
Тесты HTTP-маршрутов сервиса приёма геолокации.

Lifespan не запускается (TestClient без контекстного менеджера),
сервис подменяется через dependency_overrides.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.services.locations.app import app
from src.services.locations.dependencies import check_bearer_token, get_location_service
from src.common.constants import ApiErrorCode
from src.shared.models.location_dto import LocationQueryParams, LocationRow


FEATURE_JSON = json.dumps({
    "type": "Feature",
    "geometry": {"type": "Point", "coordinates": [139.7671, 35.6812]},
    "properties": {"timestamp": "2026-02-01T10:00:00Z", "motion": ["stationary"]},
})


@pytest.fixture
def service() -> MagicMock:
    service = MagicMock()
    service.ingest = AsyncMock(return_value=3)
    service.get_locations = AsyncMock(return_value=[
        LocationRow(id=2, geojson=FEATURE_JSON, address="東京駅", poi="station"),
        LocationRow(id=1, geojson=FEATURE_JSON),
    ])
    return service


@pytest.fixture
def client(service):
    app.dependency_overrides[get_location_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestCheckBearerToken:
    """Тесты для check_bearer_token."""

    @pytest.mark.parametrize("header,expected", [
        (None, ApiErrorCode.MISSING_AUTHORIZATION_HEADER),
        ("", ApiErrorCode.MISSING_AUTHORIZATION_HEADER),
        ("secret", ApiErrorCode.INVALID_AUTHORIZATION_FORMAT),
        ("Token secret", ApiErrorCode.INVALID_AUTHORIZATION_FORMAT),
        ("Bearer a b", ApiErrorCode.INVALID_AUTHORIZATION_FORMAT),
        ("Bearer wrong", ApiErrorCode.INVALID_TOKEN),
        ("Bearer トークン", ApiErrorCode.INVALID_TOKEN),
        ("Bearer secret", None),
    ])
    def test_check(self, header, expected):
        assert check_bearer_token(header, "secret") == expected

    def test_unconfigured_token_rejects_all(self):
        assert check_bearer_token("Bearer ", "") == ApiErrorCode.INVALID_TOKEN
        assert check_bearer_token("Bearer anything", "") == ApiErrorCode.INVALID_TOKEN


class TestAuth:
    """Тесты авторизации /api/*."""

    def test_missing_header(self, client, service):
        response = client.post("/api/locations", json={"locations": []})

        assert response.status_code == 401
        assert response.json() == {"result": "error", "error": "missing_authorization_header"}
        service.ingest.assert_not_awaited()

    def test_invalid_format(self, client):
        response = client.get("/api/locations", headers={"Authorization": "Basic dXNlcjpwYXNz"})

        assert response.status_code == 401
        assert response.json()["error"] == "invalid_authorization_format"

    def test_invalid_token(self, client):
        response = client.get("/api/locations", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["error"] == "invalid_token"


class TestPostLocations:
    """Тесты для POST /api/locations."""

    def test_accepts_batch(self, client, service, auth_headers, sample_payload):
        response = client.post("/api/locations", json=sample_payload, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"result": "ok"}
        payload = service.ingest.await_args.args[0]
        assert len(payload.locations) == 3

    def test_empty_batch(self, client, service, auth_headers):
        response = client.post("/api/locations", json={"locations": []}, headers=auth_headers)

        assert response.status_code == 200
        service.ingest.assert_awaited_once()

    def test_invalid_json(self, client, service, auth_headers):
        response = client.post(
            "/api/locations",
            content=b"{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"result": "error", "error": "invalid_json"}
        service.ingest.assert_not_awaited()

    def test_validation_failed(self, client, service, auth_headers, make_feature):
        feature = make_feature()
        feature["geometry"]["coordinates"] = ["east", 35.0]

        response = client.post("/api/locations", json={"locations": [feature]}, headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_failed"
        assert any(d["path"].startswith("locations.0.geometry.coordinates") for d in body["details"])
        assert all(set(d) == {"path", "message"} for d in body["details"])
        service.ingest.assert_not_awaited()

    def test_database_error(self, client, service, auth_headers, sample_payload):
        service.ingest.side_effect = RuntimeError("connection lost")

        response = client.post("/api/locations", json=sample_payload, headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"result": "error", "error": "database_error"}


class TestGetLocations:
    """Тесты для GET /api/locations."""

    def test_geojson_by_default(self, client, service, auth_headers):
        response = client.get("/api/locations", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "FeatureCollection"
        assert body["features"][0]["properties"]["address"] == "東京駅"
        assert "address" not in body["features"][1]["properties"]
        service.get_locations.assert_awaited_once_with(LocationQueryParams())

    def test_json_format(self, client, auth_headers):
        response = client.get("/api/locations?format=json", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert [row["id"] for row in body] == [2, 1]
        assert body[0]["poi"] == "station"
        assert isinstance(body[0]["geojson"], str)

    def test_jsonl_format(self, client, auth_headers):
        response = client.get("/api/locations?format=jsonl", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        lines = response.text.split("\n")
        assert len(lines) == 2
        assert json.loads(lines[0])["properties"]["poi"] == "station"

    def test_filters_passed(self, client, service, auth_headers):
        response = client.get(
            "/api/locations",
            params={"device_id": "iphone", "limit": "5", "bbox": "139.7,35.6,139.8,35.7"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        params = service.get_locations.await_args.args[0]
        assert params.device_id == "iphone"
        assert params.limit == 5
        assert params.bbox.ne_lon == 139.8

    def test_invalid_query(self, client, service, auth_headers):
        response = client.get("/api/locations?bbox=1,2,3", headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "invalid_query_params"
        assert body["details"][0]["path"] == "bbox"
        service.get_locations.assert_not_awaited()

    def test_database_error(self, client, service, auth_headers):
        service.get_locations.side_effect = RuntimeError("timeout")

        response = client.get("/api/locations", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["error"] == "database_error"


class TestHealth:
    """Тесты для /health."""

    def test_healthy(self, client):
        db = MagicMock()
        db.is_connected = True
        db.health_check = AsyncMock(return_value=True)

        with patch("src.services.locations.app.get_db", return_value=db):
            response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["dependencies"] == {"postgres": "healthy"}

    def test_degraded_without_db(self, client):
        db = MagicMock()
        db.is_connected = False

        with patch("src.services.locations.app.get_db", return_value=db):
            response = client.get("/health")

        assert response.json()["status"] == "degraded"

    def test_no_auth_required(self, client):
        with patch("src.services.locations.app.get_db") as get_db:
            get_db.return_value.is_connected = False
            response = client.get("/health")

        assert response.status_code == 200
