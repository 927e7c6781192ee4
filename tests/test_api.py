import json
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from revgeo.api.app import app, get_geocoder
from revgeo.config import Settings
from revgeo.geocoding.nominatim import ReverseGeocoder
from revgeo.geocoding.transport import TransportResponse

GUILDFORD_BODY = json.dumps({
    "display_name": "The Astolat, Old Palace Road, Guildford, GU2 7UP, United Kingdom",
    "address": {"road": "Old Palace Road", "city": "Guildford", "postcode": "GU2 7UP"},
}).encode("utf-8")

RESPONSES = {
    "51.23707": TransportResponse(200, "OK", GUILDFORD_BODY),
    "10.0": TransportResponse(200, "OK", b'{"error":"Unable to geocode"}'),
    "20.0": TransportResponse(503, "Service Unavailable", b""),
    "30.0": TransportResponse(200, "OK", b"not json"),
}


class _Transport:
    def send(self, request: Any) -> TransportResponse:
        return RESPONSES[request.as_dict()["lat"]]


class _AsyncTransport:
    async def send(self, request: Any) -> TransportResponse:
        return RESPONSES[request.as_dict()["lat"]]


@pytest.fixture
def client(tmp_path: Path) -> Any:
    geocoder = ReverseGeocoder(
        Settings(cache_dir=tmp_path, rate_limit_delay=0, max_retries=0),
        transport=_Transport(),
        async_transport=_AsyncTransport(),
        language_provider=None,
    )
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client: Any) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "Reverse Geocoding" in response.json()["message"]


def test_reverse_returns_address_and_attributes(client: Any) -> None:
    response = client.get("/reverse", params={"lat": 51.23707, "lon": -0.589669})

    assert response.status_code == 200
    data = response.json()
    assert data["address"].startswith("The Astolat")
    assert data["attributes"]["postalcode"] == "GU2 7UP"
    assert data["attributes"]["street"] == "Old Palace Road"
    assert data["resolved"] is True


def test_reverse_service_error_is_404(client: Any) -> None:
    response = client.get("/reverse", params={"lat": 10, "lon": 0})

    assert response.status_code == 404
    assert response.json()["detail"] == "Unable to geocode"


def test_reverse_upstream_failures_are_502(client: Any) -> None:
    assert client.get("/reverse", params={"lat": 20, "lon": 0}).json()["detail"] == "Service Unavailable"
    assert client.get("/reverse", params={"lat": 30, "lon": 0}).status_code == 502


def test_reverse_rejects_out_of_range_coordinates(client: Any) -> None:
    assert client.get("/reverse", params={"lat": 91, "lon": 0}).status_code == 422
    assert client.get("/reverse", params={"lat": 0, "lon": -181}).status_code == 422


def test_batch_reports_each_pair(client: Any) -> None:
    payload = {
        "coordinates": [
            {"latitude": 51.23707, "longitude": -0.589669},
            {"latitude": 10, "longitude": 0},
        ],
        "max_workers": 2,
    }

    response = client.post("/reverse/batch", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["succeeded"] == 1
    assert data["failed"] == 1
    assert data["results"][0]["attributes"]["locality"] == "Guildford"
    assert data["results"][1]["resolved"] is False


def test_batch_validates_worker_count(client: Any) -> None:
    payload = {"coordinates": [{"latitude": 1, "longitude": 1}], "max_workers": 64}

    assert client.post("/reverse/batch", json=payload).status_code == 422
