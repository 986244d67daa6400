from __future__ import annotations

import pytest


@pytest.mark.smoke
def test_root_and_health(client) -> None:
    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["status"] == "running"
    assert "X-Process-Time" in root.headers
    assert "X-Request-ID" in root.headers

    health = client.get("/api/health/")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert health.json()["database"] == "available"

    assert client.get("/api/health/ready").json()["ready"] is True
    assert client.get("/api/health/live").json()["alive"] is True


def test_request_id_is_echoed(client) -> None:
    response = client.get("/api/health/live", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"


def test_create_and_get_trip(client, trip) -> None:
    assert trip["title"] == "태국 푸켓 여행"
    assert trip["startDate"] == "2025-08-13"
    assert trip["endDate"] == "2025-08-16"
    assert trip["totalDays"] == 4

    fetched = client.get(f"/api/trips/{trip['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == trip["id"]

    assert [t["id"] for t in client.get("/api/trips").json()] == [trip["id"]]


def test_trip_validation(client) -> None:
    response = client.post("/api/trips", json={"title": "Backwards", "startDate": "2025-08-16", "endDate": "2025-08-13"})
    assert response.status_code == 400

    response = client.post("/api/trips", json={"title": "Undated", "startDate": "soon", "endDate": "2025-08-13"})
    assert response.status_code == 400

    response = client.post("/api/trips", json={"title": "No end", "startDate": "2025-08-13"})
    assert response.status_code == 400
    assert response.json()["detail"] == "endDate is required"

    assert client.get("/api/trips/missing").status_code == 404


def test_ensure_default_trip(client) -> None:
    first = client.post("/api/trips/ensure")
    second = client.post("/api/trips/ensure")

    assert first.status_code == 200
    assert first.json()["created"] is True
    assert second.json()["created"] is False
    assert second.json()["id"] == first.json()["id"]
    assert len(client.get("/api/trips").json()) == 1


def test_ensure_reuses_existing_trip(client, trip) -> None:
    response = client.post("/api/trips/ensure")

    assert response.json()["created"] is False
    assert response.json()["id"] == trip["id"]


def test_exchange_calculator(client) -> None:
    response = client.get("/api/exchange/convert", params={"amount": "100", "from": "THB"})
    assert response.status_code == 200
    assert response.json()["converted"] == 3850.0
    assert response.json()["rate"] == 38.5

    response = client.get("/api/exchange/convert", params={"amount": "3850", "from": "KRW"})
    assert response.json()["converted"] == 100.0
    assert response.json()["to"] == "THB"

    assert client.get("/api/exchange/convert", params={"amount": "1", "from": "USD"}).status_code == 400


def test_exchange_rates_are_independent(client) -> None:
    rates = client.get("/api/exchange/rates").json()

    assert rates == {"base": "THB", "quote": "KRW", "expense": 43.0, "calculator": 38.5}
