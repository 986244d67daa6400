from __future__ import annotations

import pytest


def _expense(trip_id: str, **overrides) -> dict:
    payload = {
        "amount": 15000,
        "description": "Taxi to hotel",
        "category": "transport",
        "date": "2025-08-13",
        "tripId": trip_id,
    }
    payload.update(overrides)
    return payload


def _create(client, trip_id: str, **overrides) -> dict:
    response = client.post("/api/expenses", json=_expense(trip_id, **overrides))
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.smoke
def test_thb_expense_is_stored_in_krw(client, trip) -> None:
    expense = _create(client, trip["id"], amount="100", currency="THB", category="food")

    assert expense["amount"] == 4300.0
    assert expense["currency"] == "KRW"

    listed = client.get("/api/expenses", params={"tripId": trip["id"]}).json()
    assert [e["amount"] for e in listed] == [4300.0]


def test_expense_validation(client, trip) -> None:
    response = client.post("/api/expenses", json=_expense(trip["id"], currency="USD"))
    assert response.status_code == 400

    response = client.post("/api/expenses", json=_expense(trip["id"], amount="lots"))
    assert response.status_code == 400

    payload = _expense(trip["id"])
    del payload["description"]
    response = client.post("/api/expenses", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"] == "description is required"

    response = client.post("/api/expenses", json=_expense("missing-trip"))
    assert response.status_code == 404


def test_expenses_join_place_name_and_day(client, trip) -> None:
    place = client.post("/api/places", json={"name": "Kata Noi", "tripId": trip["id"], "day": 3}).json()
    _create(client, trip["id"], placeId=place["id"], category="activity", date="2025-08-15")
    _create(client, trip["id"])

    listed = client.get("/api/expenses", params={"tripId": trip["id"]}).json()

    assert [(e["place_name"], e["place_day"]) for e in listed] == [(None, None), ("Kata Noi", 3)]


def test_expense_stats(client, trip) -> None:
    _create(client, trip["id"], amount=10000, category="food")
    _create(client, trip["id"], amount=5000, category="food")
    _create(client, trip["id"], amount=90000, category="accommodation")

    response = client.get("/api/expenses/stats", params={"tripId": trip["id"]})

    assert response.status_code == 200
    assert response.json() == [
        {"category": "accommodation", "total_amount": 90000.0, "count": 1},
        {"category": "food", "total_amount": 15000.0, "count": 2},
    ]


def test_place_expense_upsert(client, trip) -> None:
    place = client.post("/api/places", json={
        "name": "Wat Chalong", "tripId": trip["id"], "day": 2, "category": "tourist_attraction",
    }).json()

    first = client.post(f"/api/expenses/place/{place['id']}", json={"amount": 100, "currency": "THB"})
    second = client.post(f"/api/expenses/place/{place['id']}", json={"amount": "6,000"})

    assert first.status_code == 200
    assert first.json()["amount"] == 4300.0
    assert first.json()["category"] == "entrance"
    assert first.json()["date"] == "2025-08-14"
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["amount"] == 6000.0
    assert len(client.get("/api/expenses", params={"tripId": trip["id"]}).json()) == 1


def test_update_and_delete_expense(client, trip) -> None:
    expense = _create(client, trip["id"])

    response = client.put(f"/api/expenses/{expense['id']}", json={"amount": 50, "currency": "THB", "description": "Tuk-tuk"})
    assert response.status_code == 200
    assert response.json()["amount"] == 2150.0
    assert response.json()["description"] == "Tuk-tuk"

    assert client.delete(f"/api/expenses/{expense['id']}").status_code == 200
    assert client.get("/api/expenses", params={"tripId": trip["id"]}).json() == []
    assert client.delete(f"/api/expenses/{expense['id']}").status_code == 404


def test_expense_summary(client, trip) -> None:
    place = client.post("/api/places", json={"name": "Phi Phi Tour", "tripId": trip["id"], "day": 2}).json()
    client.post(f"/api/expenses/place/{place['id']}", json={"amount": 60000})
    _create(client, trip["id"], amount=40000)

    summary = client.get("/api/expenses/summary", params={"tripId": trip["id"]}).json()

    assert summary["totalSpent"] == 100000.0
    assert summary["dailyTotals"] == {"2": 60000.0}
    assert summary["miscTotal"] == 40000.0
    assert summary["budget"]["budget"] == 3000000
    assert summary["budget"]["remaining"] == 2900000.0
    assert summary["expenseCount"] == 2
