from __future__ import annotations

import pytest


def _create_place(client, trip_id: str, name: str, day: int, **extra) -> dict:
    response = client.post("/api/places", json={"name": name, "tripId": trip_id, "day": day, **extra})
    assert response.status_code == 201, response.text
    return response.json()


def _list_places(client, trip_id: str) -> list:
    response = client.get("/api/places", params={"tripId": trip_id})
    assert response.status_code == 200
    return response.json()


def _positions(places: list) -> dict:
    return {p["name"]: (p["day"], p["order"]) for p in places}


@pytest.mark.smoke
def test_create_and_list_places(client, trip) -> None:
    first = _create_place(client, trip["id"], "Patong Beach", 1, category="tourist_attraction")
    second = _create_place(client, trip["id"], "Jungceylon", 1)
    _create_place(client, trip["id"], "Big Buddha", 2)

    assert (first["order"], second["order"]) == (1, 2)
    assert first["tripId"] == trip["id"]
    assert second["category"] == "restaurant"
    assert [p["name"] for p in _list_places(client, trip["id"])] == ["Patong Beach", "Jungceylon", "Big Buddha"]


def test_operating_hours_round_trip(client, trip) -> None:
    place = _create_place(client, trip["id"], "Night Market", 1, operatingHours={"월": "09:00-18:00"})

    assert place["operatingHours"] == {"월": "09:00-18:00"}
    assert _list_places(client, trip["id"])[0]["operatingHours"] == {"월": "09:00-18:00"}


def test_create_place_from_search_result(client, trip) -> None:
    place = _create_place(
        client,
        trip["id"],
        "Phuket Marriott",
        2,
        types=["lodging", "point_of_interest"],
        weekdayText=["Monday: Open 24 hours"],
        startTime="15:00",
        duration="2시간",
    )

    assert place["category"] == "hotel"
    assert place["operatingHours"] == {"월": "Open 24 hours"}
    assert place["time"] == "15:00-17:00"


def test_create_place_validation(client, trip) -> None:
    response = client.post("/api/places", json={"name": "Nowhere", "day": 1})
    assert response.status_code == 400
    assert response.json()["detail"] == "tripId is required"

    response = client.post("/api/places", json={"name": "Later", "tripId": trip["id"], "day": 5})
    assert response.status_code == 400

    response = client.post("/api/places", json={"name": "Lost", "tripId": "missing", "day": 1})
    assert response.status_code == 404


def test_list_places_requires_trip_id(client) -> None:
    response = client.get("/api/places")

    assert response.status_code == 400
    assert response.json()["detail"] == "tripId is required"


def test_update_place(client, trip) -> None:
    place = _create_place(client, trip["id"], "Cafe", 1)

    response = client.put(f"/api/places/{place['id']}", json={"notes": "try the mango", "time": "10:00-11:00"})

    assert response.status_code == 200
    assert response.json()["notes"] == "try the mango"
    assert response.json()["time"] == "10:00-11:00"
    assert client.put("/api/places/missing", json={"notes": "x"}).status_code == 404


def test_update_place_order_renumbers_day(client, trip) -> None:
    a = _create_place(client, trip["id"], "A", 1)
    _create_place(client, trip["id"], "B", 1)
    _create_place(client, trip["id"], "C", 1)

    response = client.put(f"/api/places/{a['id']}", json={"order": 3})

    assert response.status_code == 200
    assert _positions(_list_places(client, trip["id"])) == {"A": (1, 3), "B": (1, 1), "C": (1, 2)}


def test_update_place_day_and_order(client, trip) -> None:
    a = _create_place(client, trip["id"], "A", 1)
    _create_place(client, trip["id"], "B", 1)
    _create_place(client, trip["id"], "C", 2)

    response = client.put(f"/api/places/{a['id']}", json={"day": 2, "order": 1})

    assert response.status_code == 200
    assert (response.json()["day"], response.json()["order"]) == (2, 1)
    assert _positions(_list_places(client, trip["id"])) == {"A": (2, 1), "B": (1, 1), "C": (2, 2)}


def test_delete_place_closes_gap(client, trip) -> None:
    _create_place(client, trip["id"], "A", 1)
    b = _create_place(client, trip["id"], "B", 1)
    _create_place(client, trip["id"], "C", 1)

    response = client.delete(f"/api/places/{b['id']}")

    assert response.status_code == 200
    assert _positions(_list_places(client, trip["id"])) == {"A": (1, 1), "C": (1, 2)}


def test_bulk_update(client, trip) -> None:
    a = _create_place(client, trip["id"], "A", 1)
    b = _create_place(client, trip["id"], "B", 1)

    response = client.post("/api/places/bulk-update", json={"places": [
        {"id": a["id"], "day": 1, "order": 2},
        {"id": b["id"], "day": 1, "order": 1},
    ]})

    assert response.status_code == 200
    assert response.json()["updated"] == 2
    assert _positions(_list_places(client, trip["id"])) == {"A": (1, 2), "B": (1, 1)}


def test_bulk_update_is_all_or_nothing(client, trip) -> None:
    a = _create_place(client, trip["id"], "A", 1)
    _create_place(client, trip["id"], "B", 1)

    response = client.post("/api/places/bulk-update", json={"places": [
        {"id": a["id"], "day": 2, "order": 1},
        {"id": "does-not-exist", "day": 1, "order": 1},
    ]})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to update places"
    assert _positions(_list_places(client, trip["id"])) == {"A": (1, 1), "B": (1, 2)}


def test_move_within_day(client, trip) -> None:
    a = _create_place(client, trip["id"], "A", 1)
    _create_place(client, trip["id"], "B", 1)
    c = _create_place(client, trip["id"], "C", 1)

    response = client.post("/api/places/move", json={"tripId": trip["id"], "activeId": a["id"], "overId": c["id"]})

    assert response.status_code == 200
    assert response.json()["moved"] is True
    assert _positions(response.json()["places"]) == {"A": (1, 3), "B": (1, 1), "C": (1, 2)}
    assert _positions(_list_places(client, trip["id"])) == {"A": (1, 3), "B": (1, 1), "C": (1, 2)}


def test_move_to_other_day(client, trip) -> None:
    x = _create_place(client, trip["id"], "X", 1)
    _create_place(client, trip["id"], "Y", 1)
    _create_place(client, trip["id"], "Z", 2)

    response = client.post("/api/places/move", json={"tripId": trip["id"], "activeId": x["id"], "overId": "day-2"})

    assert response.json()["moved"] is True
    assert _positions(_list_places(client, trip["id"])) == {"X": (2, 2), "Y": (1, 1), "Z": (2, 1)}


def test_move_noop(client, trip) -> None:
    a = _create_place(client, trip["id"], "A", 1)

    response = client.post("/api/places/move", json={"tripId": trip["id"], "activeId": a["id"], "overId": "day-1"})

    assert response.status_code == 200
    assert response.json()["moved"] is False
    assert _positions(response.json()["places"]) == {"A": (1, 1)}
