"""
Integration tests for the REST API endpoints.

Runs the real app over ``ASGITransport`` with the session dependency bound
to the SQLite test database and the event channel replaced by a mock.
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from tests.conftest import AVONDALE, HARARE, auth_headers


TRIP_BODY = {
    "pickup": {"lat": HARARE[0], "lng": HARARE[1], "address": "First Street"},
    "dropoff": {"lat": AVONDALE[0], "lng": AVONDALE[1], "address": "Avondale"},
    "category": "Standard",
    "proposed_price": 6.0,
    "distance_km": 5.0,
    "duration_mins": 12,
}


async def post_trip(client: AsyncClient, rider, **overrides) -> dict:
    resp = await client.post(
        "/api/v1/trips", json={**TRIP_BODY, **overrides}, headers=auth_headers(rider)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def post_bid(client: AsyncClient, trip_id: int, driver, price: float) -> dict:
    resp = await client.post(
        f"/api/v1/trips/{trip_id}/offers",
        json={"offer_price": price},
        headers=auth_headers(driver),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# ── Health / auth ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_signup_login_me_logout(client: AsyncClient):
    resp = await client.post(
        "/api/v1/auth/signup",
        json={"name": "Nyasha", "phone": "+263771112233", "password": "4321", "city": "Harare"},
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "rider"

    resp = await client.post(
        "/api/v1/auth/login", json={"phone": "+263771112233", "password": "4321"}
    )
    assert resp.status_code == 200
    headers = {"Authorization": f"Bearer {resp.json()['auth_token']}"}

    me = await client.get("/api/v1/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["name"] == "Nyasha"

    assert (await client.post("/api/v1/auth/logout", headers=headers)).status_code == 200
    after = await client.get("/api/v1/auth/me", headers=headers)
    assert after.status_code == 401
    assert after.json()["error_type"] == "unauthorized"


@pytest.mark.asyncio
async def test_missing_token(client: AsyncClient):
    resp = await client.get("/api/v1/trips/active")
    assert resp.status_code == 401
    assert resp.json() == {"error_type": "unauthorized", "error": "Missing bearer token"}


@pytest.mark.asyncio
async def test_bad_login(client: AsyncClient, rider):
    resp = await client.post(
        "/api/v1/auth/login", json={"phone": rider.phone, "password": "0000"}
    )
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid phone number or PIN"


@pytest.mark.asyncio
async def test_switch_role(client: AsyncClient, driver):
    resp = await client.post(
        "/api/v1/auth/switch-role", json={"role": "rider"}, headers=auth_headers(driver)
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "rider"
    assert resp.json()["force_rider_mode"] is True


# ── Trip lifecycle ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_trip_returns_201(client: AsyncClient, rider, events):
    data = await post_trip(client, rider)
    assert data["status"] == "PENDING"
    assert data["driver_id"] is None
    assert data["final_price"] is None
    assert data["suggested_price"] == 3.0
    assert data["bids"] == []
    events.new_trip.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_trip_validation_error(client: AsyncClient, rider):
    resp = await client.post(
        "/api/v1/trips",
        json={**TRIP_BODY, "proposed_price": -1},
        headers=auth_headers(rider),
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error_type"] == "inputerror"
    assert "proposed_price" in body["error"]


@pytest.mark.asyncio
async def test_bid_accept_complete_review(client: AsyncClient, rider, driver, other_driver):
    trip = await post_trip(client, rider)
    trip_id = trip["id"]

    # drivers discover the trip and bid
    resp = await client.get(
        "/api/v1/driver/trips/available",
        params={"lat": HARARE[0], "lng": HARARE[1], "radius": 5},
        headers=auth_headers(driver),
    )
    assert [t["id"] for t in resp.json()] == [trip_id]
    assert resp.json()[0]["distance_km"] == 0.0

    winning = await post_bid(client, trip_id, driver, 5.5)
    await post_bid(client, trip_id, other_driver, 5.0)
    assert winning["status"] == "pending"
    assert winning["driver_name"] == driver.name

    resp = await client.get(f"/api/v1/trips/{trip_id}", headers=auth_headers(rider))
    assert resp.json()["status"] == "BIDDING"
    assert len(resp.json()["bids"]) == 2

    # rider accepts
    resp = await client.post(
        f"/api/v1/trips/{trip_id}/accept",
        json={"bid_id": winning["id"]},
        headers=auth_headers(rider),
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "id": trip_id,
        "status": "ACCEPTED",
        "driver_id": driver.id,
        "final_price": 5.5,
    }

    resp = await client.get(f"/api/v1/trips/{trip_id}", headers=auth_headers(driver))
    by_driver = {b["driver_id"]: b["status"] for b in resp.json()["bids"]}
    assert by_driver == {driver.id: "accepted", other_driver.id: "rejected"}

    # driver runs the trip, legacy alias included
    for status, expected in [
        ("ARRIVING", "ARRIVED"),
        ("STARTED", "STARTED"),
        ("COMPLETED", "COMPLETED"),
    ]:
        resp = await client.post(
            f"/api/v1/trips/{trip_id}/status",
            json={"status": status},
            headers=auth_headers(driver),
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["status"] == expected
    assert resp.json()["completed_at"] is not None

    # rider reviews once
    resp = await client.post(
        f"/api/v1/trips/{trip_id}/review",
        json={"rating": 4, "tags": ["friendly"], "is_favorite": True},
        headers=auth_headers(rider),
    )
    assert resp.status_code == 201
    assert resp.json()["message"] == "Review submitted"

    resp = await client.post(
        f"/api/v1/trips/{trip_id}/review",
        json={"rating": 5},
        headers=auth_headers(rider),
    )
    assert resp.status_code == 409
    assert resp.json()["error_type"] == "conflict"

    history = await client.get("/api/v1/trips/history", headers=auth_headers(rider))
    assert [t["id"] for t in history.json()] == [trip_id]

    favorites = await client.get("/api/v1/favorites", headers=auth_headers(rider))
    assert [f["target_user_id"] for f in favorites.json()] == [driver.id]


@pytest.mark.asyncio
async def test_second_accept_conflicts(client: AsyncClient, rider, driver, other_driver):
    trip = await post_trip(client, rider)
    first = await post_bid(client, trip["id"], driver, 5.5)
    second = await post_bid(client, trip["id"], other_driver, 5.0)

    ok = await client.post(
        f"/api/v1/trips/{trip['id']}/accept",
        json={"bid_id": first["id"]},
        headers=auth_headers(rider),
    )
    assert ok.status_code == 200

    resp = await client.post(
        f"/api/v1/trips/{trip['id']}/accept",
        json={"bid_id": second["id"]},
        headers=auth_headers(rider),
    )
    assert resp.status_code == 409
    assert resp.json()["error_type"] == "conflict"


@pytest.mark.asyncio
async def test_duplicate_bid_conflicts(client: AsyncClient, rider, driver):
    trip = await post_trip(client, rider)
    await post_bid(client, trip["id"], driver, 5.5)
    resp = await client.post(
        f"/api/v1/trips/{trip['id']}/offers",
        json={"offer_price": 4.0},
        headers=auth_headers(driver),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_rider_cannot_bid(client: AsyncClient, rider):
    trip = await post_trip(client, rider)
    resp = await client.post(
        f"/api/v1/trips/{trip['id']}/offers",
        json={"offer_price": 4.0},
        headers=auth_headers(rider),
    )
    assert resp.status_code == 403
    assert resp.json()["error_type"] == "accessdenied"


@pytest.mark.asyncio
async def test_invalid_transition(client: AsyncClient, rider):
    trip = await post_trip(client, rider)
    resp = await client.post(
        f"/api/v1/trips/{trip['id']}/status",
        json={"status": "COMPLETED"},
        headers=auth_headers(rider),
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error_type"] == "inputerror"
    assert body["from_status"] == "PENDING"
    assert body["to_status"] == "COMPLETED"


@pytest.mark.asyncio
async def test_cancel_pending_trip(client: AsyncClient, rider, events):
    trip = await post_trip(client, rider)
    resp = await client.post(
        f"/api/v1/trips/{trip['id']}/cancel", headers=auth_headers(rider)
    )
    assert resp.status_code == 200
    assert resp.json() == {"id": trip["id"], "status": "CANCELLED"}
    events.trip_update.assert_awaited_once()


@pytest.mark.asyncio
async def test_cancel_already_cancelled_trip_fails(client: AsyncClient, rider):
    trip = await post_trip(client, rider)
    await client.post(f"/api/v1/trips/{trip['id']}/cancel", headers=auth_headers(rider))
    resp = await client.post(
        f"/api/v1/trips/{trip['id']}/cancel", headers=auth_headers(rider)
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Cannot cancel trip in status CANCELLED"


@pytest.mark.asyncio
async def test_get_trip_not_found(client: AsyncClient, rider):
    resp = await client.get("/api/v1/trips/9999", headers=auth_headers(rider))
    assert resp.status_code == 404
    assert resp.json() == {"error_type": "notfound", "error": "Trip not found"}


@pytest.mark.asyncio
async def test_active_trip_and_poll_hint(client: AsyncClient, rider):
    resp = await client.get("/api/v1/trips/active", headers=auth_headers(rider))
    assert resp.status_code == 200
    assert resp.json() is None
    assert resp.headers["X-Poll-Interval"] == "60"

    trip = await post_trip(client, rider)
    resp = await client.get("/api/v1/trips/active", headers=auth_headers(rider))
    assert resp.json()["id"] == trip["id"]
    assert resp.headers["X-Poll-Interval"] == "5"


# ── Driver, pricing, favourites, admin ────────────────────────────────


@pytest.mark.asyncio
async def test_driver_location_ping(client: AsyncClient, driver, events):
    resp = await client.post(
        "/api/v1/driver/location",
        json={"lat": HARARE[0], "lng": HARARE[1]},
        headers=auth_headers(driver),
    )
    assert resp.status_code == 200
    assert resp.json()["driver_id"] == driver.id
    assert resp.json()["is_online"] is True
    events.driver_location.assert_awaited_once()


@pytest.mark.asyncio
async def test_available_trips_radius_cap(client: AsyncClient, driver):
    resp = await client.get(
        "/api/v1/driver/trips/available",
        params={"lat": HARARE[0], "lng": HARARE[1], "radius": 5000},
        headers=auth_headers(driver),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_price_quote(client: AsyncClient):
    resp = await client.get(
        "/api/v1/pricing/quote",
        params={"distance_km": 13, "category": "3–5 Tonne Truck", "vehicle_type": "FREIGHT"},
    )
    assert resp.status_code == 200
    assert resp.json()["total_price"] == 35.0
    assert resp.json()["base_price"] == 25.0


@pytest.mark.asyncio
async def test_favorites_crud(client: AsyncClient, rider, driver):
    headers = auth_headers(rider)
    resp = await client.post(
        "/api/v1/favorites", json={"target_user_id": driver.id}, headers=headers
    )
    assert resp.status_code == 201

    resp = await client.delete(f"/api/v1/favorites/{driver.id}", headers=headers)
    assert resp.status_code == 204

    resp = await client.delete(f"/api/v1/favorites/{driver.id}", headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_active_trips_endpoint_requires_admin(client: AsyncClient, rider, admin):
    await post_trip(client, rider)

    denied = await client.get("/api/v1/admin/active-trips", headers=auth_headers(rider))
    assert denied.status_code == 403

    resp = await client.get("/api/v1/admin/active-trips", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert len(resp.json()) == 1
