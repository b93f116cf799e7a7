from __future__ import annotations

import json

import httpx
import pytest

from saferoutes.api import deps
from saferoutes.main import app
from saferoutes.services.backend_client import SafeRoutesApiClient

pytestmark = pytest.mark.integration


def _backend(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/alerts":
        return httpx.Response(200, json={"alerts": [{"message": "Isolated stretch", "recommendation": "stay_on_main_road"}]})
    if request.url.path == "/api/sos/trigger":
        return httpx.Response(200, json={"ok": True, "sos_id": "s1"})
    if request.url.path == "/api/guardians/notify":
        return httpx.Response(503, text="telegram offline")
    if request.url.path == "/api/location/share":
        payload = json.loads(request.content)
        return httpx.Response(200, json={"text": f"On my way, ETA {payload['eta_minutes']:g} min"})
    return httpx.Response(404)


@pytest.fixture()
async def safety_client(app_client):
    backend = SafeRoutesApiClient("http://backend.test", timeout=2, transport=httpx.MockTransport(_backend))

    async def override_api():
        return backend

    app.dependency_overrides[deps.get_api_client] = override_api
    return app_client


@pytest.mark.asyncio
async def test_alerts_are_forwarded(safety_client):
    response = await safety_client.get("/api/v1/safety/alerts", params={"lat": 28.61, "lon": 77.21, "time_of_day": "night"})

    assert response.status_code == 200
    assert response.json()["data"] == [
        {"message": "Isolated stretch", "type": "stay_on_main_road", "severity": None, "distance_m": None}
    ]


@pytest.mark.asyncio
async def test_sos_acknowledgement_is_passed_through(safety_client):
    response = await safety_client.post(
        "/api/v1/safety/sos",
        json={"user_uid": "user_a", "location": {"lat": 28.61, "lon": 77.21}},
    )

    assert response.json()["data"] == {"ok": True, "sos_id": "s1"}


@pytest.mark.asyncio
async def test_share_text(safety_client):
    response = await safety_client.post(
        "/api/v1/safety/share",
        json={"user_uid": "user_a", "route_id": "route_1", "eta_minutes": 18, "battery_level": 78},
    )

    assert response.json()["data"] == {"text": "On my way, ETA 18 min"}


@pytest.mark.asyncio
async def test_backend_failure_is_bad_gateway(safety_client):
    response = await safety_client.post(
        "/api/v1/safety/guardians/notify",
        json={"user_uid": "user_a", "message": "Reached home"},
    )

    assert response.status_code == 502
    error = response.json()["error"]
    assert error["code"] == "transport_error"
    assert error["details"]["status_code"] == 503


@pytest.mark.asyncio
async def test_invalid_battery_level_is_rejected_locally(safety_client):
    response = await safety_client.post(
        "/api/v1/safety/share",
        json={"user_uid": "user_a", "route_id": "route_1", "eta_minutes": 18, "battery_level": 140},
    )

    assert response.status_code == 422
