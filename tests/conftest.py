from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from saferoutes.api import deps
from saferoutes.main import app
from saferoutes.schemas.geo import GeoPoint
from saferoutes.services.bookmarks import BookmarkStore
from saferoutes.services.coordinates import CoordinateSelection
from saferoutes.services.planning import RoutePlanningSession
from saferoutes.services.storage import FileStorageBackend
from saferoutes.services.trips import TripHistoryClient
from tests.factories import FakeApiClient

DEFAULT_START = GeoPoint(lat=28.6315, lon=77.2167)
DEFAULT_END = GeoPoint(lat=28.6129, lon=77.2295)


@pytest.fixture()
def fake_api() -> FakeApiClient:
    return FakeApiClient()


@pytest.fixture()
def trip_history(fake_api) -> TripHistoryClient:
    return TripHistoryClient(fake_api)  # type: ignore[arg-type]


@pytest.fixture()
def planning_session(fake_api, trip_history) -> RoutePlanningSession:
    return RoutePlanningSession(
        fake_api,  # type: ignore[arg-type]
        trip_history,
        selection=CoordinateSelection(start=DEFAULT_START, end=DEFAULT_END),
    )


@pytest.fixture()
async def bookmark_store(tmp_path) -> BookmarkStore:
    store = BookmarkStore(FileStorageBackend(tmp_path))
    await store.load()
    return store


@pytest.fixture()
async def app_client(fake_api, planning_session, trip_history, bookmark_store):
    async def override_api():
        return fake_api

    async def override_session():
        return planning_session

    async def override_trips():
        return trip_history

    async def override_bookmarks():
        return bookmark_store

    app.dependency_overrides[deps.get_api_client] = override_api
    app.dependency_overrides[deps.get_planning_session] = override_session
    app.dependency_overrides[deps.get_trip_history] = override_trips
    app.dependency_overrides[deps.get_bookmark_store] = override_bookmarks

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
