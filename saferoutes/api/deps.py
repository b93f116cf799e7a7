from __future__ import annotations

from fastapi import Query, Request

from saferoutes.core.config import get_settings
from saferoutes.services.backend_client import SafeRoutesApiClient
from saferoutes.services.bookmarks import BookmarkStore
from saferoutes.services.planning import RoutePlanningSession
from saferoutes.services.trips import TripHistoryClient


async def get_api_client(request: Request) -> SafeRoutesApiClient:
    return request.app.state.api_client


async def get_planning_session(request: Request) -> RoutePlanningSession:
    return request.app.state.planning_session


async def get_trip_history(request: Request) -> TripHistoryClient:
    return request.app.state.trip_history


async def get_bookmark_store(request: Request) -> BookmarkStore:
    return request.app.state.bookmark_store


async def get_user_uid(user_uid: str | None = Query(default=None, min_length=1)) -> str:
    return user_uid or get_settings().default_user_uid
