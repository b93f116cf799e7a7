from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from saferoutes.core.enums import RouteMode
from saferoutes.core.exceptions import AppError, PersistenceError, ValidationAppError
from saferoutes.schemas.trip import Trip, TripCreate, TripHistoryRead, TripSummary
from saferoutes.services.backend_client import SafeRoutesApiClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TripCache:
    trips: list[Trip] = field(default_factory=list)
    summary: TripSummary = field(default_factory=TripSummary)
    trips_error: str | None = None
    summary_error: str | None = None


class TripHistoryClient:
    """Read cache of server-held trips, one entry per user identifier.

    ``create`` and ``remove`` never touch the cache; the caller reloads.
    """

    def __init__(self, api: SafeRoutesApiClient) -> None:
        self.api = api
        self._cache: dict[str, TripCache] = {}
        self._generation: dict[str, int] = {}

    def cached(self, user_id: str) -> TripCache:
        return self._cache.setdefault(user_id, TripCache())

    async def load(self, user_id: str) -> TripCache:
        generation = self._generation.get(user_id, 0) + 1
        self._generation[user_id] = generation
        cache = self.cached(user_id)

        trips_result, summary_result = await asyncio.gather(
            self.api.list_trips(user_id),
            self.api.trip_summary(user_id),
            return_exceptions=True,
        )

        if self._generation.get(user_id) != generation:
            logger.info("Discarding superseded trip history load", extra={"user_uid": user_id, "generation": generation})
            return cache

        if isinstance(trips_result, AppError):
            logger.warning("Trip list unavailable", extra={"user_uid": user_id, "error": trips_result.message})
            cache.trips_error = trips_result.message
        elif isinstance(trips_result, BaseException):
            raise trips_result
        else:
            cache.trips = trips_result
            cache.trips_error = None

        if isinstance(summary_result, AppError):
            logger.warning("Trip summary unavailable", extra={"user_uid": user_id, "error": summary_result.message})
            cache.summary_error = summary_result.message
        elif isinstance(summary_result, BaseException):
            raise summary_result
        else:
            cache.summary = summary_result
            cache.summary_error = None

        return cache

    def filter(self, user_id: str, predicate: Callable[[RouteMode], bool]) -> list[Trip]:
        return [trip for trip in self.cached(user_id).trips if predicate(trip.mode)]

    def by_mode(self, user_id: str, mode: RouteMode | None) -> list[Trip]:
        if mode is None:
            return list(self.cached(user_id).trips)
        return self.filter(user_id, lambda trip_mode: trip_mode == mode)

    async def create(self, trip: TripCreate) -> str:
        trip_id = await self.api.create_trip(trip)
        if trip_id is None:
            raise PersistenceError("Trip was not saved: backend returned no identifier")
        logger.info("Trip created", extra={"user_uid": trip.user_uid, "trip_id": trip_id})
        return trip_id

    async def remove(self, trip_id: str) -> None:
        if not trip_id or not trip_id.strip():
            raise ValidationAppError("Trip has no server identifier")
        await self.api.delete_trip(trip_id)
        logger.info("Trip deleted", extra={"trip_id": trip_id})

    def read(self, user_id: str, mode: RouteMode | None = None) -> TripHistoryRead:
        cache = self.cached(user_id)
        return TripHistoryRead(
            user_uid=user_id,
            trips=self.by_mode(user_id, mode),
            summary=cache.summary,
            trips_error=cache.trips_error,
            summary_error=cache.summary_error,
        )
