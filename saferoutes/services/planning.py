from __future__ import annotations

import hashlib
import logging
import time

from saferoutes.core.config import Settings
from saferoutes.core.enums import PickTarget, RouteMode, SafetyLevel, SessionPhase, TimeBucket
from saferoutes.core.exceptions import (
    AppError,
    NoActiveRouteError,
    NotFoundError,
    PersistenceError,
    TransportError,
    ValidationAppError,
)
from saferoutes.schemas.bookmark import Bookmark
from saferoutes.schemas.geo import GeoPoint
from saferoutes.schemas.route import DisplaySummary, PlanRequest, PlanResponse, RouteCandidate
from saferoutes.schemas.session import (
    MapMarker,
    MapPolyline,
    RenderModel,
    SegmentScoreView,
    SessionPreferences,
    SessionState,
)
from saferoutes.schemas.trip import TripCreate, TripLogOutcome
from saferoutes.services.backend_client import SafeRoutesApiClient
from saferoutes.services.coordinates import CoordinateSelection, get_preset
from saferoutes.services.trips import TripHistoryClient

logger = logging.getLogger(__name__)

PLAN_FAILED_MESSAGE = "Could not compute route"
TRIP_SAVE_FAILED_MESSAGE = "Could not save trip"
SEGMENT_PREVIEW_LIMIT = 8

CHOSEN_COLOR = "#2563eb"
ALTERNATIVE_COLOR = "#9ca3af"


def summarize(candidate: RouteCandidate, mode: RouteMode) -> DisplaySummary:
    return DisplaySummary(
        mode=mode,
        eta_minutes=candidate.eta_minutes,
        average_safety_score=candidate.average_safety_score,
        distance_km=round(candidate.distance_m / 1000, 3),
    )


def route_fingerprint(candidate: RouteCandidate) -> str:
    """Deterministic, non-unique id from the route endpoints and rounded distance."""
    first_lon, first_lat = candidate.geometry[0]
    last_lon, last_lat = candidate.geometry[-1]
    key = f"{first_lon!r},{first_lat!r}|{last_lon!r},{last_lat!r}|{round(candidate.distance_m)}"
    return "route_" + hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]


def safety_level(score: float) -> SafetyLevel:
    if score > 70:
        return SafetyLevel.SAFE
    if score > 50:
        return SafetyLevel.CAUTION
    return SafetyLevel.DANGER


class RoutePlanningSession:
    """Route-planning state machine: IDLE -> PLANNING -> PLANNED.

    Every plan request carries a sequence number. With ``discard_stale_plans``
    enabled, the outcome of a request is dropped once a newer request has been
    issued, so the most recently issued request wins rather than the most
    recently resolved one.
    """

    def __init__(
        self,
        api: SafeRoutesApiClient,
        trips: TripHistoryClient,
        *,
        selection: CoordinateSelection,
        mode: RouteMode = RouteMode.BALANCED,
        time_of_day: TimeBucket = TimeBucket.DAY,
        auto_refresh: bool = False,
        preferences: SessionPreferences | None = None,
        discard_stale_plans: bool = True,
    ) -> None:
        self.api = api
        self.trips = trips
        self.selection = selection
        self.mode = mode
        self.time_of_day = time_of_day
        self.auto_refresh = auto_refresh
        self.preferences = preferences if preferences is not None else SessionPreferences()
        self.discard_stale_plans = discard_stale_plans

        self.chosen: RouteCandidate | None = None
        self.alternatives: list[RouteCandidate] = []
        self.summary: DisplaySummary | None = None
        self.last_error: str | None = None

        self._phase = SessionPhase.IDLE
        self._plan_seq = 0
        self._has_planned = False
        self._planned_request: PlanRequest | None = None
        self._planned_mode: RouteMode | None = None

    @classmethod
    def from_settings(
        cls,
        api: SafeRoutesApiClient,
        trips: TripHistoryClient,
        settings: Settings,
        preferences: SessionPreferences | None = None,
    ) -> "RoutePlanningSession":
        selection = CoordinateSelection(
            start=GeoPoint(lat=settings.default_start_lat, lon=settings.default_start_lon),
            end=GeoPoint(lat=settings.default_end_lat, lon=settings.default_end_lon),
        )
        return cls(
            api,
            trips,
            selection=selection,
            mode=settings.default_mode,
            time_of_day=settings.default_time_of_day,
            auto_refresh=settings.auto_refresh,
            preferences=preferences,
            discard_stale_plans=settings.discard_stale_plans,
        )

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def has_planned(self) -> bool:
        return self._has_planned

    def _inputs(self) -> tuple[GeoPoint, GeoPoint, RouteMode, TimeBucket]:
        return self.selection.start, self.selection.end, self.mode, self.time_of_day

    async def _after_commit(self, before: tuple[GeoPoint, GeoPoint, RouteMode, TimeBucket]) -> PlanResponse | None:
        if self._inputs() == before:
            return None
        if not (self.auto_refresh and self._has_planned):
            return None
        logger.info("Route inputs changed, recomputing", extra={"mode": self.mode.value, "time_of_day": self.time_of_day.value})
        try:
            return await self.plan()
        except TransportError:
            # plan() has already recorded last_error for the presentation layer.
            return None

    # Inputs

    def set_pick_target(self, target: PickTarget) -> None:
        self.selection.set_pick_target(target)

    async def consume_click(self, point: GeoPoint) -> PlanResponse | None:
        before = self._inputs()
        self.selection.consume_click(point)
        return await self._after_commit(before)

    async def set_start(self, point: GeoPoint) -> PlanResponse | None:
        return await self.update(start=point)

    async def set_end(self, point: GeoPoint) -> PlanResponse | None:
        return await self.update(end=point)

    async def set_mode(self, mode: RouteMode) -> PlanResponse | None:
        return await self.update(mode=mode)

    async def set_time_of_day(self, time_of_day: TimeBucket) -> PlanResponse | None:
        return await self.update(time_of_day=time_of_day)

    async def update(
        self,
        *,
        start: GeoPoint | None = None,
        end: GeoPoint | None = None,
        mode: RouteMode | None = None,
        time_of_day: TimeBucket | None = None,
    ) -> PlanResponse | None:
        """Apply several input changes as one committed state change."""
        before = self._inputs()
        self.selection.set_points(start=start, end=end)
        if mode is not None:
            self.mode = mode
        if time_of_day is not None:
            self.time_of_day = time_of_day
        return await self._after_commit(before)

    def set_auto_refresh(self, enabled: bool) -> None:
        self.auto_refresh = enabled

    async def use_bookmark(self, bookmark: Bookmark) -> PlanResponse | None:
        return await self.update(start=bookmark.start, end=bookmark.end)

    async def apply_preset(self, index: int) -> PlanResponse | None:
        preset = get_preset(index)
        return await self.update(start=preset.start, end=preset.end)

    # Planning

    def _is_superseded(self, seq: int) -> bool:
        return self.discard_stale_plans and seq != self._plan_seq

    async def plan(self, *, mode: RouteMode | None = None, time_of_day: TimeBucket | None = None) -> PlanResponse | None:
        """Request a route for the current inputs.

        ``mode`` and ``time_of_day`` override the session values for this call
        only. Returns ``None`` when the response was superseded by a newer
        request. Raises ``TransportError`` on failure; the session then stays in
        PLANNING without a chosen route and the caller may retry.
        """
        request = PlanRequest(
            start=self.selection.start,
            end=self.selection.end,
            mode=mode or self.mode,
            time_of_day=time_of_day or self.time_of_day,
        )
        self._plan_seq += 1
        seq = self._plan_seq
        self.chosen = None
        self.alternatives = []
        self.last_error = None
        self._phase = SessionPhase.PLANNING
        logger.info(
            "Planning route",
            extra={"seq": seq, "mode": request.mode.value, "time_of_day": request.time_of_day.value},
        )

        try:
            response = await self.api.plan_route(request)
        except AppError as exc:
            if self._is_superseded(seq):
                logger.info("Ignoring failure of superseded plan request", extra={"seq": seq, "latest_seq": self._plan_seq})
                return None
            self.last_error = PLAN_FAILED_MESSAGE
            logger.warning("Route planning failed", extra={"seq": seq, "error": exc.message})
            if isinstance(exc, TransportError):
                raise
            raise TransportError(f"{PLAN_FAILED_MESSAGE}: {exc.message}") from exc

        if self._is_superseded(seq):
            logger.info("Discarding superseded plan response", extra={"seq": seq, "latest_seq": self._plan_seq})
            return None

        self.chosen = response.chosen
        self.alternatives = list(response.alternatives)
        self.summary = summarize(response.chosen, response.mode)
        self._planned_request = request
        self._planned_mode = response.mode
        self._has_planned = True
        self._phase = SessionPhase.PLANNED
        return response

    def select_alternative(self, candidate: RouteCandidate) -> DisplaySummary:
        if not any(item is candidate for item in self.alternatives):
            raise ValidationAppError("Route is not one of the current alternatives")
        self.chosen = candidate
        self.summary = summarize(candidate, self._planned_mode or self.mode)
        return self.summary

    def select_alternative_at(self, index: int) -> DisplaySummary:
        if not 0 <= index < len(self.alternatives):
            raise ValidationAppError(f"No alternative at index {index}")
        return self.select_alternative(self.alternatives[index])

    def compute_route_id(self) -> str | None:
        if self.chosen is None:
            return None
        return route_fingerprint(self.chosen)

    # Trips

    async def log_current_trip(self, user_id: str) -> TripLogOutcome:
        chosen = self.chosen
        request = self._planned_request
        if chosen is None or request is None:
            raise NoActiveRouteError("Plan a route before logging a trip")
        if not user_id.strip():
            raise ValidationAppError("user_uid must not be empty")

        route_id = self.compute_route_id() or f"route-{int(time.time() * 1000)}"
        trip = TripCreate(
            user_uid=user_id,
            origin=request.start,
            destination=request.end,
            route_id=route_id,
            mode=self._planned_mode or request.mode,
            distance_km=round(chosen.distance_m / 1000, 3),
            eta_minutes=chosen.eta_minutes,
            safety_score=chosen.average_safety_score,
        )
        try:
            trip_id = await self.trips.create(trip)
        except (PersistenceError, TransportError, NotFoundError) as exc:
            logger.warning("Trip was not saved", extra={"user_uid": user_id, "route_id": route_id, "error": exc.message})
            return TripLogOutcome(saved=False, route_id=route_id, message=TRIP_SAVE_FAILED_MESSAGE)

        await self.trips.load(user_id)
        return TripLogOutcome(saved=True, trip_id=trip_id, route_id=route_id)

    # Observable state

    def snapshot(self) -> SessionState:
        return SessionState(
            phase=self._phase,
            selection=self.selection.read(),
            mode=self.mode,
            time_of_day=self.time_of_day,
            auto_refresh=self.auto_refresh,
            preferences=self.preferences,
            chosen=self.chosen,
            alternatives=list(self.alternatives),
            summary=self.summary,
            route_id=self.compute_route_id(),
            last_error=self.last_error,
        )

    def render(self) -> RenderModel:
        chosen = self.chosen
        polylines = [
            MapPolyline(positions=alt.latlon_path(), color=ALTERNATIVE_COLOR, weight=3, opacity=0.6)
            for alt in self.alternatives
            if alt is not chosen
        ]
        if chosen is not None:
            polylines.append(MapPolyline(positions=chosen.latlon_path(), color=CHOSEN_COLOR, weight=6, chosen=True))

        segment_scores = chosen.segment_scores if chosen is not None else []
        center = self.selection.center()
        return RenderModel(
            center=[center.lat, center.lon],
            markers=[
                MapMarker(role=PickTarget.START, position=[self.selection.start.lat, self.selection.start.lon]),
                MapMarker(role=PickTarget.END, position=[self.selection.end.lat, self.selection.end.lon]),
            ],
            polylines=polylines,
            summary=self.summary,
            segments=[
                SegmentScoreView(segment_id=item.segment_id, safety_score=item.safety_score, level=safety_level(item.safety_score))
                for item in segment_scores[:SEGMENT_PREVIEW_LIMIT]
            ],
            segments_truncated=len(segment_scores) > SEGMENT_PREVIEW_LIMIT,
            badges=self.preferences.badges(),
        )
