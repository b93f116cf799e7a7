from __future__ import annotations

from pydantic import BaseModel, Field

from saferoutes.core.enums import PickTarget, RouteMode, SafetyLevel, SessionPhase, TimeBucket
from saferoutes.schemas.geo import GeoPoint, SelectionRead
from saferoutes.schemas.route import DisplaySummary, RouteCandidate


class SessionPreferences(BaseModel):
    night_shield: bool = False
    women_safety: bool = False
    battery_saver: bool = False

    def badges(self) -> list[str]:
        badges: list[str] = []
        if self.night_shield:
            badges.append("High-contrast UI + frequent guardian updates")
        if self.women_safety:
            badges.append("Female-focused alerts enabled")
        if self.battery_saver:
            badges.append("Reduced updates to save battery")
        return badges


class SessionState(BaseModel):
    phase: SessionPhase
    selection: SelectionRead
    mode: RouteMode
    time_of_day: TimeBucket
    auto_refresh: bool
    preferences: SessionPreferences
    chosen: RouteCandidate | None = None
    alternatives: list[RouteCandidate] = Field(default_factory=list)
    summary: DisplaySummary | None = None
    route_id: str | None = None
    last_error: str | None = None


class MapMarker(BaseModel):
    role: PickTarget
    position: list[float]


class MapPolyline(BaseModel):
    positions: list[list[float]]
    color: str
    weight: int
    opacity: float = 1.0
    chosen: bool = False


class SegmentScoreView(BaseModel):
    segment_id: str
    safety_score: float
    level: SafetyLevel


class RenderModel(BaseModel):
    center: list[float]
    markers: list[MapMarker]
    polylines: list[MapPolyline]
    summary: DisplaySummary | None = None
    segments: list[SegmentScoreView] = Field(default_factory=list)
    segments_truncated: bool = False
    badges: list[str] = Field(default_factory=list)


class PickRequest(BaseModel):
    target: PickTarget


class PointsUpdate(BaseModel):
    start: GeoPoint | None = None
    end: GeoPoint | None = None


class OptionsUpdate(BaseModel):
    mode: RouteMode | None = None
    time_of_day: TimeBucket | None = None
    auto_refresh: bool | None = None


class PreferencesUpdate(BaseModel):
    night_shield: bool | None = None
    women_safety: bool | None = None
    battery_saver: bool | None = None


class PlanOverrides(BaseModel):
    mode: RouteMode | None = None
    time_of_day: TimeBucket | None = None
