from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from saferoutes.core.enums import RouteMode, TimeBucket
from saferoutes.schemas.geo import GeoPoint


class PlanRequest(BaseModel):
    start: GeoPoint
    end: GeoPoint
    mode: RouteMode
    time_of_day: TimeBucket


class SegmentScore(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    segment_id: str
    safety_score: float


class RouteCandidate(BaseModel):
    """A route returned by the planning service.

    ``geometry`` holds ``(lon, lat)`` pairs. The service may send either a bare
    coordinate list or a GeoJSON LineString/Feature; both are accepted.
    """

    model_config = ConfigDict(frozen=True)

    geometry: list[tuple[float, float]] = Field(min_length=2)
    distance_m: float = Field(ge=0)
    eta_minutes: float = Field(ge=0)
    average_safety_score: float = Field(ge=0, le=100)
    segment_scores: list[SegmentScore] = Field(default_factory=list)

    @field_validator("geometry", mode="before")
    @classmethod
    def unwrap_geojson(cls, value: Any) -> Any:
        if isinstance(value, dict):
            if value.get("type") == "Feature" and isinstance(value.get("geometry"), dict):
                value = value["geometry"]
            value = value.get("coordinates")
        if isinstance(value, list):
            # Drop elevation when the service sends [lon, lat, alt].
            return [item[:2] if isinstance(item, (list, tuple)) else item for item in value]
        return value

    def latlon_path(self) -> list[list[float]]:
        return [[lat, lon] for lon, lat in self.geometry]


class PlanResponse(BaseModel):
    mode: RouteMode
    chosen: RouteCandidate
    alternatives: list[RouteCandidate] = Field(default_factory=list)

    @field_validator("alternatives", mode="before")
    @classmethod
    def null_alternatives(cls, value: Any) -> Any:
        return [] if value is None else value


class DisplaySummary(BaseModel):
    mode: RouteMode
    eta_minutes: float
    average_safety_score: float
    distance_km: float


class ScoreRequest(BaseModel):
    segments: list[dict[str, Any]] = Field(min_length=1)
    time_of_day: TimeBucket
    mode: RouteMode


class ScoreResponse(BaseModel):
    mode: RouteMode
    eta_minutes: float
    average_safety_score: float
    segment_scores: list[SegmentScore] = Field(default_factory=list)
