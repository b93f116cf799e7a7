from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from saferoutes.core.enums import RouteMode
from saferoutes.schemas.geo import GeoPoint


class TripCreate(BaseModel):
    user_uid: str = Field(min_length=1)
    origin: GeoPoint
    destination: GeoPoint
    route_id: str
    mode: RouteMode
    distance_km: float = Field(ge=0)
    eta_minutes: float = Field(ge=0)
    safety_score: float


class Trip(TripCreate):
    model_config = ConfigDict(coerce_numbers_to_str=True, populate_by_name=True)

    id: str | None = Field(default=None, validation_alias=AliasChoices("_id", "id", "trip_id"))


class TripSummary(BaseModel):
    total_trips: int = 0
    total_km: float = 0.0
    avg_safety: float = 0.0
    favorite_mode: RouteMode | None = None


class TripHistoryRead(BaseModel):
    user_uid: str
    trips: list[Trip]
    summary: TripSummary
    trips_error: str | None = None
    summary_error: str | None = None


class TripLogRequest(BaseModel):
    user_uid: str | None = Field(default=None, min_length=1)


class TripLogOutcome(BaseModel):
    saved: bool
    trip_id: str | None = None
    route_id: str | None = None
    message: str | None = None
