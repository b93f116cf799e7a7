from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from saferoutes.core.enums import ReportCategory, SOSTrigger
from saferoutes.schemas.geo import GeoPoint


class Alert(BaseModel):
    message: str
    type: str | None = Field(default=None, validation_alias=AliasChoices("type", "recommendation"))
    severity: str | None = None
    distance_m: float | None = None


class CompanionRequestCreate(BaseModel):
    user_uid: str = Field(min_length=1)
    gender: str
    origin: GeoPoint
    destination: GeoPoint
    earliest_departure: datetime
    latest_departure: datetime
    active: bool = True


class CompanionMatch(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    request_id: str
    user_uid: str
    distance_to_origin_m: float
    distance_to_destination_m: float
    score: float


class CommunityReportCreate(BaseModel):
    category: ReportCategory
    description: str = ""
    location: GeoPoint
    reporter_uid: str = Field(min_length=1)


class SOSTriggerRequest(BaseModel):
    user_uid: str = Field(min_length=1)
    location: GeoPoint
    triggered_by: SOSTrigger = SOSTrigger.MANUAL


class AutoSOSSignals(BaseModel):
    risk_level: float = Field(ge=0, le=1)
    is_stationary_minutes: float = Field(default=0, ge=0)
    fall_detected: bool = False
    heart_rate: float | None = None
    hr_baseline: float | None = None


class AutoSOSResult(BaseModel):
    should_trigger: bool
    reasons: list[str] = Field(default_factory=list)


class LiveShareRequest(BaseModel):
    user_uid: str = Field(min_length=1)
    route_id: str
    eta_minutes: float = Field(ge=0)
    battery_level: int = Field(ge=0, le=100)
    platform: str = "generic"


class GuardianNotifyRequest(BaseModel):
    user_uid: str = Field(min_length=1)
    message: str = Field(min_length=1)
