from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from saferoutes.core.enums import PickTarget


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(ge=-180, le=180, allow_inf_nan=False)


class LocationPreset(BaseModel):
    label: str
    start: GeoPoint
    end: GeoPoint


class SelectionRead(BaseModel):
    start: GeoPoint
    end: GeoPoint
    picking: PickTarget
