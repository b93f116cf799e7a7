from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from saferoutes.schemas.geo import GeoPoint


class Bookmark(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    start: GeoPoint
    end: GeoPoint


class BookmarkCreate(BaseModel):
    name: str
    start: GeoPoint
    end: GeoPoint
