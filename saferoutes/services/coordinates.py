from __future__ import annotations

from pydantic import ValidationError

from saferoutes.core.enums import PickTarget
from saferoutes.core.exceptions import ValidationAppError
from saferoutes.schemas.geo import GeoPoint, LocationPreset, SelectionRead

PRESETS: tuple[LocationPreset, ...] = (
    LocationPreset(
        label="Central Park, NYC",
        start=GeoPoint(lat=40.7812, lon=-73.9665),
        end=GeoPoint(lat=40.758, lon=-73.9855),
    ),
    LocationPreset(
        label="Connaught Place, Delhi",
        start=GeoPoint(lat=28.6315, lon=77.2167),
        end=GeoPoint(lat=28.6129, lon=77.2295),
    ),
    LocationPreset(
        label="Marina Bay, Singapore",
        start=GeoPoint(lat=1.283, lon=103.860),
        end=GeoPoint(lat=1.279, lon=103.854),
    ),
)


def make_point(lat: float, lon: float) -> GeoPoint:
    try:
        return GeoPoint(lat=lat, lon=lon)
    except ValidationError as exc:
        raise ValidationAppError(
            f"Invalid coordinates: lat={lat}, lon={lon}",
            details={"lat": str(lat), "lon": str(lon)},
        ) from exc


def get_preset(index: int) -> LocationPreset:
    if not 0 <= index < len(PRESETS):
        raise ValidationAppError(f"Unknown preset index: {index}")
    return PRESETS[index]


class CoordinateSelection:
    """Origin/destination pair with an interactive "pick next point" mode.

    A map click while picking ``START`` sets the start and advances to ``END``;
    a click while picking ``END`` sets the end and disarms. Direct writes never
    touch the pick target.
    """

    def __init__(self, start: GeoPoint, end: GeoPoint) -> None:
        self.start = start
        self.end = end
        self.picking = PickTarget.NONE

    def set_pick_target(self, target: PickTarget) -> None:
        self.picking = target

    def consume_click(self, point: GeoPoint) -> bool:
        if self.picking == PickTarget.START:
            self.start = point
            self.picking = PickTarget.END
            return True
        if self.picking == PickTarget.END:
            self.end = point
            self.picking = PickTarget.NONE
            return True
        return False

    def set_start(self, point: GeoPoint) -> None:
        self.start = point

    def set_end(self, point: GeoPoint) -> None:
        self.end = point

    def set_points(self, start: GeoPoint | None = None, end: GeoPoint | None = None) -> None:
        if start is not None:
            self.start = start
        if end is not None:
            self.end = end

    def center(self) -> GeoPoint:
        return GeoPoint(lat=(self.start.lat + self.end.lat) / 2, lon=(self.start.lon + self.end.lon) / 2)

    def read(self) -> SelectionRead:
        return SelectionRead(start=self.start, end=self.end, picking=self.picking)
