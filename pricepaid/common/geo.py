"""Geo point model and coordinate validity rules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def is_valid_coordinate(value: float | None) -> bool:
    # An exact 0 is the store's "no data" default, not the equator or prime meridian.
    if value is None:
        return False
    return -90.0 < value < 90.0 and value != 0.0


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    long: float

    def to_geojson(self) -> dict[str, Any]:
        return {"type": "Point", "coordinates": [self.long, self.lat]}


def geo_from_lat_long(lat: Any, long: Any) -> GeoPoint | None:
    try:
        lat_value = float(lat) if lat is not None else None
        long_value = float(long) if long is not None else None
    except (TypeError, ValueError):
        return None
    if not (is_valid_coordinate(lat_value) and is_valid_coordinate(long_value)):
        return None
    return GeoPoint(lat=lat_value, long=long_value)
