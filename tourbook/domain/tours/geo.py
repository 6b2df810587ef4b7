"""
Geospatial helpers for radius search and distance listing.

Tours carry a GeoJSON start location (``coordinates = [lng, lat]``).
Distances are computed on a sphere; radii are expressed in the caller's
unit and converted to radians with the equatorial Earth radius.
"""

import math
from typing import Iterable, Optional

from tourbook.domain.tours.entities import DistanceUnit, GeoPoint
from tourbook.domain.tours.errors import InvalidInputError

EARTH_RADIUS = {DistanceUnit.MILES: 3963.2, DistanceUnit.KILOMETERS: 6378.1}
EARTH_RADIUS_METERS = 6_378_100.0
METERS_TO_UNIT = {DistanceUnit.MILES: 0.000621371, DistanceUnit.KILOMETERS: 0.001}


def parse_latlng(value: str) -> GeoPoint:
    """Parse ``"lat,lng"`` into a point.

    Raises:
        InvalidInputError: If the value is not two numbers in range.
    """
    parts = value.split(",")
    try:
        lat, lng = (float(p) for p in parts)
    except ValueError:
        lat = lng = None
    if lat is None or not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise InvalidInputError(
            "Please provide latitude and longitude in the format lat,lng."
        )
    return GeoPoint(lat=lat, lng=lng)


def parse_unit(value: str) -> DistanceUnit:
    try:
        return DistanceUnit(value)
    except ValueError:
        raise InvalidInputError("Unit must be either 'mi' or 'km'.") from None


def point_from_geojson(location: Optional[dict]) -> Optional[GeoPoint]:
    """Extract a point from a GeoJSON ``Point``; None if absent or malformed."""
    if not location:
        return None
    coordinates = location.get("coordinates") or []
    if len(coordinates) != 2:
        return None
    lng, lat = coordinates
    return GeoPoint(lat=float(lat), lng=float(lng))


def central_angle(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle angle between two points, in radians (haversine)."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * math.asin(min(1.0, math.sqrt(h)))


def tours_within(
    tours: Iterable[dict], center: GeoPoint, distance: float, unit: DistanceUnit
) -> list[dict]:
    """Return tours whose start location lies within ``distance`` of ``center``."""
    if distance < 0:
        raise InvalidInputError("Distance must be a positive number.")
    radius = distance / EARTH_RADIUS[unit]
    result = []
    for tour in tours:
        point = point_from_geojson(tour.get("startLocation"))
        if point is not None and central_angle(center, point) <= radius:
            result.append(tour)
    return result


def tour_distances(
    tours: Iterable[dict], center: GeoPoint, unit: DistanceUnit
) -> list[dict]:
    """Return ``{id, name, distance}`` for every located tour, nearest first."""
    multiplier = METERS_TO_UNIT[unit]
    rows = []
    for tour in tours:
        point = point_from_geojson(tour.get("startLocation"))
        if point is None:
            continue
        meters = central_angle(center, point) * EARTH_RADIUS_METERS
        rows.append(
            {"id": tour["id"], "name": tour["name"], "distance": meters * multiplier}
        )
    rows.sort(key=lambda row: row["distance"])
    return rows
