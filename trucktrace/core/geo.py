"""
core/geo.py – Great-circle distance helpers (Haversine, miles).

Pure functions: no DB, no I/O. Callers validate coordinate ranges first.
"""
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import ValidationFailed

EARTH_RADIUS_MILES = 3958.8
METERS_PER_MILE    = 1609.34
MILES_PER_DEGREE_LAT = 69.0


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    # None → longitude window unusable (pole or antimeridian), filter on lat only
    min_lng: Optional[float]
    max_lng: Optional[float]


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in miles between two (lat, lng) points in degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_miles_many(lat: float, lng: float, lats, lngs) -> np.ndarray:
    """Vectorised haversine_miles from one origin to many points."""
    lats = np.radians(np.asarray(lats, dtype=np.float64))
    lngs = np.radians(np.asarray(lngs, dtype=np.float64))
    lat0, lng0 = math.radians(lat), math.radians(lng)
    a = (
        np.sin((lats - lat0) / 2) ** 2
        + math.cos(lat0) * np.cos(lats) * np.sin((lngs - lng0) / 2) ** 2
    )
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_MILES * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE


def bounding_box(lat: float, lng: float, radius_miles: float) -> BoundingBox:
    """Coarse lat/lng window that contains every point within radius_miles."""
    # pad by 1% so points sitting exactly on the radius survive the prefilter
    d_lat = radius_miles * 1.01 / MILES_PER_DEGREE_LAT
    min_lat, max_lat = max(-90.0, lat - d_lat), min(90.0, lat + d_lat)

    cos_lat = math.cos(math.radians(max(abs(min_lat), abs(max_lat))))
    if cos_lat < 1e-6:
        return BoundingBox(min_lat, max_lat, None, None)
    d_lng = d_lat / cos_lat
    if d_lng >= 180 or lng - d_lng < -180 or lng + d_lng > 180:
        return BoundingBox(min_lat, max_lat, None, None)
    return BoundingBox(min_lat, max_lat, lng - d_lng, lng + d_lng)


def validate_coordinates(lat: float, lng: float) -> None:
    if lat is None or lng is None or math.isnan(lat) or math.isnan(lng):
        raise ValidationFailed("Invalid latitude or longitude values")
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValidationFailed("Invalid latitude or longitude values")
