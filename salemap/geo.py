# ================================
# FILE: salemap/geo.py
# PURPOSE: Proximity filter — bbox pre-filter + haversine distance (spherical Earth)
# ================================

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

EARTH_RADIUS_M = 6_371_000.0
DEFAULT_BBOX_RADIUS_M = 500.0
DEFAULT_VIEW_RADIUS_M = 10_000.0


class HasCoordinates(Protocol):
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def distance_to(self, other: HasCoordinates) -> float:
        return haversine(self.latitude, self.longitude, other.latitude, other.longitude)


@dataclass(frozen=True)
class BoundingBox:
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float


def bounding_box(lat: float, lon: float, radius_m: float = DEFAULT_BBOX_RADIUS_M) -> BoundingBox:
    """Approximate box around (lat, lon) covering radius_m.

    Locally flat-Earth, so it is only a pre-filter. Near the poles cos(lat) -> 0
    and the longitude span blows up; at exactly +-90 the box admits every longitude.
    Longitudes are not wrapped at +-180, so points just across the antimeridian
    fall outside the box and are dropped.
    """
    d_lat = math.degrees(radius_m / EARTH_RADIUS_M)
    cos_lat = math.cos(math.radians(lat))
    d_lon = d_lat / cos_lat if cos_lat else math.inf
    return BoundingBox(lat - d_lat, lat + d_lat, lon - d_lon, lon + d_lon)


def in_bounding_box(box: BoundingBox, lat: float, lon: float) -> bool:
    # strict on all four edges
    return box.lat_min < lat < box.lat_max and box.lon_min < lon < box.lon_max


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two points given in degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, a)))


def filter_nearby(viewer: HasCoordinates, features: Iterable[HasCoordinates],
                  radius_m: Optional[float] = DEFAULT_VIEW_RADIUS_M) -> List:
    """Features within radius_m of the viewer, in input order.

    radius_m=None disables filtering and returns every feature.
    """
    if radius_m is None:
        return list(features)

    box = bounding_box(viewer.latitude, viewer.longitude, radius_m)
    hits = []
    for f in features:
        if not in_bounding_box(box, f.latitude, f.longitude):
            continue
        if haversine(viewer.latitude, viewer.longitude, f.latitude, f.longitude) <= radius_m:
            hits.append(f)
    return hits
