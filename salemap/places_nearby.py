# ================================
# FILE: salemap/places_nearby.py
# PURPOSE: Google Places (v1) Nearby Search for one center + first-seen dedup across centers
# ================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests

from .config import SaleMapError, ScanConfig

logger = logging.getLogger(__name__)

NEARBY_URL = "https://places.googleapis.com/v1/places:searchNearby"
FIELD_MASK = "places.id,places.location,places.displayName,places.websiteUri"


class PlacesQueryError(SaleMapError):
    pass


@dataclass(frozen=True)
class PlaceCandidate:
    id: str
    name: str
    latitude: Optional[float]
    longitude: Optional[float]
    website: Optional[str]

    @classmethod
    def from_api(cls, p: Dict[str, Any]) -> "PlaceCandidate":
        loc = p.get("location")
        loc = loc if isinstance(loc, dict) else {}
        display = p.get("displayName")
        display = display if isinstance(display, dict) else {}
        return cls(
            id=str(p.get("id") or ""),
            name=display.get("text") or "(unnamed)",
            latitude=loc.get("latitude"),
            longitude=loc.get("longitude"),
            website=p.get("websiteUri") or None,
        )


def build_request_body(center: Tuple[float, float], cfg: ScanConfig) -> Dict[str, Any]:
    lat, lng = center
    return {
        "includedTypes": list(cfg.included_types),
        "maxResultCount": cfg.max_results,
        "locationRestriction": {
            "circle": {"center": {"latitude": lat, "longitude": lng}, "radius": cfg.search_radius_m}
        },
    }


def search_nearby(center: Tuple[float, float], cfg: ScanConfig, timeout: int = 30) -> List[PlaceCandidate]:
    """One Nearby Search call. Any HTTP or transport failure raises PlacesQueryError."""
    headers = {
        "Content-Type": "application/json",
        "X-Goog-Api-Key": cfg.google_api_key,
        "X-Goog-FieldMask": FIELD_MASK,
    }
    try:
        r = requests.post(NEARBY_URL, json=build_request_body(center, cfg), headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise PlacesQueryError(f"Nearby search failed at {center}: {e}") from e
    if not r.ok:
        raise PlacesQueryError(f"Nearby search HTTP {r.status_code} at {center}: {r.text[:300]}")
    try:
        data = r.json()
    except ValueError as e:
        raise PlacesQueryError(f"Nearby search returned non-JSON at {center}") from e
    if not isinstance(data, dict):
        raise PlacesQueryError(f"Nearby search returned a non-object body at {center}")
    places = data.get("places") or []
    if not isinstance(places, list) or not all(isinstance(p, dict) for p in places):
        raise PlacesQueryError(f"Nearby search returned malformed places at {center}")
    return [PlaceCandidate.from_api(p) for p in places]


def collect_unique_places(result_sets: Iterable[Iterable[PlaceCandidate]]) -> Tuple[List[PlaceCandidate], int]:
    """Merge per-center results keyed by place id; the first occurrence wins.

    Returns (unique places in first-seen order, raw count across all sets).
    """
    by_id: Dict[str, PlaceCandidate] = {}
    raw = 0
    for places in result_sets:
        for p in places:
            raw += 1
            if p.id and p.id not in by_id:
                by_id[p.id] = p
    return list(by_id.values()), raw
