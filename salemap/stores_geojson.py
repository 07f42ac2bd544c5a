# salemap/stores_geojson.py
# Read/write the flat stores.geojson FeatureCollection shared by the scan job and the map.

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .config import SaleMapError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class StoreFileError(SaleMapError):
    pass


@dataclass(frozen=True)
class SaleFeature:
    name: str
    website: str
    headline: str
    discount: Optional[str]
    longitude: float
    latitude: float

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "Feature",
            "properties": {
                "name": self.name,
                "website": self.website,
                "headline": self.headline,
                "discount": self.discount,
            },
            "geometry": {
                "type": "Point",
                "coordinates": [self.longitude, self.latitude],
            },
        }

    @classmethod
    def from_geojson(cls, obj: Dict[str, Any]) -> "SaleFeature":
        if not isinstance(obj, dict):
            raise StoreFileError(f"feature must be an object, got {type(obj).__name__}")
        geom = obj.get("geometry") or {}
        if not isinstance(geom, dict):
            raise StoreFileError(f"geometry must be an object: {str(obj)[:120]}")
        coords = geom.get("coordinates")
        if geom.get("type") != "Point" or not isinstance(coords, (list, tuple)) or len(coords) < 2:
            raise StoreFileError(f"feature has no Point coordinates: {str(obj)[:120]}")
        props = obj.get("properties") or {}
        if not isinstance(props, dict):
            raise StoreFileError(f"properties must be an object: {str(obj)[:120]}")
        try:
            lon, lat = float(coords[0]), float(coords[1])
        except (TypeError, ValueError):
            raise StoreFileError(f"non-numeric coordinates: {coords!r}") from None
        return cls(
            name=str(props.get("name") or ""),
            website=str(props.get("website") or ""),
            headline=str(props.get("headline") or ""),
            discount=props.get("discount"),
            longitude=lon,
            latitude=lat,
        )


def feature_collection(features: Iterable[SaleFeature]) -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": [f.to_geojson() for f in features]}


def parse_features(data: Dict[str, Any]) -> List[SaleFeature]:
    if not isinstance(data, dict):
        raise StoreFileError("GeoJSON root must be an object")
    features = data.get("features") or []
    if not isinstance(features, list):
        raise StoreFileError('"features" must be a list')
    return [SaleFeature.from_geojson(f) for f in features]


def load_features(path: PathLike) -> List[SaleFeature]:
    """Load every feature from a GeoJSON file. An empty collection is fine."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise StoreFileError(f"cannot read {p}: {e}") from e
    features = parse_features(data)
    logger.info("Loaded %d feature(s) from %s", len(features), p)
    return features


def write_features(path: PathLike, features: Iterable[SaleFeature]) -> int:
    """Overwrite path with a FeatureCollection; returns the feature count."""
    collection = feature_collection(features)
    p = Path(path)
    p.write_text(json.dumps(collection, ensure_ascii=False, indent=2), encoding="utf-8")
    return len(collection["features"])
