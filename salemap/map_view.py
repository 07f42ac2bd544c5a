# --- File: salemap/map_view.py ---
# Folium map of sale stores around the viewer, list cards, viewer lookup,
# and a static HTML export:
#   python -m salemap.map_view --lat 60.17 --lon 24.94 [--radius 10000 | --all] --out map.html

from __future__ import annotations

import argparse
import html
import logging
import re
import sys
from typing import Iterable, List, Optional

import folium
from branca.element import Element
from geopy.exc import GeopyError
from geopy.geocoders import Nominatim

from .config import SaleMapError
from .geo import DEFAULT_VIEW_RADIUS_M, GeoPoint, filter_nearby
from .stores_geojson import SaleFeature, StoreFileError, load_features

logger = logging.getLogger(__name__)

OSM_TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
OSM_TILE_ATTR = "© OpenStreetMap contributors"
DEFAULT_ZOOM = 15
VIEWER_COLOR = "green"
LOCATION_FALLBACK_MSG = "Can't get your location"

_LATLON_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*[,;\s]\s*(-?\d+(?:\.\d+)?)\s*$")


class ViewerLocationError(SaleMapError):
    pass


def locate_viewer(query: str, geocoder=None) -> GeoPoint:
    """One-shot viewer position from "lat, lon" or an address (Nominatim)."""
    query = (query or "").strip()
    if not query:
        raise ViewerLocationError("no location given")

    m = _LATLON_RE.match(query)
    if m:
        lat, lon = float(m.group(1)), float(m.group(2))
        if not (-90 <= lat <= 90 and -180 <= lon <= 180):
            raise ViewerLocationError(f"coordinates out of range: {lat}, {lon}")
        return GeoPoint(lat, lon)

    geocoder = geocoder or Nominatim(user_agent="salemap")
    try:
        loc = geocoder.geocode(query, timeout=10)
    except GeopyError as e:
        raise ViewerLocationError(f"geocoding failed for {query!r}: {e}") from e
    if loc is None:
        raise ViewerLocationError(f"no match for {query!r}")
    return GeoPoint(float(loc.latitude), float(loc.longitude))


def store_popup_html(f: SaleFeature) -> str:
    return (
        f"<strong>{html.escape(f.name)}</strong><br>"
        f"{html.escape(f.headline)}<br>"
        f'<a href="{html.escape(f.website, quote=True)}" target="_blank" rel="noopener">Website ↗</a>'
    )


def store_card_html(f: SaleFeature) -> str:
    return f'<div class="card">{store_popup_html(f)}</div>'


def cards_html(features: Iterable[SaleFeature]) -> str:
    return "\n".join(store_card_html(f) for f in features)


def build_sales_map(viewer: GeoPoint, features: Iterable[SaleFeature], zoom: int = DEFAULT_ZOOM) -> folium.Map:
    """Map centered on the viewer with a "You are here" marker plus one marker per store."""
    m = folium.Map(location=[viewer.latitude, viewer.longitude], zoom_start=zoom, tiles=None)
    folium.TileLayer(OSM_TILE_URL, name="OpenStreetMap", attr=OSM_TILE_ATTR, control=False).add_to(m)

    folium.Marker(
        location=[viewer.latitude, viewer.longitude],
        popup=folium.Popup("You are here", max_width=200),
        icon=folium.Icon(color=VIEWER_COLOR),
    ).add_to(m)

    for f in features:
        folium.Marker(
            location=[f.latitude, f.longitude],
            popup=folium.Popup(store_popup_html(f), max_width=300),
            tooltip=f.name,
        ).add_to(m)
    return m


def nearby_sales(viewer: GeoPoint, features: List[SaleFeature],
                 radius_m: Optional[float] = DEFAULT_VIEW_RADIUS_M) -> List[SaleFeature]:
    hits = filter_nearby(viewer, features, radius_m)
    logger.info("Total features: %d after filter: %d", len(features), len(hits))
    return hits


def export_html(viewer: GeoPoint, features: List[SaleFeature], out_path: str) -> folium.Map:
    """Standalone page: the map plus a list of cards underneath."""
    m = build_sales_map(viewer, features)
    m.get_root().html.add_child(Element(
        "<style>.card{margin:8px;padding:8px;border:1px solid #ddd;border-radius:6px;font-family:sans-serif;}</style>"
        f'<div id="list">{cards_html(features)}</div>'
    ))
    m.save(out_path)
    return m


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Render a static HTML map of nearby sales.")
    p.add_argument("--data", default="stores.geojson")
    p.add_argument("--lat", type=float, required=True)
    p.add_argument("--lon", type=float, required=True)
    g = p.add_mutually_exclusive_group()
    g.add_argument("--radius", type=float, default=DEFAULT_VIEW_RADIUS_M, help="meters")
    g.add_argument("--all", action="store_true", help="show every store, no distance filter")
    p.add_argument("--out", default="map.html")
    p.add_argument("--loglevel", default="INFO")
    args = p.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.loglevel.upper(), logging.INFO))

    try:
        features = load_features(args.data)
    except StoreFileError as e:
        logger.error("%s", e)
        return 1

    viewer = GeoPoint(args.lat, args.lon)
    hits = nearby_sales(viewer, features, None if args.all else args.radius)
    export_html(viewer, hits, args.out)
    logger.info("Saved HTML → %s", args.out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
