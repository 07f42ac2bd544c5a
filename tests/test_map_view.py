from types import SimpleNamespace

import pytest
from geopy.exc import GeocoderUnavailable

from salemap import map_view
from salemap.geo import GeoPoint
from salemap.map_view import (
    ViewerLocationError,
    build_sales_map,
    cards_html,
    locate_viewer,
    nearby_sales,
    store_popup_html,
)
from salemap.stores_geojson import SaleFeature, write_features

VIEWER = GeoPoint(60.1700, 24.9400)
NEAR = SaleFeature("Near <Shop>", "https://near.fi", "-30%", "30%", 24.9405, 60.1705)
FAR = SaleFeature("Far", "https://far.fi", "Sale", None, 25.5000, 60.3000)


class FakeGeocoder:
    def __init__(self, result=None, exc=None):
        self.result, self.exc = result, exc

    def geocode(self, query, timeout=None):
        if self.exc:
            raise self.exc
        return self.result


def test_locate_viewer_from_coordinates():
    assert locate_viewer("60.17, 24.94") == GeoPoint(60.17, 24.94)
    assert locate_viewer("-33.8 151.2") == GeoPoint(-33.8, 151.2)


def test_locate_viewer_out_of_range():
    with pytest.raises(ViewerLocationError):
        locate_viewer("95, 10")


def test_locate_viewer_geocodes_address():
    geo = FakeGeocoder(SimpleNamespace(latitude=60.169, longitude=24.931))
    assert locate_viewer("Kamppi, Helsinki", geocoder=geo) == GeoPoint(60.169, 24.931)


@pytest.mark.parametrize("geocoder", [FakeGeocoder(None), FakeGeocoder(exc=GeocoderUnavailable("down"))])
def test_locate_viewer_failures(geocoder):
    with pytest.raises(ViewerLocationError):
        locate_viewer("Atlantis", geocoder=geocoder)


def test_locate_viewer_empty():
    with pytest.raises(ViewerLocationError):
        locate_viewer("   ")


def test_popup_escapes_html():
    out = store_popup_html(NEAR)
    assert "Near &lt;Shop&gt;" in out
    assert 'href="https://near.fi"' in out


def test_nearby_sales_filters_or_not():
    assert nearby_sales(VIEWER, [NEAR, FAR], 10_000) == [NEAR]
    assert nearby_sales(VIEWER, [NEAR, FAR], None) == [NEAR, FAR]


def _markers(m):
    import folium
    return [c for c in m._children.values() if isinstance(c, folium.Marker)]


def test_empty_collection_renders_viewer_only():
    m = build_sales_map(VIEWER, [])
    markers = _markers(m)
    assert len(markers) == 1
    assert markers[0].location == [60.17, 24.94]
    assert cards_html([]) == ""
    m.get_root().render()


def test_map_has_one_marker_per_store():
    m = build_sales_map(VIEWER, [NEAR, FAR])
    assert len(_markers(m)) == 3
    assert cards_html([NEAR, FAR]).count('class="card"') == 2


def test_export_cli(tmp_path):
    data = tmp_path / "stores.geojson"
    write_features(data, [NEAR, FAR])
    out = tmp_path / "map.html"
    assert map_view.main(["--data", str(data), "--lat", "60.17", "--lon", "24.94", "--out", str(out)]) == 0
    page = out.read_text(encoding="utf-8")
    assert "https://near.fi" in page and "https://far.fi" not in page


def test_export_cli_missing_data(tmp_path):
    assert map_view.main(["--data", str(tmp_path / "none.geojson"), "--lat", "0", "--lon", "0"]) == 1
