import pytest
import requests

from salemap import places_nearby
from salemap.places_nearby import FIELD_MASK, PlaceCandidate, PlacesQueryError, collect_unique_places, search_nearby


class FakeResponse:
    def __init__(self, status=200, payload=None, text=""):
        self.status_code = status
        self.ok = 200 <= status < 300
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _place(pid, name="Shop", site="https://shop.fi", lat=60.17, lng=24.94):
    return PlaceCandidate(pid, name, lat, lng, site)


def test_request_shape(monkeypatch, cfg):
    seen = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        seen.update(url=url, body=json, headers=headers, timeout=timeout)
        return FakeResponse(payload={"places": [{
            "id": "p1",
            "location": {"latitude": 60.1, "longitude": 24.9},
            "displayName": {"text": "Kirja"},
            "websiteUri": "https://kirja.fi",
        }]})

    monkeypatch.setattr(places_nearby.requests, "post", fake_post)
    out = search_nearby((60.17, 24.94), cfg)

    assert out == [PlaceCandidate("p1", "Kirja", 60.1, 24.9, "https://kirja.fi")]
    assert seen["url"] == places_nearby.NEARBY_URL
    assert seen["headers"]["X-Goog-Api-Key"] == "g-key"
    assert seen["headers"]["X-Goog-FieldMask"] == FIELD_MASK
    body = seen["body"]
    assert body["maxResultCount"] == 20
    assert body["includedTypes"] == list(cfg.included_types)
    assert body["locationRestriction"]["circle"] == {
        "center": {"latitude": 60.17, "longitude": 24.94}, "radius": 300}


def test_no_places_key(monkeypatch, cfg):
    monkeypatch.setattr(places_nearby.requests, "post", lambda *a, **k: FakeResponse(payload={}))
    assert search_nearby((0, 0), cfg) == []


def test_missing_display_name_and_website(monkeypatch, cfg):
    monkeypatch.setattr(places_nearby.requests, "post",
                        lambda *a, **k: FakeResponse(payload={"places": [{"id": "x"}]}))
    [p] = search_nearby((0, 0), cfg)
    assert p.name == "(unnamed)" and p.website is None


def test_http_error_raises(monkeypatch, cfg):
    monkeypatch.setattr(places_nearby.requests, "post",
                        lambda *a, **k: FakeResponse(403, text="API key not valid"))
    with pytest.raises(PlacesQueryError, match="403"):
        search_nearby((0, 0), cfg)


def test_transport_error_raises(monkeypatch, cfg):
    def boom(*a, **k):
        raise requests.ConnectionError("dns")

    monkeypatch.setattr(places_nearby.requests, "post", boom)
    with pytest.raises(PlacesQueryError):
        search_nearby((0, 0), cfg)


def test_dedup_first_seen_wins():
    first = _place("shared", name="From center A")
    second = _place("shared", name="From center B")
    unique, raw = collect_unique_places([[_place("a"), first], [second, _place("b")]])
    assert raw == 4
    assert [p.id for p in unique] == ["a", "shared", "b"]
    assert unique[1].name == "From center A"


def test_dedup_drops_missing_ids():
    unique, raw = collect_unique_places([[_place(""), _place("a")]])
    assert [p.id for p in unique] == ["a"] and raw == 2


@pytest.mark.parametrize("payload", [[], "places", {"places": [None]}, {"places": ["p1"]}, {"places": {"id": "p1"}}])
def test_malformed_body_raises(monkeypatch, cfg, payload):
    monkeypatch.setattr(places_nearby.requests, "post", lambda *a, **k: FakeResponse(payload=payload))
    with pytest.raises(PlacesQueryError, match="Nearby search returned"):
        search_nearby((0, 0), cfg)


def test_odd_nested_fields_tolerated(monkeypatch, cfg):
    monkeypatch.setattr(places_nearby.requests, "post", lambda *a, **k: FakeResponse(
        payload={"places": [{"id": "p1", "displayName": "Kirja", "location": None}]}))
    [p] = search_nearby((0, 0), cfg)
    assert (p.name, p.latitude, p.longitude) == ("(unnamed)", None, None)
