from __future__ import annotations

import sys
from pathlib import Path
from urllib.parse import unquote

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


from nearby_places.geocoding import Gateway, set_default_gateway  # noqa: E402

_TYPE_NAMES = {"N": "node", "W": "way", "R": "relation"}


def lookup_payload(reference: str, lat: float = 40.0, lon: float = -75.0) -> dict:
    """A jsonv2 /lookup record for an "N123"-style reference."""
    return {
        "osm_type": _TYPE_NAMES[reference[0]],
        "osm_id": int(reference[1:]),
        "lat": str(lat),
        "lon": str(lon),
        "name": f"Place {reference}",
        "display_name": f"Place {reference}, Somewhere, USA",
        "category": "amenity",
        "type": "cafe",
        "addresstype": "amenity",
        "address": {"city": "Somewhere", "country_code": "us"},
        "extratags": {},
    }


class FakeGateway(Gateway):
    """
    In-memory gateway.

    /lookup answers with one record per requested id (coordinates from
    ``coordinates`` when given); /search pops the next page from
    ``search_pages``, answering [] once they run out.
    """

    def __init__(self, search_pages=None, coordinates=None):
        self.search_pages = list(search_pages or [])
        self.coordinates = coordinates or {}
        self.calls = []

    def get_json(self, endpoint, params, raw_params=None, cancel_event=None):
        self.calls.append((endpoint, dict(params), dict(raw_params or {})))
        if endpoint == "/lookup":
            ids = [unquote(i) for i in raw_params["osm_ids"].split(",")]
            return [lookup_payload(i, *self.coordinates.get(i, (40.0, -75.0))) for i in ids]
        if endpoint == "/search":
            return self.search_pages.pop(0) if self.search_pages else []
        raise AssertionError(f"unexpected endpoint {endpoint}")

    def calls_to(self, endpoint):
        return [c for c in self.calls if c[0] == endpoint]


def search_hit(place_id: int, osm_type: str = "node", osm_id: int | None = None) -> dict:
    return {"place_id": place_id, "osm_type": osm_type, "osm_id": osm_id if osm_id is not None else place_id * 10}


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture(autouse=True)
def reset_default_gateway():
    set_default_gateway(None)
    yield
    set_default_gateway(None)
