from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

from conftest import FakeGateway, search_hit
from nearby_places.geocoding import set_default_gateway
from nearby_places.utils.errors import UNAVAILABLE_MESSAGE, GatewayError

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "search_places.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("search_places", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "places.json"
    path.write_text(json.dumps([
        {"_id": "a", "name": "Riverside Park", "location": {"latitude": 40.0, "longitude": -75.0}},
        {"_id": "b", "name": "Park Diner", "location": {"latitude": 40.05, "longitude": -75.0}},
    ]))
    return path


def test_distance_command(cli, capsys):
    assert cli.main(["distance", "40.7128", "-74.0060", "40.7128", "-74.0060"]) == 0

    assert capsys.readouterr().out.strip() == "0.0000"


def test_catalog_command_prints_ids(cli, capsys, catalog_file):
    assert cli.main(["catalog", "park", "--catalog", str(catalog_file)]) == 0

    assert capsys.readouterr().out.split() == ["a", "b"]


def test_near_command_nearest_first(cli, capsys, catalog_file):
    assert cli.main(["near", "40.0", "-75.0", "10", "--nearest-first", "--catalog", str(catalog_file)]) == 0

    assert capsys.readouterr().out.split() == ["a", "b"]


def test_invalid_input_exits_2(cli, capsys):
    assert cli.main(["distance", "91", "0", "0", "0"]) == 2

    assert "Invalid latitude" in capsys.readouterr().err


def test_gateway_failure_prints_generic_message(cli, capsys):
    class DownGateway(FakeGateway):
        def get_json(self, endpoint, params, raw_params=None, cancel_event=None):
            raise GatewayError("HTTP 503", endpoint=endpoint, http_status=503)

    set_default_gateway(DownGateway())

    assert cli.main(["geocode", "coffee"]) == 1
    assert UNAVAILABLE_MESSAGE in capsys.readouterr().err


def test_geocode_command_prints_records(cli, capsys):
    set_default_gateway(FakeGateway(search_pages=[[search_hit(3)]]))

    assert cli.main(["geocode", "coffee"]) == 0

    assert capsys.readouterr().out.startswith("N30\t")
