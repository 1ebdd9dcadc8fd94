from __future__ import annotations

import json

import pytest

from nearby_places.search import (
    CatalogPlace,
    InMemoryCatalog,
    JsonCatalog,
    PlaceSearcher,
    SortOrder,
    compute_search_match_score,
    expand_state_abbreviations,
    normalize_search_query,
    tokenize_search_text,
)
from nearby_places.utils.errors import (
    CatalogValidationError,
    InvalidLatitude,
    InvalidQuery,
    InvalidRadius,
)

CENTER = (40.0, -75.0)
# Degrees of latitude per mile on a 3958.8-mile sphere
DEG_PER_MILE = 1 / 69.0933


def _place(place_id, name=None, description=None, address=None, miles_north=0.0):
    return {
        "_id": place_id,
        "name": name,
        "description": description,
        "location": {
            "address": address,
            "latitude": CENTER[0] + miles_north * DEG_PER_MILE,
            "longitude": CENTER[1],
        },
    }


# -- query normalizer ------------------------------------------------------

def test_normalize_query_expands_states_without_duplicates():
    assert normalize_search_query("NJ pizza!!") == ["nj", "new", "jersey", "pizza"]


def test_normalize_query_dedupes_repeated_words():
    assert normalize_search_query("pizza, PIZZA; new york NY") == ["pizza", "new", "york", "ny"]


@pytest.mark.parametrize("query", ["", "   ", None, 42])
def test_normalize_query_rejects_blank_or_non_string(query):
    with pytest.raises(InvalidQuery):
        normalize_search_query(query)


def test_tokenize_splits_on_punctuation_and_underscores():
    assert tokenize_search_text("Joe's_Pizza & Grill") == ["joe", "s", "pizza", "grill"]
    assert tokenize_search_text("") == []


def test_expand_state_abbreviations_multiword():
    assert expand_state_abbreviations(["dc"]) == ["dc", "district", "of", "columbia"]


# -- relevance scorer ------------------------------------------------------

def test_score_counts_matches_per_field():
    place = CatalogPlace.model_validate(
        _place("lp", name="Liberty Park", description="Accessible park in NJ")
    )

    assert compute_search_match_score(normalize_search_query("nj park"), place) == 3


def test_score_matches_token_substrings():
    place = CatalogPlace.model_validate(_place("b", name="Bookstore"))

    assert compute_search_match_score(["book"], place) == 1
    assert compute_search_match_score(["bookstores"], place) == 0


def test_score_does_not_expand_states_in_place_text():
    place = CatalogPlace.model_validate(_place("c", description="Cafe in NJ"))

    assert compute_search_match_score(["jersey"], place) == 0


# -- search orchestrator ---------------------------------------------------

@pytest.fixture
def catalog():
    return InMemoryCatalog([
        _place("a", name="Joe's Pizza", description="Thin crust pizza", address="1 Main St, Trenton, NJ", miles_north=1),
        _place("b", name="City Library", description="Quiet reading rooms", address="2 Elm St", miles_north=3),
        _place("c", name="Pizza Palace", description="Family restaurant", miles_north=5),
        _place("d", name="Far Away Pizza", description="Deep dish", miles_north=50),
    ])


def test_search_no_match_returns_empty(catalog):
    assert PlaceSearcher(catalog).search("zzzznomatch") == []


def test_search_ranks_by_score_and_keeps_read_order_for_ties(catalog):
    # a: name + description; c and d: name only, in catalog order
    assert PlaceSearcher(catalog).search("pizza") == ["a", "c", "d"]


def test_search_deterministic_breaks_ties_by_id():
    catalog = InMemoryCatalog([_place("z", name="Park"), _place("m", name="Park")])

    assert PlaceSearcher(catalog).search("park") == ["z", "m"]
    assert PlaceSearcher(catalog).search("park", deterministic=True) == ["m", "z"]


def test_search_near_filters_without_reranking(catalog):
    assert PlaceSearcher(catalog).search_near("pizza", *CENTER, 10) == ["a", "c"]


def test_search_near_validates_location_and_radius(catalog):
    searcher = PlaceSearcher(catalog)

    with pytest.raises(InvalidLatitude):
        searcher.search_near("pizza", 95, 0, 10)
    with pytest.raises(InvalidRadius):
        searcher.search_near("pizza", *CENTER, 401)


def test_find_all_near_is_farthest_first_by_default(catalog):
    assert PlaceSearcher(catalog).find_all_near(*CENTER, 10) == ["c", "b", "a"]


def test_find_all_near_nearest_first_on_request(catalog):
    searcher = PlaceSearcher(catalog)

    assert searcher.find_all_near(*CENTER, 10, sort_order=SortOrder.NEAREST_FIRST) == ["a", "b", "c"]
    assert searcher.find_all_near(*CENTER, 10, sort_order="nearest-first") == ["a", "b", "c"]


def test_find_all_near_rejects_bad_radius(catalog):
    with pytest.raises(InvalidRadius):
        PlaceSearcher(catalog).find_all_near(*CENTER, 0.01)


# -- catalog readers -------------------------------------------------------

def test_catalog_place_accepts_id_alias_and_numeric_ids():
    place = CatalogPlace.model_validate({"_id": 17, "location": {"latitude": "40.5", "longitude": 181}})

    assert place.id == "17"
    assert place.location.latitude == 40.5
    assert place.location.longitude == -179.0
    assert place.text_fields() == [None, None, None]


def test_invalid_records_raise_catalog_validation_error():
    catalog = InMemoryCatalog([
        _place("ok", name="Fine"),
        {"_id": "bad", "location": {"latitude": 120, "longitude": 0}},
        {"name": "no id", "location": {"latitude": 1, "longitude": 1}},
    ])

    with pytest.raises(CatalogValidationError) as excinfo:
        catalog.read_all()

    err = excinfo.value
    assert err.source == "memory"
    assert len(err.errors) == 2
    assert {e["loc"][0] for e in err.errors} == {1, 2}
    assert "1.location.latitude" in err.summary()


def test_json_catalog_reads_file(tmp_path):
    path = tmp_path / "places.json"
    path.write_text(json.dumps([_place("a", name="Harbor Museum"), _place("b", name="Harbor Cafe")]))

    assert PlaceSearcher(JsonCatalog(path)).search("museum") == ["a"]


def test_json_catalog_requires_array(tmp_path):
    path = tmp_path / "places.json"
    path.write_text(json.dumps({"places": []}))

    with pytest.raises(CatalogValidationError):
        JsonCatalog(path).read_all()
