"""Catalog search: query normalization, relevance scoring and distance-bounded searches."""

from .models import CatalogLocation, CatalogPlace, SortOrder
from .catalog import CatalogReader, InMemoryCatalog, JsonCatalog
from .normalizers import (
    US_STATE_NAMES,
    tokenize_search_text,
    expand_state_abbreviations,
    normalize_search_query,
)
from .scoring import compute_search_match_score
from .searcher import DEFAULT_NEAR_SORT_ORDER, PlaceSearcher

__all__ = [
    "CatalogLocation",
    "CatalogPlace",
    "SortOrder",
    "CatalogReader",
    "InMemoryCatalog",
    "JsonCatalog",
    "US_STATE_NAMES",
    "tokenize_search_text",
    "expand_state_abbreviations",
    "normalize_search_query",
    "compute_search_match_score",
    "DEFAULT_NEAR_SORT_ORDER",
    "PlaceSearcher",
]
