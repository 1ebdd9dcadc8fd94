"""
Catalog search orchestration.

``PlaceSearcher`` ranks catalog places by text relevance (``search``),
filters a relevance ranking by distance (``search_near``) or lists every
place inside a radius (``find_all_near``).
"""

from __future__ import annotations

import logging
from typing import Any, List, Tuple

from .catalog import CatalogReader
from .models import CatalogPlace, SortOrder
from .normalizers import normalize_search_query
from .scoring import compute_search_match_score
from ..geocoding.geo import (
    haversine_distance_miles,
    normalize_longitude,
    parse_latitude,
    parse_search_radius,
)

logger = logging.getLogger(__name__)

# find_all_near returns the farthest places first unless told otherwise.
# TODO: confirm with product whether nearest-first should become the default.
DEFAULT_NEAR_SORT_ORDER = SortOrder.FARTHEST_FIRST


class PlaceSearcher:
    """
    Search over a catalog snapshot.

    Every call reads the catalog afresh; nothing is cached or written back.
    """

    def __init__(self, catalog: CatalogReader):
        self.catalog = catalog

    def _rank(self, query: Any, deterministic: bool = False) -> List[CatalogPlace]:
        tokens = normalize_search_query(query)
        places = self.catalog.read_all()

        scored: List[Tuple[int, CatalogPlace]] = []
        for place in places:
            score = compute_search_match_score(tokens, place)
            if score > 0:
                scored.append((score, place))

        # sorted() is stable: equal scores keep catalog read order
        if deterministic:
            scored.sort(key=lambda sp: (-sp[0], sp[1].id))
        else:
            scored.sort(key=lambda sp: -sp[0])

        logger.debug(f"Query {tokens} matched {len(scored)} of {len(places)} places")
        return [place for _, place in scored]

    def search(self, query: Any, deterministic: bool = False) -> List[str]:
        """
        Rank catalog places against a free-text query.

        Args:
            query: Free-text query
            deterministic: Break score ties by place id instead of relying
                on catalog read order

        Returns:
            Ids of places with a positive score, best match first

        Raises:
            InvalidQuery: for a non-string or blank query
        """
        return [place.id for place in self._rank(query, deterministic=deterministic)]

    def search_near(
        self,
        query: Any,
        latitude: Any,
        longitude: Any,
        radius_miles: Any,
        deterministic: bool = False,
    ) -> List[str]:
        """
        Rank like ``search``, then keep only places within ``radius_miles``.

        Distance filters; it never re-ranks.
        """
        latitude = parse_latitude(latitude)
        longitude = normalize_longitude(longitude)
        radius = parse_search_radius(radius_miles)

        return [
            place.id
            for place in self._rank(query, deterministic=deterministic)
            if self._distance(place, latitude, longitude) <= radius
        ]

    def find_all_near(
        self,
        latitude: Any,
        longitude: Any,
        radius_miles: Any,
        sort_order: SortOrder | str = DEFAULT_NEAR_SORT_ORDER,
    ) -> List[str]:
        """
        List every place within ``radius_miles``, ignoring text relevance.

        By default the result is sorted farthest first (see
        ``DEFAULT_NEAR_SORT_ORDER``); pass ``SortOrder.NEAREST_FIRST`` for
        the reverse.
        """
        latitude = parse_latitude(latitude)
        longitude = normalize_longitude(longitude)
        radius = parse_search_radius(radius_miles)
        sort_order = SortOrder(sort_order)

        in_range = []
        for place in self.catalog.read_all():
            distance = self._distance(place, latitude, longitude)
            if distance <= radius:
                in_range.append((distance, place))

        in_range.sort(key=lambda dp: dp[0], reverse=sort_order is SortOrder.FARTHEST_FIRST)
        return [place.id for _, place in in_range]

    @staticmethod
    def _distance(place: CatalogPlace, latitude: float, longitude: float) -> float:
        return haversine_distance_miles(
            latitude, longitude, place.location.latitude, place.location.longitude
        )
