"""
Nominatim lookup and search operations.

``NominatimClient`` batches identifier lookups into provider-sized chunks and
runs the iterative, exclusion-aware area search. The module-level
``nominatim_*`` functions use a client over the process-wide gateway.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import quote

from .base import Gateway
from .gateway import get_default_gateway
from .geo import compute_bounding_box, normalize_longitude, parse_latitude, parse_search_radius
from .models import NominatimPlaceRecord, OsmReference
from ..utils.errors import (
    EmptyBatchError,
    GatewayError,
    InvalidInputError,
    InvalidOsmId,
    InvalidQuery,
    PlaceNotFoundError,
    SearchCancelledError,
)

logger = logging.getLogger(__name__)

LOOKUP_ENDPOINT = "/lookup"
SEARCH_ENDPOINT = "/search"

# Provider hard limit on ids per /lookup call
LOOKUP_MAX_IDS_PER_QUERY = 50

# Provider maximum for /search ``limit``
SEARCH_PAGE_SIZE = 40
SEARCH_MIN_ROUNDS = 2
SEARCH_MAX_ROUNDS = 4
SEARCH_COUNTRY_CODES = "us"
SEARCH_LANGUAGE = "en"

TypeIdPair = Union[OsmReference, Tuple[Any, Any], Sequence[Any]]


def _parse_query(query: Any) -> str:
    if not isinstance(query, str):
        raise InvalidQuery(f"Expected a string for search query, got {type(query).__name__}", query)
    query = query.strip()
    if not query:
        raise InvalidQuery("Search query cannot be empty", query)
    return query


def _as_reference(pair: TypeIdPair) -> OsmReference:
    if isinstance(pair, OsmReference):
        return pair
    try:
        # "N1" would otherwise unpack into ("N", "1")
        if isinstance(pair, (str, bytes)):
            raise TypeError
        osm_type, osm_id = pair
    except (TypeError, ValueError):
        raise InvalidOsmId(f"Expected an (osm_type, osm_id) pair, got {pair!r}", pair) from None
    return OsmReference.parse(osm_type, osm_id)


def _chunks(items: List[OsmReference], size: int) -> Iterable[List[OsmReference]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def _in_request_order(records: List[NominatimPlaceRecord], chunk: List[OsmReference]) -> List[NominatimPlaceRecord]:
    """Order records like the requested pairs; unrequested records keep their place at the end."""
    position = {ref: i for i, ref in enumerate(chunk)}
    return sorted(records, key=lambda r: position.get(r.reference, len(chunk)))


def _expect_list(data: Any, endpoint: str) -> list:
    if not isinstance(data, list):
        raise GatewayError(
            f"{endpoint} returned {type(data).__name__}, expected a JSON array",
            endpoint=endpoint,
            body_snippet=str(data)[:200],
        )
    return data


def _search_result_reference(result: Any) -> OsmReference:
    if not isinstance(result, dict):
        raise GatewayError(f"Malformed search result: {result!r}"[:200], endpoint=SEARCH_ENDPOINT)
    try:
        return OsmReference.parse(result.get("osm_type"), result.get("osm_id"))
    except InvalidInputError as e:
        raise GatewayError(
            f"Malformed search result: {e}",
            endpoint=SEARCH_ENDPOINT,
            body_snippet=str(result)[:200],
        ) from e


class NominatimClient:
    """
    Batch lookup and iterative area search over a Gateway.

    Every call validates its input before touching the network, so
    validation errors never cost a request.
    """

    def __init__(self, gateway: Optional[Gateway] = None):
        """
        Initialize the client.

        Args:
            gateway: Gateway to send requests through (defaults to the
                process-wide gateway)
        """
        self.gateway = gateway if gateway is not None else get_default_gateway()
        logger.info(f"Initialized NominatimClient over {type(self.gateway).__name__}")

    def lookup_many(
        self,
        pairs: Iterable[TypeIdPair],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[NominatimPlaceRecord]:
        """
        Resolve (osm_type, osm_id) pairs into place records.

        Pairs are sent in chunks of at most 50, one request per chunk.
        Records come back in the order of the requested pairs.
        An empty input returns [] without any request.

        Raises:
            InvalidOsmType / InvalidOsmId: for a malformed pair
            EmptyBatchError: if a chunk renders to an empty id list
            GatewayError: on provider failure or a malformed record
        """
        references = [_as_reference(p) for p in pairs]
        if not references:
            return []

        records: List[NominatimPlaceRecord] = []
        for chunk in _chunks(references, LOOKUP_MAX_IDS_PER_QUERY):
            osm_ids = ",".join(quote(str(ref), safe="") for ref in chunk)
            if not osm_ids:
                raise EmptyBatchError(f"Lookup chunk of {len(chunk)} pairs rendered no ids")

            logger.debug(f"Looking up chunk of {len(chunk)} places")
            data = self.gateway.get_json(
                LOOKUP_ENDPOINT,
                {
                    # Name variants (language, older names, brand)
                    "namedetails": 1,
                    "addressdetails": 1,
                    "extratags": 1,
                },
                raw_params={"osm_ids": osm_ids},
                cancel_event=cancel_event,
            )
            chunk_records = [self._parse_record(item) for item in _expect_list(data, LOOKUP_ENDPOINT)]
            records.extend(_in_request_order(chunk_records, chunk))

        logger.info(f"Resolved {len(records)} records for {len(references)} requested places")
        return records

    def _parse_record(self, item: Any) -> NominatimPlaceRecord:
        if not isinstance(item, dict):
            raise GatewayError(f"Malformed lookup record: {item!r}"[:200], endpoint=LOOKUP_ENDPOINT)
        try:
            return NominatimPlaceRecord.from_lookup(item)
        except InvalidInputError as e:
            raise GatewayError(
                f"Malformed lookup record: {e}",
                endpoint=LOOKUP_ENDPOINT,
                body_snippet=str(item)[:200],
            ) from e

    def lookup(self, osm_type: Any, osm_id: Any, cancel_event: Optional[threading.Event] = None) -> NominatimPlaceRecord:
        """
        Get the details for one place.

        Raises:
            PlaceNotFoundError: unless the provider returns exactly one record
        """
        reference = OsmReference.parse(osm_type, osm_id)
        records = self.lookup_many([reference], cancel_event=cancel_event)
        if len(records) != 1:
            raise PlaceNotFoundError(f"Expected exactly one place for {reference}, got {len(records)}")
        return records[0]

    def search(self, query: Any, cancel_event: Optional[threading.Event] = None) -> List[NominatimPlaceRecord]:
        """Run one free-text search and resolve its results via lookup."""
        query = _parse_query(query)
        data = self.gateway.get_json(SEARCH_ENDPOINT, {"q": query}, cancel_event=cancel_event)
        references = []
        for d in _expect_list(data, SEARCH_ENDPOINT):
            reference = _search_result_reference(d)
            if reference not in references:
                references.append(reference)
        return self.lookup_many(references, cancel_event=cancel_event)

    def search_within(
        self,
        query: Any,
        latitude: Any,
        longitude: Any,
        radius_miles: Any,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[NominatimPlaceRecord]:
        """
        Search for places near a point.

        One /search call returns at most 40 results and treats the area hint
        as advisory, so several rounds are made, each excluding the provider
        place ids already seen. At least 2 rounds run; if nothing has turned
        up after that, up to 4. The gathered places are resolved via lookup
        and returned nearest first.
        """
        query = _parse_query(query)
        latitude = parse_latitude(latitude)
        longitude = normalize_longitude(longitude)
        radius = parse_search_radius(radius_miles)

        viewbox = compute_bounding_box(latitude, longitude, radius).to_viewbox()
        references = self._collect_area_candidates(query, viewbox, cancel_event)

        records = self.lookup_many(references, cancel_event=cancel_event)
        records.sort(key=lambda r: r.distance_to(latitude, longitude))
        return records

    def _collect_area_candidates(
        self,
        query: str,
        viewbox: str,
        cancel_event: Optional[threading.Event],
    ) -> List[OsmReference]:
        references: List[OsmReference] = []
        seen: set[OsmReference] = set()
        excluded_place_ids: List[str] = []
        excluded_set: set[str] = set()

        rounds = 0
        # An empty page only ends the search once the minimum rounds are done and
        # something has been found; with nothing found, rounds continue to the max.
        while rounds < SEARCH_MIN_ROUNDS or (not references and rounds < SEARCH_MAX_ROUNDS):
            if cancel_event is not None and cancel_event.is_set():
                raise SearchCancelledError(f"Area search cancelled after {rounds} rounds")

            params = {
                "q": query,
                "limit": SEARCH_PAGE_SIZE,
                "dedupe": 1,
                "countrycodes": SEARCH_COUNTRY_CODES,
                "accept-language": SEARCH_LANGUAGE,
                "viewbox": viewbox,
            }
            raw_params = {}
            if excluded_place_ids:
                raw_params["exclude_place_ids"] = ",".join(quote(i, safe="") for i in excluded_place_ids)

            data = _expect_list(
                self.gateway.get_json(SEARCH_ENDPOINT, params, raw_params=raw_params, cancel_event=cancel_event),
                SEARCH_ENDPOINT,
            )
            rounds += 1

            if not data:
                # Provider exhausted for this page; the loop condition decides whether to try again
                logger.debug(f"Search round {rounds} returned no results")
                continue

            new_count = 0
            for d in data:
                reference = _search_result_reference(d)
                place_id = d.get("place_id")
                if place_id is not None and str(place_id) not in excluded_set:
                    excluded_set.add(str(place_id))
                    excluded_place_ids.append(str(place_id))
                if reference not in seen:
                    seen.add(reference)
                    references.append(reference)
                    new_count += 1

            logger.debug(f"Search round {rounds}: {len(data)} results, {new_count} new places")

        logger.info(f"Area search for {query!r} gathered {len(references)} places in {rounds} rounds")
        return references


def nominatim_lookup(osm_type: Any, osm_id: Any) -> NominatimPlaceRecord:
    """Get the details for the place identified by the given OSM type and id."""
    return NominatimClient().lookup(osm_type, osm_id)


def nominatim_search(query: Any) -> List[NominatimPlaceRecord]:
    """Search Nominatim with a free-text query."""
    return NominatimClient().search(query)


def nominatim_search_within(
    query: Any,
    latitude: Any,
    longitude: Any,
    radius_miles: Any,
) -> List[NominatimPlaceRecord]:
    """Search Nominatim for places within ``radius_miles`` of a point, nearest first."""
    return NominatimClient().search_within(query, latitude, longitude, radius_miles)
