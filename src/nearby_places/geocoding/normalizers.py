"""
OSM identifier normalizers.

Canonicalizes the OSM type, id and class values that arrive from callers
and from the Nominatim API before they are used in lookups.
"""

from typing import Any, Mapping

from .models import OsmType
from ..utils.errors import InvalidOsmClass, InvalidOsmId, InvalidOsmType

# Accepted spellings of each OSM type (matched after trim + lower-case)
OSM_TYPE_ALIASES: Mapping[str, OsmType] = {
    "n": OsmType.NODE,
    "node": OsmType.NODE,
    "w": OsmType.WAY,
    "way": OsmType.WAY,
    "r": OsmType.RELATION,
    "relation": OsmType.RELATION,
}


def parse_osm_type(osm_type: Any) -> OsmType:
    """
    Parse an OSM type into its single-letter code.

    Accepts the full names ("node", "way", "relation") and the single-letter
    abbreviations in any case. Leading and trailing whitespace is ignored.

    Raises:
        InvalidOsmType: if the value is not a string or not a known type
    """
    if not isinstance(osm_type, str):
        raise InvalidOsmType(f"Expected a string for OSM type, got {type(osm_type).__name__}", osm_type)

    key = osm_type.strip().lower()
    if not key:
        raise InvalidOsmType("OSM type cannot be empty", osm_type)

    try:
        return OSM_TYPE_ALIASES[key]
    except KeyError:
        raise InvalidOsmType(f"Invalid OSM type {osm_type!r}", osm_type) from None


def parse_osm_id(osm_id: Any) -> str:
    """
    Parse an OSM id into its string form.

    Nominatim hands ids back as numbers, but ids are kept as strings
    everywhere else.

    Raises:
        InvalidOsmId: on None, an empty string, or an unsupported type
    """
    if isinstance(osm_id, bool):
        raise InvalidOsmId("OSM ID cannot be a boolean", osm_id)
    if isinstance(osm_id, int):
        return str(osm_id)
    if isinstance(osm_id, float):
        if not osm_id.is_integer():
            raise InvalidOsmId(f"OSM ID must be a whole number, got {osm_id}", osm_id)
        return str(int(osm_id))
    if osm_id is None:
        raise InvalidOsmId("OSM ID is required", osm_id)
    if not isinstance(osm_id, str):
        raise InvalidOsmId(f"Expected a string or number for OSM ID, got {type(osm_id).__name__}", osm_id)

    osm_id = osm_id.strip()
    if not osm_id:
        raise InvalidOsmId("OSM ID cannot be an empty string", osm_id)
    return osm_id


def parse_osm_class(osm_class: Any) -> str:
    """Parse an OSM class (e.g. "amenity") into its lower-case form."""
    if not isinstance(osm_class, str):
        raise InvalidOsmClass(f"Expected a string for OSM class, got {type(osm_class).__name__}", osm_class)

    osm_class = osm_class.strip()
    if not osm_class:
        raise InvalidOsmClass("OSM class cannot be an empty string", osm_class)
    return osm_class.lower()
