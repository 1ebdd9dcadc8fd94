"""
- Models: Data structures (OsmReference, GeoPoint, NominatimPlaceRecord, ...)
- Base classes: Abstract interfaces
- Normalizers: OSM identifier normalization
- Geo: Coordinate validation, distances and bounding boxes
- Throttling: Rate limiting for API calls
- Gateway: Rate-limited Nominatim HTTP access
- Geocoders: Batched lookup and iterative area search
"""

from .models import (
    OsmType,
    OsmReference,
    GeoPoint,
    BoundingBox,
    NominatimPlaceRecord,
)

from .base import (
    RateLimiter,
    Gateway,
)

from .normalizers import (
    OSM_TYPE_ALIASES,
    parse_osm_type,
    parse_osm_id,
    parse_osm_class,
)

from .geo import (
    EARTH_MEAN_RADIUS_MILES,
    MIN_SEARCH_RADIUS_MILES,
    MAX_SEARCH_RADIUS_MILES,
    parse_latitude,
    normalize_longitude,
    parse_search_radius,
    haversine_distance_miles,
    distance_between_points_miles,
    compute_bounding_box,
)

from .throttling import (
    PreCallDelayGate,
    SimpleRateGate,
    TokenBucket,
    NoOpRateLimiter,
)

from .gateway import (
    NominatimGateway,
    RetryPolicy,
    RetryingGateway,
    get_default_gateway,
    set_default_gateway,
)

from .geocoders import (
    NominatimClient,
    nominatim_lookup,
    nominatim_search,
    nominatim_search_within,
)

__all__ = [
    # Models
    "OsmType",
    "OsmReference",
    "GeoPoint",
    "BoundingBox",
    "NominatimPlaceRecord",
    # Base classes
    "RateLimiter",
    "Gateway",
    # Normalizers
    "OSM_TYPE_ALIASES",
    "parse_osm_type",
    "parse_osm_id",
    "parse_osm_class",
    # Geo
    "EARTH_MEAN_RADIUS_MILES",
    "MIN_SEARCH_RADIUS_MILES",
    "MAX_SEARCH_RADIUS_MILES",
    "parse_latitude",
    "normalize_longitude",
    "parse_search_radius",
    "haversine_distance_miles",
    "distance_between_points_miles",
    "compute_bounding_box",
    # Throttling
    "PreCallDelayGate",
    "SimpleRateGate",
    "TokenBucket",
    "NoOpRateLimiter",
    # Gateway
    "NominatimGateway",
    "RetryPolicy",
    "RetryingGateway",
    "get_default_gateway",
    "set_default_gateway",
    # Geocoders
    "NominatimClient",
    "nominatim_lookup",
    "nominatim_search",
    "nominatim_search_within",
]
