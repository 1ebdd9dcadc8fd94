"""
Core data models for Nominatim lookups and area searches.

These immutable, frozen dataclasses are the contract between the gateway,
the batch coordinator and the callers of the public geocoding operations.
"""

import copy
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class OsmType(StrEnum):
    """OpenStreetMap element type, stored as its single-letter code."""
    NODE = "N"
    WAY = "W"
    RELATION = "R"


def _frozen_mapping(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(copy.deepcopy(dict(value or {})))


@dataclass(frozen=True)
class OsmReference:
    """A normalized (type, id) pair identifying one OSM element."""
    type: OsmType
    id: str

    @classmethod
    def parse(cls, osm_type: Any, osm_id: Any) -> "OsmReference":
        from .normalizers import parse_osm_type, parse_osm_id

        return cls(type=parse_osm_type(osm_type), id=parse_osm_id(osm_id))

    def __str__(self) -> str:
        return f"{self.type.value}{self.id}"


@dataclass(frozen=True)
class GeoPoint:
    """A validated latitude/longitude pair in decimal degrees."""
    latitude: float
    longitude: float

    @classmethod
    def parse(cls, latitude: Any, longitude: Any) -> "GeoPoint":
        from .geo import parse_latitude, normalize_longitude

        return cls(latitude=parse_latitude(latitude), longitude=normalize_longitude(longitude))


@dataclass(frozen=True)
class BoundingBox:
    """
    Padded rectangle around a search center.

    Only ever sent to the provider as an advisory viewbox; results outside
    it are still accepted.
    """
    first: GeoPoint
    second: GeoPoint

    def to_viewbox(self) -> str:
        """Render as Nominatim's ``viewbox`` value (``lon1,lat1,lon2,lat2``)."""
        return (
            f"{self.first.longitude},{self.first.latitude},"
            f"{self.second.longitude},{self.second.latitude}"
        )


@dataclass(frozen=True)
class NominatimPlaceRecord:
    """
    A place resolved through the Nominatim lookup endpoint.

    Only built by the batch lookup coordinator. Mapping fields are deep
    copies of the provider payload exposed through read-only proxies.
    """
    osm_type: OsmType
    osm_id: str
    latitude: float
    longitude: float
    name: Optional[str] = None
    display_name: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    address_tags: Mapping[str, Any] = field(default_factory=dict, hash=False)
    address_type: Optional[str] = None
    extra_tags: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def from_lookup(cls, data: Mapping[str, Any]) -> "NominatimPlaceRecord":
        """
        Build a record from one ``jsonv2`` lookup result.

        Raises:
            InvalidInputError subclasses if the identifiers or coordinates
            in the payload are malformed.
        """
        from .normalizers import parse_osm_type, parse_osm_id
        from .geo import parse_latitude, normalize_longitude

        return cls(
            osm_type=parse_osm_type(data.get("osm_type")),
            osm_id=parse_osm_id(data.get("osm_id")),
            latitude=parse_latitude(data.get("lat")),
            longitude=normalize_longitude(data.get("lon")),
            name=data.get("name"),
            display_name=data.get("display_name"),
            category=data.get("category"),
            subcategory=data.get("type"),
            address_tags=_frozen_mapping(data.get("address")),
            address_type=data.get("addresstype"),
            extra_tags=_frozen_mapping(data.get("extratags")),
        )

    @property
    def reference(self) -> OsmReference:
        return OsmReference(type=self.osm_type, id=self.osm_id)

    def distance_to(self, latitude: float, longitude: float) -> float:
        """Great-circle distance in miles from this place to the given point."""
        from .geo import haversine_distance_miles

        return haversine_distance_miles(self.latitude, self.longitude, latitude, longitude)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage/serialization."""
        return {
            "osm_type": self.osm_type.value,
            "osm_id": self.osm_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "name": self.name,
            "display_name": self.display_name,
            "category": self.category,
            "subcategory": self.subcategory,
            "address_tags": copy.deepcopy(dict(self.address_tags)),
            "address_type": self.address_type,
            "extra_tags": copy.deepcopy(dict(self.extra_tags)),
        }
