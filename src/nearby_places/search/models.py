from enum import StrEnum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..geocoding.geo import normalize_longitude, parse_latitude


class SortOrder(StrEnum):
    """Distance ordering for ``find_all_near``."""
    FARTHEST_FIRST = "farthest-first"
    NEAREST_FIRST = "nearest-first"


class CatalogLocation(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    address: Optional[str] = None
    latitude: float
    longitude: float

    @field_validator("latitude", mode="before")
    @classmethod
    def _validate_latitude(cls, value: Any) -> float:
        return parse_latitude(value)

    @field_validator("longitude", mode="before")
    @classmethod
    def _normalize_longitude(cls, value: Any) -> float:
        return normalize_longitude(value)


class CatalogPlace(BaseModel):
    """Read-only snapshot of one catalog place, as handed over by the catalog reader."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: Optional[str] = None
    description: Optional[str] = None
    location: CatalogLocation

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        # Mongo ObjectIds and integer keys are both accepted
        if value is None or isinstance(value, bool):
            raise ValueError("place id is required")
        value = str(value).strip()
        if not value:
            raise ValueError("place id cannot be empty")
        return value

    def text_fields(self) -> list[Optional[str]]:
        """Scored fields in scoring order: address, name, description."""
        return [self.location.address, self.name, self.description]
