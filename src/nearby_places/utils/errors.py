from typing import Any, Optional
from pydantic import ValidationError

UNAVAILABLE_MESSAGE = "Search is currently unavailable. Please try again later."


class PlaceSearchError(Exception):
    """Base class for every error raised by the geocoding and search core."""


class InvalidInputError(PlaceSearchError, ValueError):
    """Caller supplied bad input. Raised before any network call; never retried."""

    label = "Input"

    def __init__(self, message: str, value: Any = None):
        self.value = value
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return f"Invalid {self.label.lower()}: {self}"


class InvalidOsmType(InvalidInputError):
    label = "OSM type"


class InvalidOsmId(InvalidInputError):
    label = "OSM ID"


class InvalidOsmClass(InvalidInputError):
    label = "OSM class"


class InvalidLatitude(InvalidInputError):
    label = "Latitude"


class InvalidLongitude(InvalidInputError):
    label = "Longitude"


class InvalidRadius(InvalidInputError):
    label = "Search radius"


class InvalidQuery(InvalidInputError):
    label = "Search query"


class GatewayError(PlaceSearchError):
    """The geocoding provider could not be reached or answered with an error."""

    def __init__(
        self,
        message: str,
        endpoint: str = "",
        http_status: Optional[int] = None,
        body_snippet: str = "",
    ):
        self.endpoint = endpoint
        self.http_status = http_status
        self.body_snippet = body_snippet
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return UNAVAILABLE_MESSAGE


class EmptyBatchError(PlaceSearchError, RuntimeError):
    """A lookup chunk rendered to an empty id list. This is a batching bug, not bad input."""


class PlaceNotFoundError(PlaceSearchError, LookupError):
    """A single-place lookup did not resolve to exactly one record."""


class SearchCancelledError(PlaceSearchError):
    """The caller's cancel event fired before the operation finished."""


class CatalogValidationError(PlaceSearchError):
    def __init__(self, source: str, errors: list[dict[str, Any]], original: ValidationError | None = None):
        self.source = source
        self.errors = errors
        self.original = original
        msg = f"Validation failed for {len(errors)} catalog records from source '{source}'"

        super().__init__(msg)

    def summary(self, limit: int = 5) -> str:
        """Human-readable summary of the first few validation issues."""
        lines = []
        for err in self.errors[:limit]:
            loc = ".".join(str(p) for p in err.get("loc", []))
            lines.append(f"- {loc}: {err.get('msg')} ({err.get('type')})")
        if len(self.errors) > limit:
            lines.append(f"... ({len(self.errors) - limit} more)")
        return "\n".join(lines)
