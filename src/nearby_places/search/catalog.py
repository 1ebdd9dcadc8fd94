"""Catalog readers: the read-only source of places that searches rank.

The search core never writes to the catalog. Each reader returns a fresh
snapshot of validated ``CatalogPlace`` models per call, in the order the
underlying store produced them.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, ClassVar, Iterable, Mapping

from pydantic import ValidationError

from .models import CatalogPlace
from ..utils.errors import CatalogValidationError

logger = logging.getLogger(__name__)


class CatalogReader(ABC):
    """Abstract base for catalog readers.

    Subclasses set a SOURCE label and implement ``_read_raw()`` to return
    the raw place records; ``read_all()`` validates them.

    Usage:
        catalog = JsonCatalog("places.json")
        places = catalog.read_all()
    """

    SOURCE: ClassVar[str] = "catalog"

    @abstractmethod
    def _read_raw(self) -> Iterable[Mapping[str, Any] | CatalogPlace]:
        """Return raw place records (mappings or already-built models)."""
        ...

    def read_all(self) -> list[CatalogPlace]:
        """Read and validate every catalog place.

        Raises:
            CatalogValidationError: if any record fails validation
        """
        return self._validate_records(self._read_raw())

    def _validate_records(self, rows: Iterable[Mapping[str, Any] | CatalogPlace]) -> list[CatalogPlace]:
        """Validate raw rows against the CatalogPlace model."""
        places = []
        errors: list[dict[str, Any]] = []
        first_error: ValidationError | None = None
        for i, row in enumerate(rows):
            if isinstance(row, CatalogPlace):
                places.append(row)
                continue
            try:
                places.append(CatalogPlace.model_validate(row, strict=False))
            except ValidationError as e:
                first_error = first_error or e
                errors.extend({**err, "loc": (i, *err.get("loc", ()))} for err in e.errors())

        if errors:
            logger.error(
                f"Validation of {self.SOURCE} catalog failed",
                extra={"source": self.SOURCE, "error_count": len(errors)},
            )
            raise CatalogValidationError(self.SOURCE, errors, original=first_error)
        return places


class InMemoryCatalog(CatalogReader):
    """Catalog over a list of records held in memory (tests, embedding callers)."""

    SOURCE = "memory"

    def __init__(self, records: Iterable[Mapping[str, Any] | CatalogPlace]):
        self._records = list(records)

    def _read_raw(self):
        return list(self._records)


class JsonCatalog(CatalogReader):
    """Catalog stored as a JSON array of place records.

    Records follow the catalog document shape
    ``{"_id" | "id", "name", "description", "location": {"address", "latitude", "longitude"}}``.
    The file is re-read on every call so searches see the current snapshot.
    """

    SOURCE = "json"

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read_raw(self):
        with open(self.path, "r", encoding="utf8") as fh:
            data = json.load(fh)
        if not isinstance(data, list):
            raise CatalogValidationError(
                self.SOURCE,
                [{"loc": (), "msg": f"expected a JSON array in {self.path}", "type": "list_type"}],
            )
        logger.debug(f"Read {len(data)} catalog records from {self.path}")
        return data
