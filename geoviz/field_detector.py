"""
Field detection - guesses which columns of an upload hold coordinates or
place names by checking the first row against ranked alias tables.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .constants import FIELD_ALIASES, LOCATION_ALIASES
from .errors import MissingLocationInfo

logger = logging.getLogger("geoviz")


@dataclass(frozen=True)
class FieldMapping:
    """Detected column names for one dataset. Computed once per upload."""

    latitude_field: Optional[str] = None
    longitude_field: Optional[str] = None
    location_field: Optional[str] = None
    location_kind: Optional[str] = None  # "city", "county" or "state"
    geometry_field: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        """True when both latitude and longitude columns were found."""
        return bool(self.latitude_field and self.longitude_field)

    @property
    def has_location_info(self) -> bool:
        return self.has_coordinates or bool(self.location_field) or bool(self.geometry_field)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitudeField": self.latitude_field,
            "longitudeField": self.longitude_field,
            "locationField": self.location_field,
            "locationKind": self.location_kind,
            "geometryField": self.geometry_field,
        }


def first_alias(row: Dict[str, Any], aliases: List[str]) -> Optional[str]:
    """Return the first alias that is a key of row (case-sensitive), or None."""
    for alias in aliases:
        if alias in row:
            return alias
    return None


def detect_fields(first_row: Dict[str, Any]) -> FieldMapping:
    """
    Build the FieldMapping for a dataset from its first row.

    Raises:
        MissingLocationInfo: no coordinate pair, place name or point
            geometry column exists, so nothing can be placed on the map.
    """
    first_row = first_row or {}

    latitude_field = first_alias(first_row, FIELD_ALIASES["latitude"])
    longitude_field = first_alias(first_row, FIELD_ALIASES["longitude"])
    geometry_field = first_alias(first_row, FIELD_ALIASES["geometry"])

    location_field = None
    location_kind = None
    for alias, kind in LOCATION_ALIASES:
        if alias in first_row:
            location_field, location_kind = alias, kind
            break

    mapping = FieldMapping(
        latitude_field=latitude_field,
        longitude_field=longitude_field,
        location_field=location_field,
        location_kind=location_kind,
        geometry_field=geometry_field,
    )

    if not mapping.has_location_info:
        logger.warning(f"No location columns among: {list(first_row.keys())[:20]}")
        raise MissingLocationInfo("No valid location information found in the dataset.")

    logger.debug(f"Detected fields: {mapping.to_dict()}")
    return mapping
