"""
Row sanitizing - the two filtering passes around coordinate resolution.
"""

import logging
import math
from typing import Any, Dict, List

from .field_detector import FieldMapping
from .utils import is_blank

logger = logging.getLogger("geoviz")


def required_fields(mapping: FieldMapping) -> List[str]:
    """
    Fields every row must carry before resolution.

    Nothing is required when coordinates come straight from columns. Otherwise
    the place-name column is required, or the geometry column when it is the
    only location source.
    """
    if mapping.has_coordinates:
        return []
    if mapping.location_field:
        return [mapping.location_field]
    if mapping.geometry_field:
        return [mapping.geometry_field]
    return []


def drop_incomplete_rows(rows: List[Dict[str, Any]], mapping: FieldMapping) -> List[Dict[str, Any]]:
    """Drop rows whose required fields are missing, None or blank."""
    fields = required_fields(mapping)
    if not fields:
        return list(rows)
    kept = [row for row in rows if all(field in row and not is_blank(row[field]) for field in fields)]
    if len(kept) < len(rows):
        logger.info(f"Dropped {len(rows) - len(kept)} rows missing {fields}")
    return kept


def has_valid_coordinates(row: Dict[str, Any]) -> bool:
    latitude = row.get("latitude")
    longitude = row.get("longitude")
    for value in (latitude, longitude):
        if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return True


def drop_unresolved_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop rows whose resolved latitude/longitude are null or not finite."""
    kept = [row for row in rows if has_valid_coordinates(row)]
    if len(kept) < len(rows):
        logger.info(f"Dropped {len(rows) - len(kept)} rows without usable coordinates")
    return kept
