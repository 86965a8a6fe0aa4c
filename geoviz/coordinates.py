"""
Coordinate resolution - gives every row a single (latitude, longitude) pair.

Strategies, in priority order per row:
1. Direct latitude/longitude columns (coerced to float, NaN on failure)
2. A WKT-style "POINT (lon lat)" string in the geometry column
3. Forward geocoding of the location-name column

Rows are never modified in place; each resolution returns a new dict with
raw coordinate columns stripped and latitude, longitude and loc_id added.
"""

import logging
import math
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from .constants import COORDINATE_ALIASES, LOC_ID_FIELD
from .field_detector import FieldMapping
from .geocoding import gather_bounded
from .utils import is_blank

logger = logging.getLogger("geoviz")

POINT_PATTERN = re.compile(r"POINT\s*\(\s*([-+.\d]+)\s+([-+.\d]+)\s*\)", re.IGNORECASE)

NULL_COORDINATES = (None, None)


def parse_coordinate(value) -> float:
    """Coerce a raw latitude/longitude cell to float, NaN when it won't parse."""
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return math.nan


def extract_point(text) -> Tuple[Optional[float], Optional[float]]:
    """
    Pull (latitude, longitude) out of a WKT-style point string.

    "POINT (-122.4 37.8)" -> (37.8, -122.4). WKT puts longitude first.
    Returns (None, None) when the text holds no parseable point.
    """
    if not text or not isinstance(text, str):
        return NULL_COORDINATES
    match = POINT_PATTERN.search(text)
    if not match:
        return NULL_COORDINATES
    try:
        longitude = float(match.group(1))
        latitude = float(match.group(2))
    except ValueError:
        return NULL_COORDINATES
    return latitude, longitude


def build_loc_id(row: Dict[str, Any], mapping: FieldMapping, latitude, longitude) -> str:
    """Location name when the row has one, otherwise "lat,lon"."""
    if mapping.location_field and not is_blank(row.get(mapping.location_field)):
        return str(row[mapping.location_field]).strip()
    if latitude is None or longitude is None:
        return ""
    return f"{latitude},{longitude}"


def _finish_row(row: Dict[str, Any], mapping: FieldMapping, latitude, longitude) -> Dict[str, Any]:
    resolved = {key: value for key, value in row.items() if key not in COORDINATE_ALIASES}
    resolved["latitude"] = latitude
    resolved["longitude"] = longitude
    resolved[LOC_ID_FIELD] = build_loc_id(row, mapping, latitude, longitude)
    return resolved


async def resolve_row(row: Dict[str, Any], mapping: FieldMapping, geocoder) -> Dict[str, Any]:
    """Resolve one row to a new row carrying latitude, longitude and loc_id."""
    latitude, longitude = NULL_COORDINATES

    if mapping.has_coordinates:
        latitude = parse_coordinate(row.get(mapping.latitude_field))
        longitude = parse_coordinate(row.get(mapping.longitude_field))
        # A half-parsed pair is no pair
        if math.isnan(latitude) or math.isnan(longitude):
            latitude, longitude = math.nan, math.nan
    elif mapping.geometry_field and not is_blank(row.get(mapping.geometry_field)):
        latitude, longitude = extract_point(row.get(mapping.geometry_field))
    elif mapping.location_field and not is_blank(row.get(mapping.location_field)):
        location_name = str(row[mapping.location_field]).strip()
        coords = await geocoder.forward(location_name)
        if coords:
            latitude, longitude = coords
        else:
            logger.debug(f"No geocoding match for '{location_name}'")

    return _finish_row(row, mapping, latitude, longitude)


async def resolve_coordinates(
    rows: List[Dict[str, Any]],
    mapping: FieldMapping,
    geocoder,
    concurrency: int = 0,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> List[Dict[str, Any]]:
    """
    Resolve every row concurrently; output order matches input order.

    A row whose lookup fails comes back with null coordinates and is dropped
    later by the sanitizer.
    """
    async def worker(row):
        try:
            return await resolve_row(row, mapping, geocoder)
        except Exception as e:
            logger.warning(f"Coordinate resolution failed: {type(e).__name__}: {e}")
            return _finish_row(row, mapping, None, None)

    resolved = await gather_bounded(rows, worker, concurrency=concurrency, on_done=on_progress)
    logger.info(f"Resolved coordinates for {len(resolved)} rows")
    return resolved
