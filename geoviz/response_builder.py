"""
Response building functions.
Handles GeoJSON marker construction and the upload/selection responses.
"""

import logging
from typing import Any, Dict, List, Optional

from .constants import COUNT_FIELD, STATE_FIELD
from .utils import clean_nans

logger = logging.getLogger("geoviz")


def build_marker_feature(record: Dict[str, Any], selected: bool = False) -> Optional[Dict[str, Any]]:
    """One Point feature per aggregated state, or None without coordinates."""
    latitude = record.get("latitude")
    longitude = record.get("longitude")
    if latitude is None or longitude is None:
        return None
    state = record.get(STATE_FIELD)
    return {
        "type": "Feature",
        "geometry": {
            "type": "Point",
            "coordinates": [longitude, latitude],  # GeoJSON order
        },
        "properties": {
            "state": state,
            "displayState": state.title() if state else "Unnamed Location",
            "count": record.get(COUNT_FIELD, 0),
            "selected": selected,
        },
    }


def build_marker_collection(records: List[Dict[str, Any]], selected_states=()) -> Dict[str, Any]:
    """
    GeoJSON FeatureCollection of state markers for the map widget.

    Clicking a marker should POST its `state` property to /select.
    """
    selected_states = set(selected_states or ())
    features = []
    skipped = 0
    for record in records:
        feature = build_marker_feature(record, record.get(STATE_FIELD) in selected_states)
        if feature is None:
            skipped += 1
            continue
        features.append(feature)
    if skipped:
        logger.debug(f"{skipped} states have no representative coordinate")
    return {"type": "FeatureCollection", "features": features}


def build_upload_response(result, generation: int, selected_states=()) -> Dict[str, Any]:
    """Response body for a processed upload (including no-valid-data results)."""
    response = {
        "status": result.status,
        "message": result.message,
        "generation": generation,
        "fields": result.mapping.to_dict() if result.mapping else None,
        "summary": result.summary,
        "columns": result.classification.to_dict(),
        "globalMinMax": {column: bounds.to_dict() for column, bounds in result.min_max.items()},
        "records": result.records,
        "geojson": build_marker_collection(result.records, selected_states),
        "rowsIn": result.rows_in,
        "rowsLocated": len(result.rows),
    }
    return clean_nans(response)


def build_selection_response(selected: List[str], chart: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Response body after a marker click."""
    return clean_nans({
        "selected": list(selected),
        "message": ", ".join(s.title() for s in selected) if selected else "No location selected",
        "chart": chart,
    })
