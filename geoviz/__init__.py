"""
geoviz package - Core application logic for GeoViz Explorer.

This package provides:
- Upload parsing (file_loading.py)
- Field detection (field_detector.py)
- Coordinate resolution (coordinates.py)
- Geocoding collaborators (geocoding.py)
- Row sanitizing (sanitizer.py)
- State aggregation (aggregation.py)
- Schema classification and global min/max (schema.py)
- Chart data normalization (charts.py)
- Pipeline orchestration (pipeline.py)
- Per-session upload state (session_cache.py)
- Map markers and responses (response_builder.py, filters.py)
- Settings, logging, utilities and constants
"""

from .logging_analytics import (
    logger,
    log_upload,
    log_error,
)

from .errors import (
    GeoVizError,
    UnsupportedFileType,
    MalformedFile,
    MissingLocationInfo,
    NoValidData,
    GeocodeLookupFailed,
    UnsupportedChartType,
    SessionNotFound,
)

from .file_loading import load_upload
from .field_detector import FieldMapping, detect_fields
from .coordinates import extract_point, resolve_row, resolve_coordinates
from .geocoding import (
    Geocoder,
    MapboxGeocoder,
    StaticGeocoder,
    gather_bounded,
    get_geocoder,
    set_geocoder,
)
from .sanitizer import drop_incomplete_rows, drop_unresolved_rows
from .aggregation import StateRecord, resolve_state_keys, aggregate_states
from .schema import (
    ColumnClassification,
    MinMax,
    classify_columns,
    compute_global_min_max,
    summarize_dataset,
)
from .charts import ChartDataset, normalize_value, build_chart_dataset, build_chart_payload
from .pipeline import PipelineResult, ProgressTracker, run_pipeline
from .session_cache import SessionCache, session_manager
from .filters import unique_values, filter_records
from .response_builder import (
    build_marker_collection,
    build_upload_response,
    build_selection_response,
)

__version__ = "1.0.0"
__all__ = [
    # Logging
    "logger",
    "log_upload",
    "log_error",
    # Errors
    "GeoVizError",
    "UnsupportedFileType",
    "MalformedFile",
    "MissingLocationInfo",
    "NoValidData",
    "GeocodeLookupFailed",
    "UnsupportedChartType",
    "SessionNotFound",
    # Pipeline stages
    "load_upload",
    "FieldMapping",
    "detect_fields",
    "extract_point",
    "resolve_row",
    "resolve_coordinates",
    "drop_incomplete_rows",
    "drop_unresolved_rows",
    "StateRecord",
    "resolve_state_keys",
    "aggregate_states",
    "ColumnClassification",
    "MinMax",
    "classify_columns",
    "compute_global_min_max",
    "summarize_dataset",
    "ChartDataset",
    "normalize_value",
    "build_chart_dataset",
    "build_chart_payload",
    "PipelineResult",
    "ProgressTracker",
    "run_pipeline",
    # Geocoding
    "Geocoder",
    "MapboxGeocoder",
    "StaticGeocoder",
    "gather_bounded",
    "get_geocoder",
    "set_geocoder",
    # Sessions and responses
    "SessionCache",
    "session_manager",
    "unique_values",
    "filter_records",
    "build_marker_collection",
    "build_upload_response",
    "build_selection_response",
]
