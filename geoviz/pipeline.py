"""
Upload pipeline - runs the preprocessing and aggregation stages in order.

raw rows -> detect_fields -> drop_incomplete_rows -> resolve_coordinates
-> drop_unresolved_rows -> resolve_state_keys -> aggregate_states
-> classify_columns / compute_global_min_max

Every stage takes the previous stage's output plus the geocoder handle; the
derived state of one upload lives in a single PipelineResult.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .aggregation import aggregate_states, resolve_state_keys, state_skip_fields
from .constants import MAX_ROWS
from .coordinates import resolve_coordinates
from .errors import NoValidData
from .field_detector import FieldMapping, detect_fields
from .sanitizer import drop_incomplete_rows, drop_unresolved_rows
from .schema import (
    ColumnClassification,
    MinMax,
    classify_columns,
    compute_global_min_max,
    summarize_dataset,
)

logger = logging.getLogger("geoviz")

# Progress checkpoints (percent)
PROGRESS_START = 0
PROGRESS_LIMITED = 10
PROGRESS_FIELDS = 20
PROGRESS_CLEANED = 30
PROGRESS_RESOLVED = 70
PROGRESS_AGGREGATED = 90
PROGRESS_DONE = 100


class ProgressTracker:
    """
    Monotonic progress percentage for one upload.

    Updates may arrive out of order from concurrent lookups; the value only
    ever moves up and is capped at 100.
    """

    def __init__(self, listener: Optional[Callable[[int], None]] = None):
        self.value = PROGRESS_START
        self.listener = listener

    def update(self, value: float) -> int:
        value = int(min(max(value, 0), PROGRESS_DONE))
        if value > self.value:
            self.value = value
            if self.listener:
                self.listener(self.value)
        return self.value

    def span(self, start: int, end: int) -> Callable[[int, int], None]:
        """Callback mapping (done, total) onto the start..end range."""
        def on_progress(done: int, total: int):
            if total:
                self.update(start + (end - start) * done / total)
        return on_progress

    @property
    def complete(self) -> bool:
        return self.value >= PROGRESS_DONE


@dataclass
class PipelineResult:
    """Everything derived from one upload."""
    mapping: Optional[FieldMapping] = None
    rows: List[Dict[str, Any]] = field(default_factory=list)
    records: List[Dict[str, Any]] = field(default_factory=list)
    classification: ColumnClassification = field(default_factory=ColumnClassification)
    min_max: Dict[str, MinMax] = field(default_factory=dict)
    summary: Dict[str, Any] = field(default_factory=dict)
    rows_in: int = 0
    status: str = "ok"
    message: Optional[str] = None
    error: Optional[NoValidData] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def no_valid_data(cls, message: str, mapping=None, rows_in=0) -> "PipelineResult":
        return cls(
            mapping=mapping,
            rows_in=rows_in,
            summary={"totalRows": 0, "totalColumns": 0, "numericColumns": [], "stringColumns": []},
            status="no_valid_data",
            message=message,
            error=NoValidData(message),
        )

    def find_record(self, state: str) -> Optional[Dict[str, Any]]:
        """Aggregated record for a state name (case-insensitive)."""
        wanted = (state or "").strip().upper()
        for record in self.records:
            if record.get("state") == wanted:
                return record
        return None


async def run_pipeline(
    raw_rows: List[Dict[str, Any]],
    geocoder,
    progress: Optional[ProgressTracker] = None,
    max_rows: int = MAX_ROWS,
    geocode_concurrency: int = 0,
) -> PipelineResult:
    """
    Run the whole preprocessing and aggregation pipeline over one upload.

    Raises:
        MissingLocationInfo: no usable location column (abort the upload)

    Empty stages do not raise: the result carries status "no_valid_data" and
    a NoValidData error instead.
    """
    progress = progress or ProgressTracker()
    progress.update(PROGRESS_START)

    rows = list(raw_rows[:max_rows]) if max_rows else list(raw_rows)
    if len(raw_rows) > len(rows):
        logger.info(f"Limiting upload to the first {len(rows)} of {len(raw_rows)} rows")
    rows_in = len(rows)
    progress.update(PROGRESS_LIMITED)

    if not rows:
        progress.update(PROGRESS_DONE)
        return PipelineResult.no_valid_data("The uploaded dataset has no rows.")

    mapping = detect_fields(rows[0])
    progress.update(PROGRESS_FIELDS)

    clean_rows = drop_incomplete_rows(rows, mapping)
    if not clean_rows:
        progress.update(PROGRESS_DONE)
        return PipelineResult.no_valid_data(
            "No data available after filtering out rows with missing critical fields.",
            mapping=mapping, rows_in=rows_in,
        )
    progress.update(PROGRESS_CLEANED)

    resolved = await resolve_coordinates(
        clean_rows, mapping, geocoder,
        concurrency=geocode_concurrency,
        on_progress=progress.span(PROGRESS_CLEANED, PROGRESS_RESOLVED),
    )
    progress.update(PROGRESS_RESOLVED)

    located = drop_unresolved_rows(resolved)
    if not located:
        progress.update(PROGRESS_DONE)
        return PipelineResult.no_valid_data(
            "No data available after extracting coordinates.",
            mapping=mapping, rows_in=rows_in,
        )

    keys = await resolve_state_keys(
        located, mapping, geocoder,
        concurrency=geocode_concurrency,
        on_progress=progress.span(PROGRESS_RESOLVED, PROGRESS_AGGREGATED),
    )
    records = aggregate_states(located, keys, skip=state_skip_fields(mapping))
    progress.update(PROGRESS_AGGREGATED)

    if not records:
        progress.update(PROGRESS_DONE)
        result = PipelineResult.no_valid_data(
            "No rows could be assigned to a state.", mapping=mapping, rows_in=rows_in,
        )
        result.rows = located
        return result

    classification = classify_columns(records)
    min_max = compute_global_min_max(records, classification.numeric)
    summary = summarize_dataset(records, classification)
    progress.update(PROGRESS_DONE)

    logger.info(
        f"Pipeline complete: {rows_in} rows in, {len(located)} located, {len(records)} states"
    )
    return PipelineResult(
        mapping=mapping,
        rows=located,
        records=records,
        classification=classification,
        min_max=min_max,
        summary=summary,
        rows_in=rows_in,
    )
