"""
State aggregation - groups resolved rows by state and averages their numbers.

Each state gets one StateRecord: seeded from the first row assigned to it,
then fed running sums until finalize() turns the sums into per-field
averages and freezes the record. Memory stays O(states), not O(rows).
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from .constants import COUNT_FIELD, EXCLUDED_COLUMNS, STATE_FIELD
from .field_detector import FieldMapping
from .geocoding import gather_bounded
from .sanitizer import has_valid_coordinates
from .utils import normalize_state_name, to_finite_float

logger = logging.getLogger("geoviz")


class StateRecord:
    """Running aggregate for one state. Read-only once finalized."""

    def __init__(self, state: str, latitude=None, longitude=None):
        self.state = state
        self.latitude = latitude
        self.longitude = longitude
        self.count = 0

        # First-seen value per field; also fixes the output column order
        self.values: Dict[str, Any] = {}
        # Running sums of fields that have been numeric so far
        self.sums: Dict[str, float] = {}
        # Fields that failed numeric coercion after being seen
        self.failed: Set[str] = set()

        self._finalized: Optional[Dict[str, Any]] = None

    @classmethod
    def seed(cls, state: str, row: Dict[str, Any], skip: Iterable[str] = ()) -> "StateRecord":
        """Create the record from the first row that maps to `state`."""
        record = cls(state, row.get("latitude"), row.get("longitude"))
        record.count = 1
        skip = set(skip)
        for key, value in row.items():
            if key in EXCLUDED_COLUMNS or key in skip:
                continue
            record.values[key] = value
            number = to_finite_float(value)
            if number is not None:
                record.sums[key] = number
        return record

    @property
    def is_finalized(self) -> bool:
        return self._finalized is not None

    def add(self, row: Dict[str, Any], skip: Iterable[str] = ()):
        """Fold another row of the same state into the running sums."""
        if self.is_finalized:
            raise RuntimeError(f"StateRecord {self.state} is finalized")

        self.count += 1
        skip = set(skip)
        for key, value in row.items():
            if key in EXCLUDED_COLUMNS or key in skip:
                continue
            number = to_finite_float(value)

            if key not in self.values:
                # Field absent from earlier rows
                self.values[key] = value
                if number is not None:
                    self.sums[key] = number
                continue

            if key in self.sums:
                if number is None:
                    self.failed.add(key)
                else:
                    self.sums[key] += number
            elif number is not None:
                # Text earlier, a number now
                self.failed.add(key)

    def average(self, key: str) -> float:
        if key in self.failed:
            return 0.0
        return self.sums[key] / self.count

    def finalize(self) -> Dict[str, Any]:
        """
        Divide sums by count and freeze the record.

        Returns {state, <fields...>, latitude, longitude, count}. Fields that
        were never numeric keep their first-seen value; fields that failed
        coercion at any point finalize to 0.
        """
        if self._finalized is None:
            result = {STATE_FIELD: self.state}
            for key, value in self.values.items():
                if key in self.sums or key in self.failed:
                    result[key] = self.average(key)
                else:
                    result[key] = value
            result["latitude"] = self.latitude
            result["longitude"] = self.longitude
            result[COUNT_FIELD] = self.count
            self._finalized = result
        return dict(self._finalized)


def state_skip_fields(mapping: Optional[FieldMapping]) -> Tuple[str, ...]:
    """Columns folded into the state key instead of being aggregated."""
    if mapping and mapping.location_kind == "state" and mapping.location_field:
        return (mapping.location_field,)
    return ()


async def resolve_state_keys(
    rows: List[Dict[str, Any]],
    mapping: FieldMapping,
    geocoder,
    concurrency: int = 0,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> List[Optional[str]]:
    """
    Work out the state key of every row, in row order.

    A state-like location column is used directly. Everything else (city or
    county names already geocoded to coordinates, or bare coordinates) is
    reverse geocoded; each distinct coordinate is looked up once. None means
    the state could not be determined.
    """
    keys: List[Optional[str]] = [None] * len(rows)
    pending: Dict[Tuple[float, float], List[int]] = {}

    for index, row in enumerate(rows):
        if mapping.location_kind == "state":
            key = normalize_state_name(row.get(mapping.location_field))
            if key:
                keys[index] = key
                continue
        if has_valid_coordinates(row):
            pending.setdefault((row["latitude"], row["longitude"]), []).append(index)

    if pending:
        coordinates = list(pending.keys())
        names = await gather_bounded(
            coordinates,
            lambda coord: geocoder.reverse(coord[0], coord[1]),
            concurrency=concurrency,
            on_done=on_progress,
        )
        for coord, name in zip(coordinates, names):
            key = normalize_state_name(name)
            for index in pending[coord]:
                keys[index] = key
        logger.info(f"Reverse geocoded {len(coordinates)} distinct coordinates")

    missing = sum(1 for key in keys if key is None)
    if missing:
        logger.info(f"State could not be determined for {missing} rows")
    return keys


def build_state_records(
    rows: List[Dict[str, Any]],
    keys: List[Optional[str]],
    skip: Iterable[str] = (),
) -> Dict[str, StateRecord]:
    """Group rows into StateRecords (first-seen order). Rows keyed None are skipped."""
    records: Dict[str, StateRecord] = {}
    skip = tuple(skip)
    for row, key in zip(rows, keys):
        if not key:
            continue
        if key in records:
            records[key].add(row, skip)
        else:
            records[key] = StateRecord.seed(key, row, skip)
    return records


def aggregate_states(
    rows: List[Dict[str, Any]],
    keys: List[Optional[str]],
    skip: Iterable[str] = (),
) -> List[Dict[str, Any]]:
    """Aggregate rows by state key and return the finalized table."""
    records = build_state_records(rows, keys, skip)
    table = [record.finalize() for record in records.values()]
    logger.info(f"Aggregated {len(rows)} rows into {len(table)} states")
    return table
