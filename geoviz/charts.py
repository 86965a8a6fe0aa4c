"""
Chart data normalization.

Maps a selected state's numeric values into the display band [0.5, 10] so
bars stay comparable across columns with very different scales, while the
actual values travel alongside for labels and tooltips.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constants import (
    CHART_TYPES,
    DISPLAY_BAND_MAX,
    DISPLAY_BAND_MID,
    DISPLAY_BAND_MIN,
    STATE_FIELD,
)
from .errors import UnsupportedChartType
from .schema import MinMax
from .utils import to_finite_float

# Default Chart.js palette of the map widget
CHART_COLORS = ["#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF", "#FF9F40"]


@dataclass
class ChartDataset:
    """One series: normalized values to draw, actual values to show."""
    label: str
    labels: List[str] = field(default_factory=list)
    normalized: List[float] = field(default_factory=list)
    actual: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "data": list(self.normalized),
            "actualValues": list(self.actual),
        }


def normalize_value(value: float, bounds: Optional[MinMax]) -> float:
    """Map value into the display band using the column's global min/max."""
    if bounds is None:
        return DISPLAY_BAND_MIN
    if bounds.is_flat:
        return DISPLAY_BAND_MID
    try:
        scaled = ((value - bounds.min) / (bounds.max - bounds.min)) * (
            DISPLAY_BAND_MAX - DISPLAY_BAND_MIN
        ) + DISPLAY_BAND_MIN
    except (TypeError, ZeroDivisionError):
        return DISPLAY_BAND_MIN
    if not math.isfinite(scaled):
        return DISPLAY_BAND_MIN
    return scaled


def build_chart_dataset(
    record: Dict[str, Any],
    numeric_columns: List[str],
    min_max: Dict[str, MinMax],
) -> ChartDataset:
    """Chart series for one aggregated record, in numeric_columns order."""
    dataset = ChartDataset(label=str(record.get(STATE_FIELD) or "Unnamed Location"))
    for column in numeric_columns:
        actual = to_finite_float(record.get(column))
        if actual is None:
            actual = 0.0
        dataset.labels.append(column)
        dataset.actual.append(actual)
        dataset.normalized.append(normalize_value(actual, min_max.get(column)))
    return dataset


def build_chart_payload(
    records: List[Dict[str, Any]],
    numeric_columns: List[str],
    min_max: Dict[str, MinMax],
    chart_type: str = "bar",
) -> Dict[str, Any]:
    """
    Chart payload for one selected state or a comparison of two.

    Shape: {chartType, labels, datasets: [{label, data, actualValues,
    backgroundColor}], displayBand}. Only actualValues are meant for labels.
    """
    chart_type = (chart_type or "bar").lower()
    if chart_type not in CHART_TYPES:
        raise UnsupportedChartType(
            f"Unsupported chart type '{chart_type}'. Choose one of: {', '.join(CHART_TYPES)}"
        )

    datasets = []
    for position, record in enumerate(records):
        dataset = build_chart_dataset(record, numeric_columns, min_max)
        entry = dataset.to_dict()
        if len(records) == 1:
            entry["backgroundColor"] = CHART_COLORS
        else:
            entry["backgroundColor"] = CHART_COLORS[position % len(CHART_COLORS)]
        datasets.append(entry)

    return {
        "chartType": chart_type,
        "labels": list(numeric_columns),
        "datasets": datasets,
        "displayBand": {"min": DISPLAY_BAND_MIN, "max": DISPLAY_BAND_MAX},
    }
