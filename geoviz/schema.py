"""
Schema classification over the finalized aggregated table.

Splits columns into numeric and categorical, computes the global min/max of
every numeric column (the basis for chart normalization) and builds the
dataset summary shown next to the map.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pandas as pd

from .constants import EXCLUDED_COLUMNS
from .utils import to_finite_float

logger = logging.getLogger("geoviz")


@dataclass(frozen=True)
class MinMax:
    min: float
    max: float

    @property
    def is_flat(self) -> bool:
        """No variance across states."""
        return self.min == self.max

    def to_dict(self) -> Dict[str, float]:
        return {"min": self.min, "max": self.max}


@dataclass
class ColumnClassification:
    """Disjoint numeric / categorical / excluded column lists."""
    numeric: List[str] = field(default_factory=list)
    categorical: List[str] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "numeric": list(self.numeric),
            "categorical": list(self.categorical),
            "excluded": list(self.excluded),
        }


def table_columns(records: List[Dict[str, Any]]) -> List[str]:
    """Every column of the table, in order of first appearance."""
    columns: Dict[str, None] = {}
    for record in records:
        for key in record.keys():
            columns.setdefault(key, None)
    return list(columns)


def _numeric_frame(records: List[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    """Table with every cell coerced to a finite float (NaN where it won't)."""
    frame = pd.DataFrame.from_records(records, columns=columns)
    return frame.apply(lambda series: pd.to_numeric(series.map(to_finite_float), errors="coerce"))


def classify_columns(records: List[Dict[str, Any]]) -> ColumnClassification:
    """
    A column is numeric iff every record's value for it is a finite number.
    Structural columns are excluded; everything else is categorical.
    """
    classification = ColumnClassification()
    if not records:
        return classification

    columns = table_columns(records)
    data_columns = [c for c in columns if c not in EXCLUDED_COLUMNS]
    classification.excluded = [c for c in columns if c in EXCLUDED_COLUMNS]

    if data_columns:
        numeric_frame = _numeric_frame(records, data_columns)
        for column in data_columns:
            if numeric_frame[column].notna().all():
                classification.numeric.append(column)
            else:
                classification.categorical.append(column)

    logger.debug(f"Numeric columns: {classification.numeric}")
    logger.debug(f"Categorical columns: {classification.categorical}")
    return classification


def compute_global_min_max(records: List[Dict[str, Any]], numeric_columns: List[str]) -> Dict[str, MinMax]:
    """
    Min and max of each numeric column over all finalized records.

    Must be recomputed whenever the table changes.
    """
    if not records or not numeric_columns:
        return {}

    numeric_frame = _numeric_frame(records, list(numeric_columns))
    min_max = {}
    for column in numeric_columns:
        values = numeric_frame[column].dropna()
        if values.empty:
            continue
        min_max[column] = MinMax(min=float(values.min()), max=float(values.max()))
    return min_max


def summarize_dataset(records: List[Dict[str, Any]], classification: ColumnClassification) -> Dict[str, Any]:
    """Row/column counts and the column lists for the dataset details panel."""
    return {
        "totalRows": len(records),
        "totalColumns": len(table_columns(records)),
        "numericColumns": list(classification.numeric),
        "stringColumns": list(classification.categorical),
    }
