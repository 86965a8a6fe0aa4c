"""
Property filters for the aggregated table (the map's "Filter by Property"
and "Filter by Value" controls).
"""

from typing import Any, Dict, List


def unique_values(records: List[Dict[str, Any]], column: str) -> List[Any]:
    """Distinct values of a column, in order of first appearance."""
    seen = []
    for record in records:
        if column not in record:
            continue
        value = record[column]
        if value not in seen:
            seen.append(value)
    return seen


def filter_records(records: List[Dict[str, Any]], column: str, value) -> List[Dict[str, Any]]:
    """
    Records whose column equals value.

    An empty column or value means "All" and returns every record. Values are
    compared as text and as numbers, so "5" from a form matches a stored 5.0.
    """
    if not column or value is None or value == "":
        return list(records)
    wanted = str(value)
    matches = []
    for record in records:
        current = record.get(column)
        if current == value or str(current) == wanted or _same_number(current, value):
            matches.append(record)
    return matches


def _same_number(left, right) -> bool:
    try:
        return float(left) == float(right)
    except (TypeError, ValueError):
        return False
