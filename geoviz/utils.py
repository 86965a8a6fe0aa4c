"""
Utility functions for value coercion, state names and JSON cleanup.
"""

import math

import pandas as pd

from .constants import state_abbreviations


def to_finite_float(value):
    """
    Coerce a raw cell to a finite float.

    Accepts ints, floats and numeric strings (surrounding whitespace allowed).
    Returns None for None, blanks, booleans, non-numeric text, NaN and inf.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
    if not math.isfinite(number):
        return None
    return number


def is_blank(value) -> bool:
    """True for None, NaN and strings that are empty after trimming."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ""


def state_from_abbr(name):
    """Convert state abbreviation to full state name."""
    return state_abbreviations.get(name.upper(), "Unknown")


def normalize_state_name(name):
    """
    Turn a raw state value into the aggregation key.

    Trims and uppercases; two-letter postal abbreviations are expanded first
    ("ca" -> "CALIFORNIA"). Returns None for blank input.
    """
    if is_blank(name):
        return None
    text = str(name).strip()
    if len(text) == 2 and text.upper() in state_abbreviations:
        text = state_from_abbr(text)
    return text.upper()


def clean_nans(obj):
    """
    Recursively clean NaN values from nested data structures.
    Converts NaN/None to None for JSON serialization.
    """
    if isinstance(obj, dict):
        return {k: clean_nans(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [clean_nans(item) for item in obj]
    elif isinstance(obj, float) and (pd.isna(obj) or math.isinf(obj)):
        return None
    return obj
