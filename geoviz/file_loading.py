"""
Upload parsing - turns an uploaded .json or .csv file into a list of rows.

Handles:
- Extension check before any parsing (.json / .csv only)
- JSON arrays of row objects
- CSV files with leading metadata lines (skipped by locating the header row)

Malformed files are rejected as a whole; rows are not salvaged one by one.
"""

import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from .constants import HEADER_TOKENS, SUPPORTED_EXTENSIONS
from .errors import MalformedFile, UnsupportedFileType

logger = logging.getLogger("geoviz")


def get_extension(filename: str) -> str:
    return Path(filename or "").suffix.lower()


def check_extension(filename: str) -> str:
    """Return the lowercased extension, or raise UnsupportedFileType."""
    extension = get_extension(filename)
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileType("Please upload a valid JSON or CSV file.")
    return extension


def decode_text(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedFile(f"Uploaded file is not UTF-8 text: {e}") from e


def parse_json(content: bytes) -> List[Dict[str, Any]]:
    """Parse a JSON array of row objects."""
    try:
        data = json.loads(decode_text(content))
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON format: {e}")
        raise MalformedFile("Uploaded file is not valid JSON.") from e

    if not isinstance(data, list):
        raise MalformedFile("JSON upload must be an array of row objects.")
    if not all(isinstance(row, dict) for row in data):
        raise MalformedFile("Every entry of the JSON array must be an object.")
    return data


def _first_cell(line: str) -> str:
    return line.split(",", 1)[0].strip().strip('"').strip()


def find_header_line(lines: List[str]) -> int:
    """
    Index of the CSV header row.

    Prefers the first line that starts with a known header token, then the
    first line holding a known token anywhere. Falls back to line 0.
    """
    for index, line in enumerate(lines):
        if _first_cell(line) in HEADER_TOKENS:
            return index
    for index, line in enumerate(lines):
        cells = {cell.strip().strip('"').strip() for cell in line.split(",")}
        if cells & HEADER_TOKENS:
            return index
    return 0


def parse_csv(content: bytes) -> List[Dict[str, Any]]:
    """Parse CSV text; every cell is read as a string and blanks stay ""."""
    text = decode_text(content)
    if not text.strip():
        raise MalformedFile("Uploaded CSV file is empty.")

    header_index = find_header_line(text.splitlines())
    if header_index:
        logger.info(f"Skipping {header_index} metadata lines before the CSV header")

    try:
        df = pd.read_csv(
            io.StringIO(text),
            skiprows=header_index,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"CSV parsing error: {e}")
        raise MalformedFile("Failed to parse CSV file.") from e

    return df.to_dict("records")


def load_upload(filename: str, content: bytes) -> List[Dict[str, Any]]:
    """
    Parse an uploaded file into rows.

    Raises:
        UnsupportedFileType: extension is not .json or .csv (checked first)
        MalformedFile: content cannot be parsed
    """
    extension = check_extension(filename)
    if extension == ".json":
        rows = parse_json(content)
    else:
        rows = parse_csv(content)
    logger.info(f"Loaded {len(rows)} rows from {filename}")
    return rows
