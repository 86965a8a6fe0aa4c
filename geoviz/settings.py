"""
Settings Management for GeoViz

Handles storage and retrieval of application settings in settings.json,
plus secrets read from the environment (.env via python-dotenv).

Environment Variables:
    MAPBOX_TOKEN          - Mapbox access token for geocoding
    GEOVIZ_SETTINGS_FILE  - Alternate settings.json location
"""

import json
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .constants import MAPBOX_GEOCODING_URL, MAX_ROWS

load_dotenv()

logger = logging.getLogger("geoviz")

# Default settings
DEFAULT_SETTINGS = {
    "max_rows": MAX_ROWS,
    "geocode_concurrency": 0,  # 0 = one request per row, all at once
    "geocode_timeout": 10.0,
    "geocoding_url": MAPBOX_GEOCODING_URL,
}

# Expected type of each setting, used to coerce incoming values
SETTING_TYPES = {
    "max_rows": int,
    "geocode_concurrency": int,
    "geocode_timeout": float,
    "geocoding_url": str,
}


def get_settings_file() -> Path:
    """Settings file location (project root unless overridden)."""
    override = os.environ.get("GEOVIZ_SETTINGS_FILE")
    if override:
        return Path(override)
    return Path(__file__).parent.parent / "settings.json"


def load_settings() -> dict:
    """
    Load settings from settings.json file.
    Returns default settings if file doesn't exist.
    """
    settings_file = get_settings_file()
    try:
        if settings_file.exists():
            with open(settings_file, 'r', encoding='utf-8') as f:
                settings = json.load(f)
                # Merge with defaults to ensure all keys exist
                return {**DEFAULT_SETTINGS, **settings}
    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"Could not load settings: {e}")

    return DEFAULT_SETTINGS.copy()


def validate_settings(updates: dict) -> dict:
    """
    Coerce incoming settings to their expected types.

    Raises:
        ValueError: unknown key, or a value that can't be coerced / is negative
    """
    cleaned = {}
    for key, value in updates.items():
        if key not in SETTING_TYPES:
            raise ValueError(f"Unknown setting: {key}")
        try:
            cleaned[key] = SETTING_TYPES[key](value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid value for {key}: {value!r}") from e
        if isinstance(cleaned[key], (int, float)) and cleaned[key] < 0:
            raise ValueError(f"{key} must not be negative")
    return cleaned


def save_settings(settings: dict) -> bool:
    """
    Save settings to settings.json file.
    Returns True on success, False on failure.
    """
    try:
        # Merge with existing settings
        current = load_settings()
        current.update(settings)

        with open(get_settings_file(), 'w', encoding='utf-8') as f:
            json.dump(current, f, indent=2)
        return True
    except IOError as e:
        logger.error(f"Error saving settings: {e}")
        return False


def get_setting(key: str):
    return load_settings().get(key, DEFAULT_SETTINGS.get(key))


def get_mapbox_token() -> str:
    """Mapbox access token from the environment ("" when unset)."""
    return os.environ.get("MAPBOX_TOKEN", "")


def get_settings_with_status() -> dict:
    """
    Get settings along with whether geocoding is configured.
    Used by the /settings endpoint.
    """
    settings = load_settings()
    return {
        **settings,
        "geocoding_configured": bool(get_mapbox_token()),
    }
