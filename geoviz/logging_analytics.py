"""
Logging and analytics for uploads and unexpected endpoint errors.

Everything logs through the "geoviz" logger (logs/geoviz.log plus console).
Set GEOVIZ_LOG_DIR to write logs somewhere else.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

logs_dir = Path(os.environ.get("GEOVIZ_LOG_DIR", BASE_DIR / "logs"))
logs_dir.mkdir(parents=True, exist_ok=True)

log_path = logs_dir / "geoviz.log"
LOG_FORMAT = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

logger = logging.getLogger("geoviz")
logger.setLevel(logging.INFO)

# Drop handlers left over from a module reload
for old_handler in list(logger.handlers):
    logger.removeHandler(old_handler)

for new_handler in (logging.FileHandler(log_path, encoding='utf-8'), logging.StreamHandler()):
    new_handler.setLevel(logging.INFO)
    new_handler.setFormatter(LOG_FORMAT)
    logger.addHandler(new_handler)

# Keep records out of the root logger (uvicorn configures it too)
logger.propagate = False

# Upload analytics - one JSON line per processed upload
analytics_dir = logs_dir / "analytics"
analytics_dir.mkdir(exist_ok=True)
analytics_log_path = analytics_dir / "upload_analytics.jsonl"


def log_upload(session_id, filename, rows_in, rows_out=0, states=0, status="ok", message=None):
    """
    Append one upload's outcome to the local analytics log.

    Args:
        session_id: Session that uploaded the file
        filename: Uploaded file name
        rows_in: Rows parsed from the file
        rows_out: Rows that survived sanitizing
        states: Number of aggregated states
        status: 'ok', 'no_valid_data', or the error type for rejected files
        message: User-facing message, if any
    """
    entry = {
        "timestamp": datetime.now().isoformat(),
        "session_id": session_id,
        "filename": filename,
        "rows_in": rows_in,
        "rows_out": rows_out,
        "states": states,
        "status": status,
        "message": message,
    }
    try:
        with open(analytics_log_path, 'a', encoding='utf-8') as f:
            json.dump(entry, f, ensure_ascii=False)
            f.write('\n')
    except Exception as e:
        logger.error(f"Failed to log upload analytics: {e}")


def log_error(error_type, error_message, session_id=None, tb=None):
    """Log an unexpected endpoint error with its traceback."""
    details = {
        "timestamp": datetime.now().isoformat(),
        "error_type": error_type,
        "session_id": session_id,
        "error_message": error_message,
        "traceback": tb,
    }
    logger.error(f"Unexpected Error: {json.dumps(details, indent=2)}")
