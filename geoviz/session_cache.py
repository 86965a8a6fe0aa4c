"""
Session Cache Manager - Per-session upload state.

This module provides:
- SessionCache: the current upload of one browser session (pipeline result,
  progress, marker selection, chart type, active filter)
- session_manager: Global manager for all active sessions

Uploads are not cancellable. Each upload bumps the session's generation and
a finished pipeline run is only applied when its generation is still the
current one, so a slow, superseded run can never overwrite newer data.

Usage:
    from geoviz.session_cache import session_manager

    cache = session_manager.get_or_create(session_id)
    generation = cache.begin_upload()
    result = await run_pipeline(rows, geocoder, progress=cache.progress)
    if cache.accept_result(generation, result):
        ...
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .pipeline import PipelineResult, ProgressTracker

logger = logging.getLogger("geoviz")

# A comparison chart shows at most two states
MAX_SELECTED = 2


class SessionCache:
    """
    Per-session upload state.

    Stores:
    - generation: counter bumped on every upload
    - result: PipelineResult of the latest accepted upload
    - progress: tracker of the upload in flight (a new one per upload)
    - selected: states picked on the map (up to two, oldest dropped first)
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.created_at = datetime.now()
        self.last_activity = datetime.now()

        self.generation = 0
        self.result: Optional[PipelineResult] = None
        self.progress = ProgressTracker()
        self.filename: Optional[str] = None

        self.selected: List[str] = []
        self.chart_type = "bar"
        self.filter: Dict[str, str] = {"column": "", "value": ""}

    def touch(self):
        """Update last activity timestamp."""
        self.last_activity = datetime.now()

    def is_expired(self, ttl_hours: int = 4) -> bool:
        """Check if session has expired based on TTL."""
        return datetime.now() - self.last_activity > timedelta(hours=ttl_hours)

    def begin_upload(self, filename: Optional[str] = None) -> int:
        """
        Start a new upload generation.

        Derived state of the previous upload is discarded right away.
        Returns the generation the pipeline run must present on completion.
        """
        self.generation += 1
        self.progress = ProgressTracker()
        self.filename = filename
        self.result = None
        self.selected = []
        self.filter = {"column": "", "value": ""}
        self.touch()
        logger.debug(f"Session {self.session_id}: upload generation {self.generation}")
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def accept_result(self, generation: int, result: PipelineResult) -> bool:
        """Apply a finished run's result if it belongs to the current upload."""
        if not self.is_current(generation):
            logger.info(
                f"Session {self.session_id}: discarding result of superseded upload "
                f"{generation} (current {self.generation})"
            )
            return False
        self.result = result
        self.touch()
        return True

    def toggle_selection(self, state: str) -> List[str]:
        """
        Marker click: select a state, or deselect it if already selected.
        Selecting a third state drops the oldest selection.
        """
        key = (state or "").strip().upper()
        if not key:
            return list(self.selected)
        if key in self.selected:
            self.selected.remove(key)
        else:
            self.selected.append(key)
            if len(self.selected) > MAX_SELECTED:
                self.selected = self.selected[-MAX_SELECTED:]
        self.touch()
        return list(self.selected)

    def selected_records(self) -> List[Dict]:
        if not self.result:
            return []
        records = []
        for state in self.selected:
            record = self.result.find_record(state)
            if record is not None:
                records.append(record)
        return records

    def get_status(self) -> Dict:
        """Session status for polling."""
        return {
            "session_id": self.session_id,
            "generation": self.generation,
            "filename": self.filename,
            "progress": self.progress.value,
            "has_data": bool(self.result and self.result.ok),
            "selected": list(self.selected),
            "chart_type": self.chart_type,
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }


class SessionManager:
    """
    Global manager for all active session caches.

    Handles:
    - Session creation and retrieval
    - TTL-based cleanup
    """

    DEFAULT_TTL_HOURS = 4

    def __init__(self):
        self._sessions: Dict[str, SessionCache] = {}
        self._last_cleanup = datetime.now()
        self._cleanup_interval = timedelta(minutes=5)

    def get(self, session_id: str) -> Optional[SessionCache]:
        """Get session cache if it exists."""
        cache = self._sessions.get(session_id)
        if cache:
            cache.touch()
        return cache

    def get_or_create(self, session_id: str) -> SessionCache:
        """Get existing session cache or create new one."""
        if session_id not in self._sessions:
            self._sessions[session_id] = SessionCache(session_id)
            logger.info(f"Created new session cache: {session_id}")
        else:
            self._sessions[session_id].touch()

        self._maybe_cleanup()

        return self._sessions[session_id]

    def exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def delete(self, session_id: str) -> bool:
        """Delete a session cache."""
        if session_id in self._sessions:
            del self._sessions[session_id]
            logger.info(f"Deleted session cache: {session_id}")
            return True
        return False

    def _maybe_cleanup(self):
        """Cleanup expired sessions if interval has passed."""
        now = datetime.now()
        if now - self._last_cleanup < self._cleanup_interval:
            return

        self._last_cleanup = now
        expired = [
            sid for sid, cache in self._sessions.items()
            if cache.is_expired(self.DEFAULT_TTL_HOURS)
        ]

        for sid in expired:
            del self._sessions[sid]

        if expired:
            logger.info(f"Cleaned up {len(expired)} expired sessions")

    def list_sessions(self) -> List[Dict]:
        return [cache.get_status() for cache in self._sessions.values()]


# Global session manager instance
session_manager = SessionManager()
