"""Periodic removal of expired session rows."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone

from spellclash.persistence import Database, DatabaseError

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_SECONDS = 3600.0

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

EXPIRING_TABLES = (
    "sessions",
    "kid_sessions",
    "password_reset_tokens",
)


def _utcnow() -> datetime:
    # Stored timestamps are naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def delete_expired_sessions(db: Database, now: datetime | None = None) -> int:
    """Delete rows whose ``expires_at`` is in the past. Returns rows removed."""
    cutoff = (now or _utcnow()).strftime(TIMESTAMP_FORMAT)
    removed = 0
    for table in EXPIRING_TABLES:
        result = db.exec(f"DELETE FROM {table} WHERE expires_at < ?", [cutoff])
        if result.rowcount > 0:
            logger.info("Removed %d expired row(s) from %s", result.rowcount, table)
            removed += result.rowcount
    return removed


class SessionJanitor:
    """Runs ``delete_expired_sessions`` on a background daemon thread."""

    def __init__(self, db: Database, interval: float = CLEANUP_INTERVAL_SECONDS):
        self.db = db
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name="session-janitor",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self) -> int:
        """One cleanup pass; failures are logged, not raised."""
        try:
            return delete_expired_sessions(self.db)
        except DatabaseError as exc:
            logger.error("Error cleaning up expired sessions: %s", exc)
            return 0

    def _loop(self) -> None:
        # First pass waits a full interval, like a ticker.
        while not self._stop.wait(self.interval):
            self.run_once()
