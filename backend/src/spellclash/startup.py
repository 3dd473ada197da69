"""Process startup sequence and its progress tracker.

``bootstrap`` connects, migrates and seeds the database before the
server starts taking traffic. ``StartupStatus`` records progress so the
HTTP layer can report it while the sequence is still running.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

import httpx

from spellclash.config import AppConfig
from spellclash.migrations import run_migrations
from spellclash.persistence import Database, DatabaseError, create_database
from spellclash.seeds import seed_bad_words, seed_default_public_lists

logger = logging.getLogger(__name__)

STEP_CONNECT = "Database connection"
STEP_MIGRATE = "Running migrations"
STEP_BAD_WORDS = "Loading bad words filter"
STEP_PUBLIC_LISTS = "Seeding default lists"
STEP_READY = "Server ready"

STARTUP_STEPS = (
    STEP_CONNECT,
    STEP_MIGRATE,
    STEP_BAD_WORDS,
    STEP_PUBLIC_LISTS,
    STEP_READY,
)


@dataclass
class StepState:
    name: str
    completed: bool = False


@dataclass
class StartupSnapshot:
    ready: bool
    current: str
    progress: int
    steps: list[StepState]
    error: str | None = None


class StartupStatus:
    """Thread-safe record of startup progress."""

    def __init__(self, steps: tuple[str, ...] = STARTUP_STEPS):
        self._lock = threading.Lock()
        self._steps = [StepState(name) for name in steps]
        self._current = "Initializing..."
        self._progress = 0
        self._ready = False
        self._error: str | None = None

    def set_current(self, step: str) -> None:
        with self._lock:
            self._current = step

    def complete(self, step: str) -> None:
        with self._lock:
            for state in self._steps:
                if state.name == step:
                    state.completed = True
                    break
            done = sum(1 for state in self._steps if state.completed)
            self._progress = done * 100 // len(self._steps)

    def fail(self, message: str) -> None:
        with self._lock:
            self._error = message
            self._current = "Startup failed"

    def mark_ready(self) -> None:
        with self._lock:
            self._ready = True
            self._current = STEP_READY
            self._progress = 100

    @property
    def ready(self) -> bool:
        with self._lock:
            return self._ready

    def snapshot(self) -> StartupSnapshot:
        with self._lock:
            return StartupSnapshot(
                ready=self._ready,
                current=self._current,
                progress=self._progress,
                steps=[StepState(s.name, s.completed) for s in self._steps],
                error=self._error,
            )


def bootstrap(config: AppConfig, status: StartupStatus | None = None) -> Database:
    """Connect, migrate and seed. Returns the connected Database.

    Seeding failures are logged as warnings and startup continues.

    Raises:
        ConfigurationError: Bad database settings.
        ConnectivityError: The database is unreachable.
        MigrationError: A migration file failed.
    """
    status = status or StartupStatus()
    db_config = config.database

    status.set_current("Connecting to database...")
    db = create_database(db_config)
    db.connect()
    status.complete(STEP_CONNECT)

    try:
        status.set_current("Running database migrations...")
        applied = run_migrations(db, config.migrations_path)
        logger.info("Migrations complete (%d applied)", len(applied))
        status.complete(STEP_MIGRATE)

        status.set_current("Loading bad words filter...")
        try:
            seed_bad_words(db)
        except (DatabaseError, httpx.HTTPError) as exc:
            logger.warning("Failed to seed bad words: %s", exc)
        status.complete(STEP_BAD_WORDS)

        status.set_current("Seeding default public lists...")
        try:
            seed_default_public_lists(db, config.data_path or None)
        except (DatabaseError, ValueError, KeyError) as exc:
            logger.warning("Failed to seed default public lists: %s", exc)
        status.complete(STEP_PUBLIC_LISTS)
    except Exception:
        db.close()
        raise

    status.complete(STEP_READY)
    status.mark_ready()
    logger.info("Server initialization complete - ready to serve requests")
    return db
