"""Tests for the startup and health endpoints."""

import threading
import time

import pytest
from fastapi.testclient import TestClient

from spellclash.api.app import create_app
from spellclash.config import AppConfig
from spellclash.migrations import run_migrations
from spellclash.persistence import Database, DatabaseConfig

from conftest import MIGRATIONS_ROOT


def _wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(db_path=str(tmp_path / "api.db"), migrations_path=str(MIGRATIONS_ROOT))


class TestStartupEndpoints:
    def test_reports_progress_until_ready(self, app_config):
        release = threading.Event()

        def gated_bootstrap(config, status):
            db = Database(DatabaseConfig(path=config.db_path))
            db.connect()
            status.complete("Database connection")
            release.wait(5.0)
            run_migrations(db, config.migrations_path)
            status.mark_ready()
            return db

        app = create_app(app_config, bootstrapper=gated_bootstrap)
        with TestClient(app) as client:
            response = client.get("/health")
            assert response.status_code == 503
            assert response.json() == {"status": "starting"}

            connected = {"name": "Database connection", "completed": True}
            assert _wait_until(lambda: connected in client.get("/startup").json()["steps"])
            body = client.get("/startup").json()
            assert body["ready"] is False
            assert body["error"] is None

            release.set()
            assert _wait_until(lambda: client.get("/health").status_code == 200)
            assert client.get("/health").json() == {"status": "ok"}

            body = client.get("/startup").json()
            assert body["ready"] is True
            assert body["progress"] == 100
            assert _wait_until(lambda: app.state.janitor is not None)
            assert app.state.janitor.running

        assert app.state.db is None or not app.state.db.is_connected

    def test_failed_startup_is_reported(self, app_config):
        def failing_bootstrap(config, status):
            raise RuntimeError("database unreachable")

        app = create_app(app_config, bootstrapper=failing_bootstrap)
        with TestClient(app) as client:
            assert _wait_until(lambda: client.get("/startup").json()["error"] is not None)
            body = client.get("/startup").json()
            assert body["error"] == "database unreachable"
            assert body["current"] == "Startup failed"
            assert client.get("/health").status_code == 503

    def test_bootstrap_finishing_after_shutdown_is_released(self, app_config, monkeypatch):
        monkeypatch.setattr("spellclash.api.app.BOOTSTRAP_JOIN_TIMEOUT", 0.05)
        release = threading.Event()
        opened = []

        def slow_bootstrap(config, status):
            db = Database(DatabaseConfig(path=config.db_path))
            db.connect()
            opened.append(db)
            release.wait(5.0)
            status.mark_ready()
            return db

        app = create_app(app_config, bootstrapper=slow_bootstrap)
        with TestClient(app):
            assert _wait_until(lambda: opened)

        release.set()
        app.state.bootstrap_worker.join(5.0)
        assert not app.state.bootstrap_worker.is_alive()
        assert app.state.db is None
        assert app.state.janitor is None
        assert not opened[0].is_connected
