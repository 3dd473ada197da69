"""Tests for the startup sequence and its progress tracker."""

import logging

import httpx
import pytest

from spellclash.config import AppConfig
from spellclash.persistence import ConfigurationError, MigrationError
from spellclash.startup import (
    STARTUP_STEPS,
    STEP_CONNECT,
    STEP_MIGRATE,
    StartupStatus,
    bootstrap,
)

from conftest import MIGRATIONS_ROOT


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(db_path=str(tmp_path / "app.db"), migrations_path=str(MIGRATIONS_ROOT))


@pytest.fixture
def offline(monkeypatch):
    monkeypatch.setattr(
        "spellclash.seeds.bad_words.download_bad_words",
        lambda: ["darn", "heck"],
    )


class TestStartupStatus:
    def test_initial_state(self):
        snap = StartupStatus().snapshot()
        assert not snap.ready
        assert snap.progress == 0
        assert [s.name for s in snap.steps] == list(STARTUP_STEPS)

    def test_progress_tracks_completed_steps(self):
        status = StartupStatus(steps=("a", "b", "c", "d"))
        status.complete("a")
        assert status.snapshot().progress == 25
        status.complete("a")
        assert status.snapshot().progress == 25
        status.complete("c")
        assert status.snapshot().progress == 50

    def test_unknown_step_ignored(self):
        status = StartupStatus()
        status.complete("not a step")
        assert status.snapshot().progress == 0

    def test_mark_ready(self):
        status = StartupStatus()
        status.set_current("Running database migrations...")
        status.mark_ready()
        snap = status.snapshot()
        assert status.ready
        assert snap.progress == 100
        assert snap.current == "Server ready"

    def test_fail(self):
        status = StartupStatus()
        status.fail("boom")
        snap = status.snapshot()
        assert snap.error == "boom"
        assert not snap.ready


class TestBootstrap:
    def test_full_sequence(self, app_config, offline):
        status = StartupStatus()
        db = bootstrap(app_config, status)
        try:
            assert status.ready
            assert all(step.completed for step in status.snapshot().steps)
            assert db.query_value("SELECT COUNT(*) FROM bad_words") == 2
            assert db.query_value("SELECT COUNT(*) FROM spelling_lists") == 4
        finally:
            db.close()

    def test_restart_is_idempotent(self, app_config, offline):
        bootstrap(app_config).close()
        db = bootstrap(app_config)
        try:
            assert db.query_value("SELECT COUNT(*) FROM spelling_lists") == 4
            assert db.query_value("SELECT COUNT(*) FROM bad_words") == 2
        finally:
            db.close()

    def test_bad_words_failure_is_not_fatal(self, app_config, monkeypatch, caplog):
        def unreachable():
            raise httpx.ConnectError("network down")

        monkeypatch.setattr("spellclash.seeds.bad_words.download_bad_words", unreachable)

        with caplog.at_level(logging.WARNING):
            db = bootstrap(app_config)
        try:
            assert "Failed to seed bad words" in caplog.text
            assert db.query_value("SELECT COUNT(*) FROM spelling_lists") == 4
        finally:
            db.close()

    def test_public_list_failure_is_not_fatal(self, app_config, offline, tmp_path, caplog):
        config = AppConfig(
            db_path=app_config.db_path,
            migrations_path=app_config.migrations_path,
            data_path=str(tmp_path / "no-data-here"),
        )
        status = StartupStatus()
        with caplog.at_level(logging.WARNING):
            db = bootstrap(config, status)
        db.close()
        assert "Failed to seed default public lists" in caplog.text
        assert status.ready

    def test_migration_failure_is_fatal(self, tmp_path, offline):
        migrations = tmp_path / "migrations"
        migrations.mkdir()
        (migrations / "001_bad.sql").write_text("CREATE TABL broken;\n")
        config = AppConfig(db_path=str(tmp_path / "app.db"), migrations_path=str(migrations))
        status = StartupStatus()

        with pytest.raises(MigrationError):
            bootstrap(config, status)

        done = {s.name for s in status.snapshot().steps if s.completed}
        assert done == {STEP_CONNECT}
        assert STEP_MIGRATE not in done
        assert not status.ready

    def test_configuration_failure_is_fatal(self, tmp_path):
        with pytest.raises(ConfigurationError):
            bootstrap(AppConfig(db_type="postgres", database_url=""))
