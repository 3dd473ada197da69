"""Tests for the idempotent seed and backfill routines."""

import json
import logging

import pytest

from spellclash.seeds import (
    find_bad_words,
    is_bad_word,
    populate_kid_credentials,
    seed_bad_words,
    seed_default_public_lists,
)
from spellclash.seeds.public_lists import YEAR_8_NAME


def _fail_fetch():
    raise AssertionError("fetch must not be called")


def _add_family(db):
    return db.exec_returning_id("INSERT INTO families (name) VALUES (?)", ["Smiths"])


def _add_kid(db, family_id, name, username=None, password=None):
    return db.exec_returning_id(
        "INSERT INTO kids (family_id, name, username, password) VALUES (?, ?, ?, ?)",
        [family_id, name, username, password],
    )


def _sequence(*values):
    it = iter(values)
    return lambda: next(it)


class TestSeedBadWords:
    def test_populates_empty_table(self, migrated_db):
        added = seed_bad_words(
            migrated_db,
            fetch=lambda: ["Darn", "heck", "", "  darn  ", "HECK", "drat"],
        )
        assert added == 3
        words = [r["word"] for r in migrated_db.query("SELECT word FROM bad_words ORDER BY word")]
        assert words == ["darn", "drat", "heck"]

    def test_already_populated(self, migrated_db, caplog):
        for word in ("a1", "b2", "c3", "d4", "e5"):
            migrated_db.exec("INSERT INTO bad_words (word) VALUES (?)", [word])

        with caplog.at_level(logging.INFO):
            added = seed_bad_words(migrated_db, fetch=_fail_fetch)

        assert added == 0
        assert "already populated with 5 words" in caplog.text
        assert migrated_db.query_value("SELECT COUNT(*) FROM bad_words") == 5

    def test_second_run_is_noop(self, migrated_db):
        seed_bad_words(migrated_db, fetch=lambda: ["darn"])
        assert seed_bad_words(migrated_db, fetch=_fail_fetch) == 0

    def test_default_fetch_downloads(self, migrated_db, monkeypatch):
        monkeypatch.setattr(
            "spellclash.seeds.bad_words.download_bad_words",
            lambda: ["blast"],
        )
        assert seed_bad_words(migrated_db) == 1

    def test_lookup(self, migrated_db):
        seed_bad_words(migrated_db, fetch=lambda: ["darn", "heck"])
        assert is_bad_word(migrated_db, " DARN ")
        assert not is_bad_word(migrated_db, "dragon")
        assert find_bad_words(migrated_db, ["happy", "Heck", "darn"]) == ["Heck", "darn"]


class TestPopulateKidCredentials:
    def test_fills_missing_credentials(self, migrated_db):
        family_id = _add_family(migrated_db)
        blank = _add_kid(migrated_db, family_id, "Ann")
        named = _add_kid(migrated_db, family_id, "Ben", username="happy-dragon")
        complete = _add_kid(migrated_db, family_id, "Cat", username="sunny-tiger", password="ab12")
        empty = _add_kid(migrated_db, family_id, "Dan", username="", password="")

        updated = populate_kid_credentials(
            migrated_db,
            username_factory=_sequence(
                "happy-dragon", "sunny-tiger", "brave-eagle", "cool-panda", "kind-otter"
            ),
        )

        assert updated == 3
        rows = {r["id"]: r for r in migrated_db.query("SELECT id, username, password FROM kids")}
        assert rows[blank]["username"] == "brave-eagle"
        assert rows[named]["username"] == "cool-panda"
        assert rows[complete] == {"id": complete, "username": "sunny-tiger", "password": "ab12"}
        assert rows[empty]["username"] == "kind-otter"
        for row in rows.values():
            assert len(row["password"]) == 4
        usernames = [r["username"] for r in rows.values()]
        assert len(set(usernames)) == len(usernames)

    def test_second_run_is_noop(self, migrated_db, caplog):
        family_id = _add_family(migrated_db)
        _add_kid(migrated_db, family_id, "Ann")
        _add_kid(migrated_db, family_id, "Ben")

        assert populate_kid_credentials(migrated_db) == 2
        before = migrated_db.query("SELECT id, username, password FROM kids ORDER BY id")

        with caplog.at_level(logging.INFO):
            assert populate_kid_credentials(migrated_db) == 0
        assert "No kids need credential population" in caplog.text
        assert migrated_db.query("SELECT id, username, password FROM kids ORDER BY id") == before

    def test_gives_up_after_max_attempts(self, migrated_db, caplog):
        family_id = _add_family(migrated_db)
        _add_kid(migrated_db, family_id, "Ann", username="taken", password="pw12")
        stuck = _add_kid(migrated_db, family_id, "Ben")

        with caplog.at_level(logging.WARNING):
            updated = populate_kid_credentials(
                migrated_db,
                max_attempts=3,
                username_factory=lambda: "taken",
            )

        assert updated == 0
        assert "after 3 attempts" in caplog.text
        row = migrated_db.query_one("SELECT username, password FROM kids WHERE id = ?", [stuck])
        assert row == {"username": None, "password": None}

    def test_generated_usernames_are_unique(self, migrated_db):
        family_id = _add_family(migrated_db)
        for i in range(25):
            _add_kid(migrated_db, family_id, f"Kid {i}")

        assert populate_kid_credentials(migrated_db) == 25
        count = migrated_db.query_value("SELECT COUNT(DISTINCT username) FROM kids")
        assert count == 25


class TestSeedDefaultPublicLists:
    def test_seeds_packaged_lists(self, migrated_db):
        created = seed_default_public_lists(migrated_db)
        assert created == 4

        lists = migrated_db.query(
            "SELECT id, name, family_id, created_by, is_public FROM spelling_lists ORDER BY id"
        )
        assert [row["name"] for row in lists][-1] == YEAR_8_NAME
        for row in lists:
            assert row["is_public"] == 1
            assert row["family_id"] is None
            assert row["created_by"] is None

        year_8 = lists[-1]["id"]
        words = migrated_db.query(
            "SELECT word_text, position FROM words WHERE spelling_list_id = ? ORDER BY position",
            [year_8],
        )
        assert len(words) == 20
        assert [w["position"] for w in words] == list(range(1, 21))

    def test_second_run_is_noop(self, migrated_db, caplog):
        seed_default_public_lists(migrated_db)
        before = migrated_db.query_value("SELECT COUNT(*) FROM words")

        with caplog.at_level(logging.INFO):
            assert seed_default_public_lists(migrated_db) == 0
        assert "already exists, skipping seed" in caplog.text
        assert migrated_db.query_value("SELECT COUNT(*) FROM words") == before

    def test_bad_word_row_is_skipped(self, migrated_db, tmp_path):
        single = {
            "name": "Test List",
            "description": "desc",
            "difficulty": 2,
            "words": [
                {"word": "alpha", "definition": "first"},
                {"word": "beta", "difficulty": 9},
                {"word": "gamma"},
            ],
        }
        for filename in ("year_1_2_words.json", "year_3_4_words.json", "year_5_6_words.json"):
            (tmp_path / filename).write_text(json.dumps({**single, "name": filename}))
        (tmp_path / "year_8_words_part1.json").write_text(json.dumps([{"word": "delta"}]))
        (tmp_path / "year_8_words_part2.json").write_text(
            json.dumps([{"word": "epsilon", "difficulty": 5}])
        )

        assert seed_default_public_lists(migrated_db, tmp_path) == 4

        rows = migrated_db.query(
            "SELECT w.word_text, w.difficulty_level, w.definition FROM words w "
            "JOIN spelling_lists l ON l.id = w.spelling_list_id "
            "WHERE l.name = ? ORDER BY w.position",
            ["year_1_2_words.json"],
        )
        assert rows == [
            {"word_text": "alpha", "difficulty_level": 2, "definition": "first"},
            {"word_text": "gamma", "difficulty_level": 2, "definition": None},
        ]

        year_8 = migrated_db.query(
            "SELECT w.word_text, w.difficulty_level FROM words w "
            "JOIN spelling_lists l ON l.id = w.spelling_list_id "
            "WHERE l.name = ? ORDER BY w.position",
            [YEAR_8_NAME],
        )
        assert year_8 == [
            {"word_text": "delta", "difficulty_level": 4},
            {"word_text": "epsilon", "difficulty_level": 5},
        ]

    def test_existing_private_list_with_same_name_is_ignored(self, migrated_db):
        migrated_db.exec(
            "INSERT INTO spelling_lists (name, is_public) VALUES (?, 0)",
            [YEAR_8_NAME],
        )
        assert seed_default_public_lists(migrated_db) == 4

    def test_missing_data_file(self, migrated_db, tmp_path):
        with pytest.raises(ValueError, match="failed to read file"):
            seed_default_public_lists(migrated_db, tmp_path)
