"""Seed the default public spelling lists shipped with the package.

Each single-file list is a JSON object::

    {"name": "...", "description": "...", "difficulty": 1,
     "words": [{"word": "...", "definition": "..."}, ...]}

Combined lists are assembled from several JSON arrays of word objects,
where each word may carry its own ``difficulty``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from spellclash.persistence import (
    Database,
    QueryError,
    Transaction,
    transaction_scope,
)

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path(__file__).resolve().parent.parent / "data"

LIST_FILES = (
    "year_1_2_words.json",
    "year_3_4_words.json",
    "year_5_6_words.json",
)

YEAR_8_NAME = "Year 8 Words"
YEAR_8_DESCRIPTION = "Year 8 spelling words for KS3 students"
YEAR_8_DIFFICULTY = 4
YEAR_8_PARTS = (
    "year_8_words_part1.json",
    "year_8_words_part2.json",
)


@dataclass
class WordEntry:
    word: str
    definition: str = ""
    difficulty: int = 0


@dataclass
class ListData:
    name: str
    description: str = ""
    difficulty: int = 1
    words: list[WordEntry] = field(default_factory=list)


def _word_entry(raw: dict[str, Any]) -> WordEntry:
    return WordEntry(
        word=str(raw["word"]),
        definition=raw.get("definition") or "",
        difficulty=int(raw.get("difficulty") or 0),
    )


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValueError(f"failed to read file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"failed to parse JSON from {path.name}: {exc}") from exc


def load_list_file(path: Path) -> ListData:
    raw = _read_json(path)
    return ListData(
        name=raw["name"],
        description=raw.get("description", ""),
        difficulty=int(raw.get("difficulty", 1)),
        words=[_word_entry(item) for item in raw.get("words", [])],
    )


def load_combined_list(
    data_path: Path,
    name: str,
    description: str,
    difficulty: int,
    parts: tuple[str, ...],
) -> ListData:
    words: list[WordEntry] = []
    for part in parts:
        words.extend(_word_entry(item) for item in _read_json(data_path / part))
    return ListData(name=name, description=description, difficulty=difficulty, words=words)


def public_list_exists(db: Database | Transaction, name: str) -> bool:
    is_public = db.dialect.render_bool(True)
    count = db.query_value(
        f"SELECT COUNT(*) FROM spelling_lists WHERE name = ? AND is_public = {is_public}",
        [name],
    )
    return bool(count)


def seed_list(db: Database | Transaction, data: ListData) -> bool:
    """Create one public list with its words. Returns False if it already existed."""
    if public_list_exists(db, data.name):
        logger.info("Default public list '%s' already exists, skipping seed", data.name)
        return False

    logger.info("Creating default public list '%s'...", data.name)
    is_public = db.dialect.render_bool(True)

    with transaction_scope(db) as tx:
        list_id = tx.exec_returning_id(
            "INSERT INTO spelling_lists (family_id, name, description, created_by, is_public) "
            f"VALUES (NULL, ?, ?, NULL, {is_public})",
            [data.name, data.description],
        )
        logger.info("Adding %d words to %s list...", len(data.words), data.name)

        added = 0
        for position, entry in enumerate(data.words, start=1):
            difficulty = entry.difficulty or data.difficulty
            try:
                with tx.savepoint("list_word"):
                    tx.exec(
                        "INSERT INTO words "
                        "(spelling_list_id, word_text, difficulty_level, position, definition) "
                        "VALUES (?, ?, ?, ?, ?)",
                        [list_id, entry.word, difficulty, position, entry.definition or None],
                    )
            except QueryError as exc:
                logger.warning("Failed to add word '%s': %s", entry.word, exc)
                continue
            added += 1

    logger.info("Successfully created default public list '%s' with %d words", data.name, added)
    return True


def seed_default_public_lists(
    db: Database | Transaction,
    data_path: str | Path | None = None,
) -> int:
    """Create any missing default public lists. Returns how many were created.

    Raises:
        ValueError: A data file is missing or malformed.
    """
    root = Path(data_path) if data_path else DEFAULT_DATA_PATH

    created = 0
    for filename in LIST_FILES:
        if seed_list(db, load_list_file(root / filename)):
            created += 1

    year_8 = load_combined_list(root, YEAR_8_NAME, YEAR_8_DESCRIPTION, YEAR_8_DIFFICULTY, YEAR_8_PARTS)
    if seed_list(db, year_8):
        created += 1
    return created
