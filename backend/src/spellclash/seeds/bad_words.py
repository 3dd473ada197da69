"""Bad-word filter seeding and lookup."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

import httpx

from spellclash.persistence import Database, QueryError, Transaction, transaction_scope
from spellclash.persistence.adapter import Executor

logger = logging.getLogger(__name__)

BAD_WORDS_URL = (
    "https://raw.githubusercontent.com/LDNOOBW/"
    "List-of-Dirty-Naughty-Obscene-and-Otherwise-Bad-Words/refs/heads/master/en"
)
DOWNLOAD_TIMEOUT_SECONDS = 30.0

INSERT_BAD_WORD = "INSERT INTO bad_words (word) VALUES (?)"


def download_bad_words(url: str = BAD_WORDS_URL) -> list[str]:
    """Fetch the word list, one word per line.

    Raises:
        httpx.HTTPError: On network failure or a non-2xx response.
    """
    response = httpx.get(url, timeout=DOWNLOAD_TIMEOUT_SECONDS, follow_redirects=True)
    response.raise_for_status()
    return response.text.splitlines()


def normalize_word(word: str) -> str:
    return word.strip().lower()


def seed_bad_words(
    db: Database | Transaction,
    fetch: Callable[[], Iterable[str]] | None = None,
) -> int:
    """Populate ``bad_words`` once.

    Returns the number of words inserted; 0 when the table already had rows.
    Duplicate or otherwise rejected words are skipped, not fatal.
    """
    count = db.query_value("SELECT COUNT(*) FROM bad_words") or 0
    if count > 0:
        logger.info("Bad words filter already populated with %d words", count)
        return 0

    logger.info("Downloading bad words list...")
    lines = (fetch or download_bad_words)()

    added = 0
    seen: set[str] = set()
    with transaction_scope(db) as tx:
        for line in lines:
            word = normalize_word(line)
            if not word or word in seen:
                continue
            seen.add(word)
            try:
                with tx.savepoint("bad_word"):
                    tx.exec(INSERT_BAD_WORD, [word])
            except QueryError as exc:
                logger.debug("Skipping bad word %r: %s", word, exc)
                continue
            added += 1

    logger.info("Bad words filter populated with %d words", added)
    return added


def is_bad_word(db: Executor, word: str) -> bool:
    count = db.query_value(
        "SELECT COUNT(*) FROM bad_words WHERE word = ?",
        [normalize_word(word)],
    )
    if count:
        logger.info("Bad word detected: %r", word)
    return bool(count)


def find_bad_words(db: Executor, words: Iterable[str]) -> list[str]:
    """Return the subset of ``words`` found in the filter, in input order."""
    return [word for word in words if is_bad_word(db, word)]
