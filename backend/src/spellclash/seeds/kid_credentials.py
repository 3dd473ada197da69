"""Backfill login credentials for kids created before credentials existed."""

from __future__ import annotations

import logging
from collections.abc import Callable

from spellclash.credentials import generate_kid_password, generate_kid_username
from spellclash.persistence import Database, Transaction, transaction_scope

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 100

SELECT_MISSING = """
    SELECT id FROM kids
    WHERE username IS NULL OR username = '' OR password IS NULL OR password = ''
    ORDER BY id
"""


def populate_kid_credentials(
    db: Database | Transaction,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    username_factory: Callable[[], str] = generate_kid_username,
    password_factory: Callable[[], str] = generate_kid_password,
) -> int:
    """Give every kid without a username or password a fresh pair.

    Every matching row gets a newly generated username, including rows
    that only lack a password. New usernames never collide with one
    already stored or one handed out earlier in the same run. Returns the
    number of rows updated.
    """
    with transaction_scope(db) as tx:
        pending = tx.query(SELECT_MISSING)
        if not pending:
            logger.info("No kids need credential population")
            return 0

        logger.info("Populating credentials for %d kid(s)...", len(pending))
        used = {
            row["username"]
            for row in tx.query(
                "SELECT username FROM kids WHERE username IS NOT NULL AND username <> ''"
            )
        }

        updated = 0
        for row in pending:
            username = _unique_username(used, max_attempts, username_factory)
            if username is None:
                logger.warning(
                    "Could not generate a unique username for kid %s after %d attempts",
                    row["id"],
                    max_attempts,
                )
                continue
            used.add(username)

            tx.exec(
                "UPDATE kids SET username = ?, password = ? WHERE id = ?",
                [username, password_factory(), row["id"]],
            )
            logger.debug("Assigned username %s to kid %s", username, row["id"])
            updated += 1

    logger.info("Populated credentials for %d kid(s)", updated)
    return updated


def _unique_username(
    used: set[str],
    max_attempts: int,
    factory: Callable[[], str],
) -> str | None:
    for _ in range(max_attempts):
        candidate = factory()
        if candidate not in used:
            return candidate
    return None
