"""Seed and backfill CLI commands."""

import click
import httpx

from spellclash.cli.migrate_cmd import open_database
from spellclash.config import AppConfig
from spellclash.persistence import DatabaseError
from spellclash.seeds import (
    populate_kid_credentials,
    seed_bad_words,
    seed_default_public_lists,
)


@click.group()
def seed():
    """Seed and backfill commands. Each is safe to run repeatedly."""
    pass


@seed.command("bad-words")
def bad_words():
    """Download and load the bad-words filter if it is empty."""
    config = AppConfig.from_env()
    with open_database(config) as db:
        try:
            added = seed_bad_words(db)
        except (DatabaseError, httpx.HTTPError) as e:
            click.echo(f"Error seeding bad words: {e}", err=True)
            raise SystemExit(1)
    click.echo(f"Added {added} bad word(s).")


@seed.command("public-lists")
@click.option(
    "--data-path", default=None,
    help="Directory with the word list JSON files (default: DATA_PATH or packaged data).",
)
def public_lists(data_path: str | None):
    """Create any missing default public spelling lists."""
    config = AppConfig.from_env()
    with open_database(config) as db:
        try:
            created = seed_default_public_lists(db, data_path or config.data_path or None)
        except (DatabaseError, ValueError, KeyError) as e:
            click.echo(f"Error seeding public lists: {e}", err=True)
            raise SystemExit(1)
    click.echo(f"Created {created} public list(s).")


@seed.command("kid-credentials")
@click.option(
    "--max-attempts", type=int, default=100, show_default=True,
    help="Username generation attempts per kid before giving up.",
)
def kid_credentials(max_attempts: int):
    """Generate usernames and passwords for kids missing them."""
    config = AppConfig.from_env()
    with open_database(config) as db:
        try:
            updated = populate_kid_credentials(db, max_attempts=max_attempts)
        except DatabaseError as e:
            click.echo(f"Error populating kid credentials: {e}", err=True)
            raise SystemExit(1)
    click.echo(f"Updated {updated} kid(s).")
