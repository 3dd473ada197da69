"""Migrate CLI commands: apply and status."""

from contextlib import contextmanager

import click

from spellclash.config import AppConfig
from spellclash.migrations import get_migration_status, run_migrations
from spellclash.persistence import DatabaseError, create_database


@contextmanager
def open_database(config: AppConfig):
    """Connected Database for a CLI command; errors exit with status 1."""
    try:
        db = create_database(config.database)
        db.connect()
    except DatabaseError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    try:
        yield db
    finally:
        db.close()


@click.group()
def migrate():
    """Migration commands."""
    pass


@migrate.command()
@click.option(
    "--path", "migrations_path", default=None,
    help="Migrations root (default: MIGRATIONS_PATH or ./migrations).",
)
def apply(migrations_path: str | None):
    """Apply all pending migrations."""
    config = AppConfig.from_env()
    path = migrations_path or config.migrations_path
    with open_database(config) as db:
        click.echo(f"Database: {db.dialect.name}")
        try:
            applied = run_migrations(db, path)
        except DatabaseError as e:
            click.echo(f"Error applying migrations: {e}", err=True)
            raise SystemExit(1)

    if not applied:
        click.echo("No pending migrations.")
        return
    for filename in applied:
        click.echo(f"  + {filename}")
    click.echo(f"Applied {len(applied)} migration(s).")


@migrate.command()
@click.option(
    "--path", "migrations_path", default=None,
    help="Migrations root (default: MIGRATIONS_PATH or ./migrations).",
)
def status(migrations_path: str | None):
    """Show migration status."""
    config = AppConfig.from_env()
    path = migrations_path or config.migrations_path

    with open_database(config) as db:
        try:
            migrations = get_migration_status(db, path)
        except DatabaseError as e:
            click.echo(f"Error reading migration status: {e}", err=True)
            raise SystemExit(1)

    if not migrations:
        click.echo("No migrations found.")
        return

    for m in migrations:
        marker = "[x]" if m.is_applied else "[ ]"
        applied_at = f"  ({m.applied_at})" if m.applied_at else ""
        click.echo(f"  {marker} {m.filename}{applied_at}")

    pending = sum(1 for m in migrations if not m.is_applied)
    click.echo(f"\n{len(migrations)} migration(s), {pending} pending.")
