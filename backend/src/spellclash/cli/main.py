"""SpellClash CLI entry point."""

import logging
import os

import click

from spellclash.config import AppConfig
from spellclash.persistence import DatabaseError


@click.group()
@click.option(
    "--log-level",
    default=lambda: os.environ.get("LOG_LEVEL", "INFO"),
    show_default="LOG_LEVEL or INFO",
    help="Logging level (DEBUG, INFO, WARNING, ERROR).",
)
def cli(log_level: str):
    """SpellClash: spelling practice backend CLI."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
def bootstrap():
    """Connect, run migrations and seed default data, then exit."""
    from spellclash.startup import bootstrap as run_bootstrap

    config = AppConfig.from_env()
    try:
        db = run_bootstrap(config)
    except DatabaseError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    db.close()
    click.echo("Startup sequence complete.")


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True, help="Bind address.")
@click.option("--port", type=int, default=None, help="Port (default: PORT or 8080).")
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes.")
def serve(host: str, port: int | None, reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    config = AppConfig.from_env()
    uvicorn.run(
        "spellclash.api.app:app",
        host=host,
        port=port or config.port,
        reload=reload,
        log_level=logging.getLevelName(logging.getLogger().level).lower(),
    )


# Register subcommand groups
from spellclash.cli.migrate_cmd import migrate  # noqa: E402
from spellclash.cli.seed_cmd import seed  # noqa: E402

cli.add_command(migrate)
cli.add_command(seed)
