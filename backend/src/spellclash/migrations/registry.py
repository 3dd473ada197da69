"""Programmatic migration steps.

Most migration files are plain SQL run verbatim. A few filenames are bound
to Python steps instead; the runner looks them up here by exact filename
and runs the step in place of the file's contents.
"""

from __future__ import annotations

from collections.abc import Callable

from spellclash.persistence import Transaction

# Step signature: (Transaction) -> None, run inside the migration's transaction
MigrationStep = Callable[[Transaction], None]

KID_CREDENTIALS_MIGRATION = "009_populate_kid_credentials.sql"


class MigrationRegistry:
    """Maps migration filenames to programmatic steps.

    Example:
        registry = MigrationRegistry()
        registry.register("012_backfill.sql", backfill_step)
    """

    def __init__(self) -> None:
        self._steps: dict[str, MigrationStep] = {}

    def register(self, filename: str, step: MigrationStep) -> None:
        """Bind a step to a filename.

        Raises:
            ValueError: If a different step is already bound to the filename.
        """
        existing = self._steps.get(filename)
        if existing is not None and existing is not step:
            raise ValueError(f"Migration step for '{filename}' is already registered")
        self._steps[filename] = step

    def get(self, filename: str) -> MigrationStep | None:
        return self._steps.get(filename)

    def is_registered(self, filename: str) -> bool:
        return filename in self._steps

    def list_registered(self) -> list[str]:
        return sorted(self._steps)

    def __contains__(self, filename: object) -> bool:
        return filename in self._steps


def _populate_kid_credentials(tx: Transaction) -> None:
    from spellclash.seeds.kid_credentials import populate_kid_credentials

    populate_kid_credentials(tx)


def default_registry() -> MigrationRegistry:
    """Registry with the steps the application ships with."""
    registry = MigrationRegistry()
    registry.register(KID_CREDENTIALS_MIGRATION, _populate_kid_credentials)
    return registry
