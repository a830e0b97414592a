"""Retrying application of database migrations at start-up."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol

from silkctl.database import DatabaseError
from silkctl.logsession import Logger


class _DatabaseMigrator(Protocol):
    def migrate(self) -> int: ...


@dataclass
class Migrator:
    """Runs migrations, retrying a bounded number of times on failure."""

    database_migrator: _DatabaseMigrator
    max_migration_attempts: int
    migration_attempt_sleep_duration: float
    logger: Logger

    def try_migrations(self) -> None:
        """Migrate the database, raising once every attempt has failed."""
        last_error: BaseException | None = None
        for _ in range(self.max_migration_attempts):
            try:
                applied = self.database_migrator.migrate()
            except Exception as err:
                last_error = err
                time.sleep(self.migration_attempt_sleep_duration)
                continue
            self.logger.info("db-migration-complete", {"num-applied": applied})
            return
        raise DatabaseError(f"creating table: {last_error}") from last_error