"""Storage of subnet leases in a SQL database."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Protocol, Sequence

from silkctl.models import Lease

POSTGRES_TIME_NOW = "EXTRACT(EPOCH FROM now())::numeric::integer"
MYSQL_TIME_NOW = "UNIX_TIMESTAMP()"
MYSQL = "mysql"
POSTGRES = "postgres"
SQLITE = "sqlite3"

_LEASE_COLUMNS = "underlay_ip, overlay_subnet, overlay_hwaddr"
_MIGRATIONS_TABLE = "gorp_migrations"


class DatabaseError(Exception):
    """A database operation failed."""


class RecordNotAffectedError(DatabaseError):
    """A statement that should have changed a row changed none."""

    def __init__(self, message: str = "record not affected") -> None:
        super().__init__(message)


class NoRowsError(DatabaseError):
    """A query that must return a row returned none."""

    def __init__(self, message: str = "sql: no rows in result set") -> None:
        super().__init__(message)


class ExecResult(Protocol):
    def rows_affected(self) -> int: ...


class Db(Protocol):
    """The database connection the handler works against."""

    def exec(self, query: str, *args: Any) -> ExecResult: ...

    def rebind(self, query: str) -> str: ...

    def query(self, query: str, *args: Any) -> Iterable[Sequence[Any]]: ...

    def query_row(self, query: str, *args: Any) -> Optional[Sequence[Any]]: ...

    def driver_name(self) -> str: ...

    def raw_connection(self) -> Any: ...


class MigrationDirection(Enum):
    UP = "up"
    DOWN = "down"


@dataclass
class Migration:
    id: str
    up: list[str] = field(default_factory=list)
    down: list[str] = field(default_factory=list)


@dataclass
class MigrationSource:
    migrations: list[Migration] = field(default_factory=list)


def _migration_order(migration: Migration) -> tuple:
    prefix = re.match(r"\d+", migration.id)
    if prefix:
        return (0, int(prefix.group()), migration.id)
    return (1, 0, migration.id)


class MigrateAdapter:
    """Applies migrations, tracking applied ids in a bookkeeping table."""

    def exec(self, db: Db, dialect: str, source: MigrationSource, direction: MigrationDirection) -> int:
        if dialect not in (MYSQL, POSTGRES, SQLITE):
            raise DatabaseError(f"unknown dialect: {dialect}")
        db.exec(
            f"CREATE TABLE IF NOT EXISTS {_MIGRATIONS_TABLE} "
            "(id varchar(255) NOT NULL PRIMARY KEY, applied_at bigint)"
        )
        applied = {str(row[0]) for row in db.query(f"SELECT id FROM {_MIGRATIONS_TABLE}")}
        ordered = sorted(source.migrations, key=_migration_order)

        count = 0
        if direction is MigrationDirection.UP:
            for migration in ordered:
                if migration.id in applied:
                    continue
                for statement in migration.up:
                    db.exec(statement)
                db.exec(
                    db.rebind(f"INSERT INTO {_MIGRATIONS_TABLE} (id, applied_at) VALUES (?, ?)"),
                    migration.id,
                    int(time.time()),
                )
                count += 1
        else:
            for migration in reversed(ordered):
                if migration.id not in applied:
                    continue
                for statement in migration.down:
                    db.exec(statement)
                db.exec(db.rebind(f"DELETE FROM {_MIGRATIONS_TABLE} WHERE id = ?"), migration.id)
                count += 1
        return count


def create_subnet_table(db_type: str) -> str:
    """The statement creating the subnets table for a database type, or ''."""
    ids = {
        POSTGRES: "id SERIAL PRIMARY KEY",
        MYSQL: "id int NOT NULL AUTO_INCREMENT, PRIMARY KEY (id)",
    }
    if db_type not in ids:
        return ""
    return (
        "CREATE TABLE IF NOT EXISTS subnets ("
        f"{ids[db_type]}"
        ", underlay_ip varchar(15) NOT NULL"
        ", overlay_subnet varchar(18) NOT NULL"
        ", overlay_hwaddr varchar(17) NOT NULL"
        ", last_renewed_at bigint NOT NULL"
        ", UNIQUE (underlay_ip)"
        ", UNIQUE (overlay_subnet)"
        ", UNIQUE (overlay_hwaddr)"
        ");"
    )


def timestamp_for_driver(driver_name: str) -> str:
    """The SQL expression for the current unix time under a driver."""
    if driver_name == MYSQL:
        return MYSQL_TIME_NOW
    if driver_name == POSTGRES:
        return POSTGRES_TIME_NOW
    raise DatabaseError(f"database type {driver_name} is not supported")


def _row_to_lease(row: Sequence[Any]) -> Lease:
    if len(row) != 3:
        raise DatabaseError(f"expected 3 columns, got {len(row)}")
    underlay_ip, overlay_subnet, overlay_hwaddr = row
    return Lease(underlay_ip, overlay_subnet, overlay_hwaddr)


def _rows_to_leases(rows: Iterable[Sequence[Any]]) -> list[Lease]:
    leases = []
    for row in rows:
        try:
            leases.append(_row_to_lease(row))
        except DatabaseError as err:
            raise DatabaseError(f"parsing result: {err}") from err
    return leases


class DatabaseHandler:
    """Reads and writes subnet leases."""

    def __init__(self, migrator: MigrateAdapter, db: Db) -> None:
        self._migrator = migrator
        self._db = db
        self.migrations = MigrationSource(
            [
                Migration(
                    id="1",
                    up=[create_subnet_table(db.driver_name())],
                    down=["DROP TABLE subnets"],
                )
            ]
        )

    def check_database(self) -> None:
        if self._db.query_row("SELECT 1") is None:
            raise NoRowsError()

    def _select(self, sql: str, context: str) -> list[Lease]:
        try:
            return _rows_to_leases(self._db.query(sql))
        except Exception as err:
            raise DatabaseError(f"{context}: {err}") from err

    def all(self) -> list[Lease]:
        return self._select(f"SELECT {_LEASE_COLUMNS} FROM subnets", "selecting all subnets")

    def all_single_ip_subnets(self) -> list[Lease]:
        return self._select(
            f"SELECT {_LEASE_COLUMNS} FROM subnets WHERE overlay_subnet LIKE '%/32'",
            "selecting all single ip subnets",
        )

    def all_block_subnets(self) -> list[Lease]:
        return self._select(
            f"SELECT {_LEASE_COLUMNS} FROM subnets WHERE overlay_subnet NOT LIKE '%/32'",
            "selecting all block subnets",
        )

    def all_active(self, duration: int) -> list[Lease]:
        timestamp = timestamp_for_driver(self._db.driver_name())
        return self._select(
            f"SELECT {_LEASE_COLUMNS} FROM subnets WHERE last_renewed_at + {int(duration)} > {timestamp}",
            "selecting all active subnets",
        )

    def _oldest_expired(self, condition: str, expiration_time: int) -> Optional[Lease]:
        timestamp = timestamp_for_driver(self._db.driver_name())
        row = self._db.query_row(
            f"SELECT {_LEASE_COLUMNS} FROM subnets WHERE overlay_subnet {condition} '%/32' "
            f"AND last_renewed_at + {int(expiration_time)} <= {timestamp} "
            "ORDER BY last_renewed_at ASC LIMIT 1"
        )
        if row is None:
            return None
        try:
            return _row_to_lease(row)
        except DatabaseError as err:
            raise DatabaseError(f"scan result: {err}") from err

    def oldest_expired_block_subnet(self, expiration_time: int) -> Optional[Lease]:
        return self._oldest_expired("NOT LIKE", expiration_time)

    def oldest_expired_single_ip(self, expiration_time: int) -> Optional[Lease]:
        return self._oldest_expired("LIKE", expiration_time)

    def migrate(self) -> int:
        try:
            return self._migrator.exec(
                self._db, self._db.driver_name(), self.migrations, MigrationDirection.UP
            )
        except Exception as err:
            raise DatabaseError(f"migrating: {err}") from err

    def add_entry(self, lease: Lease) -> None:
        timestamp = timestamp_for_driver(self._db.driver_name())
        query = self._db.rebind(
            "INSERT INTO subnets (underlay_ip, overlay_subnet, overlay_hwaddr, last_renewed_at) "
            f"VALUES (?, ?, ?, {timestamp})"
        )
        try:
            self._db.exec(query, lease.underlay_ip, lease.overlay_subnet, lease.overlay_hardware_addr)
        except Exception as err:
            raise DatabaseError(f"adding entry: {err}") from err

    def delete_entry(self, underlay_ip: str) -> None:
        try:
            result = self._db.exec(self._db.rebind("DELETE FROM subnets WHERE underlay_ip = ?"), underlay_ip)
        except Exception as err:
            raise DatabaseError(f"deleting entry: {err}") from err
        try:
            affected = result.rows_affected()
        except Exception as err:
            raise DatabaseError(f"parse result: {err}") from err
        if affected == 0:
            raise RecordNotAffectedError()

    def lease_for_underlay_ip(self, underlay_ip: str) -> Optional[Lease]:
        row = self._db.query_row(
            self._db.rebind("SELECT overlay_subnet, overlay_hwaddr FROM subnets WHERE underlay_ip = ?"),
            underlay_ip,
        )
        if row is None:
            return None
        if len(row) != 2:
            raise DatabaseError(f"expected 2 columns, got {len(row)}")
        overlay_subnet, overlay_hwaddr = row
        return Lease(underlay_ip, overlay_subnet, overlay_hwaddr)

    def renew_lease_for_underlay_ip(self, underlay_ip: str) -> None:
        timestamp = timestamp_for_driver(self._db.driver_name())
        query = self._db.rebind(f"UPDATE subnets SET last_renewed_at = {timestamp} WHERE underlay_ip = ?")
        try:
            self._db.exec(query, underlay_ip)
        except Exception as err:
            raise DatabaseError(f"renewing lease: {err}") from err

    def last_renewed_at_for_underlay_ip(self, underlay_ip: str) -> int:
        row = self._db.query_row(
            self._db.rebind("SELECT last_renewed_at FROM subnets WHERE underlay_ip = ?"), underlay_ip
        )
        if row is None:
            raise NoRowsError()
        if len(row) != 1:
            raise DatabaseError(f"expected 1 column, got {len(row)}")
        return int(row[0])