# silkctl

Building blocks for the server side of an overlay network controller that
hands out subnet leases to hosts. A host is known by its underlay IP and holds
either a block subnet (such as `10.255.17.0/24`) or a single overlay IP (a
`/32`), together with a hardware address for its tunnel endpoint.

The package has no third-party dependencies.

## Modules

### `silkctl.models`

- `Lease(underlay_ip, overlay_subnet, overlay_hardware_addr)`: a frozen
  dataclass. `to_dict()` gives its JSON form with the keys `underlay_ip`,
  `overlay_subnet` and `overlay_hardware_addr`; `Lease.from_dict(data)` builds
  one back, treating missing or null fields as empty strings and raising
  `TypeError` for anything that is not a mapping of strings.
- `NonRetriableError`: raised for failures that repeating the request cannot
  fix.

### `silkctl.database`

- `DatabaseHandler(migrator, db)` keeps leases in a `subnets` table:
  `migrate()`, `check_database()`, `all()`, `all_single_ip_subnets()`,
  `all_block_subnets()`, `all_active(duration)`,
  `oldest_expired_block_subnet(expiration_time)`,
  `oldest_expired_single_ip(expiration_time)`, `add_entry(lease)`,
  `delete_entry(underlay_ip)`, `lease_for_underlay_ip(underlay_ip)`,
  `renew_lease_for_underlay_ip(underlay_ip)` and
  `last_renewed_at_for_underlay_ip(underlay_ip)`. Times are unix seconds
  taken from the database server.
- `MigrateAdapter().exec(db, dialect, source, direction)` applies the
  migrations of a `MigrationSource` (a list of `Migration(id, up, down)`) in
  the given `MigrationDirection`, recording applied ids in a
  `gorp_migrations` table, and returns how many it applied.
- `create_subnet_table(db_type)` and `timestamp_for_driver(driver_name)` give
  the MySQL and PostgreSQL forms of the schema and of "now".
- Errors: `DatabaseError`, with the subclasses `RecordNotAffectedError`
  (deleting an entry that does not exist) and `NoRowsError`. An unsupported
  driver raises `DatabaseError("database type <name> is not supported")`.

`db` is any object with the methods of the `Db` protocol: `exec(query, *args)`
returning an object with `rows_affected()`, `rebind(query)` turning `?`
placeholders into the driver's own, `query(query, *args)` returning rows,
`query_row(query, *args)` returning one row or `None`, `driver_name()`
(`"mysql"` or `"postgres"`) and `raw_connection()`.

### `silkctl.migrator`

`Migrator(database_migrator, max_migration_attempts,
migration_attempt_sleep_duration, logger).try_migrations()` calls
`database_migrator.migrate()` up to `max_migration_attempts` times, sleeping
the given number of seconds after each failure. On success it logs
`db-migration-complete` with `num-applied`; when every attempt fails it raises
`DatabaseError("creating table: <last error>")`.

### `silkctl.handlers`

`Request(method, url, body, remote_addr)` and `Response(status_code, headers,
body)` carry a request and collect a response. Each handler has
`serve_http(logger, response, request)` and reports failures through an
error-response object with `bad_request`, `internal_server_error` and
`conflict` methods, each called with the logger, the response, the error and a
description:

- `Health(database_checker, error_response)`
- `LeasesAcquire(lease_acquirer, error_response, marshaler, unmarshaler)`:
  reads `underlay_ip` and `single_overlay_ip`; no lease available is a
  conflict.
- `LeasesIndex(lease_repository, error_response, marshaler)`: writes
  `{"leases": [...]}`.
- `ReleaseLease(lease_releaser, error_response, marshaler, unmarshaler)`
- `RenewLease(lease_renewer, error_response, unmarshaler)`: a
  `NonRetriableError` from the renewer is a conflict.

Marshalers and unmarshalers default to JSON. `log_wrap(logger, handler)`
returns a `(response, request)` callable that runs the handler in a
`request` log session, logging `serving` before and `done` after.

### `silkctl.logsession`

`Logger(component, sink=None)` records `LogEntry` values at a `LogLevel`.
`session(task, data)` returns a child whose messages are prefixed with the
task and whose data carries a numbered `session` id (`"1"`, `"1.1"`, ...).
`debug`, `info` and `error` log; `logs()` returns every entry recorded under
the same root logger. `sink`, if given, is called with each entry.

### Test doubles

`silkctl.recording.FakeMethod` records its calls (`call_count()`,
`args_for_call(i)`) and answers with `returns(...)`, `raises(error)`,
`returns_on_call(i, ...)`, `raises_on_call(i, error)` or a `stub` callable.
`InvocationRecorder` groups calls by method name. Built on these:

- `silkctl.dbfakes`: `FakeDb`, `FakeMigrateAdapter`, `FakeDatabaseMigrator`,
  `FakeSqlResult`
- `silkctl.checkfakes`: `FakeDatabaseChecker`, `FakeErrorResponse`,
  `FakeHardwareAddressGenerator`
- `silkctl.leasefakes`: `FakeLeaseAcquirer`, `FakeLeaseReleaser`,
  `FakeLeaseRenewer`, `FakeLeaseRepository`

Each has `invocations()`.

## Example

```python
from silkctl.database import DatabaseHandler, MigrateAdapter
from silkctl.models import Lease

handler = DatabaseHandler(MigrateAdapter(), db)  # db: an object with the Db methods
handler.migrate()
handler.add_entry(Lease(
    underlay_ip="10.244.11.22",
    overlay_subnet="10.255.17.0/24",
    overlay_hardware_addr="ee:ee:00:00:00:01",
))
print(handler.all_active(60))
```

## What the package does not do

- It has no database driver or connection wrapper; you supply the `db`
  object.
- It does not choose subnets or hardware addresses: acquiring, renewing,
  releasing and listing leases are left to the objects given to the handlers.
- It has no HTTP server, routing, TLS or error-response writer, and no
  command-line program; the handlers are called directly with `Request` and
  `Response` objects.

## Running the tests

```
pip install -e ".[test]"
pytest
```