"""Recording stand-ins for the database collaborators of the lease store."""

from __future__ import annotations

from silkctl.recording import FakeMethod, InvocationRecorder


class _Fake:
    """Base for fakes whose methods share one invocation recorder."""

    def __init__(self) -> None:
        self._recorder = InvocationRecorder()

    def _method(self, name: str) -> FakeMethod:
        return FakeMethod(name, self._recorder)


class FakeDb(_Fake):
    """A database connection whose every method is a FakeMethod.

    Unconfigured methods answer as an empty connection would: no result
    for statements, an empty driver name and rebound query, no rows.
    """

    def __init__(self) -> None:
        super().__init__()
        self.exec = self._method("exec")
        self.rebind = self._method("rebind")
        self.query = self._method("query")
        self.query_row = self._method("query_row")
        self.driver_name = self._method("driver_name")
        self.raw_connection = self._method("raw_connection")

        self.rebind.returns("")
        self.query.returns([])
        self.driver_name.returns("")

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()


class FakeMigrateAdapter(_Fake):
    """A migration runner whose ``exec`` records its arguments."""

    def __init__(self) -> None:
        super().__init__()
        self.exec = self._method("exec")
        self.exec.returns(0)

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()


class FakeDatabaseMigrator(_Fake):
    """Something that can be migrated, with a recording ``migrate``."""

    def __init__(self) -> None:
        super().__init__()
        self.migrate = self._method("migrate")
        self.migrate.returns(0)

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()


class FakeSqlResult(_Fake):
    """The outcome of a statement, with recording accessors."""

    def __init__(self) -> None:
        super().__init__()
        self.last_insert_id = self._method("last_insert_id")
        self.rows_affected = self._method("rows_affected")
        self.last_insert_id.returns(0)
        self.rows_affected.returns(0)

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()