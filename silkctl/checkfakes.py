"""Recording stand-ins for the collaborators of the HTTP handlers."""

from __future__ import annotations

from silkctl.recording import FakeMethod, InvocationRecorder


class _Fake:
    """Base for fakes whose methods share one invocation recorder."""

    def __init__(self) -> None:
        self._recorder = InvocationRecorder()

    def _method(self, name: str) -> FakeMethod:
        return FakeMethod(name, self._recorder)


class FakeDatabaseChecker(_Fake):
    """A health probe whose ``check_database`` succeeds unless told otherwise."""

    def __init__(self) -> None:
        super().__init__()
        self.check_database = self._method("check_database")

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()


class FakeErrorResponse(_Fake):
    """An error writer that records each error it is asked to report.

    Each method takes the logger, the response, the error and a description.
    """

    def __init__(self) -> None:
        super().__init__()
        self.internal_server_error = self._method("internal_server_error")
        self.bad_request = self._method("bad_request")
        self.conflict = self._method("conflict")

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()


class FakeHardwareAddressGenerator(_Fake):
    """A VTEP hardware address generator with a recording ``generate_for_vtep``."""

    def __init__(self) -> None:
        super().__init__()
        self.generate_for_vtep = self._method("generate_for_vtep")

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()