"""Recording stand-ins for the lease services behind the HTTP handlers."""

from __future__ import annotations

from silkctl.recording import FakeMethod, InvocationRecorder


class _Fake:
    """Base for fakes whose methods share one invocation recorder."""

    def __init__(self) -> None:
        self._recorder = InvocationRecorder()

    def _method(self, name: str) -> FakeMethod:
        return FakeMethod(name, self._recorder)


class FakeLeaseAcquirer(_Fake):
    """Hands out leases through a recording ``acquire_subnet_lease``.

    It takes the underlay IP and whether a single overlay IP is wanted,
    and returns no lease unless told otherwise.
    """

    def __init__(self) -> None:
        super().__init__()
        self.acquire_subnet_lease = self._method("acquire_subnet_lease")

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()


class FakeLeaseReleaser(_Fake):
    """Releases leases through a recording ``release_subnet_lease``."""

    def __init__(self) -> None:
        super().__init__()
        self.release_subnet_lease = self._method("release_subnet_lease")

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()


class FakeLeaseRenewer(_Fake):
    """Renews leases through a recording ``renew_subnet_lease``."""

    def __init__(self) -> None:
        super().__init__()
        self.renew_subnet_lease = self._method("renew_subnet_lease")

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()


class FakeLeaseRepository(_Fake):
    """Lists leases through a recording ``routable_leases``; none by default."""

    def __init__(self) -> None:
        super().__init__()
        self.routable_leases = self._method("routable_leases")
        self.routable_leases.returns([])

    def invocations(self) -> dict[str, list[tuple]]:
        """Arguments of every call made so far, grouped by method name."""
        return self._recorder.invocations()