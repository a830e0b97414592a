"""HTTP handlers for acquiring, renewing, releasing and listing leases."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import IO, Any, Callable, Mapping, Optional, Protocol, Union

from silkctl.logsession import Logger
from silkctl.models import Lease, NonRetriableError


@dataclass(eq=False)
class Request:
    """An incoming HTTP request; the body may be bytes or a readable stream."""

    method: str = "GET"
    url: str = "/"
    body: Union[bytes, bytearray, str, IO[bytes], None] = None
    remote_addr: str = ""


@dataclass(eq=False)
class Response:
    """An outgoing HTTP response that collects what is written to it."""

    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytearray = field(default_factory=bytearray)

    def write(self, data: bytes) -> int:
        self.body.extend(data)
        return len(data)


class _ErrorResponse(Protocol):
    def internal_server_error(self, logger: Logger, response: Response, err: BaseException, description: str) -> None: ...

    def bad_request(self, logger: Logger, response: Response, err: BaseException, description: str) -> None: ...

    def conflict(self, logger: Logger, response: Response, err: BaseException, description: str) -> None: ...


Marshaler = Callable[[Any], bytes]
Unmarshaler = Callable[[bytes], Any]
HandlerFunc = Callable[[Logger, Response, Request], None]


def _json_marshal(value: Any) -> bytes:
    return json.dumps(value).encode()


def _json_unmarshal(data: bytes) -> Any:
    return json.loads(data)


class _NoLeaseAvailableError(Exception):
    def __init__(self) -> None:
        super().__init__("no lease available")


def _read_body(request: Request) -> bytes:
    body = request.body
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode()
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    return body.read()


def _as_object(payload: Any) -> Mapping[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise TypeError(f"request must be a JSON object, not {type(payload).__name__}")
    return payload


def _parse_acquire(payload: Any) -> tuple[str, bool]:
    data = _as_object(payload)
    underlay_ip = data.get("underlay_ip") or ""
    single = data.get("single_overlay_ip") or False
    if not isinstance(underlay_ip, str):
        raise TypeError("underlay_ip must be a string")
    if not isinstance(single, bool):
        raise TypeError("single_overlay_ip must be a boolean")
    return underlay_ip, single


def _parse_release(payload: Any) -> str:
    underlay_ip = _as_object(payload).get("underlay_ip") or ""
    if not isinstance(underlay_ip, str):
        raise TypeError("underlay_ip must be a string")
    return underlay_ip


class _DatabaseChecker(Protocol):
    def check_database(self) -> None: ...


@dataclass
class Health:
    """Reports whether the database can be reached."""

    database_checker: _DatabaseChecker
    error_response: _ErrorResponse

    def serve_http(self, logger: Logger, response: Response, request: Request) -> None:
        logger = logger.session("health")
        try:
            self.database_checker.check_database()
        except Exception as err:
            self.error_response.internal_server_error(logger, response, err, "check database failed")


class _LeaseAcquirer(Protocol):
    def acquire_subnet_lease(self, underlay_ip: str, single_overlay_ip: bool) -> Optional[Lease]: ...


@dataclass
class LeasesAcquire:
    """Hands out a lease to the host named in the request."""

    lease_acquirer: _LeaseAcquirer
    error_response: _ErrorResponse
    marshaler: Marshaler = _json_marshal
    unmarshaler: Unmarshaler = _json_unmarshal

    def serve_http(self, logger: Logger, response: Response, request: Request) -> None:
        logger = logger.session("leases-acquire")
        try:
            body = _read_body(request)
        except Exception as err:
            self.error_response.bad_request(logger, response, err, f"read-body: {err}")
            return
        try:
            underlay_ip, single_overlay_ip = _parse_acquire(self.unmarshaler(body))
        except Exception as err:
            self.error_response.bad_request(logger, response, err, f"unmarshal-request: {err}")
            return
        try:
            lease = self.lease_acquirer.acquire_subnet_lease(underlay_ip, single_overlay_ip)
        except Exception as err:
            self.error_response.internal_server_error(logger, response, err, str(err))
            return
        if lease is None:
            missing = _NoLeaseAvailableError()
            self.error_response.conflict(logger, response, missing, str(missing))
            return
        try:
            data = self.marshaler(lease.to_dict())
        except Exception as err:
            self.error_response.internal_server_error(logger, response, err, f"marshal-response: {err}")
            return
        response.write(data)


class _LeaseRepository(Protocol):
    def routable_leases(self) -> list[Lease]: ...


@dataclass
class LeasesIndex:
    """Lists the leases that can currently be routed to."""

    lease_repository: _LeaseRepository
    error_response: _ErrorResponse
    marshaler: Marshaler = _json_marshal

    def serve_http(self, logger: Logger, response: Response, request: Request) -> None:
        logger = logger.session("leases-index")
        try:
            leases = self.lease_repository.routable_leases()
        except Exception as err:
            self.error_response.internal_server_error(logger, response, err, f"all-routable-leases: {err}")
            return
        try:
            data = self.marshaler({"leases": [lease.to_dict() for lease in leases or []]})
        except Exception as err:
            self.error_response.internal_server_error(logger, response, err, f"marshal-response: {err}")
            return
        response.write(data)


class _LeaseReleaser(Protocol):
    def release_subnet_lease(self, underlay_ip: str) -> None: ...


@dataclass
class ReleaseLease:
    """Gives back the lease held by the host named in the request."""

    lease_releaser: _LeaseReleaser
    error_response: _ErrorResponse
    marshaler: Marshaler = _json_marshal
    unmarshaler: Unmarshaler = _json_unmarshal

    def serve_http(self, logger: Logger, response: Response, request: Request) -> None:
        logger = logger.session("leases-release")
        try:
            body = _read_body(request)
        except Exception as err:
            self.error_response.bad_request(logger, response, err, f"read-body: {err}")
            return
        try:
            underlay_ip = _parse_release(self.unmarshaler(body))
        except Exception as err:
            self.error_response.bad_request(logger, response, err, f"unmarshal-request: {err}")
            return
        try:
            self.lease_releaser.release_subnet_lease(underlay_ip)
        except Exception as err:
            self.error_response.internal_server_error(logger, response, err, str(err))
            return
        response.write(b"{}")


class _LeaseRenewer(Protocol):
    def renew_subnet_lease(self, lease: Lease) -> None: ...


@dataclass
class RenewLease:
    """Extends the lease given in the request."""

    lease_renewer: _LeaseRenewer
    error_response: _ErrorResponse
    unmarshaler: Unmarshaler = _json_unmarshal

    def serve_http(self, logger: Logger, response: Response, request: Request) -> None:
        logger = logger.session("leases-renew")
        try:
            body = _read_body(request)
        except Exception as err:
            self.error_response.bad_request(logger, response, err, f"read-body: {err}")
            return
        try:
            lease = Lease.from_dict(_as_object(self.unmarshaler(body)))
        except Exception as err:
            self.error_response.bad_request(logger, response, err, f"unmarshal-request: {err}")
            return
        try:
            self.lease_renewer.renew_subnet_lease(lease)
        except NonRetriableError as err:
            self.error_response.conflict(logger, response, err, f"renew-subnet-lease: {err}")
            return
        except Exception as err:
            self.error_response.internal_server_error(logger, response, err, f"renew-subnet-lease: {err}")
            return
        response.write(b"{}")


def log_wrap(logger: Logger, handler: HandlerFunc) -> Callable[[Response, Request], None]:
    """Wrap a handler so each request runs in its own "request" log session."""

    def serve(response: Response, request: Request) -> None:
        request_logger = logger.session("request", {"method": request.method, "request": request.url})
        request_logger.debug("serving")
        try:
            handler(request_logger, response, request)
        finally:
            request_logger.debug("done")

    return serve