"""Callables that record their calls and replay configured results."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class _Outcome:
    value: Any = None
    error: Optional[BaseException] = None

    def resolve(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value


def _pack(values: tuple) -> Any:
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return values


class InvocationRecorder:
    """Collects the arguments of every call, grouped by method name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: dict[str, list[tuple]] = {}

    def record(self, name: str, args) -> None:
        with self._lock:
            self._calls.setdefault(name, []).append(tuple(args))

    def invocations(self) -> dict[str, list[tuple]]:
        with self._lock:
            return {name: list(calls) for name, calls in self._calls.items()}


class FakeMethod:
    """A stand-in for a method: records calls, returns or raises as told.

    A ``stub`` callable, when set, decides every result; otherwise a result
    set for a particular call index wins over the default result.
    """

    def __init__(self, name: str, recorder: Optional[InvocationRecorder] = None) -> None:
        self.name = name
        self.recorder = recorder
        self.stub: Optional[Callable[..., Any]] = None
        self._lock = threading.Lock()
        self._calls: list[tuple] = []
        self._default = _Outcome()
        self._on_call: dict[int, _Outcome] = {}

    def __call__(self, *args: Any) -> Any:
        with self._lock:
            specific = self._on_call.get(len(self._calls))
            self._calls.append(args)
            stub = self.stub
        if self.recorder is not None:
            self.recorder.record(self.name, args)
        if stub is not None:
            return stub(*args)
        if specific is not None:
            return specific.resolve()
        return self._default.resolve()

    def call_count(self) -> int:
        with self._lock:
            return len(self._calls)

    def args_for_call(self, index: int) -> tuple:
        with self._lock:
            return self._calls[index]

    def returns(self, *args: Any) -> None:
        self.stub = None
        self._default = _Outcome(value=_pack(args))

    def raises(self, error: BaseException) -> None:
        self.stub = None
        self._default = _Outcome(error=error)

    def returns_on_call(self, index: int, *args: Any) -> None:
        self.stub = None
        self._on_call[index] = _Outcome(value=_pack(args))

    def raises_on_call(self, index: int, error: BaseException) -> None:
        self.stub = None
        self._on_call[index] = _Outcome(error=error)