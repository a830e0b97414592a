"""A small structured logger with nested, numbered sessions."""

from __future__ import annotations

import itertools
import threading
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Mapping, Optional


class LogLevel(IntEnum):
    DEBUG = 0
    INFO = 1
    ERROR = 2
    FATAL = 3


@dataclass(frozen=True)
class LogEntry:
    """One recorded log line."""

    source: str
    message: str
    log_level: LogLevel
    data: dict[str, Any]
    timestamp: float = field(default_factory=time.time, compare=False)


class _Store:
    def __init__(self, sink: Optional[Callable[[LogEntry], Any]]) -> None:
        self.sink = sink
        self.entries: list[LogEntry] = []
        self.lock = threading.Lock()

    def add(self, entry: LogEntry) -> None:
        with self.lock:
            self.entries.append(entry)
        if self.sink is not None:
            self.sink(entry)


class Logger:
    """Records log entries; sessions prefix messages and carry a session id."""

    def __init__(self, component: str, sink: Optional[Callable[[LogEntry], Any]] = None) -> None:
        self._component = component
        self._task = component
        self._session_id = ""
        self._data: dict[str, Any] = {}
        self._store = _Store(sink)
        self._counter = itertools.count(1)
        self._counter_lock = threading.Lock()

    @property
    def component(self) -> str:
        return self._component

    @property
    def task(self) -> str:
        return self._task

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def data(self) -> dict[str, Any]:
        return dict(self._data)

    def session(self, task: str, data: Optional[Mapping[str, Any]] = None) -> "Logger":
        """Return a child logger whose messages are prefixed with ``task``."""
        with self._counter_lock:
            number = next(self._counter)
        session_id = f"{self._session_id}.{number}" if self._session_id else str(number)
        child = object.__new__(Logger)
        child._component = self._component
        child._task = f"{self._task}.{task}"
        child._session_id = session_id
        child._data = {**self._data, **(data or {}), "session": session_id}
        child._store = self._store
        child._counter = itertools.count(1)
        child._counter_lock = threading.Lock()
        return child

    def _log(self, level: LogLevel, action: str, data: Optional[Mapping[str, Any]]) -> None:
        merged = {**self._data, **(data or {})}
        self._store.add(LogEntry(self._component, f"{self._task}.{action}", level, merged))

    def debug(self, action: str, data: Optional[Mapping[str, Any]] = None) -> None:
        self._log(LogLevel.DEBUG, action, data)

    def info(self, action: str, data: Optional[Mapping[str, Any]] = None) -> None:
        self._log(LogLevel.INFO, action, data)

    def error(self, action: str, err: BaseException, data: Optional[Mapping[str, Any]] = None) -> None:
        self._log(LogLevel.ERROR, action, {**(data or {}), "error": str(err)})

    def logs(self) -> list[LogEntry]:
        """All entries recorded by this logger and every logger sharing its root."""
        with self._store.lock:
            return list(self._store.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Logger):
            return NotImplemented
        return (self._component, self._task, self._session_id, self._data) == (
            other._component,
            other._task,
            other._session_id,
            other._data,
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Logger(task={self._task!r}, session={self._session_id!r})"