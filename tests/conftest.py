"""Shared fixtures for dwh_schema tests."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import pytest

from dwh_schema.storage import BlobMarker

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """Return ``T0`` shifted by *minutes*."""
    return T0 + timedelta(minutes=minutes)


class FakeBlobStore:
    """In-memory stand-in for :class:`dwh_schema.storage.BlobStore`.

    Blobs are keyed by ``(container, name)`` and hold ``(text, last_modified,
    creation_time)``.  Records every property fetch and every write.
    """

    def __init__(self, containers: Optional[List[str]] = None) -> None:
        self._containers: List[str] = list(containers or [])
        self.blobs: Dict[Tuple[str, str], Tuple[str, Optional[datetime], Optional[datetime]]] = {}
        self.fetches: List[Tuple[str, str]] = []
        self.writes: List[Tuple[str, str]] = []
        self.write_time = at(1000)

    def put(
        self,
        container: str,
        name: str,
        text: str = "",
        last_modified: Optional[datetime] = None,
        creation_time: Optional[datetime] = None,
    ) -> None:
        if container not in self._containers:
            self._containers.append(container)
        self.blobs[(container, name)] = (text, last_modified, creation_time)

    def list_containers(self):
        yield from list(self._containers)

    def get_marker(self, container: str, name: str) -> Optional[BlobMarker]:
        if (container, name) not in self.blobs:
            return None
        return BlobMarker(container, name)

    def fetch_properties(self, marker: BlobMarker) -> BlobMarker:
        self.fetches.append((marker.container, marker.name))
        _, modified, created = self.blobs[(marker.container, marker.name)]
        return replace(marker, last_modified=modified, creation_time=created)

    def read_text(self, container: str, name: str) -> Optional[str]:
        entry = self.blobs.get((container, name))
        return None if entry is None else entry[0]

    def write_empty(self, container: str, name: str) -> None:
        self.writes.append((container, name))
        self.blobs[(container, name)] = ("", self.write_time, self.write_time)


class FakeCursor:
    def __init__(self, sql: "FakeSQL") -> None:
        self._sql = sql

    def execute(self, command: str) -> None:
        self._sql.attempts.append(command)
        if self._sql.failures_left(command) > 0:
            self._sql.consume_failure(command)
            raise RuntimeError("transient SQL failure")
        self._sql.executed.append(command)


class FakeConnection:
    def __init__(self, sql: "FakeSQL") -> None:
        self._sql = sql
        self.committed = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self._sql)

    def commit(self) -> None:
        self.committed = True


class _ConnectionContext:
    def __init__(self, sql: "FakeSQL") -> None:
        self._sql = sql

    def __enter__(self) -> FakeConnection:
        self._sql.opened += 1
        return FakeConnection(self._sql)

    def __exit__(self, *exc) -> None:
        self._sql.closed += 1


class FakeSQL:
    """Connection factory for :class:`RetryingExecutor` that records traffic.

    *fail_times* maps a substring of a command to how many times commands
    containing it should fail before succeeding (``-1`` = always fail).
    """

    def __init__(self, fail_times: Optional[Dict[str, int]] = None) -> None:
        self._fail_times = dict(fail_times or {})
        self.attempts: List[str] = []
        self.executed: List[str] = []
        self.opened = 0
        self.closed = 0

    def _key(self, command: str) -> Optional[str]:
        for key in self._fail_times:
            if key in command:
                return key
        return None

    def failures_left(self, command: str) -> int:
        key = self._key(command)
        if key is None:
            return 0
        left = self._fail_times[key]
        return 1 if left < 0 else left

    def consume_failure(self, command: str) -> None:
        key = self._key(command)
        if key is not None and self._fail_times[key] > 0:
            self._fail_times[key] -= 1

    def connect(self) -> _ConnectionContext:
        return _ConnectionContext(self)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def descriptor_json(tables: List[dict]) -> str:
    return json.dumps({"Tables": tables})


TRADES_ORDERS = [
    {
        "TableName": "Trades",
        "AzureBlobFolder": "trades/",
        "Columns": [
            {"ColumnName": "Date", "ColumnType": "DateTime"},
            {"ColumnName": "Amount", "ColumnType": "Double"},
        ],
    },
    {
        "TableName": "Orders",
        "AzureBlobFolder": "orders/",
        "Columns": [{"ColumnName": "Id", "ColumnType": "Boolean"}],
    },
]


@pytest.fixture()
def store():
    return FakeBlobStore()


@pytest.fixture()
def fake_sql():
    """Return the ``FakeSQL`` *class* so tests can configure failures."""
    return FakeSQL


@pytest.fixture()
def sleeper():
    return SleepRecorder()
