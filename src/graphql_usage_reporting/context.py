"""OperationContext — per-operation state passed from start hook to field hooks."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from graphql.pyutils import Path

from graphql_usage_reporting.accumulator import OutcomeAccumulator
from graphql_usage_reporting.report import OperationRecord

PathKey = tuple[str | int, ...]


def _path_key(path: Path | Sequence[str | int] | None) -> PathKey:
    if path is None:
        return ()
    if isinstance(path, Path):
        return tuple(path.as_list())
    return tuple(path)


@dataclass
class OperationContext:
    """Explicit per-operation scope object threaded into field middleware.

    Resolvers that want to flag an error without failing the field call
    ``report_error`` with their ``info.path``; the error is counted against
    that field once it resolves.
    """

    record: OperationRecord
    accumulator: OutcomeAccumulator
    state: dict[str, Any] = field(default_factory=dict)
    _field_errors: dict[PathKey, list[Exception]] = field(
        default_factory=dict, repr=False
    )
    _collected: list[tuple[PathKey, Exception]] = field(
        default_factory=list, repr=False
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def for_record(cls, record: OperationRecord) -> OperationContext:
        return cls(record=record, accumulator=OutcomeAccumulator(record))

    @property
    def operation_id(self) -> str:
        return self.record.id

    def report_error(
        self, path: Path | Sequence[str | int] | None, error: Exception
    ) -> None:
        key = _path_key(path)
        with self._lock:
            self._field_errors.setdefault(key, []).append(error)
            self._collected.append((key, error))

    def pop_field_errors(self, path: Path | Sequence[str | int] | None) -> list[Exception]:
        with self._lock:
            return self._field_errors.pop(_path_key(path), [])

    @property
    def collected_errors(self) -> list[tuple[PathKey, Exception]]:
        with self._lock:
            return list(self._collected)
