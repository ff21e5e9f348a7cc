"""OutcomeAccumulator — concurrency-safe execution outcome for one operation."""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence

from graphql_usage_reporting.exceptions import OperationFinalized
from graphql_usage_reporting.report import OperationRecord


class OutcomeAccumulator:
    """Collects field outcomes for one record, then fixes its duration once.

    Sibling fields may resolve in parallel coroutines or threads; every
    update happens under a lock and only ever ORs into ``ok`` or adds to
    ``errors_total``.
    """

    def __init__(self, record: OperationRecord) -> None:
        self._record = record
        self._lock = threading.Lock()

    @property
    def record(self) -> OperationRecord:
        return self._record

    def record_field_outcome(
        self,
        field_error: BaseException | None = None,
        collected_errors: Sequence[object] = (),
    ) -> None:
        errors = len(collected_errors)
        with self._lock:
            if self._record.closed:
                raise OperationFinalized(self._record.id)
            execution = self._record.execution
            if field_error is not None:
                execution.ok = False
                execution.errors_total += 1
            if errors:
                execution.ok = False
                execution.errors_total += errors

    def finalize(self, end_ns: int | None = None) -> int:
        """Fix the duration in nanoseconds. Callers must await all fields first."""
        if end_ns is None:
            end_ns = time.perf_counter_ns()
        with self._lock:
            if self._record.closed:
                raise OperationFinalized(self._record.id)
            duration = max(end_ns - self._record.started_ns, 0)
            self._record.execution.duration = duration
            self._record.closed = True
        return duration
