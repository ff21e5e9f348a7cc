"""ReportStore — pending operations keyed by id until the next flush."""

from __future__ import annotations

import threading

from graphql_usage_reporting.exceptions import DuplicateOperation
from graphql_usage_reporting.report import OperationRecord, Report


class ReportStore:
    """Thread-safe accumulator for one report."""

    def __init__(self) -> None:
        self._report = Report()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return self._report.size

    def insert(self, record: OperationRecord) -> None:
        with self._lock:
            if record.id in self._report.operations:
                raise DuplicateOperation(record.id)
            self._report.size += 1
            self._report.operations[record.id] = record.body
            self._report.infos.append(record.info)

    def snapshot_and_clear(self) -> Report:
        with self._lock:
            report, self._report = self._report, Report()
        return report
