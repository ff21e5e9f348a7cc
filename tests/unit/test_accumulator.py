"""Tests for OutcomeAccumulator."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pytest

from graphql_usage_reporting.accumulator import OutcomeAccumulator
from graphql_usage_reporting.exceptions import OperationFinalized


class TestRecordFieldOutcome:
    def test_starts_ok_without_errors(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record())
        assert acc.record.execution.ok is True
        assert acc.record.execution.errors_total == 0

    def test_clean_outcome_changes_nothing(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record())
        acc.record_field_outcome()
        assert acc.record.execution.ok is True
        assert acc.record.execution.errors_total == 0

    def test_field_error_counts_once(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record())
        acc.record_field_outcome(ValueError("boom"))
        assert acc.record.execution.ok is False
        assert acc.record.execution.errors_total == 1

    def test_collected_errors_are_added(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record())
        acc.record_field_outcome(None, [ValueError("a"), ValueError("b")])
        assert acc.record.execution.ok is False
        assert acc.record.execution.errors_total == 2

    def test_field_error_and_collected_errors_combine(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record())
        acc.record_field_outcome(ValueError("a"), [ValueError("b")])
        assert acc.record.execution.errors_total == 2

    def test_ok_never_returns_to_true(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record())
        acc.record_field_outcome(ValueError("a"))
        acc.record_field_outcome()
        acc.record_field_outcome(None, [])
        assert acc.record.execution.ok is False
        assert acc.record.execution.errors_total == 1

    def test_concurrent_threads(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record())
        outcomes: list[tuple[Exception | None, list[Exception]]] = []
        for i in range(200):
            if i % 10 == 0:
                outcomes.append((ValueError("field"), [ValueError("x")] * 2))
            else:
                outcomes.append((None, []))

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(lambda o: acc.record_field_outcome(*o), outcomes))

        assert acc.record.execution.ok is False
        assert acc.record.execution.errors_total == 20 * 3

    def test_concurrent_threads_without_errors(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record())
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: acc.record_field_outcome(), range(100)))
        assert acc.record.execution.ok is True
        assert acc.record.execution.errors_total == 0

    async def test_concurrent_coroutines(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record())

        async def resolve(i: int) -> None:
            await asyncio.sleep(0)
            acc.record_field_outcome(ValueError(str(i)) if i % 2 else None)

        await asyncio.gather(*(resolve(i) for i in range(50)))
        assert acc.record.execution.ok is False
        assert acc.record.execution.errors_total == 25


class TestFinalize:
    def test_sets_duration_once(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record(started_ns=1_000))
        assert acc.finalize(5_000) == 4_000
        assert acc.record.execution.duration == 4_000
        assert acc.record.closed is True

    def test_second_finalize_raises(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record(started_ns=1_000))
        acc.finalize(2_000)
        with pytest.raises(OperationFinalized):
            acc.finalize(9_000)
        assert acc.record.execution.duration == 1_000

    def test_duration_never_negative(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record(started_ns=10_000))
        assert acc.finalize(5_000) == 0

    def test_defaults_to_monotonic_clock(self, make_record: Any) -> None:
        import time

        acc = OutcomeAccumulator(make_record(started_ns=time.perf_counter_ns()))
        assert acc.finalize() >= 0

    def test_outcome_after_finalize_raises(self, make_record: Any) -> None:
        acc = OutcomeAccumulator(make_record())
        acc.finalize(1)
        with pytest.raises(OperationFinalized):
            acc.record_field_outcome(ValueError("late"))
        assert acc.record.execution.errors_total == 0
