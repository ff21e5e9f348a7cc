"""DispatchScheduler — synchronous or debounced report flushing."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from types import TracebackType

from graphql_usage_reporting._types import DeliverReport
from graphql_usage_reporting.exceptions import DeliveryFailure
from graphql_usage_reporting.report import OperationRecord, Report
from graphql_usage_reporting.store import ReportStore

_logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 3.0


class DispatchScheduler:
    """Owns a ReportStore and decides when its contents are sent.

    With ``window <= 0`` every submitted operation is sent inline. With a
    positive window a single consumer task waits for the first pending
    operation, sleeps for the window, then snapshots and sends everything
    that accumulated. Delivery is at most once: a failed report is logged
    and dropped. A ``send_timeout`` of None or <= 0 means no deadline.
    """

    def __init__(
        self,
        send: DeliverReport,
        *,
        window: float = DEFAULT_WINDOW,
        send_timeout: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._send = send
        self._window = window
        self._send_timeout = send_timeout if send_timeout and send_timeout > 0 else None
        self._log = logger or _logger
        self._store = ReportStore()
        # Guards store mutation together with the wake flag
        self._lock = threading.Lock()
        self._wake: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def synchronous(self) -> bool:
        return self._window <= 0 or self._closed

    @property
    def pending(self) -> int:
        return len(self._store)

    async def submit(self, record: OperationRecord) -> None:
        """Queue a closed record. Raises DuplicateOperation on a repeated id."""
        if self.synchronous:
            with self._lock:
                self._store.insert(record)
                report = self._store.snapshot_and_clear()
            if report.size:
                await self._deliver(report)
            return

        wake = self._ensure_consumer()
        with self._lock:
            self._store.insert(record)
            wake.set()

    async def flush(self) -> None:
        """Send whatever is pending right now."""
        with self._lock:
            report = self._store.snapshot_and_clear()
            if self._wake is not None:
                self._wake.clear()
        if report.size:
            await self._deliver(report)

    async def aclose(self) -> None:
        self._closed = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self.flush()

    async def __aenter__(self) -> DispatchScheduler:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _ensure_consumer(self) -> asyncio.Event:
        if self._task is None or self._task.done() or self._wake is None:
            # asyncio.Event binds to the loop it first waits on
            wake = asyncio.Event()
            with self._lock:
                self._wake = wake
                if len(self._store):
                    wake.set()
            self._task = asyncio.get_running_loop().create_task(self._consume(wake))
        return self._wake

    async def _consume(self, wake: asyncio.Event) -> None:
        while True:
            await wake.wait()
            await asyncio.sleep(self._window)
            with self._lock:
                report = self._store.snapshot_and_clear()
                wake.clear()
            if report.size:
                await self._deliver(report)

    async def _deliver(self, report: Report) -> None:
        ids = [info.id for info in report.infos]
        try:
            if self._send_timeout is None:
                await self._send(report)
            else:
                await asyncio.wait_for(self._send(report), timeout=self._send_timeout)
        except asyncio.TimeoutError as exc:
            self._log.warning(
                "failed to send report for operations %s: %s",
                ids,
                DeliveryFailure(
                    f"report sending timed out after {self._send_timeout}s", cause=exc
                ),
            )
        except DeliveryFailure as exc:
            self._log.warning("failed to send report for operations %s: %s", ids, exc)
        except Exception as exc:
            self._log.warning(
                "failed to send report for operations %s: %s",
                ids,
                DeliveryFailure("report sender raised", cause=exc),
                exc_info=exc,
            )
        else:
            self._log.debug("sent report with %d operation(s)", report.size)
