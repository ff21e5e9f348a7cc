"""Tracer — validates reporting config and drives the per-operation lifecycle."""

from __future__ import annotations

import logging
import re
import time
import uuid
from collections.abc import Awaitable, Callable, Mapping, Sequence
from inspect import isawaitable
from types import TracebackType
from typing import TYPE_CHECKING, Any

from graphql import (
    FragmentDefinitionNode,
    GraphQLResolveInfo,
    GraphQLSchema,
    OperationDefinitionNode,
)

from graphql_usage_reporting._types import GenerateID, SendReport
from graphql_usage_reporting.context import OperationContext
from graphql_usage_reporting.exceptions import (
    ConfigurationError,
    MissingContext,
    UsageReportingError,
)
from graphql_usage_reporting.extractor import extract_coordinates
from graphql_usage_reporting.report import ClientInfo, Report, new_operation_record
from graphql_usage_reporting.scheduler import DEFAULT_WINDOW, DispatchScheduler
from graphql_usage_reporting.sender import (
    DEFAULT_ENDPOINT,
    DEFAULT_SEND_TIMEOUT,
    HttpReportSender,
)

if TYPE_CHECKING:
    from graphql_usage_reporting.config import UsageReportingSettings

_logger = logging.getLogger(__name__)

# Characters a URL path keeps verbatim
_TARGET_CHARS = re.compile(r"^[A-Za-z0-9\-._~!$&'()*+,;=:@/]+$")

FieldMiddleware = Callable[..., Awaitable[Any]]


def default_generate_id(operation: str, operation_name: str | None) -> str:
    return str(uuid.uuid4())


def validate_target(target: str) -> None:
    """Accept ``<ORGANIZATION>/<PROJECT>/<TARGET>`` or a non-nil UUID."""
    invalid = ConfigurationError(
        f"invalid tracer target {target!r}, must be a valid pathname "
        "<ORGANIZATION>/<PROJECT>/<TARGET> or an UUID <TARGET_ID>"
    )
    if not _TARGET_CHARS.match(target):
        raise invalid

    if "/" in target:
        if target.startswith("/"):
            raise ConfigurationError(
                f"invalid tracer target pathname {target!r}, must not start with a slash"
            )
        parts = target.split("/")
        if len(parts) != 3 or not all(parts):
            raise ConfigurationError(
                f"invalid tracer target pathname {target!r}, must contain 3 parts "
                "<ORGANIZATION>/<PROJECT>/<TARGET>"
            )
        return

    try:
        target_id = uuid.UUID(target)
    except ValueError:
        raise invalid from None
    if target_id.int == 0:
        raise invalid


def validate_token(token: str) -> None:
    if not token or not token.strip():
        raise ConfigurationError("tracer token must not be empty")


class Tracer:
    """Usage tracer for one reporting target.

    Each tracer owns its DispatchScheduler, so independent tracers never
    share pending reports.
    """

    def __init__(
        self,
        target: str,
        token: str,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        generate_id: GenerateID | None = None,
        send_report_timeout: float = DEFAULT_WINDOW,
        send_report: SendReport | None = None,
        send_timeout: float | None = DEFAULT_SEND_TIMEOUT,
        client: ClientInfo | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        validate_target(target)
        validate_token(token)
        if send_timeout is not None and send_timeout <= 0:
            # no deadline
            send_timeout = None

        self.target = target
        self.endpoint = endpoint
        self._token = token
        self._generate_id = generate_id or default_generate_id
        self._send_report = send_report or HttpReportSender(timeout=send_timeout)
        self._client = client or ClientInfo()
        self._log = logger or _logger
        self._scheduler = DispatchScheduler(
            self._deliver,
            window=send_report_timeout,
            send_timeout=send_timeout,
            logger=self._log,
        )

    @classmethod
    def from_settings(
        cls, settings: UsageReportingSettings | None = None, **overrides: Any
    ) -> Tracer:
        """Build a tracer from environment-backed settings."""
        from graphql_usage_reporting.config import UsageReportingSettings

        settings = settings or UsageReportingSettings()
        kwargs: dict[str, Any] = {
            "endpoint": settings.endpoint,
            "send_report_timeout": settings.send_report_timeout,
            "send_timeout": settings.send_timeout,
            "client": ClientInfo(
                name=settings.client_name, version=settings.client_version
            ),
        }
        kwargs.update(overrides)
        return cls(settings.target, settings.token, **kwargs)

    @property
    def scheduler(self) -> DispatchScheduler:
        return self._scheduler

    async def _deliver(self, report: Report) -> None:
        await self._send_report(self.endpoint, self.target, self._token, report)

    def start_operation(
        self,
        *,
        schema: GraphQLSchema,
        operation: OperationDefinitionNode,
        raw_query: str,
        operation_name: str | None = None,
        fragments: Mapping[str, FragmentDefinitionNode] | None = None,
    ) -> OperationContext:
        """Open a record for an operation that is about to execute.

        Raises TypeMismatch if the selection tree does not fit the schema.
        """
        started_ns = time.perf_counter_ns()
        timestamp = time.time_ns() // 1_000_000
        if operation.name is not None:
            operation_name = operation.name.value
        fields = extract_coordinates(schema, operation, fragments)
        record = new_operation_record(
            self._generate_id(raw_query, operation_name),
            raw_query,
            operation_name,
            fields,
            timestamp=timestamp,
            started_ns=started_ns,
            client=self._client,
        )
        return OperationContext.for_record(record)

    def on_field(
        self,
        operation: OperationContext | None,
        field_error: BaseException | None = None,
        collected_errors: Sequence[object] = (),
    ) -> None:
        if operation is None:
            raise MissingContext()
        operation.accumulator.record_field_outcome(field_error, collected_errors)

    def middleware(self, operation: OperationContext | None) -> FieldMiddleware:
        """graphql-core field middleware bound to one operation."""

        async def usage_middleware(
            next_: Callable[..., Any], root: Any, info: GraphQLResolveInfo, **args: Any
        ) -> Any:
            if operation is None:
                raise MissingContext()
            try:
                result = next_(root, info, **args)
                if isawaitable(result):
                    result = await result
            except Exception as exc:
                self._record_field(operation, exc, info)
                raise
            self._record_field(operation, None, info)
            return result

        return usage_middleware

    def _record_field(
        self,
        operation: OperationContext,
        field_error: Exception | None,
        info: GraphQLResolveInfo,
    ) -> None:
        try:
            self.on_field(operation, field_error, operation.pop_field_errors(info.path))
        except UsageReportingError as exc:
            self._log.warning(
                "failed to record field %s for operation %r: %s",
                ".".join(str(key) for key in info.path.as_list()),
                operation.operation_id,
                exc,
            )

    async def end_operation(self, operation: OperationContext) -> None:
        """Close the record and hand it to the scheduler. Never raises."""
        try:
            operation.accumulator.finalize()
            await self._scheduler.submit(operation.record)
        except UsageReportingError as exc:
            self._log.warning(
                "failed to queue operation %r: %s", operation.operation_id, exc
            )

    async def aclose(self) -> None:
        await self._scheduler.aclose()

    async def __aenter__(self) -> Tracer:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
