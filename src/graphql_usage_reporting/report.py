"""OperationRecord and Report — usage data and its wire shape."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CLIENT_NAME = "graphql-usage-reporting"
CLIENT_VERSION = "0.1.0"


@dataclass(frozen=True)
class ClientInfo:
    """Reporting client identity attached to every operation."""

    name: str = CLIENT_NAME
    version: str = CLIENT_VERSION


@dataclass(frozen=True)
class OperationBody:
    """Static part of an operation, keyed by id in the report map."""

    operation: str
    operation_name: str | None = None
    fields: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"operation": self.operation}
        if self.operation_name is not None:
            body["operationName"] = self.operation_name
        body["fields"] = list(self.fields)
        return body


@dataclass
class Execution:
    """Execution outcome. Mutated only through an OutcomeAccumulator."""

    ok: bool = True
    duration: int = 0
    errors_total: int = 0


@dataclass
class OperationInfo:
    """Per-execution data for one operation."""

    id: str
    timestamp: int
    execution: Execution = field(default_factory=Execution)
    client: ClientInfo = field(default_factory=ClientInfo)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operationMapKey": self.id,
            "timestamp": self.timestamp,
            "execution": {
                "ok": self.execution.ok,
                "duration": self.execution.duration,
                "errorsTotal": self.execution.errors_total,
            },
            "metadata": {
                "client": {"name": self.client.name, "version": self.client.version},
            },
        }


@dataclass
class OperationRecord:
    """One traced operation, from start hook until it is handed to the store.

    ``started_ns`` is a monotonic clock reading used only to compute the
    duration; ``closed`` flips once the duration has been fixed.
    """

    body: OperationBody
    info: OperationInfo
    started_ns: int = 0
    closed: bool = False

    @property
    def id(self) -> str:
        return self.info.id

    @property
    def execution(self) -> Execution:
        return self.info.execution


def _normalize_name(name: str | None) -> str | None:
    if name is None:
        return None
    trimmed = name.strip()
    return trimmed or None


def new_operation_record(
    operation_id: str,
    operation: str,
    operation_name: str | None,
    fields: list[str],
    *,
    timestamp: int,
    started_ns: int,
    client: ClientInfo | None = None,
) -> OperationRecord:
    """Build an open record; execution starts as ok with no errors."""
    return OperationRecord(
        body=OperationBody(
            operation=operation,
            operation_name=_normalize_name(operation_name),
            fields=tuple(fields),
        ),
        info=OperationInfo(
            id=operation_id,
            timestamp=timestamp,
            client=client or ClientInfo(),
        ),
        started_ns=started_ns,
    )


@dataclass
class Report:
    """Batch of operations accumulated for one flush."""

    size: int = 0
    operations: dict[str, OperationBody] = field(default_factory=dict)
    infos: list[OperationInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "map": {key: body.to_dict() for key, body in self.operations.items()},
            "operations": [info.to_dict() for info in self.infos],
        }
