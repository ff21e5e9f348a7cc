"""UsageReportingError hierarchy for setup, bookkeeping and delivery failures."""

from __future__ import annotations


class UsageReportingError(Exception):
    """Base for all usage reporting exceptions."""


class ConfigurationError(UsageReportingError):
    """Tracer configuration is invalid. Raised eagerly at setup."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class TypeMismatch(UsageReportingError):
    """Selection tree does not line up with the schema type metadata."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class DuplicateOperation(UsageReportingError):
    """An operation with the same id is already queued in the report."""

    def __init__(self, operation_id: str) -> None:
        super().__init__(f"operation with id {operation_id!r} already exists in report")
        self.operation_id = operation_id


class MissingContext(UsageReportingError):
    """A field hook fired without a started operation."""

    def __init__(self, detail: str = "operation doesn't exist in context") -> None:
        super().__init__(detail)
        self.detail = detail


class OperationFinalized(UsageReportingError):
    """Outcome recorded on, or finalize repeated for, a closed operation."""

    def __init__(self, operation_id: str) -> None:
        super().__init__(f"operation {operation_id!r} is already finalized")
        self.operation_id = operation_id


class DeliveryFailure(UsageReportingError):
    """Report could not be serialized or delivered."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.cause = cause
