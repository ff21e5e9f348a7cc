"""GraphQL usage reporting - schema coordinate tracing and batched usage reports."""

from graphql_usage_reporting.accumulator import OutcomeAccumulator
from graphql_usage_reporting.config import UsageReportingSettings
from graphql_usage_reporting.context import OperationContext
from graphql_usage_reporting.dependency import graphql_endpoint
from graphql_usage_reporting.exceptions import (
    ConfigurationError,
    DeliveryFailure,
    DuplicateOperation,
    MissingContext,
    OperationFinalized,
    TypeMismatch,
    UsageReportingError,
)
from graphql_usage_reporting.execution import execute_traced
from graphql_usage_reporting.extractor import CoordinateExtractor, extract_coordinates
from graphql_usage_reporting.report import (
    CLIENT_NAME,
    CLIENT_VERSION,
    ClientInfo,
    Execution,
    OperationBody,
    OperationInfo,
    OperationRecord,
    Report,
)
from graphql_usage_reporting.scheduler import DispatchScheduler
from graphql_usage_reporting.sender import DEFAULT_ENDPOINT, HttpReportSender, send_report
from graphql_usage_reporting.store import ReportStore
from graphql_usage_reporting.tracer import Tracer, validate_target, validate_token

__version__ = CLIENT_VERSION

__all__ = [
    "CLIENT_NAME",
    "CLIENT_VERSION",
    "DEFAULT_ENDPOINT",
    "ClientInfo",
    "ConfigurationError",
    "CoordinateExtractor",
    "DeliveryFailure",
    "DispatchScheduler",
    "DuplicateOperation",
    "Execution",
    "HttpReportSender",
    "MissingContext",
    "OperationBody",
    "OperationContext",
    "OperationFinalized",
    "OperationInfo",
    "OperationRecord",
    "OutcomeAccumulator",
    "Report",
    "ReportStore",
    "Tracer",
    "TypeMismatch",
    "UsageReportingError",
    "UsageReportingSettings",
    "execute_traced",
    "extract_coordinates",
    "graphql_endpoint",
    "send_report",
    "validate_target",
    "validate_token",
]
