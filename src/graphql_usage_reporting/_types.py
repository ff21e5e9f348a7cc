"""Shared type aliases and protocols."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from graphql_usage_reporting.report import Report

# Produces a unique report key from (operation text, operation name)
GenerateID = Callable[[str, "str | None"], str]
# Delivers a report: (endpoint, target, token, report)
SendReport = Callable[[str, str, str, "Report"], Awaitable[None]]
# Scheduler-facing send with the destination already bound
DeliverReport = Callable[["Report"], Awaitable[None]]
