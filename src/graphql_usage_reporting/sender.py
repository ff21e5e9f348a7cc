"""Report senders — the default httpx transport to the usage endpoint."""

from __future__ import annotations

import json

import httpx

from graphql_usage_reporting.exceptions import DeliveryFailure
from graphql_usage_reporting.report import Report

DEFAULT_ENDPOINT = "https://app.graphql-hive.com/usage"
USAGE_API_VERSION = "2"
DEFAULT_SEND_TIMEOUT = 10.0


class HttpReportSender:
    """POSTs a JSON-encoded report to ``{endpoint}/{target}``.

    Pass ``client`` to reuse a connection pool (or a mock transport);
    otherwise a short-lived client is opened for every send.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = DEFAULT_SEND_TIMEOUT,
    ) -> None:
        self._client = client
        self._timeout = timeout

    async def __call__(self, endpoint: str, target: str, token: str, report: Report) -> None:
        try:
            content = json.dumps(report.to_dict())
        except (TypeError, ValueError) as exc:
            raise DeliveryFailure("failed to encode report", cause=exc) from exc

        url = f"{endpoint.rstrip('/')}/{target}"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
            "X-Usage-API-Version": USAGE_API_VERSION,
        }

        try:
            if self._client is not None:
                response = await self._client.post(
                    url, content=content, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            raise DeliveryFailure(f"report sending failed: {exc}", cause=exc) from exc

        if not response.is_success:
            raise DeliveryFailure(
                f"report sending failed with {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )


async def send_report(endpoint: str, target: str, token: str, report: Report) -> None:
    """Default SendReport using a fresh httpx client."""
    await HttpReportSender()(endpoint, target, token, report)
