from pydantic_settings import BaseSettings, SettingsConfigDict

from graphql_usage_reporting.report import CLIENT_NAME, CLIENT_VERSION
from graphql_usage_reporting.scheduler import DEFAULT_WINDOW
from graphql_usage_reporting.sender import DEFAULT_ENDPOINT, DEFAULT_SEND_TIMEOUT


class UsageReportingSettings(BaseSettings):
    """
    Usage reporting settings, read from GRAPHQL_USAGE_* environment variables.

    Values are not validated here; Tracer raises ConfigurationError for a
    bad target or a blank token.
    """
    model_config = SettingsConfigDict(env_prefix="GRAPHQL_USAGE_", env_file=".env", extra="ignore")

    # Destination
    target: str = ""
    token: str = ""
    endpoint: str = DEFAULT_ENDPOINT

    # Dispatch (seconds); a zero debounce window sends synchronously,
    # a zero send timeout disables the send deadline
    send_report_timeout: float = DEFAULT_WINDOW
    send_timeout: float = DEFAULT_SEND_TIMEOUT

    # Client metadata attached to every operation
    client_name: str = CLIENT_NAME
    client_version: str = CLIENT_VERSION
