"""Environment-driven settings for stepgate.

Every field can be overridden by a ``STEPGATE_``-prefixed environment
variable or a ``.env`` file. Explicit constructor arguments on the adapter
and composer always win over these values.

Examples:
    >>> import os
    >>> os.environ["STEPGATE_REGION"] = "eu-west-1"
    >>> reset_settings()
    >>> get_settings().region
    'eu-west-1'

Tags:
    settings, configuration, pydantic, environment, env-prefix
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """Settings shared by the adapter, composer and CLI.

    Fields
    ──────
    service_principal : Principal that serves the API and invokes the backend
    partition         : ARN partition used when building integration URIs
    region            : Region for integration URIs (placeholder when unset)
    log_level         : Structlog log level
    json_logs         : Force JSON (True) or console (False) logs; None = auto
    """

    model_config = SettingsConfigDict(
        env_prefix="STEPGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Identity ─────────────────────────────────────────────────
    service_principal: str = Field(
        default="apigateway.amazonaws.com",
        description="Service principal allowed to start executions",
    )
    partition: str = "aws"
    region: str | None = None

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None


@lru_cache(maxsize=1)
def get_settings() -> GatewaySettings:
    """Return the process-wide settings instance."""
    return GatewaySettings()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
