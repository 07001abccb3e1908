"""Integration options and their finalization.

``finalize_options`` settles the option set in a single pure step, before any
integration object exists:

- CORS mode: the caller's options are returned unmodified. The surrounding
  resource declares the CORS responses itself, so no templates are injected.
- otherwise: only ``credentials_role`` is kept from the caller, plus the
  default request template, the default response rules and passthrough
  ``NEVER`` (the backend always receives the transformed payload).
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from stepgate.integration.backend import BackendHandle
from stepgate.integration.responses import DEFAULT_RULES, ResponseRuleSet
from stepgate.integration.templates import request_templates


class PassthroughBehavior(str, Enum):
    """What the front end does with bodies no request template covers."""

    WHEN_NO_MATCH = "WHEN_NO_MATCH"
    NEVER = "NEVER"
    WHEN_NO_TEMPLATES = "WHEN_NO_TEMPLATES"


class IntegrationOptions(BaseModel):
    """Options for one StartSyncExecution integration. Immutable.

    Example::

        options = IntegrationOptions(credentials_role=role, cors_enabled=True)
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    proxy: bool = False
    cors_enabled: bool = False
    credentials_role: Any | None = None
    request_templates: dict[str, str] | None = None
    integration_responses: ResponseRuleSet | None = None
    passthrough_behavior: PassthroughBehavior | None = None


def finalize_options(handle: BackendHandle, options: IntegrationOptions) -> IntegrationOptions:
    """Return the one option set the integration is constructed with."""
    if options.cors_enabled:
        return options
    return IntegrationOptions(
        proxy=options.proxy,
        credentials_role=options.credentials_role,
        request_templates=request_templates(handle),
        integration_responses=DEFAULT_RULES,
        passthrough_behavior=PassthroughBehavior.NEVER,
    )
