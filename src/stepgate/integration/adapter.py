"""Synchronous Step Functions integration for a REST method.

Example::

    handle = BackendHandle.direct(arn, name="OrderFlow")
    integration = StepFunctionsIntegration(handle)
    config = integration.bind(Method("GET", "/orders"))
    config.deployment_token   # '{"name": "OrderFlow"}'

Binding the same integration to several methods is safe. Each ``bind``
registers the same grant, and the registry stores it once.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from stepgate.core.logging import get_logger
from stepgate.core.settings import GatewaySettings
from stepgate.core.tokens import is_unresolved as default_is_unresolved
from stepgate.integration.aws import AwsIntegration, IntegrationConfig, Method
from stepgate.integration.backend import BackendHandle
from stepgate.integration.fingerprint import deployment_fingerprint
from stepgate.integration.options import IntegrationOptions, finalize_options
from stepgate.integration.permissions import (
    START_SYNC_EXECUTION,
    GrantRegistry,
    InMemoryGrantRegistry,
    grant_execution,
)

logger = get_logger(__name__)

STATES_SERVICE = "states"
START_SYNC_ACTION = "StartSyncExecution"


class StepFunctionsIntegration(AwsIntegration):
    """Integrates a synchronous express state machine with a REST method."""

    def __init__(
        self,
        handle: BackendHandle,
        options: IntegrationOptions | None = None,
        *,
        registry: GrantRegistry | None = None,
        principal: str | None = None,
        is_unresolved: Callable[[Any], bool] = default_is_unresolved,
        settings: GatewaySettings | None = None,
    ):
        options = options or IntegrationOptions()
        super().__init__(
            service=STATES_SERVICE,
            action=START_SYNC_ACTION,
            proxy=options.proxy,
            options=finalize_options(handle, options),
            settings=settings,
        )
        self.handle = handle
        self.registry = registry if registry is not None else InMemoryGrantRegistry()
        self.principal = principal or self.settings.service_principal
        self._is_unresolved = is_unresolved
        logger.debug(
            "integration.constructed",
            state_machine_arn=handle.invocation_arn,
            cors_enabled=options.cors_enabled,
            proxy=options.proxy,
        )

    def bind(self, method: Method) -> IntegrationConfig:
        base = super().bind(method)
        grant_execution(self.registry, self.handle, self.principal, START_SYNC_EXECUTION)
        token = deployment_fingerprint(self.handle, self._is_unresolved)

        logger.info(
            "integration.bound",
            http_method=method.http_method,
            resource_path=method.resource_path,
            state_machine_arn=self.handle.invocation_arn,
            has_deployment_token=token is not None,
        )
        return base.model_copy(update={"deployment_token": token})
