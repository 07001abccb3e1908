"""REST API whose every method runs one synchronous state machine.

Why This Matters:
    Exposing an express workflow over HTTP normally means hand-writing
    request/response templates, an IAM role and the method responses for
    every method. ``StepFunctionsRestApi`` does it once per API: one role,
    one default integration, and a catch-all ``ANY`` method on ``/``.

Key Concepts:
    StepFunctionsRestApi: Composer; the integration is always defined here,
        so a caller-supplied ``default_integration`` is a configuration error.
    RestApiOptions: Nested options object; its values lose to top-level
        keyword arguments.
    METHOD_RESPONSES: Advertised contract of the catch-all method -
        200 (empty), 400 (error), 500 (error).

Architecture Decisions:
    - The conflict check runs before the role is built or any grant is
      registered, so a rejected API leaves no authorization behind.
    - CORS mode is on iff preflight options are supplied. It only affects
      the default integration; the catch-all method always gets the full
      template set.
    - Proxy mode is not available for this backend: the ``proxy`` argument
      is accepted and ignored.

Related Modules:
    - :mod:`stepgate.integration.adapter` - the integration being wired
    - :mod:`stepgate.integration.permissions` - role and grant registry

Tags:
    rest, api, composer, method-responses, cors
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict

from stepgate.core.errors import ConfigError, ConfigurationConflictError
from stepgate.core.hashing import compute_hash
from stepgate.core.logging import get_logger
from stepgate.core.settings import GatewaySettings, get_settings
from stepgate.integration.adapter import StepFunctionsIntegration
from stepgate.integration.aws import AwsIntegration, IntegrationConfig, Method
from stepgate.integration.backend import BackendHandle
from stepgate.integration.options import IntegrationOptions
from stepgate.integration.permissions import (
    ExecutionRole,
    GrantRegistry,
    InMemoryGrantRegistry,
    execution_role_for,
)
from stepgate.integration.templates import JSON_CONTENT_TYPE

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Method response contract
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Model:
    """Named body schema referenced by a method response."""

    name: str
    schema: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=False)


EMPTY_MODEL = Model(
    name="Empty",
    schema=MappingProxyType({
        "$schema": "http://json-schema.org/draft-04/schema#",
        "title": "Empty Schema",
        "type": "object",
    }),
)

ERROR_MODEL = Model(
    name="Error",
    schema=MappingProxyType({
        "$schema": "http://json-schema.org/draft-04/schema#",
        "title": "Error Schema",
        "type": "object",
        "properties": {"message": {"type": "string"}},
    }),
)


@dataclass(frozen=True)
class MethodResponse:
    status_code: str
    response_models: Mapping[str, Model] = field(default_factory=dict, hash=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "responseModels": {ct: m.name for ct, m in self.response_models.items()},
        }


METHOD_RESPONSES: tuple[MethodResponse, ...] = (
    MethodResponse("200", MappingProxyType({JSON_CONTENT_TYPE: EMPTY_MODEL})),
    MethodResponse("400", MappingProxyType({JSON_CONTENT_TYPE: ERROR_MODEL})),
    MethodResponse("500", MappingProxyType({JSON_CONTENT_TYPE: ERROR_MODEL})),
)


@dataclass(frozen=True)
class BoundMethod:
    """A method together with its bound integration configuration."""

    method: Method
    integration: IntegrationConfig
    method_responses: tuple[MethodResponse, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "httpMethod": self.method.http_method,
            "resourcePath": self.method.resource_path,
            "integration": self.integration.to_dict(),
        }
        if self.method_responses:
            result["methodResponses"] = [r.to_dict() for r in self.method_responses]
        return result


# ---------------------------------------------------------------------------
# Composer
# ---------------------------------------------------------------------------


class RestApiOptions(BaseModel):
    """Nested REST API options."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    rest_api_name: str | None = None
    description: str | None = None
    default_cors_preflight_options: dict[str, Any] | None = None
    default_integration: Any | None = None
    deploy: bool = True
    stage_name: str = "prod"


class StepFunctionsRestApi:
    """REST API backed by a synchronous express state machine.

    Example::

        api = StepFunctionsRestApi(handle, rest_api_name="orders")
        api.root_method.integration.deployment_token
    """

    def __init__(
        self,
        handle: BackendHandle,
        *,
        rest_api_name: str | None = None,
        description: str | None = None,
        options: RestApiOptions | None = None,
        default_cors_preflight_options: Mapping[str, Any] | None = None,
        default_integration: AwsIntegration | None = None,
        proxy: bool = True,
        registry: GrantRegistry | None = None,
        settings: GatewaySettings | None = None,
        region: str | None = None,
    ):
        options = options or RestApiOptions()
        if default_integration is not None or options.default_integration is not None:
            error = ConfigurationConflictError("defaultIntegration")
            logger.error("rest_api.conflict", **error.to_dict())
            raise error

        self.handle = handle
        self.settings = settings or get_settings()
        self.registry = registry if registry is not None else InMemoryGrantRegistry()
        self.name = rest_api_name or options.rest_api_name or f"{handle.display_name}-api"
        self.description = description if description is not None else options.description
        self.region = region
        self.deploy = options.deploy
        self.stage_name = options.stage_name

        cors = default_cors_preflight_options
        if cors is None:
            cors = options.default_cors_preflight_options
        self.default_cors_preflight_options = dict(cors) if cors is not None else None
        self.cors_enabled = self.default_cors_preflight_options is not None

        principal = self.settings.service_principal
        self.role: ExecutionRole = execution_role_for(handle, principal)

        self.default_integration = StepFunctionsIntegration(
            handle,
            IntegrationOptions(
                credentials_role=self.role,
                proxy=False,
                cors_enabled=self.cors_enabled,
            ),
            registry=self.registry,
            principal=principal,
            settings=self.settings,
        )

        self._methods: dict[tuple[str, str], BoundMethod] = {}
        self.root_method = self.add_method(
            "ANY",
            StepFunctionsIntegration(
                handle,
                IntegrationOptions(credentials_role=self.role),
                registry=self.registry,
                principal=principal,
                settings=self.settings,
            ),
            method_responses=METHOD_RESPONSES,
        )

        logger.info(
            "rest_api.composed",
            api_name=self.name,
            cors_enabled=self.cors_enabled,
            proxy_requested=proxy,
            state_machine_arn=handle.invocation_arn,
        )

    def add_method(
        self,
        http_method: str,
        integration: AwsIntegration | None = None,
        *,
        path: str = "/",
        method_responses: Sequence[MethodResponse] = (),
    ) -> BoundMethod:
        """Attach ``http_method`` at ``path``, defaulting to the API integration."""
        key = (path, http_method.upper())
        if key in self._methods:
            raise ConfigError(f"Method {key[1]} already defined on {path}").with_context(
                api_name=self.name, http_method=key[1], resource_path=path
            )

        method = Method(
            http_method=key[1],
            resource_path=path,
            api_name=self.name,
            region=self.region,
        )
        config = (integration or self.default_integration).bind(method)
        bound = BoundMethod(method=method, integration=config, method_responses=tuple(method_responses))
        self._methods[key] = bound
        return bound

    @property
    def methods(self) -> tuple[BoundMethod, ...]:
        return tuple(self._methods.values())

    @property
    def deployment_fingerprint(self) -> str:
        """Hash over every method's deployment token; changes force a redeploy."""
        tokens = sorted(
            f"{m.method.resource_path} {m.method.http_method} {m.integration.deployment_token}"
            for m in self._methods.values()
            if m.integration.deployment_token is not None
        )
        return compute_hash(self.name, *tokens, length=16)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready definition of the composed API."""
        result: dict[str, Any] = {
            "name": self.name,
            "corsEnabled": self.cors_enabled,
            "role": self.role.to_dict(),
            "methods": [m.to_dict() for m in self._methods.values()],
        }
        if self.description is not None:
            result["description"] = self.description
        if self.default_cors_preflight_options is not None:
            result["defaultCorsPreflightOptions"] = self.default_cors_preflight_options
        if self.deploy:
            result["deployment"] = {
                "stageName": self.stage_name,
                "fingerprint": self.deployment_fingerprint,
            }
        return result
