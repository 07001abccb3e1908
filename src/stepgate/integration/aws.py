"""Generic AWS service integration and its bound configuration.

``AwsIntegration`` turns an ``(service, action, proxy, options)`` envelope into
the ``IntegrationConfig`` a REST method attaches. Subclasses extend ``bind``
to add their own side effects and fields.

Key Concepts:
    Method: The HTTP method an integration is attached to.
    IntegrationConfig: Pydantic model of the bound configuration; serialized
        with camelCase aliases via ``to_dict()``.

URI format::

    arn:<partition>:apigateway:<region>:<service>:action/<action>

The region is taken from the method, then settings; when neither is known
a placeholder is embedded for the deployment system to resolve.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from stepgate.core.logging import get_logger
from stepgate.core.settings import GatewaySettings, get_settings
from stepgate.integration.options import IntegrationOptions, PassthroughBehavior

logger = get_logger(__name__)

REGION_PLACEHOLDER = "${Token[AWS.Region]}"


@dataclass(frozen=True)
class Method:
    """HTTP method on a REST resource."""

    http_method: str
    resource_path: str = "/"
    api_name: str | None = None
    region: str | None = None


class IntegrationConfig(BaseModel):
    """Bound integration configuration."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: str
    uri: str
    integration_http_method: str = Field(default="POST", alias="integrationHttpMethod")
    proxy: bool = False
    service: str
    action: str
    request_templates: dict[str, str] | None = Field(default=None, alias="requestTemplates")
    integration_responses: list[dict[str, Any]] | None = Field(
        default=None, alias="integrationResponses"
    )
    passthrough_behavior: PassthroughBehavior | None = Field(
        default=None, alias="passthroughBehavior"
    )
    credentials_role: str | None = Field(default=None, alias="credentialsRole")
    deployment_token: str | None = Field(default=None, alias="deploymentToken")

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys; unset fields are dropped."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def role_reference(role: Any) -> str | None:
    """Reference string for a credentials role (a role object or an ARN)."""
    if role is None or isinstance(role, str):
        return role
    return role.name


class AwsIntegration:
    """Integration that calls an AWS service action directly."""

    def __init__(
        self,
        *,
        service: str,
        action: str,
        proxy: bool = False,
        options: IntegrationOptions | None = None,
        settings: GatewaySettings | None = None,
    ):
        self.service = service
        self.action = action
        self.proxy = proxy
        self.options = options or IntegrationOptions()
        self.settings = settings or get_settings()

    def uri_for(self, method: Method) -> str:
        region = method.region or self.settings.region or REGION_PLACEHOLDER
        return f"arn:{self.settings.partition}:apigateway:{region}:{self.service}:action/{self.action}"

    def bind(self, method: Method) -> IntegrationConfig:
        """Produce the base configuration for ``method``."""
        options = self.options
        responses = options.integration_responses
        return IntegrationConfig(
            type="AWS_PROXY" if self.proxy else "AWS",
            uri=self.uri_for(method),
            proxy=self.proxy,
            service=self.service,
            action=self.action,
            request_templates=dict(options.request_templates) if options.request_templates else None,
            integration_responses=responses.to_list() if responses is not None else None,
            passthrough_behavior=options.passthrough_behavior,
            credentials_role=role_reference(options.credentials_role),
        )
