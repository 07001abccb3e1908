"""Request/response round trip through a bound integration, offline.

``GatewaySimulator`` plays the front end's part for one integration
configuration:

1. pick the request template for the content type and render it against
   the raw HTTP body (or pass the body through when allowed);
2. hand the payload to a backend callable;
3. select a response rule from the backend's status signal, render its
   body template and apply any status override.

Example::

    sim = GatewaySimulator.from_config(integration.bind(Method("POST")))
    response = sim.invoke('{"id": 1}', backend)
    response.status_code, response.json()
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from stepgate.core.errors import UnsupportedMediaTypeError
from stepgate.core.logging import get_logger
from stepgate.integration.aws import IntegrationConfig
from stepgate.integration.options import PassthroughBehavior
from stepgate.integration.responses import ResponseMappingRule, ResponseRuleSet
from stepgate.integration.templates import JSON_CONTENT_TYPE
from stepgate.simulate.vtl import ContextVariable, MappingTemplate

logger = get_logger(__name__)


@dataclass(frozen=True)
class BackendReply:
    """Raw reply of the backend service: status signal and body."""

    status_code: int
    body: str


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: str

    def json(self) -> Any:
        return json.loads(self.body)


Backend = Callable[[str], BackendReply]


def _normalize_content_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def rules_from_config(config: IntegrationConfig) -> ResponseRuleSet | None:
    """Rebuild the rule set from a bound configuration's serialized form."""
    if not config.integration_responses:
        return None
    return ResponseRuleSet(
        ResponseMappingRule(
            status_code=entry["statusCode"],
            response_templates=entry.get("responseTemplates", {}),
            selection_pattern=entry.get("selectionPattern"),
        )
        for entry in config.integration_responses
    )


class GatewaySimulator:
    """Offline stand-in for the front end of one integration."""

    def __init__(
        self,
        *,
        request_templates: Mapping[str, str] | None = None,
        rules: ResponseRuleSet | None = None,
        passthrough_behavior: PassthroughBehavior | None = None,
    ):
        self.request_templates = {
            _normalize_content_type(ct): MappingTemplate(src)
            for ct, src in (request_templates or {}).items()
        }
        self.rules = rules
        self.passthrough_behavior = passthrough_behavior or PassthroughBehavior.WHEN_NO_MATCH
        self._response_templates: dict[str, MappingTemplate] = {}

    @classmethod
    def from_config(cls, config: IntegrationConfig) -> GatewaySimulator:
        return cls(
            request_templates=config.request_templates,
            rules=rules_from_config(config),
            passthrough_behavior=config.passthrough_behavior,
        )

    def render_request(
        self,
        body: str,
        content_type: str = JSON_CONTENT_TYPE,
        *,
        context: ContextVariable | None = None,
    ) -> str:
        """Backend payload for an HTTP request body.

        Raises:
            UnsupportedMediaTypeError: no template for ``content_type`` and
                passthrough does not allow the raw body through
        """
        ct = _normalize_content_type(content_type)
        template = self.request_templates.get(ct)
        if template is not None:
            return template.render(body, context=context).text

        behavior = self.passthrough_behavior
        if behavior is PassthroughBehavior.NEVER or (
            behavior is PassthroughBehavior.WHEN_NO_TEMPLATES and self.request_templates
        ):
            logger.warning("simulator.unsupported_media_type", content_type=ct, passthrough=behavior.value)
            raise UnsupportedMediaTypeError(ct)
        return body

    def render_response(
        self,
        status_code: int,
        body: str,
        content_type: str = JSON_CONTENT_TYPE,
        *,
        context: ContextVariable | None = None,
    ) -> HttpResponse:
        """HTTP response for a backend status signal and body."""
        if self.rules is None:
            return HttpResponse(status_code=status_code, body=body)

        rule = self.rules.select(str(status_code))
        logger.debug(
            "simulator.rule_selected",
            signal=status_code,
            selection_pattern=rule.selection_pattern,
            status_code=rule.status_code,
        )
        source = rule.response_templates.get(_normalize_content_type(content_type))
        if source is None:
            return HttpResponse(status_code=int(rule.status_code), body=body)

        template = self._response_templates.get(source)
        if template is None:
            template = self._response_templates[source] = MappingTemplate(source)
        rendered = template.render(body, context=context or ContextVariable())
        status = rendered.status_override if rendered.status_override is not None else int(rule.status_code)
        return HttpResponse(status_code=status, body=rendered.text)

    def invoke(
        self,
        body: str,
        backend: Backend,
        content_type: str = JSON_CONTENT_TYPE,
    ) -> HttpResponse:
        """Full round trip: render request, call ``backend``, render response.

        A media type the integration refuses short-circuits to a 415 response
        without calling the backend.
        """
        try:
            payload = self.render_request(body, content_type)
        except UnsupportedMediaTypeError as e:
            return HttpResponse(
                status_code=e.status_code,
                body=json.dumps({"message": "Unsupported Media Type"}),
            )
        reply = backend(payload)
        return self.render_response(reply.status_code, reply.body, content_type)
