"""Tests for option finalization."""

import pytest
from pydantic import ValidationError

from stepgate.integration.options import IntegrationOptions, PassthroughBehavior, finalize_options
from stepgate.integration.permissions import execution_role_for
from stepgate.integration.responses import DEFAULT_RULES
from stepgate.integration.templates import request_templates


class TestFinalizeDefaultMode:
    def test_injects_defaults(self, order_flow):
        final = finalize_options(order_flow, IntegrationOptions())
        assert final.request_templates == request_templates(order_flow)
        assert final.integration_responses is DEFAULT_RULES
        assert final.passthrough_behavior is PassthroughBehavior.NEVER
        assert final.cors_enabled is False

    def test_keeps_credentials_role(self, order_flow):
        role = execution_role_for(order_flow, "apigateway.amazonaws.com")
        final = finalize_options(order_flow, IntegrationOptions(credentials_role=role))
        assert final.credentials_role is role

    def test_caller_templates_replaced(self, order_flow):
        options = IntegrationOptions(
            request_templates={"text/plain": "custom"},
            passthrough_behavior=PassthroughBehavior.WHEN_NO_MATCH,
        )
        final = finalize_options(order_flow, options)
        assert final.request_templates == request_templates(order_flow)
        assert final.passthrough_behavior is PassthroughBehavior.NEVER

    def test_proxy_flag_survives(self, order_flow):
        assert finalize_options(order_flow, IntegrationOptions(proxy=True)).proxy is True


class TestFinalizeCorsMode:
    def test_returns_options_unmodified(self, order_flow):
        options = IntegrationOptions(cors_enabled=True)
        final = finalize_options(order_flow, options)
        assert final is options
        assert final.request_templates is None
        assert final.integration_responses is None
        assert final.passthrough_behavior is None

    def test_caller_templates_kept(self, order_flow):
        options = IntegrationOptions(cors_enabled=True, request_templates={"text/plain": "x"})
        assert finalize_options(order_flow, options).request_templates == {"text/plain": "x"}


class TestIntegrationOptions:
    def test_frozen(self):
        options = IntegrationOptions()
        with pytest.raises(ValidationError):
            options.cors_enabled = True

    def test_passthrough_values(self):
        assert {b.value for b in PassthroughBehavior} == {
            "WHEN_NO_MATCH",
            "NEVER",
            "WHEN_NO_TEMPLATES",
        }
