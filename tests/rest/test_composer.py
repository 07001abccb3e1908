"""Tests for StepFunctionsRestApi composition."""

import pytest

from stepgate.core.errors import ConfigError, ConfigurationConflictError, PermissionScopeError
from stepgate.integration.adapter import StepFunctionsIntegration
from stepgate.integration.aws import AwsIntegration
from stepgate.integration.backend import BackendHandle
from stepgate.integration.options import PassthroughBehavior
from stepgate.integration.permissions import START_SYNC_EXECUTION
from stepgate.integration.templates import request_templates
from stepgate.rest.composer import (
    EMPTY_MODEL,
    ERROR_MODEL,
    METHOD_RESPONSES,
    RestApiOptions,
    StepFunctionsRestApi,
)

PRINCIPAL = "apigateway.amazonaws.com"


class TestConflict:
    def test_top_level_default_integration_rejected(self, order_flow, registry):
        with pytest.raises(ConfigurationConflictError) as exc_info:
            StepFunctionsRestApi(
                order_flow,
                default_integration=AwsIntegration(service="lambda", action="Invoke"),
                registry=registry,
            )
        assert str(exc_info.value) == (
            'Cannot specify "defaultIntegration" since Step Functions integration '
            "is automatically defined"
        )
        assert len(registry) == 0

    def test_nested_default_integration_rejected(self, order_flow, registry):
        options = RestApiOptions(default_integration=StepFunctionsIntegration(order_flow))
        with pytest.raises(ConfigurationConflictError):
            StepFunctionsRestApi(order_flow, options=options, registry=registry)
        assert len(registry) == 0

    def test_is_config_error(self):
        assert issubclass(ConfigurationConflictError, ConfigError)


class TestRootMethod:
    def test_any_on_root(self, order_flow, registry):
        api = StepFunctionsRestApi(order_flow, registry=registry)
        assert api.root_method.method.http_method == "ANY"
        assert api.root_method.method.resource_path == "/"
        assert api.methods == (api.root_method,)

    def test_method_responses(self, order_flow):
        api = StepFunctionsRestApi(order_flow)
        responses = api.root_method.method_responses
        assert responses == METHOD_RESPONSES
        assert [r.status_code for r in responses] == ["200", "400", "500"]
        assert responses[0].response_models["application/json"] is EMPTY_MODEL
        assert responses[1].response_models["application/json"] is ERROR_MODEL
        assert responses[2].response_models["application/json"] is ERROR_MODEL

    def test_integration_uses_full_template_set(self, order_flow):
        config = StepFunctionsRestApi(order_flow).root_method.integration
        assert config.request_templates == request_templates(order_flow)
        assert config.passthrough_behavior is PassthroughBehavior.NEVER
        assert config.credentials_role == "OrderFlow-apiRole"
        assert config.type == "AWS"

    def test_single_grant(self, order_flow, registry):
        StepFunctionsRestApi(order_flow, registry=registry)
        assert len(registry) == 1
        assert registry.is_granted(PRINCIPAL, START_SYNC_EXECUTION, order_flow.invocation_arn)

    @pytest.mark.parametrize("proxy", [True, False])
    def test_proxy_argument_ignored(self, order_flow, proxy):
        api = StepFunctionsRestApi(order_flow, proxy=proxy)
        assert api.root_method.integration.proxy is False
        assert api.default_integration.proxy is False


class TestNaming:
    def test_default_name(self, order_flow):
        assert StepFunctionsRestApi(order_flow).name == "OrderFlow-api"

    def test_top_level_wins(self, order_flow):
        api = StepFunctionsRestApi(
            order_flow,
            rest_api_name="orders",
            options=RestApiOptions(rest_api_name="ignored"),
        )
        assert api.name == "orders"

    def test_nested_name(self, order_flow):
        api = StepFunctionsRestApi(order_flow, options=RestApiOptions(rest_api_name="nested"))
        assert api.name == "nested"

    def test_role(self, order_flow):
        api = StepFunctionsRestApi(order_flow)
        assert api.role.name == "OrderFlow-apiRole"
        assert api.role.statements[0].resources == (order_flow.invocation_arn,)


class TestCors:
    def test_disabled_by_default(self, order_flow):
        api = StepFunctionsRestApi(order_flow)
        assert api.cors_enabled is False
        assert api.default_integration.options.request_templates == request_templates(order_flow)

    def test_top_level_preflight(self, order_flow):
        api = StepFunctionsRestApi(order_flow, default_cors_preflight_options={"allowOrigins": ["*"]})
        assert api.cors_enabled is True
        assert api.default_integration.options.request_templates is None
        assert api.root_method.integration.request_templates == request_templates(order_flow)

    def test_nested_preflight(self, order_flow):
        options = RestApiOptions(default_cors_preflight_options={"allowOrigins": ["https://a.example"]})
        api = StepFunctionsRestApi(order_flow, options=options)
        assert api.cors_enabled is True
        assert api.to_dict()["defaultCorsPreflightOptions"] == {"allowOrigins": ["https://a.example"]}

    def test_added_method_uses_cors_integration(self, order_flow):
        api = StepFunctionsRestApi(order_flow, default_cors_preflight_options={"allowOrigins": ["*"]})
        config = api.add_method("GET", path="/items").integration
        assert config.request_templates is None
        assert config.integration_responses is None


class TestAddMethod:
    def test_defaults_to_api_integration(self, order_flow, registry):
        api = StepFunctionsRestApi(order_flow, registry=registry)
        bound = api.add_method("get", path="/orders")
        assert bound.method.http_method == "GET"
        assert bound.method.api_name == "OrderFlow-api"
        assert bound.integration.credentials_role == "OrderFlow-apiRole"
        assert len(api.methods) == 2
        assert len(registry) == 1

    def test_duplicate_rejected(self, order_flow):
        api = StepFunctionsRestApi(order_flow)
        with pytest.raises(ConfigError) as exc_info:
            api.add_method("any")
        assert exc_info.value.context.resource_path == "/"

    def test_region_in_uri(self, order_flow):
        api = StepFunctionsRestApi(order_flow, region="us-west-2")
        assert ":us-west-2:states:action/StartSyncExecution" in api.root_method.integration.uri


class TestSerialization:
    def test_to_dict(self, order_flow):
        data = StepFunctionsRestApi(order_flow, description="Orders").to_dict()
        assert data["name"] == "OrderFlow-api"
        assert data["description"] == "Orders"
        assert data["corsEnabled"] is False
        assert data["role"]["RoleName"] == "OrderFlow-apiRole"
        method = data["methods"][0]
        assert method["httpMethod"] == "ANY"
        assert [r["statusCode"] for r in method["methodResponses"]] == ["200", "400", "500"]
        assert method["methodResponses"][1]["responseModels"] == {"application/json": "Error"}
        assert method["integration"]["deploymentToken"] == '{"name": "OrderFlow"}'
        assert data["deployment"]["stageName"] == "prod"

    def test_no_deploy(self, order_flow):
        data = StepFunctionsRestApi(order_flow, options=RestApiOptions(deploy=False)).to_dict()
        assert "deployment" not in data

    def test_fingerprint_stable(self, order_flow):
        a = StepFunctionsRestApi(order_flow)
        b = StepFunctionsRestApi(order_flow)
        assert a.deployment_fingerprint == b.deployment_fingerprint
        assert a.to_dict()["deployment"]["fingerprint"] == a.deployment_fingerprint

    def test_fingerprint_follows_backend_name(self, order_flow):
        renamed = BackendHandle.direct(order_flow.invocation_arn, name="OrderFlowV2", display_name="OrderFlow")
        assert (
            StepFunctionsRestApi(order_flow).deployment_fingerprint
            != StepFunctionsRestApi(renamed).deployment_fingerprint
        )

    def test_unresolved_name_omits_token(self, unnamed_flow):
        data = StepFunctionsRestApi(unnamed_flow).to_dict()
        assert "deploymentToken" not in data["methods"][0]["integration"]


class TestRejection:
    def test_wildcard_arn_leaves_no_grant(self, registry):
        handle = BackendHandle.direct("arn:aws:states:*:*:stateMachine:*", name="Any")
        with pytest.raises(PermissionScopeError):
            StepFunctionsRestApi(handle, registry=registry)
        assert len(registry) == 0
