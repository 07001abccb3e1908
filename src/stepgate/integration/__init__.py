"""Step Functions integration: templates, response rules, grants, fingerprint.

Key Concepts:
    BackendHandle: Identity of the state machine (direct or imported).
    StepFunctionsIntegration: The adapter; ``bind(method)`` returns the
        final ``IntegrationConfig`` including the deployment token.
    DEFAULT_RULES: Success rule, then ``4\\d{2}`` → 400, ``5\\d{2}`` → 500.
"""

from stepgate.integration.adapter import StepFunctionsIntegration
from stepgate.integration.aws import AwsIntegration, IntegrationConfig, Method
from stepgate.integration.backend import BackendHandle, DirectOrigin, ImportedOrigin
from stepgate.integration.fingerprint import deployment_fingerprint, resolve_backend_name
from stepgate.integration.options import (
    IntegrationOptions,
    PassthroughBehavior,
    finalize_options,
)
from stepgate.integration.permissions import (
    ExecutionGrant,
    ExecutionRole,
    GrantRegistry,
    InMemoryGrantRegistry,
    execution_role_for,
    grant_execution,
)
from stepgate.integration.responses import (
    DEFAULT_RULES,
    ResponseMappingRule,
    ResponseRuleSet,
    default_rules,
)
from stepgate.integration.templates import request_template_string, request_templates

__all__ = [
    "AwsIntegration",
    "BackendHandle",
    "DEFAULT_RULES",
    "DirectOrigin",
    "ExecutionGrant",
    "ExecutionRole",
    "GrantRegistry",
    "ImportedOrigin",
    "InMemoryGrantRegistry",
    "IntegrationConfig",
    "IntegrationOptions",
    "Method",
    "PassthroughBehavior",
    "ResponseMappingRule",
    "ResponseRuleSet",
    "StepFunctionsIntegration",
    "default_rules",
    "deployment_fingerprint",
    "execution_role_for",
    "finalize_options",
    "grant_execution",
    "request_template_string",
    "request_templates",
    "resolve_backend_name",
]
