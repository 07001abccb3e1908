"""
stepgate - REST front end for synchronous Step Functions workflows.

Builds the integration between a REST method and a synchronous express state
machine: request/response mapping templates, backend-status classification,
the least-privilege execution grant, and the deployment fingerprint that
forces a redeploy when the bound state machine changes.
"""

__version__ = "0.1.0"

from stepgate.core.errors import ConfigurationConflictError, GatewayError  # noqa: E402
from stepgate.integration import (  # noqa: E402
    BackendHandle,
    IntegrationOptions,
    StepFunctionsIntegration,
)
from stepgate.rest import StepFunctionsRestApi  # noqa: E402

__all__ = [
    "BackendHandle",
    "ConfigurationConflictError",
    "GatewayError",
    "IntegrationOptions",
    "StepFunctionsIntegration",
    "StepFunctionsRestApi",
    "__version__",
]
