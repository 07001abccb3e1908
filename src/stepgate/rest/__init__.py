"""REST API composition."""

from stepgate.rest.composer import (
    EMPTY_MODEL,
    ERROR_MODEL,
    METHOD_RESPONSES,
    BoundMethod,
    MethodResponse,
    Model,
    RestApiOptions,
    StepFunctionsRestApi,
)

__all__ = [
    "BoundMethod",
    "EMPTY_MODEL",
    "ERROR_MODEL",
    "METHOD_RESPONSES",
    "MethodResponse",
    "Model",
    "RestApiOptions",
    "StepFunctionsRestApi",
]
