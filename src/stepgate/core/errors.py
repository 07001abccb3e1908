"""
Structured error types for stepgate.

Only configuration mistakes raise. A backend that reports a failed run, or a
4xx/5xx status at the transport level, is a classified data case handled by
the response templates and never surfaces as an exception here.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                       GatewayError                          │
        │              (category, context, cause)                     │
        ├─────────────────────────────────────────────────────────────┤
        │                                                             │
        │  ConfigError                     TemplateError              │
        │  (CONFIG)                        (TEMPLATE)                 │
        │       │                               │                     │
        │  ConfigurationConflictError      TemplateSyntaxError        │
        │  PermissionScopeError            UnsupportedMediaTypeError  │
        │  RuleOrderError                                             │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> error = ConfigurationConflictError("defaultIntegration supplied twice")
    >>> error.category.value
    'CONFIG'
    >>> error.with_context(api_name="orders").context.api_name
    'orders'

Guardrails:
    ❌ DON'T: Raise for a FAILED execution or a 5xx backend status
    ✅ DO: Let the response rules translate those into HTTP bodies

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, stepgate
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    CONFIG = "CONFIG"  # Conflicting or invalid construction arguments
    AUTH = "AUTH"  # Grants that are not least-privilege
    TEMPLATE = "TEMPLATE"  # Mapping template parsing and selection
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        api_name: REST API the error relates to
        http_method: HTTP method being bound
        resource_path: Resource path of the method
        state_machine_arn: Invocation identity of the backend
        content_type: Request content type (simulator errors)
        metadata: Additional key-value pairs
    """

    api_name: str | None = None
    http_method: str | None = None
    resource_path: str | None = None
    state_machine_arn: str | None = None
    content_type: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["api_name", "http_method", "resource_path",
                    "state_machine_arn", "content_type"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class GatewayError(Exception):
    """
    Base exception for all stepgate errors.

    Subclasses set ``default_category``. Every instance carries a message,
    a category, an ``ErrorContext`` and an optional chained cause.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> GatewayError:
        """Add context to the error (fluent API).

        Example:
            raise RuleOrderError("default rule must come first").with_context(
                api_name="orders",
                rule_count=3,
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(GatewayError):
    """Invalid construction-time configuration. Always fatal."""

    default_category = ErrorCategory.CONFIG


class ConfigurationConflictError(ConfigError):
    """A default integration override was supplied alongside the adapter."""

    def __init__(self, source: str = "defaultIntegration", message: str | None = None):
        self.source = source
        super().__init__(
            message
            or f'Cannot specify "{source}" since Step Functions integration is automatically defined'
        )


class PermissionScopeError(ConfigError):
    """An execution grant would be broader than one action on one resource."""

    default_category = ErrorCategory.AUTH

    def __init__(self, field_name: str, value: Any, message: str | None = None):
        self.field_name = field_name
        self.value = value
        super().__init__(message or f"Grant {field_name} must be a single literal, got {value!r}")


class RuleOrderError(ConfigError):
    """Response rules violate the default-first ordering."""


# =============================================================================
# TEMPLATE ERRORS
# =============================================================================


class TemplateError(GatewayError):
    """Mapping template could not be evaluated or selected."""

    default_category = ErrorCategory.TEMPLATE


class TemplateSyntaxError(TemplateError):
    """Template source uses syntax outside the supported subset."""

    def __init__(self, message: str, position: int | None = None):
        self.position = position
        if position is not None:
            message = f"{message} (at offset {position})"
        super().__init__(message)


class UnsupportedMediaTypeError(TemplateError):
    """No request template matches and passthrough is disabled."""

    status_code = 415

    def __init__(self, content_type: str):
        self.content_type = content_type
        super().__init__(
            f"Unsupported Media Type: {content_type}",
            context=ErrorContext(content_type=content_type),
        )
