"""Ambient primitives: errors, logging, settings, placeholders, hashing."""

from stepgate.core.errors import (
    ConfigError,
    ConfigurationConflictError,
    ErrorCategory,
    ErrorContext,
    GatewayError,
    PermissionScopeError,
    RuleOrderError,
    TemplateError,
    TemplateSyntaxError,
    UnsupportedMediaTypeError,
)
from stepgate.core.hashing import compute_hash, construct_address
from stepgate.core.logging import configure_logging, get_logger
from stepgate.core.settings import GatewaySettings, get_settings, reset_settings
from stepgate.core.tokens import Token, is_unresolved

__all__ = [
    "ConfigError",
    "ConfigurationConflictError",
    "ErrorCategory",
    "ErrorContext",
    "GatewayError",
    "GatewaySettings",
    "PermissionScopeError",
    "RuleOrderError",
    "TemplateError",
    "TemplateSyntaxError",
    "Token",
    "UnsupportedMediaTypeError",
    "compute_hash",
    "configure_logging",
    "construct_address",
    "get_logger",
    "get_settings",
    "is_unresolved",
    "reset_settings",
]
