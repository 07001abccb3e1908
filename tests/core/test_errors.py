"""Tests for stepgate.core.errors module."""

import pytest

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


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_empty_context(self):
        ctx = ErrorContext()
        assert ctx.to_dict() == {}

    def test_fields_and_metadata(self):
        ctx = ErrorContext(api_name="orders", http_method="ANY")
        ctx.metadata["rule_count"] = 3
        assert ctx.to_dict() == {"api_name": "orders", "http_method": "ANY", "rule_count": 3}


class TestGatewayError:
    def test_default_category(self):
        assert GatewayError("boom").category == ErrorCategory.INTERNAL

    def test_with_context_known_and_custom_keys(self):
        error = GatewayError("boom").with_context(api_name="orders", attempt=2)
        assert error.context.api_name == "orders"
        assert error.context.metadata == {"attempt": 2}

    def test_cause_is_chained(self):
        root = ValueError("bad")
        error = GatewayError("wrapped", cause=root)
        assert error.__cause__ is root
        assert error.to_dict()["cause"] == "bad"

    def test_to_dict(self):
        error = ConfigError("nope").with_context(resource_path="/")
        data = error.to_dict()
        assert data["error_type"] == "ConfigError"
        assert data["category"] == "CONFIG"
        assert data["context"] == {"resource_path": "/"}

    def test_repr(self):
        assert repr(ConfigError("nope")) == "ConfigError('nope', category=CONFIG)"


class TestConfigErrors:
    def test_conflict_message(self):
        error = ConfigurationConflictError()
        assert isinstance(error, ConfigError)
        assert '"defaultIntegration"' in str(error)
        assert error.category == ErrorCategory.CONFIG

    def test_permission_scope_is_auth(self):
        error = PermissionScopeError("action", "states:*")
        assert isinstance(error, ConfigError)
        assert error.category == ErrorCategory.AUTH
        assert "states:*" in str(error)

    def test_rule_order_is_config(self):
        assert RuleOrderError("x").category == ErrorCategory.CONFIG


class TestTemplateErrors:
    def test_syntax_error_position(self):
        error = TemplateSyntaxError("Missing #end", 12)
        assert isinstance(error, TemplateError)
        assert error.position == 12
        assert "offset 12" in str(error)

    def test_unsupported_media_type(self):
        error = UnsupportedMediaTypeError("text/plain")
        assert error.status_code == 415
        assert error.context.content_type == "text/plain"

    def test_catchable_as_base(self):
        with pytest.raises(GatewayError):
            raise UnsupportedMediaTypeError("text/xml")
