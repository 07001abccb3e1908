"""Tests for GatewaySettings."""

from stepgate.core.settings import GatewaySettings, get_settings, reset_settings


class TestGatewaySettings:
    def test_defaults(self):
        settings = GatewaySettings()
        assert settings.service_principal == "apigateway.amazonaws.com"
        assert settings.partition == "aws"
        assert settings.region is None
        assert settings.log_level == "INFO"
        assert settings.json_logs is None

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STEPGATE_REGION", "eu-west-1")
        monkeypatch.setenv("STEPGATE_JSON_LOGS", "true")
        settings = GatewaySettings()
        assert settings.region == "eu-west-1"
        assert settings.json_logs is True

    def test_cached_until_reset(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("STEPGATE_PARTITION", "aws-cn")
        assert get_settings() is first
        reset_settings()
        assert get_settings().partition == "aws-cn"
