"""Tests for provider, result and settings schemas."""

import pytest
from pydantic import ValidationError

from modelgate.schemas.model import ModelDescriptor
from modelgate.schemas.provider import (
    ApiKeyHeader,
    BearerHeader,
    Provider,
    ProviderType,
    QueryParameter,
    resolve_provider_type,
)
from modelgate.schemas.results import ConnectionTestResult, DiscoveryResult
from modelgate.server.core.config import Settings
from modelgate.server.core.errors import ErrorKind, normalize_error


# ============================================================================
# Provider
# ============================================================================


class TestProvider:
    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("google", ProviderType.GOOGLE),
            ("Gemini", ProviderType.GOOGLE),
            ("xai", ProviderType.GROK),
            ("azure_openai", ProviderType.AZURE),
            ("openai", ProviderType.OPENAI),
            ("mystery-vendor", ProviderType.GENERIC),
            ("", ProviderType.GENERIC),
            (None, ProviderType.GENERIC),
        ],
    )
    def test_resolve_provider_type(self, tag, expected):
        assert resolve_provider_type(tag) == expected

    @pytest.mark.parametrize(
        "provider_type,scheme",
        [
            ("google", QueryParameter(param_name="key")),
            ("grok", BearerHeader()),
            ("openai", BearerHeader()),
            ("anthropic", ApiKeyHeader(header_name="x-api-key")),
            ("azure", ApiKeyHeader(header_name="api-key")),
            ("generic", BearerHeader()),
        ],
    )
    def test_auth_scheme_filled_from_type(self, provider_type, scheme):
        provider = Provider(id="p1", name="P", provider_type=provider_type)

        assert provider.auth_scheme == scheme

    def test_unknown_type_becomes_generic(self):
        provider = Provider(id="p1", name="P", provider_type="llamafarm")

        assert provider.provider_type == ProviderType.GENERIC
        assert provider.auth_scheme == BearerHeader()

    def test_mismatched_auth_scheme_rejected(self):
        with pytest.raises(ValidationError):
            Provider(
                id="p1",
                name="P",
                provider_type="google",
                auth_scheme={"kind": "bearer"},
            )

    def test_matching_declared_scheme_accepted(self):
        provider = Provider(
            id="p1",
            name="P",
            provider_type="anthropic",
            auth_scheme={"kind": "api_key_header", "header_name": "x-api-key"},
        )

        assert provider.auth_scheme == ApiKeyHeader(header_name="x-api-key")

    def test_provider_is_frozen_and_id_stringified(self):
        provider = Provider(id=42, name="P", provider_type="openai")

        assert provider.id == "42"
        with pytest.raises(ValidationError):
            provider.name = "changed"


# ============================================================================
# Results
# ============================================================================


class TestResults:
    def test_success_cannot_carry_error_kind(self):
        with pytest.raises(ValidationError):
            ConnectionTestResult(success=True, error_kind=ErrorKind.UNKNOWN)

    def test_failure_requires_error_kind(self):
        with pytest.raises(ValidationError):
            ConnectionTestResult(success=False)

    def test_failure_from_normalized_error(self):
        result = ConnectionTestResult.failure(normalize_error(403), latency_ms=12)

        assert result.error_kind == ErrorKind.FORBIDDEN
        assert result.latency_ms == 12
        assert result.remediation in result.error_message

    def test_negative_latency_rejected(self):
        with pytest.raises(ValidationError):
            ConnectionTestResult(success=True, latency_ms=-1)

    def test_successful_discovery_needs_models(self):
        with pytest.raises(ValidationError):
            DiscoveryResult(success=True, provider_type=ProviderType.OPENAI, models=[])

    def test_descriptor_requires_id(self):
        with pytest.raises(ValidationError):
            ModelDescriptor(id="", display_name="Nameless")


# ============================================================================
# Settings
# ============================================================================


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.connection_timeout_seconds == 15.0
        assert settings.log_capacity == 1000
        assert settings.console_config().console_level == "info"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_CAPACITY", "50")
        monkeypatch.setenv("QUIET_MODE", "true")

        settings = Settings(_env_file=None)

        assert settings.log_capacity == 50
        assert settings.console_config().quiet_mode is True

    def test_rejects_bad_values(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, connection_timeout_seconds=0)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_capacity=0)
