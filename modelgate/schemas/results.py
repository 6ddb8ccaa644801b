"""Pydantic schemas for gateway result envelopes."""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from modelgate.schemas.model import ModelDescriptor
from modelgate.schemas.provider import ProviderType
from modelgate.server.core.errors import ErrorKind, NormalizedError


class ConnectionTestResult(BaseModel):
    """Outcome of one connection test.

    A successful result never carries an error kind; a failed one always does.
    """

    success: bool = Field(..., description="Whether the provider answered successfully")
    latency_ms: int = Field(0, ge=0, description="Wall-clock time from dispatch to completion")
    error_kind: ErrorKind | None = Field(None, description="Normalized failure category")
    error_message: str | None = Field(None, description="Error text including remediation")
    remediation: str | None = Field(None, description="Vendor-specific guidance")
    raw_details: dict[str, Any] | None = Field(None, description="Vendor diagnostic payload")

    @model_validator(mode="after")
    def check_error_kind(self) -> "ConnectionTestResult":
        if self.success and self.error_kind is not None:
            raise ValueError("a successful result cannot carry an error_kind")
        if not self.success and self.error_kind is None:
            raise ValueError("a failed result must carry an error_kind")
        return self

    @classmethod
    def ok(cls, latency_ms: int = 0, raw_details: dict[str, Any] | None = None) -> "ConnectionTestResult":
        return cls(success=True, latency_ms=latency_ms, raw_details=raw_details)

    @classmethod
    def failure(
        cls,
        error: NormalizedError,
        latency_ms: int = 0,
        raw_details: dict[str, Any] | None = None,
    ) -> "ConnectionTestResult":
        return cls(
            success=False,
            latency_ms=latency_ms,
            error_kind=error.kind,
            error_message=error.full_message,
            remediation=error.remediation,
            raw_details=raw_details if raw_details is not None else (error.details or None),
        )


class DiscoveryResult(BaseModel):
    """Outcome of one model discovery call."""

    success: bool = Field(..., description="Whether discovery produced models")
    provider_type: ProviderType = Field(..., description="Adapter family used")
    models: list[ModelDescriptor] = Field(default_factory=list, description="Discovered models")
    latency_ms: int = Field(0, ge=0, description="Wall-clock time from dispatch to completion")
    error_kind: ErrorKind | None = Field(None, description="Normalized failure category")
    error_message: str | None = Field(None, description="Error text including remediation")
    remediation: str | None = Field(None, description="Vendor-specific guidance")

    @model_validator(mode="after")
    def check_consistency(self) -> "DiscoveryResult":
        if self.success:
            if self.error_kind is not None:
                raise ValueError("a successful result cannot carry an error_kind")
            if not self.models:
                raise ValueError("a successful discovery must contain at least one model")
        elif self.error_kind is None:
            raise ValueError("a failed result must carry an error_kind")
        return self

    @classmethod
    def failure(
        cls,
        provider_type: ProviderType,
        error: NormalizedError,
        latency_ms: int = 0,
    ) -> "DiscoveryResult":
        return cls(
            success=False,
            provider_type=provider_type,
            latency_ms=latency_ms,
            error_kind=error.kind,
            error_message=error.full_message,
            remediation=error.remediation,
        )


class EndpointHealthReport(BaseModel):
    """Reachability of each well-known endpoint of an OpenAI-compatible API."""

    supported: bool = Field(True, description="False when the provider type does not serve these endpoints")
    models_endpoint: bool = Field(False, description="GET models answered")
    language_models_endpoint: bool = Field(False, description="GET language-models answered")
    api_key_endpoint: bool = Field(False, description="GET api-key answered")
    chat_endpoint: bool = Field(False, description="POST chat/completions reachable")
    overall_health: Literal["healthy", "partial", "unhealthy"] = Field(
        "unhealthy",
        description="Summary across models, api-key and chat endpoints",
    )
    details: dict[str, Any] = Field(default_factory=dict, description="Per-endpoint diagnostics")
