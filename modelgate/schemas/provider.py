"""Pydantic schemas for providers and provider requests."""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ProviderType(str, Enum):
    """Closed set of vendor families; each selects exactly one adapter."""

    GOOGLE = "google"
    GROK = "grok"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    AZURE = "azure"
    GENERIC = "generic"


# Vendor tags seen in stored provider records
PROVIDER_TYPE_ALIASES: dict[str, ProviderType] = {
    "gemini": ProviderType.GOOGLE,
    "google_gemini": ProviderType.GOOGLE,
    "google_ai_studio": ProviderType.GOOGLE,
    "xai": ProviderType.GROK,
    "x.ai": ProviderType.GROK,
    "azure_openai": ProviderType.AZURE,
    "custom": ProviderType.GENERIC,
    "custom_openai_compatible": ProviderType.GENERIC,
}


def resolve_provider_type(value: Any) -> ProviderType:
    """Map a provider tag onto ProviderType. Unknown tags become GENERIC."""
    if isinstance(value, ProviderType):
        return value
    key = str(value or "").strip().lower()
    try:
        return ProviderType(key)
    except ValueError:
        return PROVIDER_TYPE_ALIASES.get(key, ProviderType.GENERIC)


class BearerHeader(BaseModel):
    """``Authorization: Bearer <key>``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bearer"] = "bearer"


class ApiKeyHeader(BaseModel):
    """A named header carrying the raw key."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["api_key_header"] = "api_key_header"
    header_name: str


class QueryParameter(BaseModel):
    """A query parameter carrying the raw key, e.g. ``?key=<value>``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["query_parameter"] = "query_parameter"
    param_name: str


AuthScheme = Annotated[
    Union[BearerHeader, ApiKeyHeader, QueryParameter],
    Field(discriminator="kind"),
]

DEFAULT_AUTH_SCHEMES: dict[ProviderType, BearerHeader | ApiKeyHeader | QueryParameter] = {
    ProviderType.GOOGLE: QueryParameter(param_name="key"),
    ProviderType.GROK: BearerHeader(),
    ProviderType.OPENAI: BearerHeader(),
    ProviderType.ANTHROPIC: ApiKeyHeader(header_name="x-api-key"),
    ProviderType.AZURE: ApiKeyHeader(header_name="api-key"),
    ProviderType.GENERIC: BearerHeader(),
}


class Provider(BaseModel):
    """Provider configuration handed in by value for each call.

    The auth scheme is fixed by the provider type. It may be omitted, in which
    case it is filled in; a declared scheme that disagrees is rejected.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Provider identifier", examples=["prov-1"])
    name: str = Field(..., description="Display name", examples=["xAI Production"])
    provider_type: ProviderType = Field(
        ...,
        description="Vendor family (google, grok, openai, anthropic, azure, generic)",
        examples=["grok"],
    )
    base_endpoint: str = Field(
        "",
        description="Base API endpoint",
        examples=["https://api.x.ai/v1"],
    )
    auth_scheme: AuthScheme = Field(..., description="How the credential is attached")

    @model_validator(mode="before")
    @classmethod
    def fill_auth_scheme(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("auth_scheme") is None:
            provider_type = resolve_provider_type(data.get("provider_type"))
            data = {**data, "auth_scheme": DEFAULT_AUTH_SCHEMES[provider_type]}
        return data

    @field_validator("provider_type", mode="before")
    @classmethod
    def coerce_provider_type(cls, v: Any) -> ProviderType:
        return resolve_provider_type(v)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if v is not None else v

    @model_validator(mode="after")
    def check_auth_scheme(self) -> "Provider":
        expected = DEFAULT_AUTH_SCHEMES[self.provider_type]
        if self.auth_scheme != expected:
            raise ValueError(
                f"auth scheme {self.auth_scheme.kind!r} does not match provider type "
                f"{self.provider_type.value!r} (expected {expected.kind!r})"
            )
        return self


class ProviderProbeRequest(BaseModel):
    """Schema for connection test, discovery and endpoint validation requests."""

    provider: Provider = Field(..., description="Provider to exercise")
    credential: str = Field(
        "",
        description="API key (never stored)",
        examples=["xai-..."],
    )


class ReproductionRequest(BaseModel):
    """Schema for rendering a copy-pasteable request."""

    provider: Provider = Field(..., description="Provider to render the request for")
    credential: str | None = Field(None, description="API key; shown redacted")
    payload: dict[str, Any] | None = Field(None, description="Custom request body")
    operation: Literal["chat", "models"] = Field(
        "chat",
        description="Which request to render",
    )


class ReproductionResponse(BaseModel):
    """Schema for a rendered request."""

    command: str = Field(..., description="Redacted curl command")
