"""Pydantic schema for discovered models."""

from pydantic import BaseModel, ConfigDict, Field


class ModelDescriptor(BaseModel):
    """A normalized record describing one model offered by a provider.

    Only built from a fully parsed vendor record; optional fields are None
    when neither the vendor nor the known-model hints supply them.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Model identifier", examples=["grok-2-latest"])
    display_name: str = Field(..., description="Human-readable name", examples=["Grok 2 Latest"])
    context_length: int | None = Field(None, description="Context window in tokens")
    cost_per_1k_tokens: float | None = Field(None, description="USD per 1k prompt tokens")
    supported_modalities: frozenset[str] = Field(
        default_factory=frozenset,
        description="Input modalities (text, image, audio, ...)",
    )
