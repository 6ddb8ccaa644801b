"""Provider adapters, one per vendor protocol.

``get_adapter_class`` is total: unknown provider types get the generic
OpenAI-compatible adapter.
"""

from typing import Any

from modelgate.schemas.provider import ProviderType, resolve_provider_type
from modelgate.server.adapters.anthropic import AnthropicAdapter
from modelgate.server.adapters.azure import AzureAdapter
from modelgate.server.adapters.base import ProviderAdapter, RequestSpec
from modelgate.server.adapters.generic import GenericAdapter
from modelgate.server.adapters.google import GoogleAdapter
from modelgate.server.adapters.grok import GrokAdapter
from modelgate.server.adapters.openai import OpenAIAdapter

ADAPTERS: dict[ProviderType, type[ProviderAdapter]] = {
    ProviderType.GOOGLE: GoogleAdapter,
    ProviderType.GROK: GrokAdapter,
    ProviderType.OPENAI: OpenAIAdapter,
    ProviderType.ANTHROPIC: AnthropicAdapter,
    ProviderType.AZURE: AzureAdapter,
    ProviderType.GENERIC: GenericAdapter,
}


def get_adapter_class(provider_type: Any) -> type[ProviderAdapter]:
    """Return the adapter class for a provider type or tag."""
    return ADAPTERS.get(resolve_provider_type(provider_type), GenericAdapter)


__all__ = [
    "ADAPTERS",
    "AnthropicAdapter",
    "AzureAdapter",
    "GenericAdapter",
    "GoogleAdapter",
    "GrokAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "RequestSpec",
    "get_adapter_class",
]
