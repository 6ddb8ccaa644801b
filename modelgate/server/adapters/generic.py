"""Adapter for OpenAI-compatible endpoints (LM Studio, vLLM, OpenRouter, ...).

Also the fallback for provider types the gateway does not recognize.
"""

from typing import Any

from modelgate.schemas.model import ModelDescriptor
from modelgate.schemas.provider import ProviderType
from modelgate.server.adapters.base import ProviderAdapter, data_entries, describe
from modelgate.server.core.budget import CancellationBudget


class GenericAdapter(ProviderAdapter):
    provider_type = ProviderType.GENERIC
    label = "Custom provider"
    stage_prefix = "GENERIC"

    async def probe(self, endpoint: str, credential: str, budget: CancellationBudget) -> dict[str, Any]:
        body = await self.get_json(self.request_spec(endpoint, credential, "models"), budget)
        return {"models_found": len(list(data_entries(body)))}

    def parse_models(self, body: Any) -> list[ModelDescriptor]:
        return [describe(entry["id"], display_name=entry["id"]) for entry in data_entries(body)]
