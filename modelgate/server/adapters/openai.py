"""OpenAI adapter.

Lists models via ``GET models`` with a Bearer token. Legacy completion,
audio, image and embedding families are dropped from discovery results.
"""

from typing import Any

from modelgate.schemas.model import ModelDescriptor
from modelgate.schemas.provider import ProviderType
from modelgate.server.adapters.base import ProviderAdapter, data_entries, describe
from modelgate.server.core import catalog
from modelgate.server.core.budget import CancellationBudget

OPENAI_API_BASE = "https://api.openai.com/v1"


class OpenAIAdapter(ProviderAdapter):
    """OpenAI models API."""

    provider_type = ProviderType.OPENAI
    label = "OpenAI"
    stage_prefix = "OPENAI"
    default_endpoint = OPENAI_API_BASE

    async def probe(self, endpoint: str, credential: str, budget: CancellationBudget) -> dict[str, Any]:
        body = await self.get_json(self.request_spec(endpoint, credential, "models"), budget)
        entries = list(data_entries(body))
        return {"models_found": len(entries)}

    def parse_models(self, body: Any) -> list[ModelDescriptor]:
        return [describe(entry["id"]) for entry in data_entries(body) if catalog.is_chat_model(entry["id"])]
