"""Azure OpenAI adapter.

Lists the base models available to the resource via ``models?api-version=``
with the ``api-key`` header. These are deployable models, not deployments.
"""

from typing import Any

from modelgate.schemas.model import ModelDescriptor
from modelgate.schemas.provider import ProviderType
from modelgate.server.adapters.base import ProviderAdapter, data_entries, describe
from modelgate.server.core.budget import CancellationBudget

AZURE_API_VERSION = "2023-05-15"


class AzureAdapter(ProviderAdapter):
    """Azure OpenAI models API."""

    provider_type = ProviderType.AZURE
    label = "Azure OpenAI"
    stage_prefix = "AZURE"
    base_params = {"api-version": AZURE_API_VERSION}

    def remediation_for(self, status: int | None) -> str | None:
        if status == 404:
            return "Verify the resource endpoint (https://<resource>.openai.azure.com/openai) and API version."
        return None

    async def probe(self, endpoint: str, credential: str, budget: CancellationBudget) -> dict[str, Any]:
        body = await self.get_json(self.request_spec(endpoint, credential, "models"), budget)
        return {"models_found": len(list(data_entries(body))), "api_version": AZURE_API_VERSION}

    def parse_models(self, body: Any) -> list[ModelDescriptor]:
        models: list[ModelDescriptor] = []
        for entry in data_entries(body):
            # Skip models that cannot serve chat completions
            capabilities = entry.get("capabilities")
            if isinstance(capabilities, dict) and capabilities.get("chat_completion") is False:
                continue
            models.append(describe(entry["id"]))
        return models
