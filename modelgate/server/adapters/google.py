"""Google Gemini adapter.

Lists models via the Generative Language ``models`` endpoint, authenticated
with the ``?key=`` query parameter.
Ref: https://ai.google.dev/api/models
"""

from typing import Any

from modelgate.exceptions import ProviderError
from modelgate.schemas.model import ModelDescriptor
from modelgate.schemas.provider import ProviderType
from modelgate.server.adapters.base import PROBE_USER_PROMPT, ProviderAdapter, describe
from modelgate.server.core.budget import CancellationBudget
from modelgate.server.core.errors import normalize_error

GOOGLE_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GoogleAdapter(ProviderAdapter):
    """Google Gemini (AI Studio) models API."""

    provider_type = ProviderType.GOOGLE
    label = "Google Gemini"
    stage_prefix = "GOOGLE"
    default_probe_model = "gemini-1.5-flash"
    default_endpoint = GOOGLE_API_BASE

    @classmethod
    def chat_request_path(cls, model: str) -> str:
        return f"models/{model}:generateContent"

    @classmethod
    def probe_payload(cls, model: str | None = None) -> dict[str, Any]:
        # generateContent takes the model from the path, not the body
        return {
            "contents": [{"role": "user", "parts": [{"text": PROBE_USER_PROMPT}]}],
            "generationConfig": {"maxOutputTokens": 10, "temperature": 0.1},
        }

    def remediation_for(self, status: int | None) -> str | None:
        if status in (401, 403):
            return "Check that your API key is valid and has the Generative Language API enabled."
        if status == 404:
            return f"Verify the API endpoint URL is correct (expected {GOOGLE_API_BASE})."
        return None

    async def probe(self, endpoint: str, credential: str, budget: CancellationBudget) -> dict[str, Any]:
        body = await self.get_json(self.request_spec(endpoint, credential, "models"), budget)
        models = self.parse_models(body)
        return {
            "models_found": len(models),
            "sample_models": [model.id for model in models[:5]],
        }

    def parse_models(self, body: Any) -> list[ModelDescriptor]:
        if not isinstance(body, dict) or not isinstance(body.get("models"), list):
            raise ProviderError(
                normalize_error(200, body, message="Expected a 'models' array in the Gemini response")
            )

        models: list[ModelDescriptor] = []
        for model_data in body["models"]:
            if not isinstance(model_data, dict):
                continue
            # Entries without generation methods are not usable models
            if not model_data.get("name") or not model_data.get("supportedGenerationMethods"):
                continue
            # "models/gemini-1.5-pro" -> "gemini-1.5-pro"
            model_id = str(model_data["name"]).removeprefix("models/")
            if not model_id:
                continue
            token_limit = model_data.get("inputTokenLimit")
            models.append(
                describe(
                    model_id,
                    display_name=model_data.get("displayName"),
                    context_length=token_limit if isinstance(token_limit, int) else None,
                )
            )
        return models
