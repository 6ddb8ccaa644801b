"""Anthropic adapter.

Anthropic publishes no model listing endpoint, so discovery returns a pinned
catalog and the connection test sends a minimal ``messages`` request.
Ref: https://docs.anthropic.com/en/api/messages
"""

from typing import Any

from modelgate.exceptions import ProviderError
from modelgate.schemas.model import ModelDescriptor
from modelgate.schemas.provider import ProviderType
from modelgate.server.adapters.base import PROBE_SYSTEM_PROMPT, PROBE_USER_PROMPT, ProviderAdapter, describe
from modelgate.server.core import catalog
from modelgate.server.core.budget import CancellationBudget
from modelgate.server.core.errors import normalize_error

ANTHROPIC_API_BASE = "https://api.anthropic.com/v1"
ANTHROPIC_VERSION = "2023-06-01"


class AnthropicAdapter(ProviderAdapter):
    """Anthropic Messages API."""

    provider_type = ProviderType.ANTHROPIC
    label = "Anthropic"
    stage_prefix = "ANTHROPIC"
    models_path = None
    chat_path = "messages"
    base_headers = {"anthropic-version": ANTHROPIC_VERSION}
    default_probe_model = "claude-3-5-sonnet-20241022"
    default_endpoint = ANTHROPIC_API_BASE

    @classmethod
    def probe_payload(cls, model: str | None = None) -> dict[str, Any]:
        return {
            "model": model or cls.default_probe_model,
            "system": PROBE_SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": PROBE_USER_PROMPT}],
            "max_tokens": 10,
        }

    async def probe(self, endpoint: str, credential: str, budget: CancellationBudget) -> dict[str, Any]:
        body = await self.get_json(self.request_spec(endpoint, credential, "chat"), budget)
        if not isinstance(body, dict) or not isinstance(body.get("content"), list):
            raise ProviderError(normalize_error(200, body, message="Messages response has no content"))
        return {
            "tested_model": body.get("model", self.default_probe_model),
            "response_id": body.get("id"),
            "stop_reason": body.get("stop_reason"),
            "usage": body.get("usage"),
        }

    async def discover_models(
        self, endpoint: str, credential: str, budget: CancellationBudget
    ) -> list[ModelDescriptor]:
        budget.check()
        models = self.parse_models(None)
        self.stage(
            "CATALOG",
            "Using known Anthropic models (no listing endpoint)",
            {"models": [model.id for model in models]},
            category="MODEL_DETECTION",
        )
        return models

    def parse_models(self, body: Any) -> list[ModelDescriptor]:
        return [describe(model_id) for model_id in catalog.ANTHROPIC_MODELS]
