"""xAI Grok adapter.

The connection test first lists models to pick one the key can use, then sends
a minimal chat completion. Discovery prefers the richer ``language-models``
endpoint (pricing and modalities) and falls back to the basic ``models`` list
when this deployment does not serve it.
Ref: https://docs.x.ai/docs/api-reference
"""

from typing import Any

from modelgate.exceptions import ProviderError
from modelgate.schemas.model import ModelDescriptor
from modelgate.schemas.provider import ProviderType
from modelgate.server.adapters.base import ProviderAdapter, RequestSpec, data_entries, describe, join_url
from modelgate.server.core.budget import CancellationBudget
from modelgate.server.core.errors import ErrorKind, empty_result, extract_vendor_message, normalize_error

XAI_API_BASE = "https://api.x.ai/v1"
XAI_CONSOLE_URL = "https://console.x.ai"

# Tried in order; the first one the key can see is used for the chat probe
PREFERRED_TEST_MODELS = (
    "grok-beta",
    "grok-2-mini",
    "grok-2-1212",
    "grok-2-latest",
    "grok-2",
    "grok-code-fast-1",
)
FALLBACK_TEST_MODEL = "grok-beta"

# language-models quotes prompt prices in US cents per 100M tokens
_PRICE_UNIT_TO_USD_PER_1K = 1e-7

# Statuses meaning the language-models endpoint is not served here
_ENHANCED_UNAVAILABLE = (404, 405)


def select_test_model(available: list[str]) -> str:
    """Pick the chat probe model from what the key can see."""
    for model_id in PREFERRED_TEST_MODELS:
        if model_id in available:
            return model_id
    return available[0] if available else FALLBACK_TEST_MODEL


class GrokAdapter(ProviderAdapter):
    """xAI Grok API."""

    provider_type = ProviderType.GROK
    label = "Grok"
    stage_prefix = "GROK"
    default_probe_model = FALLBACK_TEST_MODEL
    default_endpoint = XAI_API_BASE
    enhanced_models_path = "language-models"

    def remediation_for(self, status: int | None) -> str | None:
        if status == 401:
            return f"Verify your API key at {XAI_CONSOLE_URL}"
        if status == 403:
            return f"Check API key model permissions and billing status at {XAI_CONSOLE_URL}"
        return None

    # ------------------------------------------------------------------
    # Connection test
    # ------------------------------------------------------------------

    async def probe(self, endpoint: str, credential: str, budget: CancellationBudget) -> dict[str, Any]:
        available = await self._pre_discover(endpoint, credential, budget)
        model = select_test_model(available)
        self.stage(
            "MODEL_SELECTED",
            f"Using {model} for the chat probe",
            {"test_model": model, "available_models": available[:10]},
        )

        spec = self.request_spec(endpoint, credential, "chat", self.probe_payload(model))
        self.stage("CHAT", f"POST {spec.url}", {"model": model})
        response = await self.send(spec, budget)
        body, parsed = self.read_body(response)

        if not response.is_success:
            raise self._chat_failure(response.status_code, body, model, available)

        if not parsed or not isinstance(body, dict):
            raise ProviderError(normalize_error(response.status_code, body, message="Chat response is not valid JSON"))
        choices = body.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise ProviderError(
                normalize_error(response.status_code, body, message="Chat response has no choices")
            )
        if "message" not in choices[0]:
            raise ProviderError(
                normalize_error(response.status_code, body, message="Chat response choice has no message")
            )

        return {
            "tested_model": model,
            "available_models": available,
            "models_endpoint_working": bool(available),
            "response_id": body.get("id"),
            "finish_reason": choices[0].get("finish_reason"),
            "usage": body.get("usage"),
        }

    async def _pre_discover(self, endpoint: str, credential: str, budget: CancellationBudget) -> list[str]:
        """List model ids visible to the key.

        Auth failures and client errors end the test; server errors and
        unreadable bodies only cost the model selection.
        """
        spec = self.request_spec(endpoint, credential, "models")
        self.stage("MODELS", f"GET {spec.url}")
        try:
            response = await self.send(spec, budget)
        except ProviderError as e:
            if e.kind == ErrorKind.TIMEOUT:
                raise
            self.stage("MODELS_UNREACHABLE", f"Model listing failed, using {FALLBACK_TEST_MODEL}: {e.error.message}")
            return []

        body, parsed = self.read_body(response)
        status = response.status_code
        if response.is_success:
            try:
                available = [entry["id"] for entry in data_entries(body)] if parsed else []
            except ProviderError:
                available = []
            if not available:
                self.stage("MODELS_FORMAT", "Model listing had no usable entries", {"status": status})
            return available

        if status == 401:
            raise self.failure(response, body, message="Grok API authentication failed - invalid API key")
        if status == 403:
            raise self.failure(response, body, message="Grok API access forbidden")
        if status >= 500:
            self.stage(
                "SERVER_ERROR",
                f"Model listing returned {status}, continuing with chat probe",
                {"status": status},
            )
            return []
        vendor = extract_vendor_message(body)
        raise self.failure(response, body, message=f"Grok API error ({status}): {vendor or 'no details'}")

    def _chat_failure(self, status: int, body: Any, model: str, available: list[str]) -> ProviderError:
        vendor = extract_vendor_message(body)
        remediation = self.remediation_for(status)
        if status == 403:
            message = f"Grok API Permission Error: Cannot access model '{model}'"
            others = [model_id for model_id in available if model_id != model][:5]
            if others:
                remediation = (
                    f"Try one of the available models ({', '.join(others)}) or enable access to "
                    f"'{model}' for this key at {XAI_CONSOLE_URL}"
                )
            else:
                remediation = f"Enable model access and check billing for this key at {XAI_CONSOLE_URL}"
        elif status == 401:
            message = "Grok API authentication failed - check your API key"
        elif status == 429:
            message = "Grok API rate limit exceeded - please try again later or upgrade your plan"
        elif status >= 500:
            message = f"Grok API server error ({status}) - service may be temporarily unavailable"
        else:
            message = f"Grok API error ({status}): {vendor or 'no details'}"
        return ProviderError(normalize_error(status, body, remediation=remediation, message=message))

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def _enhanced_spec(self, endpoint: str, credential: str, model_id: str | None = None) -> RequestSpec:
        spec = self.request_spec(endpoint, credential, "models")
        path = self.enhanced_models_path if model_id is None else f"{self.enhanced_models_path}/{model_id}"
        return RequestSpec(
            method="GET",
            url=join_url(endpoint, path),
            headers=spec.headers,
            params=spec.params,
            credential=spec.credential,
        )

    async def discover_models(
        self, endpoint: str, credential: str, budget: CancellationBudget
    ) -> list[ModelDescriptor]:
        spec = self._enhanced_spec(endpoint, credential)
        self.stage("REQUEST", f"GET {spec.url}", category="MODEL_DETECTION")
        response = await self.send(spec, budget)

        if response.status_code in _ENHANCED_UNAVAILABLE:
            self.stage(
                "DEGRADED",
                f"language-models returned {response.status_code}, using the basic models endpoint",
                {"status": response.status_code},
                category="MODEL_DETECTION",
            )
            return await super().discover_models(endpoint, credential, budget)

        body, parsed = self.read_body(response)
        if not response.is_success:
            raise self.failure(response, body)
        if not parsed:
            raise ProviderError(
                normalize_error(response.status_code, body[:500], message="Response body is not valid JSON")
            )

        models = self.parse_models(body)
        if not models:
            raise ProviderError(empty_result("X.AI API returned no models"))
        self.stage(
            "PARSED",
            "Parsed models using enhanced language-models endpoint",
            {
                "total_models": len(models),
                "models_with_pricing": sum(1 for m in models if m.cost_per_1k_tokens is not None),
                "models_with_vision": sum(1 for m in models if "image" in m.supported_modalities),
            },
            category="MODEL_DETECTION",
        )
        return models

    def parse_models(self, body: Any) -> list[ModelDescriptor]:
        if isinstance(body, dict) and isinstance(body.get("models"), list):
            return [self._describe_enhanced(entry) for entry in body["models"] if _is_model_record(entry)]
        return [describe(entry["id"]) for entry in data_entries(body)]

    @staticmethod
    def _describe_enhanced(entry: dict[str, Any]) -> ModelDescriptor:
        price = entry.get("prompt_text_token_price")
        modalities = entry.get("input_modalities")
        return describe(
            entry["id"],
            cost_per_1k_tokens=price * _PRICE_UNIT_TO_USD_PER_1K if isinstance(price, int | float) else None,
            modalities=frozenset(modalities) if isinstance(modalities, list) and modalities else None,
        )

    async def get_model_details(
        self,
        endpoint: str,
        credential: str,
        model_id: str,
        budget: CancellationBudget,
    ) -> dict[str, Any] | None:
        """Fetch the language-models record for one model, or None on any failure."""
        spec = self._enhanced_spec(endpoint, credential, model_id)
        try:
            body = await self.get_json(spec, budget, "MODEL_DETAILS")
        except ProviderError as e:
            self.log.warn(
                "MODEL_DETAILS",
                f"Failed to get details for {model_id}: {e.error.message}",
                {"model_id": model_id, "error_kind": e.kind.value},
                self.provider.id,
                self.provider.name,
            )
            return None
        if not isinstance(body, dict):
            return None
        self.log.success(
            "MODEL_DETAILS",
            f"Retrieved detailed info for {model_id}",
            {
                "model_id": body.get("id"),
                "input_modalities": body.get("input_modalities"),
                "has_pricing": bool(body.get("prompt_text_token_price")),
            },
            self.provider.id,
            self.provider.name,
        )
        return body


def _is_model_record(entry: Any) -> bool:
    return isinstance(entry, dict) and bool(entry.get("id")) and entry.get("object", "model") == "model"
