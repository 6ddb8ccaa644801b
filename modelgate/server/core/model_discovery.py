"""Model discovery service.

Independent of connection testing, but shares its validation, budget and
error handling. Each adapter decides which listing endpoint to use; this
service only de-duplicates and reports.
"""

import logging
import time

from modelgate.exceptions import BudgetExhausted, ProviderError
from modelgate.schemas.model import ModelDescriptor
from modelgate.schemas.provider import Provider
from modelgate.schemas.results import DiscoveryResult
from modelgate.server.adapters import GrokAdapter, get_adapter_class
from modelgate.server.core.budget import CancellationBudget
from modelgate.server.core.errors import NormalizedError, empty_result, normalize_error
from modelgate.server.core.operation import ProviderOperation

logger = logging.getLogger(__name__)


def dedupe_models(models: list[ModelDescriptor]) -> list[ModelDescriptor]:
    """Drop repeated ids, keeping the first occurrence and the original order."""
    seen: set[str] = set()
    unique: list[ModelDescriptor] = []
    for model in models:
        if model.id in seen:
            continue
        seen.add(model.id)
        unique.append(model)
    return unique


class ModelDiscoveryService(ProviderOperation):
    """Lists the models a provider offers to a given credential."""

    category = "MODEL_DETECTION"

    async def discover(
        self,
        provider: Provider,
        credential: str | None,
        budget: CancellationBudget | None = None,
    ) -> DiscoveryResult:
        """Discover models for one provider. Never raises."""
        provider_type = provider.provider_type
        self.log.log_provider_test(
            provider.id,
            provider.name,
            "START",
            f"Starting model discovery for {provider.name}",
            {"provider_type": provider_type.value, "endpoint": provider.base_endpoint},
            category=self.category,
        )

        error = self.validate(provider, credential)
        if error is not None:
            return self._failure(provider, error, 0)

        budget = budget or self.new_budget()
        adapter_cls = get_adapter_class(provider_type)
        start = time.perf_counter()
        try:
            async with self.client() as client:
                adapter = adapter_cls(client, self.log, provider)
                models = await budget.run(
                    adapter.discover_models(provider.base_endpoint.strip(), credential.strip(), budget)
                )
        except ProviderError as e:
            return self._failure(provider, e.error, _elapsed_ms(start))
        except BudgetExhausted as e:
            return self._failure(provider, normalize_error(exc=e), _elapsed_ms(start))
        except Exception as e:
            logger.exception("Unexpected error discovering models for provider %s", provider.id)
            return self._failure(provider, normalize_error(exc=e), _elapsed_ms(start))

        latency_ms = _elapsed_ms(start)
        models = dedupe_models(models)
        if not models:
            return self._failure(provider, empty_result(f"{provider.name} returned no models"), latency_ms)

        self.log.log_provider_success(
            provider.id,
            provider.name,
            "Model discovery",
            {
                "stage": "SUCCESS",
                "latency_ms": latency_ms,
                "provider_type": provider_type.value,
                "model_count": len(models),
                "sample_models": [model.id for model in models[:5]],
            },
        )
        return DiscoveryResult(success=True, provider_type=provider_type, models=models, latency_ms=latency_ms)

    async def get_model_details(
        self,
        provider: Provider,
        credential: str | None,
        model_id: str,
        budget: CancellationBudget | None = None,
    ) -> dict | None:
        """Fetch the vendor's detail record for one model.

        Only Grok serves per-model records; other providers return None.
        """
        adapter_cls = get_adapter_class(provider.provider_type)
        if not issubclass(adapter_cls, GrokAdapter) or self.validate(provider, credential) is not None:
            return None
        budget = budget or self.new_budget()
        try:
            async with self.client() as client:
                adapter = adapter_cls(client, self.log, provider)
                return await budget.run(
                    adapter.get_model_details(provider.base_endpoint.strip(), credential.strip(), model_id, budget)
                )
        except BudgetExhausted:
            self.log.warn(
                "MODEL_DETAILS",
                f"Timed out fetching details for {model_id}",
                {"model_id": model_id},
                provider.id,
                provider.name,
            )
            return None

    def _failure(self, provider: Provider, error: NormalizedError, latency_ms: int) -> DiscoveryResult:
        self.log.log_provider_error(
            provider.id,
            provider.name,
            error,
            context="Model discovery",
            data={"stage": "ERROR", "latency_ms": latency_ms, "provider_type": provider.provider_type.value},
        )
        return DiscoveryResult.failure(provider.provider_type, error, latency_ms)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
