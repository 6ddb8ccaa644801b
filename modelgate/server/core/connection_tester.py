"""Connection tester: one bounded reachability check per call."""

import logging
import time

from modelgate.exceptions import BudgetExhausted
from modelgate.schemas.provider import Provider
from modelgate.schemas.results import ConnectionTestResult
from modelgate.server.adapters import get_adapter_class
from modelgate.server.core.budget import CancellationBudget
from modelgate.server.core.errors import normalize_error
from modelgate.server.core.operation import ProviderOperation

logger = logging.getLogger(__name__)


class ConnectionTester(ProviderOperation):
    """Checks that a provider's endpoint and credential work.

    ``run`` never raises: every failure, including validation, timeouts and
    unexpected adapter errors, comes back as a failed ConnectionTestResult.
    """

    category = "CONNECTION_TEST"

    async def run(
        self,
        provider: Provider,
        credential: str | None,
        budget: CancellationBudget | None = None,
    ) -> ConnectionTestResult:
        """Test one provider.

        Args:
            provider: Provider to test.
            credential: API key; attached the way the provider type requires.
            budget: Shared cancellation budget. A fresh one with this
                tester's timeout is created when omitted.

        Returns:
            The test outcome. Latency covers dispatch to completion.
        """
        self.log.log_provider_test(
            provider.id,
            provider.name,
            "START",
            f"Starting connection test for {provider.name}",
            {"provider_type": provider.provider_type.value, "endpoint": provider.base_endpoint},
            category=self.category,
        )

        error = self.validate(provider, credential)
        if error is not None:
            result = ConnectionTestResult.failure(error, latency_ms=0)
            self._log_failure(provider, result)
            return result

        budget = budget or self.new_budget()
        adapter_cls = get_adapter_class(provider.provider_type)
        start = time.perf_counter()
        try:
            async with self.client() as client:
                adapter = adapter_cls(client, self.log, provider)
                result = await budget.run(
                    adapter.test_connection(provider.base_endpoint.strip(), credential.strip(), budget)
                )
        except BudgetExhausted as e:
            result = ConnectionTestResult.failure(normalize_error(exc=e))
        except Exception as e:
            logger.exception("Unexpected error testing provider %s", provider.id)
            result = ConnectionTestResult.failure(normalize_error(exc=e))

        latency_ms = int((time.perf_counter() - start) * 1000)
        result = result.model_copy(update={"latency_ms": latency_ms})

        if result.success:
            self.log.log_provider_success(
                provider.id,
                provider.name,
                "Connection test",
                {"stage": "SUCCESS", "latency_ms": latency_ms, "provider_type": provider.provider_type.value},
            )
        else:
            self._log_failure(provider, result)
        return result

    def _log_failure(self, provider: Provider, result: ConnectionTestResult) -> None:
        self.log.log_provider_error(
            provider.id,
            provider.name,
            result.error_message or "Connection test failed",
            context="Connection test",
            data={
                "stage": "ERROR",
                "latency_ms": result.latency_ms,
                "provider_type": provider.provider_type.value,
                "error_kind": result.error_kind.value if result.error_kind else None,
            },
        )
