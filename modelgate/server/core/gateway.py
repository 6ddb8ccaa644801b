"""Gateway facade wiring the log, HTTP client and operations together."""

from typing import Any, Literal

import httpx

from modelgate.schemas.provider import Provider
from modelgate.schemas.results import ConnectionTestResult, DiscoveryResult, EndpointHealthReport
from modelgate.server.core.budget import CancellationBudget
from modelgate.server.core.config import Settings, get_settings
from modelgate.server.core.connection_tester import ConnectionTester
from modelgate.server.core.endpoint_health import validate_provider_endpoints
from modelgate.server.core.model_discovery import ModelDiscoveryService
from modelgate.server.core.observability import ObservabilityLog
from modelgate.server.core.reproduction import render_reproduction


class ProviderGateway:
    """One explicit instance of everything a caller needs.

    Owns the observability log and a shared HTTP client. Call ``aclose()``
    when done, or use the gateway as an async context manager.

    Usage:
        async with ProviderGateway() as gateway:
            result = await gateway.test_connection(provider, api_key)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        log: ObservabilityLog | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.log = log or ObservabilityLog(
            capacity=self.settings.log_capacity,
            console=self.settings.console_config(),
        )
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(headers={"User-Agent": self.settings.user_agent})
        self.tester = ConnectionTester(
            self.log,
            timeout=self.settings.connection_timeout_seconds,
            http_client=self.http_client,
            user_agent=self.settings.user_agent,
        )
        self.discovery = ModelDiscoveryService(
            self.log,
            timeout=self.settings.connection_timeout_seconds,
            http_client=self.http_client,
            user_agent=self.settings.user_agent,
        )

    async def __aenter__(self) -> "ProviderGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def test_connection(
        self,
        provider: Provider,
        credential: str | None,
        budget: CancellationBudget | None = None,
    ) -> ConnectionTestResult:
        return await self.tester.run(provider, credential, budget)

    async def discover_models(
        self,
        provider: Provider,
        credential: str | None,
        budget: CancellationBudget | None = None,
    ) -> DiscoveryResult:
        return await self.discovery.discover(provider, credential, budget)

    async def get_model_details(self, provider: Provider, credential: str | None, model_id: str) -> dict | None:
        return await self.discovery.get_model_details(provider, credential, model_id)

    async def validate_endpoints(self, provider: Provider, credential: str | None) -> EndpointHealthReport:
        return await validate_provider_endpoints(
            provider,
            credential,
            http_client=self.http_client,
            log=self.log,
            timeout=self.settings.health_check_timeout_seconds,
        )

    def reproduce(
        self,
        provider: Provider,
        credential: str | None = None,
        payload: dict[str, Any] | None = None,
        operation: Literal["chat", "models"] = "chat",
    ) -> str:
        return render_reproduction(provider, credential, payload, operation)
