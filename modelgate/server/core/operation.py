"""Shared plumbing for gateway operations.

Input validation, HTTP client ownership and budget creation are the same for
connection tests and model discovery.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from modelgate.schemas.provider import Provider
from modelgate.server.core.budget import DEFAULT_TIMEOUT_SECONDS, CancellationBudget
from modelgate.server.core.errors import NormalizedError, missing_field
from modelgate.server.core.observability import ObservabilityLog

DEFAULT_USER_AGENT = "ModelGate/0.1"


def validate_request(endpoint: str, credential: str | None) -> NormalizedError | None:
    """Return a MISSING_FIELD error if the endpoint or credential is unusable."""
    if not endpoint or not endpoint.strip():
        return missing_field("API endpoint is required")
    try:
        url = httpx.URL(endpoint.strip())
    except httpx.InvalidURL:
        return missing_field(f"API endpoint is not a valid URL: {endpoint!r}")
    if url.scheme not in ("http", "https") or not url.host:
        return missing_field(f"API endpoint must be an http(s) URL: {endpoint!r}")
    if not credential or not credential.strip():
        return missing_field("API key is required")
    return None


class ProviderOperation:
    """Base for operations that run one adapter call under one budget."""

    category = "SYSTEM"

    def __init__(
        self,
        log: ObservabilityLog,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.log = log
        self.timeout = timeout
        self.http_client = http_client
        self.user_agent = user_agent

    def new_budget(self) -> CancellationBudget:
        return CancellationBudget(self.timeout)

    @asynccontextmanager
    async def client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a per-call client that is closed afterwards."""
        if self.http_client is not None:
            yield self.http_client
            return
        async with httpx.AsyncClient(headers={"User-Agent": self.user_agent}) as client:
            yield client

    def validate(self, provider: Provider, credential: str | None) -> NormalizedError | None:
        error = validate_request(provider.base_endpoint, credential)
        self.log.log_provider_test(
            provider.id,
            provider.name,
            "VALIDATION",
            "Input validation failed" if error else "Input validation passed",
            {
                "has_endpoint": bool(provider.base_endpoint and provider.base_endpoint.strip()),
                "has_api_key": bool(credential and credential.strip()),
                "error": error.message if error else None,
            },
            category=self.category,
        )
        return error
