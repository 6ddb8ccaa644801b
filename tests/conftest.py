"""Shared fixtures: fake provider transports and provider records."""

import inspect
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from modelgate.schemas.provider import Provider
from modelgate.server.core.observability import ObservabilityLog

Handler = Callable[[httpx.Request], Any]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that records every request it receives."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        async def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            response = handler(request)
            if inspect.isawaitable(response):
                response = await response
            return response

        super().__init__(record)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def log() -> ObservabilityLog:
    return ObservabilityLog(capacity=1000)


@pytest.fixture
def make_client():
    """Build an AsyncClient whose network is the given handler.

    Returns ``(client, transport)``; ``transport.call_count`` counts requests.
    """

    def factory(handler: Handler) -> tuple[httpx.AsyncClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport

    return factory


@pytest.fixture
def make_provider():
    def factory(provider_type: str = "openai", endpoint: str = "https://api.example.com/v1", **kwargs: Any) -> Provider:
        return Provider(
            id=kwargs.pop("id", f"{provider_type}-1"),
            name=kwargs.pop("name", f"{provider_type.title()} Test"),
            provider_type=provider_type,
            base_endpoint=endpoint,
            **kwargs,
        )

    return factory
