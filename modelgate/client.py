"""ModelGate Python SDK client for the REST API."""

from __future__ import annotations

import os
from types import TracebackType
from typing import Any, Literal

import httpx

from modelgate.exceptions import APIConnectionError, APIStatusError, APITimeoutError
from modelgate.schemas.logs import LogListResponse
from modelgate.schemas.provider import (
    Provider,
    ProviderProbeRequest,
    ReproductionRequest,
    ReproductionResponse,
)
from modelgate.schemas.results import ConnectionTestResult, DiscoveryResult, EndpointHealthReport

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = httpx.Timeout(timeout=30.0, connect=5.0)
DEFAULT_MAX_RETRIES = 2
API_PREFIX = "/api/v1"

_RETRY_STATUS_CODES = frozenset({408, 429, 502, 503, 504})

LogLevelName = Literal["DEBUG", "INFO", "WARN", "ERROR", "SUCCESS"]


class ModelGateClient:
    """Synchronous client for the ModelGate REST API.

    Usage::

        with ModelGateClient(base_url="http://localhost:8000") as client:
            result = client.test_connection(provider, api_key)
            if not result.success:
                print(result.error_kind, result.error_message)
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | httpx.Timeout | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        http_client: httpx.Client | None = None,
    ) -> None:
        if base_url is None:
            base_url = os.environ.get("MODELGATE_BASE_URL", DEFAULT_BASE_URL)

        self._base_url = base_url.rstrip("/")
        self._max_retries = max_retries

        if http_client is not None:
            self._client = http_client
            self._owns_client = False
        else:
            self._client = httpx.Client(
                base_url=self._base_url,
                timeout=timeout if timeout is not None else DEFAULT_TIMEOUT,
            )
            self._owns_client = True

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ModelGateClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal request handling
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        request = self._client.build_request(method, f"{API_PREFIX}{path}", json=json, params=_clean_params(params))

        last_exc: Exception | None = None
        for attempt in range(1 + self._max_retries):
            try:
                response = self._client.send(request)
            except httpx.TimeoutException:
                last_exc = APITimeoutError(request)
                continue
            except httpx.ConnectError as exc:
                last_exc = APIConnectionError(message=str(exc), request=request)
                continue

            if response.status_code >= 400:
                if response.status_code in _RETRY_STATUS_CODES and attempt < self._max_retries:
                    continue
                raise APIStatusError.from_response(response)

            return response

        raise last_exc  # type: ignore[misc]

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    def test_connection(self, provider: Provider | dict[str, Any], credential: str) -> ConnectionTestResult:
        resp = self._request("POST", "/providers/test-connection", json=_probe_body(provider, credential))
        return ConnectionTestResult.model_validate(resp.json())

    def discover_models(self, provider: Provider | dict[str, Any], credential: str) -> DiscoveryResult:
        resp = self._request("POST", "/providers/discover-models", json=_probe_body(provider, credential))
        return DiscoveryResult.model_validate(resp.json())

    def validate_endpoints(self, provider: Provider | dict[str, Any], credential: str) -> EndpointHealthReport:
        resp = self._request("POST", "/providers/validate-endpoints", json=_probe_body(provider, credential))
        return EndpointHealthReport.model_validate(resp.json())

    def reproduce(
        self,
        provider: Provider | dict[str, Any],
        credential: str | None = None,
        *,
        payload: dict[str, Any] | None = None,
        operation: Literal["chat", "models"] = "chat",
    ) -> str:
        """Return a redacted curl command for a provider request."""
        body = _reproduction_body(provider, credential, payload, operation)
        resp = self._request("POST", "/providers/reproduce", json=body)
        return ReproductionResponse.model_validate(resp.json()).command

    # ------------------------------------------------------------------
    # Logs
    # ------------------------------------------------------------------

    def list_logs(
        self,
        *,
        provider_id: str | None = None,
        level: LogLevelName | None = None,
    ) -> LogListResponse:
        resp = self._request("GET", "/logs", params={"provider_id": provider_id, "level": level})
        return LogListResponse.model_validate(resp.json())

    def export_logs(self, *, provider_id: str | None = None) -> str:
        """Return the exported log as a JSON string."""
        return self._request("GET", "/logs/export", params={"provider_id": provider_id}).text

    def clear_logs(self, *, provider_id: str | None = None) -> None:
        self._request("DELETE", "/logs", params={"provider_id": provider_id})


class AsyncModelGateClient:
    """Asynchronous client for the ModelGate REST API.

    Usage::

        async with AsyncModelGateClient() as client:
            result = await client.discover_models(provider, api_key)
    """

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | httpx.Timeout | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if base_url is None:
            base_url = os.environ.get("MODELGATE_BASE_URL", DEFAULT_BASE_URL)

        self._base_url = base_url.rstrip("/")
        self._max_retries = max_retries

        if http_client is not None:
            self._client = http_client
            self._owns_client = False
        else:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=timeout if timeout is not None else DEFAULT_TIMEOUT,
            )
            self._owns_client = True

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncModelGateClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        request = self._client.build_request(method, f"{API_PREFIX}{path}", json=json, params=_clean_params(params))

        last_exc: Exception | None = None
        for attempt in range(1 + self._max_retries):
            try:
                response = await self._client.send(request)
            except httpx.TimeoutException:
                last_exc = APITimeoutError(request)
                continue
            except httpx.ConnectError as exc:
                last_exc = APIConnectionError(message=str(exc), request=request)
                continue

            if response.status_code >= 400:
                if response.status_code in _RETRY_STATUS_CODES and attempt < self._max_retries:
                    continue
                raise APIStatusError.from_response(response)

            return response

        raise last_exc  # type: ignore[misc]

    async def test_connection(self, provider: Provider | dict[str, Any], credential: str) -> ConnectionTestResult:
        resp = await self._request("POST", "/providers/test-connection", json=_probe_body(provider, credential))
        return ConnectionTestResult.model_validate(resp.json())

    async def discover_models(self, provider: Provider | dict[str, Any], credential: str) -> DiscoveryResult:
        resp = await self._request("POST", "/providers/discover-models", json=_probe_body(provider, credential))
        return DiscoveryResult.model_validate(resp.json())

    async def validate_endpoints(
        self, provider: Provider | dict[str, Any], credential: str
    ) -> EndpointHealthReport:
        resp = await self._request("POST", "/providers/validate-endpoints", json=_probe_body(provider, credential))
        return EndpointHealthReport.model_validate(resp.json())

    async def reproduce(
        self,
        provider: Provider | dict[str, Any],
        credential: str | None = None,
        *,
        payload: dict[str, Any] | None = None,
        operation: Literal["chat", "models"] = "chat",
    ) -> str:
        body = _reproduction_body(provider, credential, payload, operation)
        resp = await self._request("POST", "/providers/reproduce", json=body)
        return ReproductionResponse.model_validate(resp.json()).command

    async def list_logs(
        self,
        *,
        provider_id: str | None = None,
        level: LogLevelName | None = None,
    ) -> LogListResponse:
        resp = await self._request("GET", "/logs", params={"provider_id": provider_id, "level": level})
        return LogListResponse.model_validate(resp.json())

    async def export_logs(self, *, provider_id: str | None = None) -> str:
        resp = await self._request("GET", "/logs/export", params={"provider_id": provider_id})
        return resp.text

    async def clear_logs(self, *, provider_id: str | None = None) -> None:
        await self._request("DELETE", "/logs", params={"provider_id": provider_id})


def _probe_body(provider: Provider | dict[str, Any], credential: str) -> dict[str, Any]:
    return ProviderProbeRequest(provider=provider, credential=credential).model_dump(mode="json")


def _reproduction_body(
    provider: Provider | dict[str, Any],
    credential: str | None,
    payload: dict[str, Any] | None,
    operation: str,
) -> dict[str, Any]:
    request = ReproductionRequest(provider=provider, credential=credential, payload=payload, operation=operation)
    return request.model_dump(mode="json")


def _clean_params(
    params: dict[str, Any] | None,
) -> dict[str, Any] | None:
    if params is None:
        return None
    return {k: v for k, v in params.items() if v is not None}
