"""Endpoint health validation for OpenAI-compatible APIs.

Probes the well-known endpoints of an xAI/OpenAI-style API independently and
summarizes which ones answer. Useful when a connection test fails and the
operator needs to know which part of the API is reachable. Only provider types
that authenticate with a Bearer token serve these endpoints; other types get an
unsupported report without any request being made.
"""

import asyncio
import logging
from typing import Any

import httpx

from modelgate.schemas.provider import BearerHeader, Provider
from modelgate.schemas.results import EndpointHealthReport
from modelgate.server.adapters import get_adapter_class
from modelgate.server.adapters.base import apply_auth, join_url
from modelgate.server.core.observability import ObservabilityLog
from modelgate.server.core.redaction import redact_text

logger = logging.getLogger(__name__)

HEALTH_CHECK_TIMEOUT_SECONDS = 5.0

# A validation error still proves the chat endpoint exists
_CHAT_REACHABLE_STATUSES = (422,)


async def validate_provider_endpoints(
    provider: Provider,
    credential: str | None,
    *,
    http_client: httpx.AsyncClient | None = None,
    log: ObservabilityLog | None = None,
    timeout: float = HEALTH_CHECK_TIMEOUT_SECONDS,
) -> EndpointHealthReport:
    """Probe ``api-key``, ``models``, ``language-models`` and ``chat/completions``.

    Each probe is independent; one failing does not stop the others. Overall
    health counts the models, api-key and chat probes: all three healthy is
    ``healthy``, at least one is ``partial``, none is ``unhealthy``.

    Args:
        provider: Provider whose base endpoint is probed.
        credential: API key, attached the way the provider type requires.
            Without one, no request is made and the report is ``unhealthy``.
        http_client: Client to use; a per-call client is created otherwise.
        log: Observability log to record the summary in.
        timeout: Per-probe timeout in seconds.
    """
    adapter_cls = get_adapter_class(provider.provider_type)
    auth_scheme = adapter_cls.auth_scheme()
    if not isinstance(auth_scheme, BearerHeader):
        result = EndpointHealthReport(
            supported=False,
            details={"error": f"Endpoint validation is not supported for {adapter_cls.label} providers"},
        )
        if log is not None:
            log.warn(
                "ENDPOINT_HEALTH",
                result.details["error"],
                {"provider_type": provider.provider_type.value},
                provider.id,
                provider.name,
            )
        return result

    report: dict[str, Any] = {"details": {}}
    if not credential or not provider.base_endpoint.strip():
        return EndpointHealthReport()

    endpoint = provider.base_endpoint.strip()
    headers = {"Accept": "application/json", **adapter_cls.base_headers}
    params = dict(adapter_cls.base_params)
    apply_auth(auth_scheme, credential, headers, params)
    chat_payload = {
        "model": adapter_cls.default_probe_model,
        "messages": [{"role": "user", "content": "Hi"}],
        "max_tokens": 1,
    }

    async def probe(name: str, method: str, path: str, json: dict[str, Any] | None = None) -> None:
        try:
            response = await client.request(
                method,
                join_url(endpoint, path),
                headers=headers,
                params=params or None,
                json=json,
                timeout=timeout,
            )
            body = response.json() if response.is_success else None
        except (httpx.HTTPError, ValueError) as e:
            report["details"][f"{name}_error"] = redact_text(str(e) or type(e).__name__, credential)
            return

        if name == "chat":
            report["chat_endpoint"] = response.is_success or response.status_code in _CHAT_REACHABLE_STATUSES
            report["details"]["chat_status"] = response.status_code
            return
        if not response.is_success:
            report["details"][f"{name}_status"] = response.status_code
            return

        body = body if isinstance(body, dict) else {}
        if name == "api_key":
            report["api_key_endpoint"] = True
            report["details"]["api_key_info"] = {
                "name": body.get("name"),
                "permissions": body.get("acls"),
                "blocked": body.get("api_key_blocked"),
                "disabled": body.get("api_key_disabled"),
            }
        elif name == "models":
            report["models_endpoint"] = True
            data = body.get("data")
            report["details"]["models_count"] = len(data) if isinstance(data, list) else 0
        elif name == "language_models":
            report["language_models_endpoint"] = True
            models = body.get("models")
            models = models if isinstance(models, list) else []
            report["details"]["language_models_count"] = len(models)
            report["details"]["models_with_pricing"] = sum(
                1 for m in models if isinstance(m, dict) and m.get("prompt_text_token_price")
            )

    owns_client = http_client is None
    client = http_client or httpx.AsyncClient()
    try:
        await asyncio.gather(
            probe("api_key", "GET", "api-key"),
            probe("models", "GET", "models"),
            probe("language_models", "GET", "language-models"),
            probe("chat", "POST", "chat/completions", chat_payload),
        )
    finally:
        if owns_client:
            await client.aclose()

    healthy = sum(
        1 for key in ("models_endpoint", "api_key_endpoint", "chat_endpoint") if report.get(key)
    )
    if healthy >= 3:
        report["overall_health"] = "healthy"
    elif healthy >= 1:
        report["overall_health"] = "partial"
    result = EndpointHealthReport(**report)

    logger.debug("Endpoint health for %s: %s", provider.id, result.overall_health)
    if log is not None:
        level = log.success if result.overall_health == "healthy" else log.warn
        level(
            "ENDPOINT_HEALTH",
            f"Endpoint health is {result.overall_health}",
            result.model_dump(),
            provider.id,
            provider.name,
        )
    return result
