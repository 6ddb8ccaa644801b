"""Base adapter contract and shared request handling.

Each adapter speaks one vendor protocol. Its wire decisions (credential
placement, listing path, probe payload) are class attributes so that
``request_spec`` can describe a request without performing it. Failures are
raised internally as ``ProviderError`` and turned into result data at the
adapter boundary.
"""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Literal

import httpx

from modelgate.exceptions import BudgetExhausted, ProviderError
from modelgate.schemas.model import ModelDescriptor
from modelgate.schemas.provider import (
    DEFAULT_AUTH_SCHEMES,
    ApiKeyHeader,
    BearerHeader,
    Provider,
    ProviderType,
    QueryParameter,
)
from modelgate.schemas.results import ConnectionTestResult
from modelgate.server.core import catalog
from modelgate.server.core.budget import CancellationBudget
from modelgate.server.core.errors import empty_result, normalize_error
from modelgate.server.core.observability import ObservabilityLog
from modelgate.server.core.redaction import redact_credential, redact_text

logger = logging.getLogger(__name__)

Operation = Literal["models", "chat"]

PROBE_SYSTEM_PROMPT = "You are a helpful test assistant. Respond concisely."
PROBE_USER_PROMPT = 'Say "Connection test successful" and nothing else.'


@dataclass(frozen=True)
class RequestSpec:
    """A fully described outbound request. Building one performs no I/O."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    json: dict[str, Any] | None = None
    # Attached credential, kept so error text can be redacted
    credential: str | None = field(default=None, repr=False)


def join_url(endpoint: str, path: str) -> str:
    base = endpoint.strip().rstrip("/")
    if not path:
        return base
    return f"{base}/{path.lstrip('/')}"


def apply_auth(
    scheme: BearerHeader | ApiKeyHeader | QueryParameter,
    credential: str,
    headers: dict[str, str],
    params: dict[str, str],
) -> None:
    """Attach ``credential`` to a request the way ``scheme`` prescribes."""
    if isinstance(scheme, BearerHeader):
        headers["Authorization"] = f"Bearer {credential}"
    elif isinstance(scheme, ApiKeyHeader):
        headers[scheme.header_name] = credential
    elif isinstance(scheme, QueryParameter):
        params[scheme.param_name] = credential
    else:
        raise TypeError(f"Unsupported auth scheme: {scheme!r}")


def data_entries(body: Any) -> Iterator[dict[str, Any]]:
    """Yield usable records from an OpenAI-style ``{"data": [...]}`` envelope.

    Raises:
        ProviderError: The body is not such an envelope (MALFORMED_RESPONSE).
    """
    if not isinstance(body, dict) or not isinstance(body.get("data"), list):
        raise ProviderError(
            normalize_error(200, body, message="Expected a 'data' array in the models response")
        )
    for entry in body["data"]:
        if not isinstance(entry, dict) or not entry.get("id"):
            continue
        if entry.get("object", "model") != "model":
            continue
        yield entry


def describe(
    model_id: str,
    display_name: str | None = None,
    context_length: int | None = None,
    cost_per_1k_tokens: float | None = None,
    modalities: frozenset[str] | None = None,
) -> ModelDescriptor:
    """Build a descriptor, filling gaps in vendor metadata from the catalog."""
    return ModelDescriptor(
        id=model_id,
        display_name=display_name or catalog.format_model_name(model_id),
        context_length=context_length if context_length is not None else catalog.estimate_context_length(model_id),
        cost_per_1k_tokens=(
            cost_per_1k_tokens if cost_per_1k_tokens is not None else catalog.estimate_cost_per_1k(model_id)
        ),
        supported_modalities=modalities or catalog.infer_modalities(model_id),
    )


class ProviderAdapter(ABC):
    """One vendor protocol behind the uniform gateway contract.

    An adapter instance is bound to the HTTP client, the observability log and
    the provider it exercises; it is cheap and built per call.
    """

    provider_type: ClassVar[ProviderType]
    label: ClassVar[str]
    stage_prefix: ClassVar[str]

    # Relative paths under the provider's base endpoint
    models_path: ClassVar[str | None] = "models"
    chat_path: ClassVar[str] = "chat/completions"

    # Extra query parameters and headers sent with every request
    base_params: ClassVar[dict[str, str]] = {}
    base_headers: ClassVar[dict[str, str]] = {}

    # Used when a provider record has no endpoint (request rendering only)
    default_endpoint: ClassVar[str] = ""
    default_probe_model: ClassVar[str] = "gpt-4o-mini"

    def __init__(self, client: httpx.AsyncClient, log: ObservabilityLog, provider: Provider) -> None:
        self.client = client
        self.log = log
        self.provider = provider

    # ------------------------------------------------------------------
    # Request description
    # ------------------------------------------------------------------

    @classmethod
    def auth_scheme(cls) -> BearerHeader | ApiKeyHeader | QueryParameter:
        return DEFAULT_AUTH_SCHEMES[cls.provider_type]

    @classmethod
    def chat_request_path(cls, model: str) -> str:
        return cls.chat_path

    @classmethod
    def probe_payload(cls, model: str | None = None) -> dict[str, Any]:
        """Minimal chat payload: short system and user message, tiny output."""
        return {
            "model": model or cls.default_probe_model,
            "messages": [
                {"role": "system", "content": PROBE_SYSTEM_PROMPT},
                {"role": "user", "content": PROBE_USER_PROMPT},
            ],
            "stream": False,
            "temperature": 0.1,
            "max_tokens": 10,
        }

    @classmethod
    def request_spec(
        cls,
        endpoint: str,
        credential: str | None,
        operation: Operation = "models",
        payload: dict[str, Any] | None = None,
    ) -> RequestSpec:
        """Describe the request ``operation`` sends, without sending it.

        Raises:
            ValueError: ``operation`` is ``"models"`` and the vendor has no
                listing endpoint.
        """
        headers = {"Accept": "application/json", **cls.base_headers}
        params = dict(cls.base_params)
        if operation == "models":
            if cls.models_path is None:
                raise ValueError(f"{cls.label} has no model listing endpoint")
            method, path, body = "GET", cls.models_path, None
        else:
            body = payload if payload is not None else cls.probe_payload()
            method, path = "POST", cls.chat_request_path(str(body.get("model") or cls.default_probe_model))
            headers["Content-Type"] = "application/json"
        if credential:
            apply_auth(cls.auth_scheme(), credential, headers, params)
        return RequestSpec(
            method=method,
            url=join_url(endpoint, path),
            headers=headers,
            params=params,
            json=body,
            credential=credential or None,
        )

    # ------------------------------------------------------------------
    # Gateway operations
    # ------------------------------------------------------------------

    async def test_connection(
        self, endpoint: str, credential: str, budget: CancellationBudget
    ) -> ConnectionTestResult:
        """Run the vendor's reachability probe and report the outcome as data."""
        start = time.perf_counter()
        self.stage(
            "TEST",
            f"Testing {self.label} connection",
            {"endpoint": endpoint, "api_key": redact_credential(credential)},
        )
        try:
            details = await self.probe(endpoint, credential, budget)
        except ProviderError as e:
            latency_ms = _elapsed_ms(start)
            self.stage("FAILED", f"{self.label} connection failed: {e.error.message}", {"latency_ms": latency_ms})
            return ConnectionTestResult.failure(e.error, latency_ms=latency_ms)

        latency_ms = _elapsed_ms(start)
        self.stage("OK", f"{self.label} connection verified", {"latency_ms": latency_ms})
        return ConnectionTestResult.ok(latency_ms=latency_ms, raw_details=details)

    async def discover_models(
        self, endpoint: str, credential: str, budget: CancellationBudget
    ) -> list[ModelDescriptor]:
        """List the provider's models.

        Raises:
            ProviderError: The call failed, or it succeeded with zero models
                (EMPTY_RESULT).
        """
        body = await self.get_json(self.request_spec(endpoint, credential, "models"), budget, "MODEL_DETECTION")
        models = self.parse_models(body)
        if not models:
            raise ProviderError(empty_result(f"{self.label} returned no usable models"))
        return models

    @abstractmethod
    async def probe(self, endpoint: str, credential: str, budget: CancellationBudget) -> dict[str, Any]:
        """Exercise the provider; return diagnostic details or raise ProviderError."""

    @abstractmethod
    def parse_models(self, body: Any) -> list[ModelDescriptor]:
        """Turn a parsed listing body into descriptors."""

    def remediation_for(self, status: int | None) -> str | None:
        """Vendor guidance for a failed status; None keeps the default text."""
        return None

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def stage(
        self,
        stage: str,
        message: str,
        data: dict[str, Any] | None = None,
        category: str = "CONNECTION_TEST",
    ) -> None:
        self.log.log_provider_test(
            self.provider.id,
            self.provider.name,
            f"{self.stage_prefix}_{stage}",
            message,
            data,
            category=category,
        )

    async def send(self, spec: RequestSpec, budget: CancellationBudget) -> httpx.Response:
        """Send ``spec`` within the remaining budget.

        Raises:
            ProviderError: The budget fired or the transport failed.
        """
        try:
            budget.check()
            return await self.client.request(
                spec.method,
                spec.url,
                headers=spec.headers,
                params=spec.params or None,
                json=spec.json,
                timeout=budget.remaining(),
            )
        except (BudgetExhausted, httpx.TimeoutException) as e:
            raise ProviderError(normalize_error(exc=e)) from e
        except httpx.RequestError as e:
            logger.warning("%s request to %s failed: %s", self.label, spec.url, type(e).__name__)
            # Transport errors may quote the request URL, which can carry a query-parameter key
            error = normalize_error(exc=e)
            raise ProviderError(replace(error, message=redact_text(error.message, spec.credential))) from e

    @staticmethod
    def read_body(response: httpx.Response) -> tuple[Any, bool]:
        """Return ``(body, parsed)``: parsed JSON, or the raw text when not JSON."""
        try:
            return response.json(), True
        except ValueError:
            return response.text, False

    def failure(self, response: httpx.Response, body: Any, message: str | None = None) -> ProviderError:
        status = response.status_code
        return ProviderError(
            normalize_error(status, body, remediation=self.remediation_for(status), message=message)
        )

    async def get_json(
        self,
        spec: RequestSpec,
        budget: CancellationBudget,
        category: str = "CONNECTION_TEST",
    ) -> Any:
        """Send ``spec`` and return its JSON body.

        Raises:
            ProviderError: Non-2xx status (vendor message extracted from the
                body), or a 2xx body that is not JSON (MALFORMED_RESPONSE).
        """
        self.stage("REQUEST", f"{spec.method} {spec.url}", category=category)
        response = await self.send(spec, budget)
        body, parsed = self.read_body(response)
        self.stage(
            "RESPONSE",
            f"{self.label} API responded with {response.status_code}",
            {"status": response.status_code},
            category=category,
        )
        if not response.is_success:
            raise self.failure(response, body)
        if not parsed:
            raise ProviderError(
                normalize_error(response.status_code, body[:500], message="Response body is not valid JSON")
            )
        return body


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
