"""Renders copy-pasteable curl commands for provider requests.

The command is built from the adapter's own request description with the
credential replaced by its redacted form, so the real key never reaches the
output. Performs no I/O.
"""

import json
import shlex
from typing import Any, Literal

import httpx

from modelgate.schemas.provider import Provider
from modelgate.server.adapters import get_adapter_class
from modelgate.server.core.redaction import redact_credential

ENDPOINT_PLACEHOLDER = "https://YOUR_API_ENDPOINT"


def render_reproduction(
    provider: Provider,
    credential: str | None = None,
    payload: dict[str, Any] | None = None,
    operation: Literal["chat", "models"] = "chat",
) -> str:
    """Return a curl command reproducing ``operation`` against ``provider``.

    Only the redacted form of ``credential`` is ever written where the key
    goes. A very short key can still appear elsewhere by coincidence when it
    equals fixed text of the command (``curl``, ``POST``, a model prefix).

    Args:
        provider: Provider whose adapter describes the request.
        credential: API key; only its redacted form appears in the output.
        payload: Request body for ``chat``; the adapter's probe payload
            when omitted.
        operation: ``"chat"`` or ``"models"``. Providers without a listing
            endpoint render the chat request instead.
    """
    adapter_cls = get_adapter_class(provider.provider_type)
    if operation == "models" and adapter_cls.models_path is None:
        operation = "chat"

    endpoint = provider.base_endpoint.strip() or adapter_cls.default_endpoint or ENDPOINT_PLACEHOLDER
    spec = adapter_cls.request_spec(endpoint, redact_credential(credential), operation, payload)
    url = str(httpx.URL(spec.url, params=spec.params)) if spec.params else spec.url

    lines = [f"curl -X {spec.method} {shlex.quote(url)}"]
    lines.extend(f"-H {shlex.quote(f'{name}: {value}')}" for name, value in spec.headers.items())
    if spec.json is not None:
        lines.append(f"-d {shlex.quote(json.dumps(spec.json, indent=2))}")
    return " \\\n  ".join(lines)
