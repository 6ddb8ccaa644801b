"""ModelGate exceptions.

``ProviderError`` and ``BudgetExhausted`` are raised inside the gateway and
never escape its public operations. The ``APIError`` family is raised by the
REST client when the ModelGate server itself cannot be reached or rejects a
request.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from modelgate.server.core.errors import ErrorKind, NormalizedError


class ModelGateError(Exception):
    """Base exception for all ModelGate errors."""


class ProviderError(ModelGateError):
    """Raised inside an adapter when a provider call fails.

    Carries the normalized error so orchestrators can report it as data
    instead of letting it escape to the caller.
    """

    error: NormalizedError

    def __init__(self, error: NormalizedError) -> None:
        super().__init__(error.message)
        self.error = error

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


class BudgetExhausted(ModelGateError):
    """Raised when an invocation's cancellation budget has fired."""

    cancelled: bool

    def __init__(self, message: str = "Operation timed out", *, cancelled: bool = False) -> None:
        super().__init__(message)
        self.cancelled = cancelled


class APIError(ModelGateError):
    """Raised when a request to the ModelGate API fails."""

    message: str
    request: httpx.Request

    def __init__(self, message: str, *, request: httpx.Request) -> None:
        super().__init__(message)
        self.message = message
        self.request = request


class APIStatusError(APIError):
    """Raised when the ModelGate API answers with a 4xx or 5xx status."""

    response: httpx.Response
    status_code: int
    body: Any

    def __init__(self, message: str, *, response: httpx.Response, body: Any = None) -> None:
        super().__init__(message, request=response.request)
        self.response = response
        self.status_code = response.status_code
        self.body = body

    @classmethod
    def from_response(cls, response: httpx.Response) -> APIStatusError:
        try:
            body = response.json()
        except ValueError:
            body = None
        detail = body.get("detail", response.text) if isinstance(body, dict) else response.text

        status_to_class: dict[int, type[APIStatusError]] = {
            400: BadRequestError,
            404: NotFoundError,
            422: UnprocessableEntityError,
            429: RateLimitError,
        }
        error_cls = status_to_class.get(response.status_code, APIStatusError)
        if error_cls is APIStatusError and response.status_code >= 500:
            error_cls = InternalServerError

        return error_cls(f"HTTP {response.status_code}: {detail}", response=response, body=body)


class APIConnectionError(APIError):
    """Raised when the client cannot connect to the ModelGate API."""

    def __init__(self, *, message: str = "Connection error.", request: httpx.Request) -> None:
        super().__init__(message, request=request)


class APITimeoutError(APIConnectionError):
    """Raised when a request to the ModelGate API times out."""

    def __init__(self, request: httpx.Request) -> None:
        super().__init__(message="Request timed out.", request=request)


class BadRequestError(APIStatusError):
    """HTTP 400."""


class NotFoundError(APIStatusError):
    """HTTP 404."""


class UnprocessableEntityError(APIStatusError):
    """HTTP 422."""


class RateLimitError(APIStatusError):
    """HTTP 429."""


class InternalServerError(APIStatusError):
    """HTTP 5xx."""
