"""Error normalization for provider calls.

Maps raw transport, status and body data onto the closed ``ErrorKind``
taxonomy. Vendor wording is kept in the message; remediation text is attached
as data so callers can show it next to the error.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from modelgate.exceptions import BudgetExhausted


class ErrorKind(str, Enum):
    """Normalized failure categories, independent of vendor wording."""

    MISSING_FIELD = "missing_field"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    EMPTY_RESULT = "empty_result"
    UNKNOWN = "unknown"


STATUS_KINDS: dict[int, ErrorKind] = {
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMITED,
}

GENERIC_REMEDIATION = "Check the API key and endpoint URL configured for this provider."

DEFAULT_REMEDIATION: dict[ErrorKind, str] = {
    ErrorKind.MISSING_FIELD: "Fill in the API endpoint and API key before testing.",
    ErrorKind.UNAUTHORIZED: GENERIC_REMEDIATION,
    ErrorKind.FORBIDDEN: "Check that the API key has permission to use this endpoint and that billing is active.",
    ErrorKind.NOT_FOUND: "Verify the API endpoint URL is correct for this provider.",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded - wait before trying again or upgrade the plan.",
    ErrorKind.TIMEOUT: "Check network connectivity and the endpoint URL, then try again.",
    ErrorKind.MALFORMED_RESPONSE: "Verify the endpoint points at the provider's API and not at a proxy or web page.",
    ErrorKind.EMPTY_RESULT: "Verify the API key has access to at least one model.",
    ErrorKind.UNKNOWN: GENERIC_REMEDIATION,
}

_TIMEOUT_TYPES = (
    BudgetExhausted,
    TimeoutError,
    asyncio.TimeoutError,
    asyncio.CancelledError,
    httpx.TimeoutException,
)


@dataclass(frozen=True)
class NormalizedError:
    """A provider failure mapped onto the ErrorKind taxonomy."""

    kind: ErrorKind
    message: str
    remediation: str | None = None
    status: int | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def full_message(self) -> str:
        """Message with remediation text appended, as shown to users."""
        if not self.remediation:
            return self.message
        return f"{self.message.rstrip('. ')}. {self.remediation}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "remediation": self.remediation,
            "status": self.status,
            "details": self.details,
        }


def is_timeout(exc: BaseException) -> bool:
    """Return True if the exception means the time budget ran out."""
    return isinstance(exc, _TIMEOUT_TYPES)


def extract_vendor_message(body: Any) -> str | None:
    """Pull the human-readable message out of a vendor error body.

    Handles ``{"error": {"message": ...}}`` (OpenAI, xAI, Google, Anthropic),
    ``{"error": "..."}``, ``{"message": ...}`` and ``{"detail": ...}``. Plain
    text bodies are returned trimmed.
    """
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
        return None
    if isinstance(body, str) and body.strip():
        return body.strip()[:500]
    return None


def missing_field(message: str) -> NormalizedError:
    return NormalizedError(
        kind=ErrorKind.MISSING_FIELD,
        message=message,
        remediation=DEFAULT_REMEDIATION[ErrorKind.MISSING_FIELD],
    )


def empty_result(message: str, remediation: str | None = None) -> NormalizedError:
    return NormalizedError(
        kind=ErrorKind.EMPTY_RESULT,
        message=message,
        remediation=remediation or DEFAULT_REMEDIATION[ErrorKind.EMPTY_RESULT],
    )


def normalize_error(
    status: int | None = None,
    body: Any = None,
    exc: BaseException | None = None,
    *,
    remediation: str | None = None,
    message: str | None = None,
) -> NormalizedError:
    """Map ``(status, body, exception)`` onto a NormalizedError.

    Args:
        status: HTTP status code, if a response was received.
        body: Parsed JSON body, or raw text when the body was not JSON.
        exc: Transport-level exception, if any.
        remediation: Vendor-specific guidance; overrides the default for the kind.
        message: Explicit message; overrides the vendor message.

    Returns:
        The normalized error. Timeouts and cancellation always win over any
        partial status. A 2xx status only reaches this function when the body
        could not be interpreted, so it maps to MALFORMED_RESPONSE.
    """
    if exc is not None and is_timeout(exc):
        return NormalizedError(
            kind=ErrorKind.TIMEOUT,
            message=message or _timeout_message(exc),
            remediation=remediation or DEFAULT_REMEDIATION[ErrorKind.TIMEOUT],
            status=status,
            details={"error_type": type(exc).__name__},
        )

    if exc is not None and status is None:
        if isinstance(exc, httpx.RequestError):
            text = f"Network connection failed - please check endpoint URL ({exc})"
        else:
            text = str(exc) or type(exc).__name__
        return NormalizedError(
            kind=ErrorKind.UNKNOWN,
            message=message or text,
            remediation=remediation or DEFAULT_REMEDIATION[ErrorKind.UNKNOWN],
            details={"error_type": type(exc).__name__},
        )

    details: dict[str, Any] = {}
    if body is not None:
        details["body"] = body

    if status is not None and 200 <= status < 300:
        return NormalizedError(
            kind=ErrorKind.MALFORMED_RESPONSE,
            message=message or "Invalid response format received from API",
            remediation=remediation or DEFAULT_REMEDIATION[ErrorKind.MALFORMED_RESPONSE],
            status=status,
            details=details,
        )

    kind = STATUS_KINDS.get(status, ErrorKind.UNKNOWN) if status is not None else ErrorKind.UNKNOWN
    vendor_message = extract_vendor_message(body)
    if message is None:
        if status is None:
            message = vendor_message or "Unknown error occurred"
        elif vendor_message:
            message = f"HTTP {status}: {vendor_message}"
        else:
            message = f"HTTP {status}"
    return NormalizedError(
        kind=kind,
        message=message,
        remediation=remediation or DEFAULT_REMEDIATION[kind],
        status=status,
        details=details,
    )


def _timeout_message(exc: BaseException) -> str:
    if isinstance(exc, BudgetExhausted) and exc.cancelled:
        return "Operation was cancelled before the provider responded"
    return "Request timed out before the provider responded"
