"""Tests for error normalization."""

import asyncio

import httpx
import pytest

from modelgate.exceptions import BudgetExhausted, ProviderError
from modelgate.server.core.errors import (
    DEFAULT_REMEDIATION,
    ErrorKind,
    NormalizedError,
    empty_result,
    extract_vendor_message,
    missing_field,
    normalize_error,
)


# ============================================================================
# Status mapping
# ============================================================================


class TestStatusMapping:
    @pytest.mark.parametrize(
        "status,kind",
        [
            (401, ErrorKind.UNAUTHORIZED),
            (403, ErrorKind.FORBIDDEN),
            (404, ErrorKind.NOT_FOUND),
            (429, ErrorKind.RATE_LIMITED),
            (400, ErrorKind.UNKNOWN),
            (500, ErrorKind.UNKNOWN),
            (503, ErrorKind.UNKNOWN),
        ],
    )
    def test_status_maps_to_kind(self, status, kind):
        assert normalize_error(status=status).kind == kind

    def test_vendor_message_is_kept(self):
        error = normalize_error(403, {"error": {"message": "Model grok-beta not allowed"}})

        assert error.message == "HTTP 403: Model grok-beta not allowed"
        assert error.status == 403
        assert error.details["body"] == {"error": {"message": "Model grok-beta not allowed"}}

    def test_non_json_error_body_is_not_malformed(self):
        error = normalize_error(502, "<html>Bad Gateway</html>")

        assert error.kind == ErrorKind.UNKNOWN
        assert "Bad Gateway" in error.message

    def test_success_status_means_malformed(self):
        error = normalize_error(200, "not json")

        assert error.kind == ErrorKind.MALFORMED_RESPONSE
        assert error.message == "Invalid response format received from API"

    def test_no_status_no_exception(self):
        error = normalize_error()

        assert error.kind == ErrorKind.UNKNOWN
        assert error.message == "Unknown error occurred"

    def test_explicit_message_and_remediation_win(self):
        error = normalize_error(401, {"error": "bad key"}, message="Auth failed", remediation="Rotate the key")

        assert error.message == "Auth failed"
        assert error.remediation == "Rotate the key"

    def test_default_remediation_per_kind(self):
        assert normalize_error(404).remediation == DEFAULT_REMEDIATION[ErrorKind.NOT_FOUND]


# ============================================================================
# Exceptions
# ============================================================================


class TestExceptionMapping:
    @pytest.mark.parametrize(
        "exc",
        [
            BudgetExhausted(),
            TimeoutError(),
            asyncio.CancelledError(),
            httpx.ReadTimeout("read timed out"),
        ],
    )
    def test_timeouts_and_cancellation_map_to_timeout(self, exc):
        assert normalize_error(exc=exc).kind == ErrorKind.TIMEOUT

    def test_timeout_wins_over_status(self):
        assert normalize_error(status=500, exc=BudgetExhausted()).kind == ErrorKind.TIMEOUT

    def test_cancelled_budget_message(self):
        error = normalize_error(exc=BudgetExhausted(cancelled=True))

        assert "cancelled" in error.message

    def test_network_error_is_unknown(self):
        error = normalize_error(exc=httpx.ConnectError("connection refused"))

        assert error.kind == ErrorKind.UNKNOWN
        assert error.message.startswith("Network connection failed")

    def test_provider_error_carries_kind(self):
        error = ProviderError(normalize_error(429))

        assert error.kind == ErrorKind.RATE_LIMITED
        assert str(error) == "HTTP 429"


# ============================================================================
# Helpers
# ============================================================================


class TestHelpers:
    @pytest.mark.parametrize(
        "body,expected",
        [
            ({"error": {"message": "nested"}}, "nested"),
            ({"error": "flat"}, "flat"),
            ({"message": "top"}, "top"),
            ({"detail": "fastapi style"}, "fastapi style"),
            ({"unrelated": 1}, None),
            ("  plain text  ", "plain text"),
            ("", None),
            (None, None),
        ],
    )
    def test_extract_vendor_message(self, body, expected):
        assert extract_vendor_message(body) == expected

    def test_full_message_joins_remediation(self):
        error = NormalizedError(ErrorKind.FORBIDDEN, "Access denied.", remediation="Check billing.")

        assert error.full_message == "Access denied. Check billing."

    def test_full_message_without_remediation(self):
        assert NormalizedError(ErrorKind.UNKNOWN, "boom").full_message == "boom"

    def test_missing_field_and_empty_result(self):
        assert missing_field("API key is required").kind == ErrorKind.MISSING_FIELD
        assert empty_result("none").kind == ErrorKind.EMPTY_RESULT

    def test_to_dict(self):
        data = normalize_error(404).to_dict()

        assert data["kind"] == "not_found"
        assert data["status"] == 404
