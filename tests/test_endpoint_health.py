"""Tests for endpoint health validation."""

import httpx
import pytest

from modelgate.server.core.endpoint_health import validate_provider_endpoints
from modelgate.server.core.observability import LogLevel

XAI_ENDPOINT = "https://api.x.ai/v1"


def _healthy_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/api-key"):
        return httpx.Response(200, json={"name": "ci key", "acls": ["api-key:model:*"], "api_key_blocked": False})
    if path.endswith("/language-models"):
        return httpx.Response(200, json={"models": [{"id": "grok-2", "prompt_text_token_price": 20000}, {"id": "x"}]})
    if path.endswith("/models"):
        return httpx.Response(200, json={"data": [{"id": "grok-2"}, {"id": "grok-beta"}]})
    return httpx.Response(200, json={"choices": [{"message": {"content": "hi"}}]})


class TestValidateProviderEndpoints:
    @pytest.mark.asyncio
    async def test_all_endpoints_healthy(self, log, make_client, make_provider):
        client, transport = make_client(_healthy_handler)

        async with client:
            report = await validate_provider_endpoints(
                make_provider("grok", XAI_ENDPOINT), "xai-key", http_client=client, log=log
            )

        assert report.overall_health == "healthy"
        assert report.models_endpoint and report.api_key_endpoint and report.chat_endpoint
        assert report.language_models_endpoint
        assert report.details["models_count"] == 2
        assert report.details["language_models_count"] == 2
        assert report.details["models_with_pricing"] == 1
        assert report.details["api_key_info"]["name"] == "ci key"
        assert transport.call_count == 4
        assert all(r.headers["Authorization"] == "Bearer xai-key" for r in transport.requests)
        assert log.get_logs()[-1].level == LogLevel.SUCCESS

    @pytest.mark.asyncio
    async def test_chat_validation_error_counts_as_reachable(self, make_client, make_provider):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(422, json={"error": "invalid model"})
            return _healthy_handler(request)

        client, _ = make_client(handler)

        async with client:
            report = await validate_provider_endpoints(make_provider("grok", XAI_ENDPOINT), "k", http_client=client)

        assert report.chat_endpoint
        assert report.details["chat_status"] == 422

    @pytest.mark.asyncio
    async def test_one_failing_probe_does_not_stop_others(self, log, make_client, make_provider):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/api-key"):
                raise httpx.ConnectError("reset by peer", request=request)
            if request.method == "POST":
                return httpx.Response(500, text="oops")
            return _healthy_handler(request)

        client, transport = make_client(handler)

        async with client:
            report = await validate_provider_endpoints(
                make_provider("grok", XAI_ENDPOINT), "k", http_client=client, log=log
            )

        assert report.overall_health == "partial"
        assert report.models_endpoint
        assert not report.api_key_endpoint
        assert not report.chat_endpoint
        assert "reset by peer" in report.details["api_key_error"]
        assert transport.call_count == 4
        assert log.get_logs()[-1].level == LogLevel.WARN

    @pytest.mark.asyncio
    async def test_nothing_answers(self, make_client, make_provider):
        client, _ = make_client(lambda request: httpx.Response(404, json={"error": "nope"}))

        async with client:
            report = await validate_provider_endpoints(make_provider("generic"), "k", http_client=client)

        assert report.overall_health == "unhealthy"
        assert report.details["models_status"] == 404

    @pytest.mark.asyncio
    async def test_missing_credential_makes_no_calls(self, make_client, make_provider):
        client, transport = make_client(_healthy_handler)

        report = await validate_provider_endpoints(make_provider("grok", XAI_ENDPOINT), None, http_client=client)

        assert report.overall_health == "unhealthy"
        assert not any([report.models_endpoint, report.api_key_endpoint, report.chat_endpoint])
        assert transport.call_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("provider_type", "endpoint"),
        [
            ("google", "https://generativelanguage.googleapis.com/v1beta"),
            ("anthropic", "https://api.anthropic.com/v1"),
            ("azure", "https://my-resource.openai.azure.com/openai"),
        ],
    )
    async def test_non_bearer_provider_is_unsupported(self, log, make_client, make_provider, provider_type, endpoint):
        client, transport = make_client(_healthy_handler)

        async with client:
            report = await validate_provider_endpoints(
                make_provider(provider_type, endpoint), "AIzaSyA-0123456789abcdef", http_client=client, log=log
            )

        assert report.supported is False
        assert report.overall_health == "unhealthy"
        assert "not supported" in report.details["error"]
        assert transport.call_count == 0
        assert log.get_logs()[-1].level == LogLevel.WARN

    @pytest.mark.asyncio
    @pytest.mark.parametrize("provider_type", ["grok", "openai", "generic"])
    async def test_bearer_providers_send_token_header_only(self, make_client, make_provider, provider_type):
        client, transport = make_client(_healthy_handler)

        async with client:
            report = await validate_provider_endpoints(make_provider(provider_type), "sk-test", http_client=client)

        assert report.supported is True
        assert transport.call_count == 4
        for request in transport.requests:
            assert request.headers["Authorization"] == "Bearer sk-test"
            assert "key" not in request.url.params

    @pytest.mark.asyncio
    async def test_error_details_do_not_echo_credential(self, make_client, make_provider):
        key = "xai-0123456789abcdefghijklmnopqrstuvwxyz"

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(f"proxy rejected {request.headers['Authorization']}", request=request)

        client, _ = make_client(handler)

        async with client:
            report = await validate_provider_endpoints(make_provider("grok", XAI_ENDPOINT), key, http_client=client)

        assert report.overall_health == "unhealthy"
        assert all(key not in message for message in report.details.values())
        assert "xai-0123...wxyz" in report.details["models_error"]
