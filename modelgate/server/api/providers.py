"""Provider connection testing, discovery and diagnostics endpoints."""

import logging

from fastapi import APIRouter, Depends

from modelgate.schemas.provider import ProviderProbeRequest, ReproductionRequest, ReproductionResponse
from modelgate.schemas.results import ConnectionTestResult, DiscoveryResult, EndpointHealthReport
from modelgate.server.api.deps import get_gateway
from modelgate.server.core.gateway import ProviderGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["providers"])


@router.post("/test-connection", response_model=ConnectionTestResult)
async def test_provider_connection(
    request: ProviderProbeRequest,
    gateway: ProviderGateway = Depends(get_gateway),
) -> ConnectionTestResult:
    """Test a provider's endpoint and API key.

    Failures are reported in the body with HTTP 200; only malformed request
    bodies are rejected.
    """
    result = await gateway.test_connection(request.provider, request.credential)
    logger.info(
        "Connection test for %s (%s): success=%s latency=%dms",
        request.provider.id,
        request.provider.provider_type.value,
        result.success,
        result.latency_ms,
    )
    return result


@router.post("/discover-models", response_model=DiscoveryResult)
async def discover_provider_models(
    request: ProviderProbeRequest,
    gateway: ProviderGateway = Depends(get_gateway),
) -> DiscoveryResult:
    """List the models a provider offers to the given API key."""
    return await gateway.discover_models(request.provider, request.credential)


@router.post("/reproduce", response_model=ReproductionResponse)
async def reproduce_provider_request(
    request: ReproductionRequest,
    gateway: ProviderGateway = Depends(get_gateway),
) -> ReproductionResponse:
    """Render a redacted curl command for a provider request."""
    command = gateway.reproduce(request.provider, request.credential, request.payload, request.operation)
    return ReproductionResponse(command=command)


@router.post("/validate-endpoints", response_model=EndpointHealthReport)
async def validate_provider_endpoints(
    request: ProviderProbeRequest,
    gateway: ProviderGateway = Depends(get_gateway),
) -> EndpointHealthReport:
    """Probe the well-known endpoints of an OpenAI-compatible API."""
    return await gateway.validate_endpoints(request.provider, request.credential)
