"""FastAPI dependencies."""

from fastapi import Request

from modelgate.server.core.gateway import ProviderGateway


def get_gateway(request: Request) -> ProviderGateway:
    """Return the gateway built during application startup."""
    return request.app.state.gateway
