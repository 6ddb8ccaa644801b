"""Observability log endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status

from modelgate.schemas.logs import LogEntryResponse, LogListResponse
from modelgate.server.api.deps import get_gateway
from modelgate.server.core.gateway import ProviderGateway
from modelgate.server.core.observability import LogLevel

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get("", response_model=LogListResponse)
async def list_logs(
    provider_id: str | None = Query(None, description="Only entries for this provider"),
    level: Literal["DEBUG", "INFO", "WARN", "ERROR", "SUCCESS"] | None = Query(
        None, description="Only entries at this level"
    ),
    gateway: ProviderGateway = Depends(get_gateway),
) -> LogListResponse:
    """List retained log entries, oldest first."""
    log = gateway.log
    entries = log.get_logs_by_provider(provider_id) if provider_id else log.get_logs()
    if level is not None:
        entries = [entry for entry in entries if entry.level == LogLevel[level]]
    return LogListResponse(
        entries=[LogEntryResponse.model_validate(entry.to_dict()) for entry in entries],
        total=len(entries),
        capacity=log.capacity,
    )


@router.get("/export")
async def export_logs(
    provider_id: str | None = Query(None, description="Only entries for this provider"),
    gateway: ProviderGateway = Depends(get_gateway),
) -> Response:
    """Export log entries as a JSON document."""
    return Response(content=gateway.log.export_logs(provider_id), media_type="application/json")


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_logs(
    provider_id: str | None = Query(None, description="Only clear entries for this provider"),
    gateway: ProviderGateway = Depends(get_gateway),
) -> None:
    """Clear all entries, or only one provider's."""
    if provider_id:
        gateway.log.clear_provider_logs(provider_id)
    else:
        gateway.log.clear()
