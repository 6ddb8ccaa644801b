"""Pydantic schemas for the observability log API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LogEntryResponse(BaseModel):
    """Schema for one log entry."""

    id: int = Field(..., description="Monotonic entry id")
    timestamp: datetime = Field(..., description="Creation time (UTC)")
    level: str = Field(..., description="DEBUG, INFO, WARN, ERROR or SUCCESS")
    category: str = Field(..., description="Log category", examples=["CONNECTION_TEST"])
    message: str = Field(..., description="Log message")
    data: Any = Field(None, description="Structured payload")
    provider_id: str | None = Field(None, description="Associated provider id")
    provider_name: str | None = Field(None, description="Associated provider name")

    model_config = ConfigDict(from_attributes=True)


class LogListResponse(BaseModel):
    """Schema for a list of log entries."""

    entries: list[LogEntryResponse] = Field(default_factory=list, description="Entries, oldest first")
    total: int = Field(..., description="Number of entries returned")
    capacity: int = Field(..., description="Log capacity")
