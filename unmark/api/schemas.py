"""
Pydantic Schemas

Request/Response models for the status API.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ActionRequest(BaseModel):
    """Request body for the action endpoint."""
    action: str | None = Field(None, description="health or process", examples=["health"])


class ServiceStatusResponse(BaseModel):
    """Static service status (action=health)."""
    success: bool = True
    status: str = "active"
    service: str
    timestamp: datetime
    version: str


class ProcessAckResponse(BaseModel):
    """Acknowledgement that processing never happens server-side (action=process)."""
    success: bool = True
    message: str = "Processing happens client-side"
    note: str = "No files are uploaded to server"
    privacy: str = "100% local processing"


class ErrorResponse(BaseModel):
    """Client or server error."""
    success: bool = False
    error: str
    message: str | None = None


class HealthResponse(BaseModel):
    """Engine readiness check."""
    status: str
    version: str
    engine_ready: bool
    engine_version: str | None = None
