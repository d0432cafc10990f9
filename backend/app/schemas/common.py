"""
Disc Rescue Backend — Shared Response Schemas
==============================================

What:  Error and health payloads shared by every route.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body returned by the global exception handlers.

    Example:
        {
            "error": "validation_error",
            "message": "Image must be base64-encoded.",
            "details": {"field": "image"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    messaging: str = Field(description="Twilio configuration: configured, not_configured")
    vision: str = Field(description="Vision credentials: service_account, default_credentials")
    uptime_seconds: float = Field(description="Seconds since service started")
