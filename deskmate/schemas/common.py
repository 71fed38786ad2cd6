"""
Deskmate Backend — Shared Response Schemas
============================================

What:  Response shapes used across all route modules: plain acknowledgements,
       the error body, and the health check.
"""

from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Acknowledgement for operations that return no resource (deletes)."""
    error: bool = False
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "Note could not be found",
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
