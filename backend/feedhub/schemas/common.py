"""
FeedHub Backend — Shared Schemas
=================================

What:  Base model with the camelCase wire convention, plus the error and
       health bodies used across routers.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every API body.

    - alias_generator: snake_case attributes ↔ camelCase JSON keys
    - populate_by_name: Python code may still construct with snake_case
    - from_attributes: response models validate directly from ORM rows
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "authentication_error",
            "reason": "token_expired",
            "message": "token expired",
            "request_id": "a1b2c3d4"
        }

    `reason` is only present on 401 responses.
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    reason: Optional[str] = Field(default=None, description="Why authentication failed (401 only)")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    """
    Health check response showing service and dependency status.

    status is `healthy` when the database answers, `degraded` when only
    media storage or the reaper is impaired, `unhealthy` otherwise.
    """

    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Media storage: writable, unavailable")
    reaper: str = Field(description="Expired-session sweeper: running, stopped, disabled")
    uptime_seconds: float = Field(description="Seconds since service started")
