"""
Journal API — Shared Pydantic Schemas
======================================

What:  Base model configuration plus response shapes used by several routers.
Why:   The public API speaks camelCase JSON (`userId`, `createdAt`,
       `totalPages`); Python code keeps snake_case attribute names.
How:   `APIModel` sets a camelCase alias generator. FastAPI serializes
       response models by alias; `populate_by_name` lets request bodies use
       either spelling.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base for every request/response schema in the API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(APIModel):
    """Plain acknowledgement, e.g. after a delete."""
    message: str


class Pagination(APIModel):
    """
    Offset pagination metadata returned alongside list and search results.

    total_pages is ceil(total / limit); page numbers start at 1.
    """
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {"error": "Journal entry not found", "request_id": "a1b2c3d4"}

    Validation errors on uploads add `allowedTypes` or `maxSize` keys.
    """
    error: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    Health check response showing service and dependency status.

    Returned by GET /health for monitoring and load balancer probes.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Blob storage: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
