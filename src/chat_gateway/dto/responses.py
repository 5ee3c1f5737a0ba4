"""Response DTOs for API endpoints."""

from pydantic import BaseModel, Field


class AskResponse(BaseModel):
    """Response DTO for a successful chat request."""

    reply: str = Field(..., description="The assistant's reply")


class ErrorResponse(BaseModel):
    """Response DTO for client and configuration errors."""

    error: str = Field(..., description="Stable, user-facing error message")


class UpstreamErrorResponse(ErrorResponse):
    """Response DTO for upstream failures (502)."""

    detail: str = Field(..., description="Truncated internal failure reason", max_length=300)


class CacheClearResponse(BaseModel):
    """Response DTO for clearing the reply cache."""

    success: bool = Field(..., description="Whether the operation succeeded")
    deleted_count: int = Field(..., description="Number of cached replies removed", ge=0)
    message: str = Field(..., description="Human-readable status message")


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the cache backend is reachable")
    provider_configured: bool = Field(..., description="Whether an upstream credential is configured")
