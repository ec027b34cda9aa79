"""Health check response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

HealthStatus = Literal["healthy", "degraded", "unhealthy"]


class HealthResponse(BaseModel):
    """Overall health with per-dependency checks.

    Example:
        ```json
        {
            "status": "degraded",
            "timestamp": "2026-01-01T00:00:00Z",
            "service": "notification-service",
            "version": "1.0.0",
            "checks": {"database": true, "broker": false}
        }
        ```
    """

    status: HealthStatus = Field(description="healthy, degraded or unhealthy")
    timestamp: datetime = Field(description="Check timestamp")
    service: str = Field(min_length=1, max_length=100, description="Service name")
    version: str = Field(min_length=1, max_length=50, description="Service version")
    checks: dict[str, bool] = Field(default_factory=dict, description="Individual dependency checks")


class ReadinessResponse(BaseModel):
    """Readiness probe response; 503 when the database is unreachable."""

    ready: bool = Field(description="Overall readiness status")
    checks: dict[str, bool] = Field(default_factory=dict, description="Individual dependency checks")
    timestamp: datetime = Field(description="Check timestamp")


class LivenessResponse(BaseModel):
    alive: bool = Field(description="Liveness status")
    timestamp: datetime = Field(description="Check timestamp")
    service: str = Field(min_length=1, max_length=100, description="Service name")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "alive": True,
                "timestamp": "2026-01-01T00:00:00Z",
                "service": "notification-service",
            }
        }
    )
