"""Health check API endpoints.

- /health - Overall status with database and broker checks
- /health/live - Is the process alive?
- /health/ready - Can the service accept traffic? (503 if not)
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from notification_service.features.health.schemas import (
    HealthResponse,
    LivenessResponse,
    ReadinessResponse,
)

# NOTE: Must be a runtime import for FastAPI to resolve the Annotated[..., Depends(...)] metadata
from notification_service.features.health.service import HealthServiceDep  # noqa: TC001

router = APIRouter(prefix="/health", tags=["health"])


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the overall health status including database and broker checks",
)
async def health_check(service: HealthServiceDep) -> HealthResponse:
    result = await service.check_health()
    return HealthResponse(**result)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Service not ready to accept traffic"}},
    summary="Readiness probe",
)
async def readiness_check(response: Response, service: HealthServiceDep) -> ReadinessResponse:
    """Returns 503 while the notification store is unreachable."""
    result = await service.readiness()
    if not result["ready"]:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(**result)


@router.get(
    "/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
)
async def liveness_check(service: HealthServiceDep) -> LivenessResponse:
    result = await service.liveness()
    return LivenessResponse(**result)
