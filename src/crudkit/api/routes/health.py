from fastapi import APIRouter, Depends, Response, status

from crudkit.api.dependencies import get_repository
from crudkit.api.schemas import HealthResponse, ReadinessResponse
from crudkit.core.ports.repository import Repository

router = APIRouter()


@router.get("/healthz/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness check: is the process alive?"""
    return HealthResponse()


@router.get("/healthz/ready", response_model=ReadinessResponse)
async def readiness(
    response: Response,
    repository: Repository = Depends(get_repository),
) -> ReadinessResponse:
    """Readiness check: checks repository connectivity."""
    if await repository.ping():
        return ReadinessResponse(status="ok", database="up")
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status="degraded", database="down")
