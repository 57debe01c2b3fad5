"""
Health check endpoint.
Returns service status, uptime and directory state.
"""

from fastapi import APIRouter, Depends

from deptmgr.controllers.health_controller import HealthController
from deptmgr.deps.dependencies import get_health_controller
from deptmgr.schemas.health import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def get_health(
    controller: HealthController = Depends(get_health_controller),
) -> HealthResponse:
    """Health check endpoint."""
    return await controller.get_health()
