"""
API v1 router that aggregates all endpoint routers.
"""

from fastapi import APIRouter

from deptmgr.api.v1.endpoints import (
    health,
    department,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(department.router, prefix="/department", tags=["department"])
