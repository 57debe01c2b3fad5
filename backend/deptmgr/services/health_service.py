"""
Health service.
Reports uptime and whether the user directory has been loaded.
"""

import time

from deptmgr.schemas.health import HealthResponse
from deptmgr.services.base_service import BaseService
from deptmgr.services.directory_store import DirectoryStore


class HealthService(BaseService):
    """Service for health check operations."""

    def __init__(self, directory: DirectoryStore):
        self.directory = directory
        self.start_time = time.time()

    async def get_health(self) -> HealthResponse:
        """
        Get system health status.

        Returns:
            HealthResponse with status, uptime, and checks
        """
        uptime_seconds = int(time.time() - self.start_time)
        uptime_str = f"PT{uptime_seconds}S"  # ISO 8601 duration format

        checks = {
            "directory": "ok" if self.directory.loaded else "not loaded",
            "users": len(self.directory.snapshot.users),
        }

        status = "ok" if self.directory.loaded else "degraded"

        return HealthResponse(
            status=status,
            uptime=uptime_str,
            checks=checks,
        )
