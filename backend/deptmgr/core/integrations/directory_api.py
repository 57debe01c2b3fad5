"""
Client for the remote user directory API.
"""

import logging
from typing import Any, Dict, List, Optional

from deptmgr.core.exceptions import RemoteError
from deptmgr.core.integrations.http.http_client import ApiResponse, HttpClient

logger = logging.getLogger(__name__)


USERS_ENDPOINT = "user"
USER_REGISTER_ENDPOINT = "register/users-register"
UPDATE_USER_ENDPOINT = "updateDepartment"
DELETE_USER_ENDPOINT = "delete-user"


class RemoteDirectoryClient:
    """
    Remote data-access collaborator for user records.

    Every call returns the payload of a successful response or raises
    RemoteError carrying the server's message.
    """

    def __init__(self, http_client: HttpClient):
        self.http_client = http_client

    @staticmethod
    def _check(response: ApiResponse, action: str) -> ApiResponse:
        if not response.ok:
            logger.warning(
                f"Directory API {action} failed: {response.error}",
                extra={"remote_status": response.status},
            )
            raise RemoteError(response.error or f"Failed to {action}", remote_status=response.status)
        return response

    async def list_users(self) -> List[Dict[str, Any]]:
        response = self._check(await self.http_client.get(USERS_ENDPOINT), "fetch users")
        data = response.data
        if isinstance(data, dict) and "items" in data:
            data = data["items"]
        if data is None:
            return []
        if not isinstance(data, list):
            raise RemoteError("Unexpected user list payload from directory API")
        return data

    async def create_user(self, payload: Dict[str, Any]) -> ApiResponse:
        return self._check(
            await self.http_client.post(USER_REGISTER_ENDPOINT, json=payload),
            "create user",
        )

    async def update_user(self, user_id: str, payload: Dict[str, Any]) -> ApiResponse:
        return self._check(
            await self.http_client.put(f"{UPDATE_USER_ENDPOINT}/{user_id}", json=payload),
            "update user",
        )

    async def delete_user(
        self,
        user_id: str,
        payload: Dict[str, Any],
        idempotency_key: Optional[str] = None,
    ) -> ApiResponse:
        """Delete ``user_id``; the payload names who receives the user's leads, tasks and data."""
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        return self._check(
            await self.http_client.delete(DELETE_USER_ENDPOINT, json=payload, headers=headers),
            "delete user",
        )
