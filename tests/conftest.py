"""
Pytest configuration and fixtures.
Provides an in-memory remote directory, the wired services, and a test app client.
"""

import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOAD_DIRECTORY_ON_STARTUP", "false")

import copy
from typing import Any, Dict, List, Optional

import pytest
from dependency_injector import providers
from httpx import ASGITransport, AsyncClient

from deptmgr.controllers.department_controller import DepartmentController
from deptmgr.controllers.hierarchy_form_controller import HierarchyFormController
from deptmgr.core.exceptions import RemoteError
from deptmgr.core.integrations.http.http_client import ApiResponse
from deptmgr.core.integrations.notifier import Notifier
from deptmgr.deps.di_container import Container, settings_config
from deptmgr.main import create_app
from deptmgr.services.directory_store import DirectoryStore
from deptmgr.services.lifecycle_service import LifecycleService
from deptmgr.services.superior_resolver import SuperiorResolver


SEED_USERS: List[Dict[str, Any]] = [
    {"_id": "u-v", "name": "Vikram", "email": "vikram@example.com", "phone": "9000000001",
     "role": "Vertical", "isActive": True, "bookingStatus": True},
    {"_id": "u-x", "name": "Xavier", "email": "xavier@example.com", "phone": "9000000002",
     "role": "Sr. BDE", "isActive": True, "bookingStatus": False},
    {"_id": "u-y", "name": "Yamini", "email": "yamini@example.com", "phone": "9000000003",
     "role": "Sr. BDE", "isActive": True, "bookingStatus": False},
    {"_id": "u-z", "name": "Zoya", "email": "zoya@example.com", "phone": "9000000004",
     "role": "Sr. BDE", "isActive": False, "bookingStatus": False},
    {"_id": "u-a", "name": "Arjun", "email": "arjun@example.com", "phone": "9000000005",
     "role": "BDE", "isActive": True, "bookingStatus": False, "assignedSRBDE": "u-x"},
    {"_id": "u-e", "name": "Esha", "email": "esha@example.com", "phone": "9000000006",
     "role": "Employee", "isActive": True, "bookingStatus": False, "assignedBDE": "u-a"},
    {"_id": "u-t", "name": "Tarun", "email": "tarun@example.com", "phone": "9000000007",
     "role": "Team Leader", "isActive": True, "bookingStatus": True, "assignedAGM": None},
]


class FakeDirectoryApi:
    """In-memory stand-in for RemoteDirectoryClient that records every call."""

    def __init__(self, users: Optional[List[Dict[str, Any]]] = None):
        self.users = copy.deepcopy(users if users is not None else SEED_USERS)
        self.calls: List[tuple] = []
        self.fail_next: Optional[str] = None
        self.fail_list: Optional[str] = None
        self._sequence = 0

    def _maybe_fail(self) -> None:
        if self.fail_next:
            message, self.fail_next = self.fail_next, None
            raise RemoteError(message, remote_status=400)

    def _find(self, user_id: str) -> Dict[str, Any]:
        for user in self.users:
            if user["_id"] == user_id:
                return user
        raise RemoteError("User not found", remote_status=404)

    def count(self, action: str) -> int:
        return sum(1 for call in self.calls if call[0] == action)

    async def list_users(self) -> List[Dict[str, Any]]:
        self.calls.append(("list",))
        if self.fail_list:
            raise RemoteError(self.fail_list, remote_status=500)
        return copy.deepcopy(self.users)

    async def create_user(self, payload: Dict[str, Any]) -> ApiResponse:
        self.calls.append(("create", copy.deepcopy(payload)))
        self._maybe_fail()
        self._sequence += 1
        record = {key: value for key, value in payload.items() if key != "password"}
        record["_id"] = f"new-{self._sequence}"
        self.users.append(record)
        return ApiResponse(data=copy.deepcopy(record), message="User created")

    async def update_user(self, user_id: str, payload: Dict[str, Any]) -> ApiResponse:
        self.calls.append(("update", user_id, copy.deepcopy(payload)))
        self._maybe_fail()
        record = self._find(user_id)
        record.update({key: value for key, value in payload.items() if key != "password"})
        return ApiResponse(data=copy.deepcopy(record), message="User updated")

    async def delete_user(
        self,
        user_id: str,
        payload: Dict[str, Any],
        idempotency_key: Optional[str] = None,
    ) -> ApiResponse:
        self.calls.append(("delete", user_id, copy.deepcopy(payload), idempotency_key))
        self._maybe_fail()
        self.users.remove(self._find(user_id))
        return ApiResponse(message="User deleted")


class RecordingNotifier(Notifier):
    """Notifier that keeps messages for assertions."""

    def __init__(self):
        self.successes: List[str] = []
        self.errors: List[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def directory_api() -> FakeDirectoryApi:
    return FakeDirectoryApi()


@pytest.fixture
def make_directory_api():
    """Build a fake directory API seeded with the given raw user documents."""
    return FakeDirectoryApi


@pytest.fixture
async def directory(directory_api) -> DirectoryStore:
    store = DirectoryStore(directory_api)
    await store.load()
    return store


@pytest.fixture
def resolver(directory) -> SuperiorResolver:
    return SuperiorResolver(directory)


@pytest.fixture
def lifecycle(directory_api, directory, resolver) -> LifecycleService:
    return LifecycleService(directory_api, directory, resolver)


@pytest.fixture
def department(directory, resolver, lifecycle) -> DepartmentController:
    return DepartmentController(directory, resolver, lifecycle)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def form(department, notifier) -> HierarchyFormController:
    return HierarchyFormController(department, notifier)


@pytest.fixture
async def test_client(directory_api):
    """
    Create a test HTTP client backed by the in-memory directory.
    """
    container = Container()
    container.config.from_dict(settings_config())
    container.directory_client.override(providers.Object(directory_api))
    await container.directory_store().load()

    app = create_app(container)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    container.directory_client.reset_override()
