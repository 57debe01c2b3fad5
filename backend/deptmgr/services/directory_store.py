"""
In-memory projection of the remote user directory.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from deptmgr.core.integrations.directory_api import RemoteDirectoryClient
from deptmgr.core.logging import get_logger
from deptmgr.domain.role_chain import RoleChain, RoleDefinition, role_chain
from deptmgr.schemas.user import UserRecord
from deptmgr.services.base_service import BaseService

logger = get_logger(__name__)


@dataclass(frozen=True)
class DirectorySnapshot:
    """
    Read-only view of the directory at one load.

    Attributes:
        users: Every record, in the order the remote API returned them
        by_role: Active users per chain role; every chain role has an entry
        employees: Active users of any role
    """

    users: Tuple[UserRecord, ...] = ()
    by_role: Mapping[RoleDefinition, Tuple[UserRecord, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    employees: Tuple[UserRecord, ...] = ()

    def get(self, user_id: Optional[str]) -> Optional[UserRecord]:
        if not user_id:
            return None
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    def active_in_role(self, role: RoleDefinition) -> Tuple[UserRecord, ...]:
        return self.by_role.get(role, ())

    @classmethod
    def build(cls, users: Tuple[UserRecord, ...], chain: RoleChain) -> "DirectorySnapshot":
        grouped: Dict[RoleDefinition, list] = {role: [] for role in chain.roles()}
        for user in users:
            if not user.is_active:
                continue
            role = chain.find(user.role)
            if role is not None:
                grouped[role].append(user)
        return cls(
            users=users,
            by_role=MappingProxyType({role: tuple(members) for role, members in grouped.items()}),
            employees=tuple(user for user in users if user.is_active),
        )


class DirectoryStore(BaseService):
    """
    Holds the latest DirectorySnapshot.

    Each load rebuilds the snapshot from scratch and swaps it in whole, so
    readers see either the old or the new directory. A failed load keeps the
    previous snapshot.
    """

    def __init__(self, client: RemoteDirectoryClient, chain: RoleChain = role_chain):
        self.client = client
        self.chain = chain
        self._snapshot = DirectorySnapshot.build((), chain)
        self._loaded = False

    @property
    def snapshot(self) -> DirectorySnapshot:
        return self._snapshot

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> DirectorySnapshot:
        """Fetch all users from the remote API and rebuild the projections."""
        raw_users = await self.client.list_users()
        users = []
        for raw in raw_users:
            if not isinstance(raw, dict) or not (raw.get("_id") or raw.get("id")):
                logger.warning(f"Skipping directory entry without an id: {raw!r}")
                continue
            user = UserRecord.from_wire(raw, self.chain)
            if self.chain.find(user.role) is None:
                logger.warning(f"User {user.id} has a role outside the role chain: {user.role!r}")
            users.append(user)

        self._snapshot = DirectorySnapshot.build(tuple(users), self.chain)
        self._loaded = True
        logger.info(
            f"Directory loaded: {len(users)} users, {len(self._snapshot.employees)} active",
        )
        return self._snapshot

    async def refresh(self) -> DirectorySnapshot:
        return await self.load()

    def get(self, user_id: Optional[str]) -> Optional[UserRecord]:
        return self._snapshot.get(user_id)
