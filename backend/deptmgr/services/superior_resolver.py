"""
Superior resolution service.
"""

from typing import List, Optional

from deptmgr.domain.role_chain import RoleChain, RoleRef, role_chain
from deptmgr.schemas.department import OptionResponse
from deptmgr.schemas.user import UserRecord
from deptmgr.services.base_service import BaseService
from deptmgr.services.directory_store import DirectoryStore


class SuperiorResolver(BaseService):
    """
    Answers who a role reports to, using the role chain and the current
    directory snapshot.
    """

    def __init__(self, directory: DirectoryStore, chain: RoleChain = role_chain):
        self.directory = directory
        self.chain = chain

    def field_name_for(self, role: RoleRef) -> Optional[str]:
        """Name of the remote attribute storing the superior id; None for the terminal role."""
        return self.chain.superior_field_of(role)

    def candidates_for(self, role: RoleRef) -> List[UserRecord]:
        """Active users holding the immediate superior role. Empty when nobody qualifies."""
        superior = self.chain.superior_of(role)
        if superior is None:
            return []
        return list(self.directory.snapshot.active_in_role(superior))

    def options_for(self, role: RoleRef) -> List[OptionResponse]:
        return [OptionResponse(value=user.id, label=user.name) for user in self.candidates_for(role)]

    def is_eligible(self, role: RoleRef, superior_id: Optional[str]) -> bool:
        if not superior_id:
            return False
        return any(user.id == superior_id for user in self.candidates_for(role))

    def current_superior(self, user: UserRecord) -> Optional[UserRecord]:
        """
        The user's superior if the stored pointer still names an active user
        of the superior role, otherwise None. The pointer itself is left as is.
        """
        role = self.chain.find(user.role)
        if role is None or not user.superior_id:
            return None
        superior_role = self.chain.superior_of(role)
        if superior_role is None:
            return None
        superior = self.directory.get(user.superior_id)
        if superior is None or not superior.is_active:
            return None
        if self.chain.find(superior.role) is not superior_role:
            return None
        return superior
