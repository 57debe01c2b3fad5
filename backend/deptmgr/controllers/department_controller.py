"""
Department management controller.
Shapes directory data for the user table and pickers, and forwards actions to the lifecycle service.
"""

from typing import List, Optional

from deptmgr.controllers.base_controller import BaseController
from deptmgr.domain.role_chain import RoleChain, RoleRef
from deptmgr.schemas.department import OptionResponse, RoleChainEntry, UserRow, UserRowListResponse
from deptmgr.schemas.user import DeletionRequest, UserForm, UserRecord
from deptmgr.services.directory_store import DirectoryStore
from deptmgr.services.lifecycle_service import LifecycleService
from deptmgr.services.superior_resolver import SuperiorResolver


class DepartmentController(BaseController):
    """Controller for department management."""

    def __init__(
        self,
        directory: DirectoryStore,
        resolver: SuperiorResolver,
        lifecycle: LifecycleService,
    ):
        self.directory = directory
        self.resolver = resolver
        self.lifecycle = lifecycle

    @property
    def chain(self) -> RoleChain:
        return self.resolver.chain

    def build_rows(self, search: Optional[str] = None) -> List[UserRow]:
        """
        Rows for the user table. Serial numbers follow directory order and are
        kept when a name search narrows the rows.
        """
        term = (search or "").strip().lower()
        rows = []
        for index, user in enumerate(self.directory.snapshot.users, start=1):
            if term and term not in user.name.lower():
                continue
            superior = self.resolver.current_superior(user)
            rows.append(
                UserRow(
                    s_no=index,
                    key=user.id,
                    user_name=user.name,
                    email=user.email,
                    mobile=user.phone,
                    role=user.role,
                    superior_name=superior.name if superior else "-",
                    is_active=user.is_active,
                    booking_status=user.booking_module_enabled,
                )
            )
        return rows

    async def list_rows(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 15,
    ) -> UserRowListResponse:
        """List table rows, loading the directory on first use."""
        if not self.directory.loaded:
            await self.directory.load()
        rows = self.build_rows(search)
        return UserRowListResponse(items=rows[skip:skip + limit], total=len(rows))

    def role_chain_table(self) -> List[RoleChainEntry]:
        entries = []
        for role in self.chain.roles():
            superior = self.chain.superior_of(role)
            entries.append(
                RoleChainEntry(
                    role=role.display_name,
                    label=self.chain.label_of(role),
                    field_code=self.chain.field_code_of(role),
                    superior_role=superior.display_name if superior else None,
                    superior_field=self.resolver.field_name_for(role),
                    assign_label=self.chain.assign_label(role),
                )
            )
        return entries

    def superior_options(self, role: RoleRef) -> List[OptionResponse]:
        return self.resolver.options_for(role)

    def employee_options(self, exclude: Optional[str] = None) -> List[OptionResponse]:
        """Active employees of any role, for the reassignment picker."""
        return [
            OptionResponse(value=user.id, label=user.name)
            for user in self.directory.snapshot.employees
            if user.id != exclude
        ]

    def get_user(self, user_id: str) -> UserRecord:
        return self.lifecycle.get(user_id)

    async def create_user(self, form: UserForm) -> Optional[UserRecord]:
        return await self.lifecycle.create(form)

    async def update_user(self, user_id: str, form: UserForm) -> UserRecord:
        return await self.lifecycle.update(user_id, form)

    async def set_active(self, user_id: str, active: bool) -> UserRecord:
        return await self.lifecycle.set_active(user_id, active)

    async def delete_user(
        self,
        user_id: str,
        reassign_to_id: Optional[str],
        request_id: Optional[str] = None,
    ) -> DeletionRequest:
        return await self.lifecycle.delete(user_id, reassign_to_id, request_id=request_id)
