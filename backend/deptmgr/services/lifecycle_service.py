"""
User lifecycle service: create, update, activate/deactivate and
delete-with-reassignment of directory users.
"""

import asyncio
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from deptmgr.core.exceptions import NotFoundError, PreconditionFailed, RemoteError, ValidationError
from deptmgr.core.integrations.directory_api import RemoteDirectoryClient
from deptmgr.core.logging import get_logger
from deptmgr.domain.role_chain import RoleChain, RoleDefinition, role_chain
from deptmgr.schemas.user import DeletionRequest, UserCreate, UserForm, UserRecord, UserUpdate
from deptmgr.services.base_service import BaseService
from deptmgr.services.directory_store import DirectoryStore
from deptmgr.services.superior_resolver import SuperiorResolver

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)
FormInput = Union[UserForm, Mapping[str, Any]]


class LifecycleService(BaseService):
    """
    The only component that mutates the remote directory.

    Mutations are serialized: each one, including the directory refresh that
    follows it, runs under a single lock. Mutations are never retried.
    """

    def __init__(
        self,
        client: RemoteDirectoryClient,
        directory: DirectoryStore,
        resolver: SuperiorResolver,
        chain: RoleChain = role_chain,
    ):
        self.client = client
        self.directory = directory
        self.resolver = resolver
        self.chain = chain
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def get(self, user_id: str) -> UserRecord:
        user = self.directory.get(user_id)
        if user is None:
            raise NotFoundError()
        return user

    async def create(self, form: FormInput) -> Optional[UserRecord]:
        """Validate and create a user, then refresh the directory."""
        async with self._lock:
            data = self._validate(UserCreate, form)
            self._check_superior(data.role, data.superior_id)

            payload = self._base_payload(data, data.role)
            payload["password"] = data.password
            payload["role"] = self.chain.storage_name_of(data.role)

            response = await self.client.create_user(payload)
            logger.info(f"Created user {data.email} with role {data.role.display_name}")
            await self._refresh_after_mutation()

        return self._created_record(response.data, data.email)

    async def update(self, user_id: str, form: FormInput) -> UserRecord:
        """
        Validate and update a user. The role cannot change; an empty password
        leaves the stored credential untouched.
        """
        async with self._lock:
            existing = self.get(user_id)
            data = self._validate(UserUpdate, form)
            role = self.chain.find(existing.role)
            if role is not None:
                self._check_superior(role, data.superior_id, existing.superior_id)

            # An omitted superior keeps the stored assignment.
            payload = self._base_payload(
                data, role, include_superior="superior_id" in data.model_fields_set
            )
            if data.password:
                payload["password"] = data.password

            await self.client.update_user(user_id, payload)
            logger.info(f"Updated user {user_id}")
            await self._refresh_after_mutation()

        return self.directory.get(user_id) or existing

    async def set_active(self, user_id: str, active: bool) -> UserRecord:
        """
        Toggle a user's active flag. Subordinates pointing at this user keep
        their pointer; it simply stops resolving while the user is inactive.
        """
        async with self._lock:
            existing = self.get(user_id)
            await self.client.update_user(user_id, {"isActive": active})
            logger.info(f"User {user_id} {'activated' if active else 'deactivated'}")
            await self._refresh_after_mutation()

        return self.directory.get(user_id) or existing

    async def delete(
        self,
        target_id: str,
        reassign_to_id: Optional[str],
        request_id: Optional[str] = None,
    ) -> DeletionRequest:
        """
        Delete a user after transferring their leads, tasks and data.

        Refused with PreconditionFailed unless the target is in the directory
        and ``reassign_to_id`` names an active user other than the target.
        The remote API performs the transfer and the deletion in one call; if
        it fails the directory is left as it was.
        """
        async with self._lock:
            if not reassign_to_id:
                raise PreconditionFailed("Please select an employee to transfer tasks and data to")
            if reassign_to_id == target_id:
                raise PreconditionFailed("Tasks and data cannot be transferred to the user being deleted")
            if self.directory.get(target_id) is None:
                raise PreconditionFailed(
                    "The user to delete is not in the directory",
                    details={"target_id": target_id},
                )
            assignee = self.directory.get(reassign_to_id)
            if assignee is None or not assignee.is_active:
                raise PreconditionFailed(
                    "Tasks and data can only be transferred to an active employee",
                    details={"reassign_to_id": reassign_to_id},
                )

            request = DeletionRequest(target_user_id=target_id, reassign_to_user_id=reassign_to_id)
            if request_id:
                request = request.model_copy(update={"request_id": request_id})

            await self.client.delete_user(target_id, request.to_wire(), idempotency_key=request.request_id)
            logger.info(
                f"Deleted user {target_id}; leads, tasks and data transferred to {reassign_to_id}",
                extra={"request_id": request.request_id},
            )
            await self._refresh_after_mutation()

        return request

    @staticmethod
    def _validate(schema: Type[SchemaT], form: FormInput) -> SchemaT:
        """Apply ``schema`` and report only the first failing field."""
        if isinstance(form, BaseModel):
            data = form.model_dump(exclude_unset=True)
        else:
            data = dict(form)
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else "__root__"
            ctx_error = (first.get("ctx") or {}).get("error")
            message = str(ctx_error) if ctx_error else first.get("msg", "Invalid value")
            logger.info(f"Rejected user input: {field}: {message}")
            raise ValidationError(field, message) from None

    def _check_superior(
        self,
        role: RoleDefinition,
        superior_id: Optional[str],
        current_superior_id: Optional[str] = None,
    ) -> None:
        """A newly chosen superior must be an active user of the superior role right now."""
        if not superior_id or superior_id == current_superior_id:
            return
        superior_role = self.chain.superior_of(role)
        if superior_role is None:
            return
        if not self.resolver.is_eligible(role, superior_id):
            raise ValidationError(
                "superior_id",
                f"Selected {superior_role.display_name} is no longer available, please choose again",
            )

    def _base_payload(
        self,
        data: Union[UserCreate, UserUpdate],
        role: Optional[RoleDefinition],
        include_superior: bool = True,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": data.name,
            "email": data.email,
            "phone": data.phone,
        }
        if data.is_active is not None:
            payload["isActive"] = data.is_active
        if data.booking_module_enabled is not None:
            payload["bookingStatus"] = data.booking_module_enabled
        if role is not None and include_superior:
            field = self.resolver.field_name_for(role)
            if field:
                payload[field] = data.superior_id
        return payload

    async def _refresh_after_mutation(self) -> None:
        # The mutation already succeeded; a failed reload must not be reported as a failed mutation.
        try:
            await self.directory.refresh()
        except RemoteError as e:
            logger.error(f"Directory refresh after mutation failed: {e.message}")

    def _created_record(self, data: Any, email: str) -> Optional[UserRecord]:
        if isinstance(data, dict) and (data.get("_id") or data.get("id")):
            created = self.directory.get(str(data.get("_id") or data.get("id")))
            if created is not None:
                return created
            return UserRecord.from_wire(data, self.chain)
        for user in reversed(self.directory.snapshot.users):
            if user.email == email:
                return user
        logger.warning(f"Created user {email} is not present in the directory yet")
        return None
