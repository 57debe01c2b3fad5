"""
Department form controller.

Drives one operator session of the department screen: the add/edit form and
the two-step delete confirmation. States:

    LISTING --start_create/start_edit--> EDITING --save--> LISTING
    LISTING --request_delete--> CONFIRMING_DELETE --continue_delete-->
        CHOOSING_REASSIGN_TARGET --confirm_delete--> LISTING
    any state --cancel--> LISTING
"""

import enum
import uuid
from dataclasses import dataclass
from typing import Any, List, Optional

from deptmgr.controllers.base_controller import BaseController
from deptmgr.controllers.department_controller import DepartmentController
from deptmgr.core.exceptions import AppException, InvalidTransition
from deptmgr.core.integrations.notifier import LoggingNotifier, Notifier
from deptmgr.domain.role_chain import RoleDefinition, RoleRef
from deptmgr.schemas.department import OptionResponse
from deptmgr.schemas.user import UserForm

MISSING_REASSIGN_TARGET = "Please select an employee to transfer tasks and data to"


class FormState(str, enum.Enum):
    """Form controller states."""
    LISTING = "listing"
    EDITING = "editing"
    CONFIRMING_DELETE = "confirming_delete"
    CHOOSING_REASSIGN_TARGET = "choosing_reassign_target"


@dataclass
class FormDraft:
    """Values currently entered on the add/edit form."""
    user_id: Optional[str] = None
    name: str = ""
    email: str = ""
    mobile: str = ""
    password: str = ""
    is_active: bool = True
    role: Optional[RoleDefinition] = None
    superior_id: Optional[str] = None
    booking_status: bool = False

    @property
    def is_new(self) -> bool:
        return self.user_id is None

    def to_form(self) -> UserForm:
        return UserForm(
            name=self.name,
            email=self.email,
            phone=self.mobile,
            password=self.password,
            role=self.role.value if self.role is not None else None,
            is_active=self.is_active,
            booking_module_enabled=self.booking_status,
            superior_id=self.superior_id,
        )


EDITABLE_FIELDS = ("name", "email", "mobile", "password", "is_active", "booking_status")


class HierarchyFormController(BaseController):
    """State machine behind the department management screen."""

    def __init__(self, department: DepartmentController, notifier: Optional[Notifier] = None):
        self.department = department
        self.notifier = notifier or LoggingNotifier()
        self.state = FormState.LISTING
        self.draft: Optional[FormDraft] = None
        self.pending_delete_id: Optional[str] = None
        self.reassign_to_id: Optional[str] = None
        self.error: Optional[str] = None
        self._delete_request_id: Optional[str] = None
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def _require(self, action: str, *states: FormState) -> None:
        if self._busy:
            raise InvalidTransition(f"Cannot {action}: another operation is in progress")
        if self.state not in states:
            raise InvalidTransition(f"Cannot {action} while {self.state.value}")

    def _reset(self) -> None:
        self.state = FormState.LISTING
        self.draft = None
        self.pending_delete_id = None
        self.reassign_to_id = None
        self._delete_request_id = None
        self.error = None

    def _fail(self, exc: AppException) -> bool:
        self.error = exc.message
        self.notifier.error(exc.message)
        return False

    # Add / edit

    def start_create(self) -> FormDraft:
        self._require("add a user", FormState.LISTING)
        self.draft = FormDraft()
        self.error = None
        self.state = FormState.EDITING
        return self.draft

    def start_edit(self, user_id: str) -> FormDraft:
        self._require("edit a user", FormState.LISTING)
        user = self.department.get_user(user_id)
        self.draft = FormDraft(
            user_id=user.id,
            name=user.name,
            email=user.email,
            mobile=user.phone,
            is_active=user.is_active,
            role=self.department.chain.find(user.role),
            superior_id=user.superior_id,
            booking_status=user.booking_module_enabled,
        )
        self.error = None
        self.state = FormState.EDITING
        return self.draft

    def set_field(self, name: str, value: Any) -> None:
        self._require("edit the form", FormState.EDITING)
        if name not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown form field: {name}")
        setattr(self.draft, name, value)

    def select_role(self, role: RoleRef) -> None:
        """Pick the role of a new user. Any previously chosen superior is dropped."""
        self._require("select a role", FormState.EDITING)
        if not self.draft.is_new:
            raise InvalidTransition("The role of an existing user cannot be changed")
        self.draft.role = self.department.chain.get(role)
        self.draft.superior_id = None

    def select_superior(self, user_id: Optional[str]) -> None:
        self._require("select a superior", FormState.EDITING)
        if not self.show_superior_picker:
            raise InvalidTransition("The selected role has no superior to assign")
        self.draft.superior_id = user_id or None

    @property
    def show_role_picker(self) -> bool:
        return self.state == FormState.EDITING and self.draft.is_new

    @property
    def show_superior_picker(self) -> bool:
        return (
            self.state == FormState.EDITING
            and self.draft.role is not None
            and not self.department.chain.is_terminal(self.draft.role)
        )

    @property
    def assign_label(self) -> str:
        if not self.show_superior_picker:
            return ""
        return self.department.chain.assign_label(self.draft.role)

    @property
    def superior_options(self) -> List[OptionResponse]:
        if not self.show_superior_picker:
            return []
        return self.department.superior_options(self.draft.role)

    async def save(self) -> bool:
        """
        Submit the draft. Returns True and goes back to LISTING on success;
        otherwise stays in EDITING with ``error`` set.
        """
        self._require("save", FormState.EDITING)
        self._busy = True
        try:
            if self.draft.is_new:
                await self.department.create_user(self.draft.to_form())
                message = "User created successfully"
            else:
                await self.department.update_user(self.draft.user_id, self.draft.to_form())
                message = "User updated successfully"
        except AppException as e:
            return self._fail(e)
        finally:
            self._busy = False

        self.notifier.success(message)
        self._reset()
        return True

    # Activate / deactivate

    async def toggle_active(self, user_id: str, active: bool) -> bool:
        self._require("change user status", FormState.LISTING)
        self._busy = True
        try:
            await self.department.set_active(user_id, active)
        except AppException as e:
            return self._fail(e)
        finally:
            self._busy = False

        self.error = None
        self.notifier.success(f"User {'activated' if active else 'deactivated'} successfully")
        return True

    # Delete with reassignment

    def request_delete(self, user_id: str) -> None:
        self._require("delete a user", FormState.LISTING)
        self.department.get_user(user_id)
        self.pending_delete_id = user_id
        self.reassign_to_id = None
        self.error = None
        self.state = FormState.CONFIRMING_DELETE

    def continue_delete(self) -> None:
        self._require("continue", FormState.CONFIRMING_DELETE)
        self._delete_request_id = str(uuid.uuid4())
        self.state = FormState.CHOOSING_REASSIGN_TARGET

    @property
    def reassign_options(self) -> List[OptionResponse]:
        if self.state != FormState.CHOOSING_REASSIGN_TARGET:
            return []
        return self.department.employee_options(exclude=self.pending_delete_id)

    def choose_reassign_target(self, user_id: Optional[str]) -> None:
        self._require("choose an employee", FormState.CHOOSING_REASSIGN_TARGET)
        self.reassign_to_id = user_id or None

    @property
    def can_confirm_delete(self) -> bool:
        return (
            self.state == FormState.CHOOSING_REASSIGN_TARGET
            and bool(self.reassign_to_id)
            and not self._busy
        )

    async def confirm_delete(self) -> bool:
        """
        Delete the pending user, transferring their work to the chosen
        employee. The lifecycle service checks the same preconditions again.
        """
        self._require("delete", FormState.CHOOSING_REASSIGN_TARGET)
        if not self.reassign_to_id:
            self.error = MISSING_REASSIGN_TARGET
            self.notifier.error(MISSING_REASSIGN_TARGET)
            return False

        self._busy = True
        try:
            await self.department.delete_user(
                self.pending_delete_id,
                self.reassign_to_id,
                request_id=self._delete_request_id,
            )
        except AppException as e:
            return self._fail(e)
        finally:
            self._busy = False

        self.notifier.success("User deleted successfully")
        self._reset()
        return True

    def cancel(self) -> None:
        """Return to LISTING, discarding any draft or pending delete."""
        self._reset()
