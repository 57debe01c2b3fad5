"""
User directory Pydantic schemas.

UserRecord is the parsed form of a remote directory entry. UserForm is the
loose shape accepted from callers; UserCreate and UserUpdate carry the field
rules applied before anything is sent to the remote API.
"""

import re
import uuid
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from deptmgr.domain.role_chain import RoleChain, RoleDefinition, role_chain


EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_DIGITS = 10


class UserRecord(BaseModel):
    """A directory entry. ``superior_id`` may reference a user that no longer qualifies."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    role: str = ""
    is_active: bool = False
    booking_module_enabled: bool = False
    superior_id: Optional[str] = None

    @classmethod
    def from_wire(cls, raw: Mapping[str, Any], chain: RoleChain = role_chain) -> "UserRecord":
        """
        Parse a remote user document.

        Only the ``assigned<FieldCode>`` attribute matching the role's superior
        is read; other assignment attributes are ignored. Roles outside the
        chain are kept verbatim and have no superior.
        """
        raw_role = raw.get("role") or ""
        role = chain.find(raw_role)
        superior_id = None
        if role is not None:
            field = chain.superior_field_of(role)
            if field:
                superior_id = raw.get(field) or None
        return cls(
            id=str(raw.get("_id") or raw.get("id")),
            name=raw.get("name") or "",
            email=raw.get("email") or "",
            phone=raw.get("phone") or "",
            role=role.display_name if role is not None else str(raw_role),
            is_active=bool(raw.get("isActive", False)),
            booking_module_enabled=bool(raw.get("bookingStatus", False)),
            superior_id=str(superior_id) if superior_id is not None else None,
        )


class UserForm(BaseModel):
    """Unvalidated user input as entered on the form."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None
    booking_module_enabled: Optional[bool] = None
    superior_id: Optional[str] = None


def _blank_to_empty(value: Any) -> str:
    return "" if value is None else str(value)


class _UserFields(BaseModel):
    """Field rules shared by create and update. Field order is the order errors are reported in."""
    name: str = Field(default="", validate_default=True)
    email: str = Field(default="", validate_default=True)
    phone: str = Field(default="", validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, value: Any) -> str:
        value = _blank_to_empty(value).strip()
        if not value:
            raise ValueError("Please enter user name")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, value: Any) -> str:
        value = _blank_to_empty(value).strip()
        if not value:
            raise ValueError("Please enter email")
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Please enter a valid email address")
        return value

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, value: Any) -> str:
        value = _blank_to_empty(value).strip()
        if not value:
            raise ValueError("Please enter mobile number")
        digits = re.sub(r"\D", "", value)
        if len(digits) != PHONE_DIGITS:
            raise ValueError("Please enter a valid mobile number (10 digits)")
        return digits


class UserCreate(_UserFields):
    """Validated input for creating a user."""
    password: str = Field(default="", validate_default=True)
    role: RoleDefinition = Field(default=None, validate_default=True)
    is_active: bool = True
    booking_module_enabled: bool = False
    superior_id: Optional[str] = None

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, value: Any) -> str:
        value = _blank_to_empty(value)
        if not value.strip():
            raise ValueError("Please enter password")
        return value

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, value: Any) -> RoleDefinition:
        if value is None or not str(value).strip():
            raise ValueError("Please select a role")
        role = role_chain.find(value)
        if role is None:
            raise ValueError("Please select a valid role")
        return role

    @field_validator("is_active", "booking_module_enabled", mode="before")
    @classmethod
    def default_flags(cls, value: Any, info) -> bool:
        if value is None:
            return info.field_name == "is_active"
        return value

    @field_validator("superior_id", mode="before")
    @classmethod
    def blank_superior(cls, value: Any) -> Optional[str]:
        return value or None


class UserUpdate(_UserFields):
    """Validated input for updating a user. An empty password keeps the stored one."""
    password: Optional[str] = None
    is_active: Optional[bool] = None
    booking_module_enabled: Optional[bool] = None
    superior_id: Optional[str] = None

    @field_validator("password", "superior_id", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        return value


class ActiveStatusUpdate(BaseModel):
    """Body of the activate/deactivate toggle."""
    is_active: bool


class DeleteUserRequest(BaseModel):
    """Body of a delete call: who receives the deleted user's leads, tasks and data."""
    reassign_to_id: Optional[str] = None
    request_id: Optional[str] = None  # Idempotency-Key of the confirmation


class DeletionRequest(BaseModel):
    """A confirmed delete-with-reassignment. Lives only for the confirmation flow."""
    target_user_id: str
    reassign_to_user_id: str
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    def to_wire(self) -> Dict[str, str]:
        return {
            "deleteUserId": self.target_user_id,
            "LeadassigenUserId": self.reassign_to_user_id,
        }
