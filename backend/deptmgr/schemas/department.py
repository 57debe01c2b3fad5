"""
Department management presentation schemas.
"""

from pydantic import BaseModel
from typing import List, Optional


class UserRow(BaseModel):
    """One row of the department user table."""
    s_no: int
    key: str
    user_name: str
    email: str
    mobile: str
    role: str
    superior_name: str = "-"
    is_active: bool
    booking_status: bool


class UserRowListResponse(BaseModel):
    """Schema for the user table response."""
    items: List[UserRow]
    total: int


class OptionResponse(BaseModel):
    """A picker option."""
    value: str
    label: str


class RoleChainEntry(BaseModel):
    """Role chain row used to render the role and "Assign <superior>" pickers."""
    role: str
    label: str
    field_code: str
    superior_role: Optional[str] = None
    superior_field: Optional[str] = None
    assign_label: str = ""
