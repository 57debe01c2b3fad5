"""
Department management API endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from deptmgr.controllers.department_controller import DepartmentController
from deptmgr.core.config import settings
from deptmgr.deps.dependencies import get_department_controller
from deptmgr.schemas.department import OptionResponse, RoleChainEntry, UserRowListResponse
from deptmgr.schemas.user import ActiveStatusUpdate, DeleteUserRequest, UserForm, UserRecord

router = APIRouter()


@router.get("/users", response_model=UserRowListResponse)
async def list_users(
    search: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.ROWS_PAGE_SIZE, ge=1, le=1000),
    controller: DepartmentController = Depends(get_department_controller),
) -> UserRowListResponse:
    """List directory users as table rows, optionally filtered by name."""
    return await controller.list_rows(search=search, skip=skip, limit=limit)


@router.get("/users/{user_id}", response_model=UserRecord)
async def get_user(
    user_id: str,
    controller: DepartmentController = Depends(get_department_controller),
) -> UserRecord:
    return controller.get_user(user_id)


@router.post("/users", response_model=Optional[UserRecord], status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserForm,
    controller: DepartmentController = Depends(get_department_controller),
) -> Optional[UserRecord]:
    """Create a new user."""
    return await controller.create_user(user_data)


@router.put("/users/{user_id}", response_model=UserRecord)
async def update_user(
    user_id: str,
    user_data: UserForm,
    controller: DepartmentController = Depends(get_department_controller),
) -> UserRecord:
    """Update a user. The role is not changed."""
    return await controller.update_user(user_id, user_data)


@router.patch("/users/{user_id}/active", response_model=UserRecord)
async def set_user_active(
    user_id: str,
    body: ActiveStatusUpdate,
    controller: DepartmentController = Depends(get_department_controller),
) -> UserRecord:
    """Activate or deactivate a user."""
    return await controller.set_active(user_id, body.is_active)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    body: DeleteUserRequest,
    controller: DepartmentController = Depends(get_department_controller),
) -> Response:
    """Delete a user, transferring their leads, tasks and data to ``reassign_to_id``."""
    await controller.delete_user(user_id, body.reassign_to_id, request_id=body.request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/employees", response_model=List[OptionResponse])
async def list_employees(
    exclude: Optional[str] = Query(None),
    controller: DepartmentController = Depends(get_department_controller),
) -> List[OptionResponse]:
    """Active employees that can receive a deleted user's work."""
    return controller.employee_options(exclude=exclude)


@router.get("/role-chain", response_model=List[RoleChainEntry])
async def get_role_chain(
    controller: DepartmentController = Depends(get_department_controller),
) -> List[RoleChainEntry]:
    return controller.role_chain_table()


@router.get("/roles/{role}/superior-candidates", response_model=List[OptionResponse])
async def list_superior_candidates(
    role: str,
    controller: DepartmentController = Depends(get_department_controller),
) -> List[OptionResponse]:
    """Active users of the role's immediate superior role."""
    resolved = controller.chain.find(role)
    if resolved is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown role: {role}",
        )
    return controller.superior_options(resolved)
