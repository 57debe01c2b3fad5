"""
FastAPI dependencies resolving controllers from the DI container.
"""

from fastapi import Request

from deptmgr.controllers.department_controller import DepartmentController
from deptmgr.controllers.health_controller import HealthController
from deptmgr.deps.di_container import Container, get_container


def _container(request: Request) -> Container:
    return getattr(request.app.state, "container", None) or get_container()


def get_department_controller(request: Request) -> DepartmentController:
    return _container(request).department_controller()


def get_health_controller(request: Request) -> HealthController:
    return _container(request).health_controller()
