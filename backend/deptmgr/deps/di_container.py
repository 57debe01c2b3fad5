"""
Dependency injection container using dependency-injector.
Wires the HTTP client, directory services and controllers.
"""

from typing import Dict, Optional

from dependency_injector import containers, providers

from deptmgr.core.config import settings
from deptmgr.core.integrations.directory_api import RemoteDirectoryClient
from deptmgr.core.integrations.http.http_client import HttpClient
from deptmgr.core.integrations.notifier import LoggingNotifier
from deptmgr.controllers.department_controller import DepartmentController
from deptmgr.controllers.health_controller import HealthController
from deptmgr.controllers.hierarchy_form_controller import HierarchyFormController
from deptmgr.domain.role_chain import role_chain
from deptmgr.services.directory_store import DirectoryStore
from deptmgr.services.health_service import HealthService
from deptmgr.services.lifecycle_service import LifecycleService
from deptmgr.services.superior_resolver import SuperiorResolver


def directory_api_headers(token: Optional[str], admin_api_key: Optional[str]) -> Dict[str, str]:
    """Headers sent with every directory API call."""
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = token
    if admin_api_key:
        headers["X-Admin-Api-Key"] = admin_api_key
    return headers


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    # Configuration
    config = providers.Configuration()

    role_chain = providers.Object(role_chain)

    http_client = providers.Singleton(
        HttpClient,
        base_url=config.directory_api_base_url,
        timeout=config.directory_api_timeout,
        max_retries=config.directory_api_max_retries,
        retry_delay=config.directory_api_retry_delay,
        default_headers=providers.Callable(
            directory_api_headers,
            config.directory_api_token,
            config.admin_api_key,
        ),
    )

    directory_client = providers.Singleton(
        RemoteDirectoryClient,
        http_client=http_client,
    )

    # Services
    directory_store = providers.Singleton(
        DirectoryStore,
        client=directory_client,
        chain=role_chain,
    )

    superior_resolver = providers.Singleton(
        SuperiorResolver,
        directory=directory_store,
        chain=role_chain,
    )

    lifecycle_service = providers.Singleton(
        LifecycleService,
        client=directory_client,
        directory=directory_store,
        resolver=superior_resolver,
        chain=role_chain,
    )

    health_service = providers.Singleton(
        HealthService,
        directory=directory_store,
    )

    notifier = providers.Singleton(LoggingNotifier)

    # Controllers
    department_controller = providers.Factory(
        DepartmentController,
        directory=directory_store,
        resolver=superior_resolver,
        lifecycle=lifecycle_service,
    )

    health_controller = providers.Factory(
        HealthController,
        health_service=health_service,
    )

    # One per operator session
    hierarchy_form_controller = providers.Factory(
        HierarchyFormController,
        department=department_controller,
        notifier=notifier,
    )


def settings_config() -> Dict[str, object]:
    return {
        "directory_api_base_url": settings.DIRECTORY_API_BASE_URL,
        "directory_api_token": settings.DIRECTORY_API_TOKEN,
        "admin_api_key": settings.ADMIN_API_KEY,
        "directory_api_timeout": settings.DIRECTORY_API_TIMEOUT,
        "directory_api_max_retries": settings.DIRECTORY_API_MAX_RETRIES,
        "directory_api_retry_delay": settings.DIRECTORY_API_RETRY_DELAY,
    }


# Global container instance
_container: Optional[Container] = None


def get_container() -> Container:
    """Get the global dependency injection container."""
    global _container
    if _container is None:
        _container = Container()
        _container.config.from_dict(settings_config())
    return _container
