"""
FastAPI application entry point.
Assembles the app with routers, middleware, lifespan handlers, and exception handlers.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from deptmgr.api.v1.router import api_router
from deptmgr.core.config import settings
from deptmgr.core.exceptions import RemoteError, setup_exception_handlers
from deptmgr.core.logging import setup_logging
from deptmgr.deps.di_container import Container, settings_config

logger = logging.getLogger(__name__)


# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    enabled=settings.RATE_LIMIT_ENABLED,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    Builds the DI container, loads the directory, and closes the HTTP session.
    """
    # Startup
    setup_logging()

    container = getattr(app.state, "container", None)
    if container is None:
        container = Container()
        container.config.from_dict(settings_config())
        app.state.container = container

    import deptmgr.deps.di_container as di_module
    di_module._container = container

    if settings.LOAD_DIRECTORY_ON_STARTUP:
        try:
            await container.directory_store().load()
        except RemoteError as e:
            logger.error(f"Initial directory load failed: {e.message}")

    yield

    # Shutdown
    await container.http_client().close()


def create_app(container: Container = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Department hierarchy and user lifecycle API",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    if container is not None:
        app.state.container = container

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting middleware
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Add root-level health endpoint for convenience
    from deptmgr.api.v1.endpoints.health import get_health
    from deptmgr.deps.dependencies import get_health_controller

    @app.get("/health", response_model=None, include_in_schema=False)
    async def root_health(request: Request):
        """Root-level health check endpoint."""
        return await get_health(get_health_controller(request))

    # Global exception handler
    setup_exception_handlers(app)

    return app


app = create_app()
