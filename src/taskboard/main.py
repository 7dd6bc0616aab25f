"""Entry point for the task board FastAPI application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routers import api_router, health_router, task_events_socket
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .core.middleware import CorrelationIdMiddleware
from .db.seed import ensure_default_admin
from .db.session import create_schema, dispose_engine, init_engine, session_maker
from .errors import register_exception_handlers
from .realtime import ConnectionManager, build_event_bus, warn_if_unverified

logger = logging.getLogger(__name__)


def _router_prefix(raw_prefix: str) -> str:
    prefix = raw_prefix.strip()
    if prefix and not prefix.startswith("/"):
        prefix = f"/{prefix}"
    prefix = prefix.rstrip("/")
    return "" if prefix == "/" else prefix


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    settings: Settings = application.state.settings
    init_engine(settings)
    if settings.database_auto_create:
        await create_schema()
    async with session_maker()() as session:
        await ensure_default_admin(session, settings)
    warn_if_unverified(settings)
    await application.state.event_bus.start()
    logger.info(
        "Task board started",
        extra={"environment": settings.environment, "transport": settings.event_transport},
    )
    try:
        yield
    finally:
        await application.state.event_bus.stop()
        await application.state.connections.reset()
        await dispose_engine()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Instantiate and configure the FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings)

    router_prefix = _router_prefix(settings.api_prefix)
    openapi_url = f"{router_prefix}/openapi.json" if router_prefix else "/openapi.json"

    application = FastAPI(
        title=settings.project_name,
        version=settings.version,
        summary="Role-based task board with live task events.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=openapi_url,
        lifespan=lifespan,
    )

    connections = ConnectionManager(
        settings.websocket_max_connections,
        send_timeout=settings.websocket_send_timeout_seconds,
    )
    application.state.settings = settings
    application.state.connections = connections
    application.state.event_bus = build_event_bus(settings, connections.broadcast)

    application.add_middleware(CorrelationIdMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    application.include_router(api_router, prefix=router_prefix)
    application.include_router(health_router)
    application.add_api_websocket_route(settings.websocket_path, task_events_socket, name="task-events")

    register_exception_handlers(application)
    return application


app = create_app()


def run() -> None:
    """Convenience entry point for ``taskboard-app``."""

    settings: Settings = get_settings()
    uvicorn.run(
        "taskboard.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.reload,
        log_config=None,
    )
