"""FastAPI application for the QueryDesk backend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated, Dict, Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from querydesk_backend.app.api.router import api_router
from querydesk_backend.app.core.config import get_settings
from querydesk_backend.app.services.container import (
    WorkspaceServices,
    get_workspace_service,
    get_workspace_services,
)

logger = logging.getLogger(__name__)


def create_app(services: Optional[WorkspaceServices] = None) -> FastAPI:
    """Build the app; pass ``services`` to run against injected stores."""
    settings = services.settings if services is not None else get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    def resolve_services() -> WorkspaceServices:
        return services if services is not None else get_workspace_services()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        active = resolve_services()
        if active.settings.sessions.sweeper_enabled:
            active.sweeper.start()
        logger.info("QueryDesk backend started")
        yield
        active.close()
        logger.info("QueryDesk backend stopped")

    app = FastAPI(title="QueryDesk", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)

    if services is not None:
        app.dependency_overrides[get_workspace_services] = lambda: services
        app.dependency_overrides[get_workspace_service] = lambda: services.workspace

    @app.get("/health")
    def health(
        active: Annotated[WorkspaceServices, Depends(get_workspace_services)],
    ) -> Dict[str, str]:
        return {
            "status": "OK",
            "redis": "connected" if active.kv.ping() else "disconnected",
        }

    return app


app = create_app()
