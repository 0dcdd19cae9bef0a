#!/usr/bin/env python3
"""
Relocation API - HTTP API layer for the camp transfer and exit lifecycle.

Serves the presentation layer. Every transfer, disciplinary and exit
formalities operation goes through the relocation engine, which enforces
state transitions and permissions itself.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relocation.config import ConfigLoader
from relocation.core.policy import Actor
from relocation.logging_config import configure_logging, get_logger

from .auth import AuthMiddleware
from .dependencies import authenticate_pb, get_current_actor, pb
from .errors import register_exception_handlers
from .settings import get_settings

# Configure unified logging format
# Format: 2026-01-06T14:05:52Z [api] LEVEL message
configure_logging(source="api")
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle - startup and shutdown."""
    settings = get_settings()

    if not settings.skip_pb_auth:
        await authenticate_pb()
        await asyncio.to_thread(ConfigLoader.initialize, settings.pocketbase_url, True, pb)
    else:
        logger.warning("Skipping PocketBase authentication (SKIP_PB_AUTH=true)")

    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Relocation API",
        description="Camp transfer and exit lifecycle API",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    settings = get_settings()

    # Authentication runs after CORS (middleware is applied in reverse order)
    app.add_middleware(
        AuthMiddleware,
        auth_mode=settings.get_effective_auth_mode(),
        pocketbase_url=settings.pocketbase_url,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    from .routers import dashboard, disciplinary, exit_formalities, transfers

    app.include_router(transfers.router)
    app.include_router(exit_formalities.router)
    app.include_router(disciplinary.router)
    app.include_router(dashboard.router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "relocation-api"}

    @app.get("/api/user/me")
    async def get_current_user_info(actor: Actor = Depends(get_current_actor)) -> dict[str, Any]:
        """Current user and the permissions the engine will check."""
        return {
            "id": actor.id,
            "email": actor.email,
            "is_admin": actor.is_admin,
            "permissions": sorted(actor.permissions),
        }

    return app


# Create app instance for uvicorn
app = create_app()
