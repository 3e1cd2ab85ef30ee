"""FastAPI application configuration."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..envs.server_env import Settings, get_settings
from ..infrastructure.database import get_database_client
from .routers import chat, payments

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not settings.stream_api_key or not settings.stream_api_secret:
            logger.warning("Stream credentials missing; chat tokens will fail")
        if not settings.razorpay_key_id or not settings.razorpay_key_secret:
            logger.warning("Razorpay credentials missing; payments will fail")
        yield
        await get_database_client(settings).close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="ChatSphere chat token and payment API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Dependencies see the settings this app was built with
    app.dependency_overrides[get_settings] = lambda: settings

    app.include_router(payments.router, prefix="/api")
    app.include_router(chat.router, prefix="/api")

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    return app
