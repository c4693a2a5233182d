"""FastAPI application for the flow designer service.

Hosts designer sessions so the designer's operations and its PDF export can
be driven over HTTP.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from flowdesigner.core.config import Settings
from flowdesigner.designer.sessions import DesignerSessionManager
from flowdesigner.web.designer_router import router as designer_router


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str = "0.1.0"


def create_app(
    settings: Settings | None = None,
    session_manager: DesignerSessionManager | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances.

    Args:
        settings: Application settings. Defaults to Settings().
        session_manager: Optional pre-built DesignerSessionManager.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()

    logging.getLogger("flowdesigner").setLevel(settings.log_level.upper())

    app = FastAPI(
        title="Flow Designer",
        description="Functional flow diagram designer",
        version="0.1.0",
    )

    # CORS for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if session_manager is None:
        session_manager = DesignerSessionManager(settings)

    app.state.settings = settings
    app.state.session_manager = session_manager

    app.include_router(designer_router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", service="flow-designer")

    return app
