"""
FastAPI application entrypoint for the SmartThings OAuth bridge.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.errors import register_exception_handlers
from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="SmartThings OAuth Bridge",
        version="0.1.0",
        description=(
            "Runs the SmartThings OAuth authorization-code flow and forwards "
            "device commands with the stored token."
        ),
    )
    register_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:  # pragma: no cover - process entry point
    import uvicorn

    settings = get_settings()
    logger.info(
        "SmartThings OAuth bridge listening at http://%s:%s (redirect URI %s)",
        settings.host,
        settings.port,
        settings.smartthings.redirect_uri,
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


__all__ = ["app", "create_app", "run"]


if __name__ == "__main__":  # pragma: no cover
    run()
