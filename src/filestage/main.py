"""Main application entrypoint for the FileStage engine."""

from fastapi import FastAPI

from filestage.api.v1 import routes_health
from filestage.api.v1.routes_manager import router as manager_router
from filestage.api.v1.routes_staging import router as staging_router
from filestage.core.config import settings
from filestage.core.logging import setup_logging


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    setup_logging()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
    )

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(staging_router)
    app.include_router(manager_router)

    return app


# Export app instance for ASGI servers
app = create_app()
