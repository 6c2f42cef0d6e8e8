"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ragchat.api.routes.chat import router as chat_router
from ragchat.api.routes.docs import router as docs_router
from ragchat.api.routes.health import router as health_router
from ragchat.api.routes.knowledge_base import router as knowledge_base_router
from ragchat.api.routes.metrics import router as metrics_router
from ragchat.config import Settings, get_settings, validate_startup
from ragchat.db.engine import init_models
from ragchat.services import Services, build_services
from ragchat.utils.logging import configure_logging

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use (defaults to get_settings())
        services: Prebuilt services (tests); otherwise built during startup

    Startup raises ConfigurationError when the selected provider lacks
    credentials, so the server refuses to start.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app_settings = services.settings if services is not None else settings or get_settings()
        configure_logging(app_settings.log_level)
        validate_startup(app_settings)

        app.state.services = services or build_services(app_settings)
        if app.state.services.engine is not None:
            await init_models(app.state.services.engine)

        logger.info(
            f"ragchat started (provider={app_settings.llm_provider}, "
            f"context_mode={app_settings.context_mode})"
        )
        try:
            yield
        finally:
            await app.state.services.aclose()

    # /docs is a domain route, so the OpenAPI UI lives elsewhere
    app = FastAPI(
        title="RAG Chat API",
        version=VERSION,
        docs_url="/api-docs",
        redoc_url=None,
        lifespan=lifespan,
    )

    app.include_router(health_router, tags=["health"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(docs_router)
    app.include_router(knowledge_base_router)
    app.include_router(chat_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "RAG Chat API", "version": VERSION}

    return app


app = create_app()
