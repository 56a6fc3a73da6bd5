from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from creatorcamp_api.core.settings import settings
from creatorcamp_api.db.session import async_session
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing
from .workers import ChatLifecycleWorker


APP_VERSION = "0.1.0"
SERVICE_NAME = "creatorcamp-api"


def _session_factory():
    return async_session()


@asynccontextmanager
async def lifespan(app: FastAPI):
    chat_worker = ChatLifecycleWorker(
        session_factory=_session_factory,
        interval_seconds=settings.chat_reaper_interval_seconds,
        lease_seconds=settings.chat_reaper_lease_seconds,
    )
    app.state.chat_lifecycle_worker = chat_worker

    chat_reaper_enabled = settings.chat_reaper_enabled
    if chat_reaper_enabled:
        chat_worker.start()
        logger.info(
            "Chat lifecycle worker enabled",
            interval_seconds=chat_worker.interval_seconds,
            lease_seconds=settings.chat_reaper_lease_seconds,
        )
    else:
        logger.info(
            "Chat lifecycle worker disabled",
            reason="chat_reaper_enabled is false",
        )

    try:
        yield
    finally:
        if chat_reaper_enabled and chat_worker.is_running:
            await chat_worker.stop()


def create_app() -> FastAPI:
    """Application factory for the creator campaigns API."""
    configure_logging(
        service_name=SERVICE_NAME,
        environment=settings.environment,
        version=APP_VERSION,
    )

    app = FastAPI(
        title="Creator Campaigns API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    configure_tracing(
        app,
        service_name=SERVICE_NAME,
        service_version=APP_VERSION,
        environment=settings.environment,
    )

    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
