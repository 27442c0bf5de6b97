"""
Oncolife API Main Application

FastAPI application factory with lifespan-managed backends.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from oncolife import __version__
from oncolife.api.routes import router as conversations_router
from oncolife.config import Settings, get_settings
from oncolife.engine.conversation import ConversationEngine
from oncolife.observability.logging import configure_logging
from oncolife.persistence.clients import init_backends

logger = structlog.get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API with its own settings (defaults to the cached ones)."""
    settings = settings or get_settings()
    configure_logging(settings.app.log_level, json_logs=settings.app.json_logs)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager for startup/shutdown events."""
        logger.info(
            "Starting Oncolife API",
            env=settings.app.env,
            session_backend=settings.engine.session_backend,
            persistence_backend=settings.engine.persistence_backend,
        )

        backends = await init_backends(settings)
        app.state.backends = backends
        app.state.engine = ConversationEngine(
            store=backends.store,
            persistence=backends.persistence,
            patients=backends.patients,
            assistant_name=settings.app.assistant_name,
        )

        yield

        # Shutdown
        logger.info("Shutting down Oncolife API", dead_letters=len(backends.persistence.dlq))
        await backends.close()

    app = FastAPI(
        title="Oncolife Triage API",
        description="Symptom check-in and triage for oncology patients",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(conversations_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Liveness plus backend and dead-letter status."""
        backends = getattr(request.app.state, "backends", None)
        if backends is None:
            return {"status": "starting"}
        return {
            "status": "healthy",
            "version": __version__,
            "session_store": type(backends.store).__name__,
            "persistence": type(backends.persistence.gateway).__name__,
            "dead_letters": backends.persistence.dlq.get_stats(),
        }

    return app


if __name__ == "__main__":
    import uvicorn
    
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.app.api_host,
        port=settings.app.api_port,
    )
