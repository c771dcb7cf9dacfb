"""FastAPI application factory and configuration.

Main application entry point with lifespan management, middleware,
and router registration.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from opendocs import __version__
from opendocs.api.chat import router as chat_router
from opendocs.relay.relay import ChatRelay

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    relay: ChatRelay = app.state.relay
    logger.info(
        f"Starting OpenDocs API (provider={relay.config.provider}, model={relay.config.model_name})"
    )
    yield
    if relay.active_exchange_id:
        relay.cancel(relay.active_exchange_id)
    logger.info("Shutting down OpenDocs API...")


def create_app(relay: ChatRelay | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        relay: Optional relay to serve. Built from environment if not provided.

    Returns:
        Configured FastAPI application instance.
    """
    application = FastAPI(
        title="OpenDocs API",
        description=(
            "Streaming chat relay for the OpenDocs PDF reader. Forwards chat "
            "requests with document context to a generative model and streams "
            "the reply back as Server-Sent Events."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.relay = relay or ChatRelay()

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    application.include_router(chat_router)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Check service health status."""
        return {"status": "healthy", "service": "opendocs"}

    return application
