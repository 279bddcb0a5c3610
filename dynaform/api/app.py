"""
FastAPI application factory for Dynaform.

Creates and configures the FastAPI app, builds the backend client from
the environment, the session store, and the routes.

Run with:
    uvicorn dynaform.api.app:app --reload
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dynaform.api.routes import configure_routes, router
from dynaform.client.api_client import FormApiClient
from dynaform.config import get_api_config
from dynaform.core.session import SessionStore

# Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    api_client: FormApiClient | None = None,
    session_store: SessionStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        api_client: Optional backend client; built from the environment if omitted.
        session_store: Optional session store; built from the environment if omitted.
    """

    application = FastAPI(
        title="Dynaform",
        description="Dynamic form runtime with conditional field logic",
        version="0.1.0",
    )

    # CORS: allow all origins in development
    allowed_origins = os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if api_client is None:
        api_client = FormApiClient(get_api_config())

    if session_store is None:
        session_timeout = int(os.getenv("SESSION_TIMEOUT_SECONDS", "1800"))
        session_store = SessionStore(timeout_seconds=session_timeout)

    # Configure routes with dependencies
    configure_routes(session_store, api_client)
    application.include_router(router, prefix="/api")

    @application.on_event("startup")
    async def on_startup():
        logger.info("Dynaform service starting up")
        logger.info("Form API base URL: %s", api_client.config.base_url)

    @application.on_event("shutdown")
    async def on_shutdown():
        await api_client.aclose()
        logger.info("Dynaform service stopped")

    return application


# Create the app instance (used by uvicorn)
app = create_app()
