# main.py

"""
The main entry point of the application.

This module configures basic logging, builds the FastAPI application around a
single StreamingRelay service object, includes the API routers and defines the
main execution block to start the Uvicorn server.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers.chat import router as chat_router
from api.routers.credentials import router as credentials_router
from api.routers.legacy import router as legacy_router
from api.session_manager import SessionStore
from config import Settings, settings
from core.chat_orchestrator import StreamingRelay
from core.errors import RelayError
from core.llm.factory import LLMServiceFactory, create_llm_service
from core.model_registry import ProviderRegistry
from schemas.chat_schemas import HealthResponse

# --- Logging Configuration ---
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def create_app(
        app_settings: Settings = settings,
        service_factory: LLMServiceFactory = create_llm_service,
) -> FastAPI:
    """Assembles the application. The relay lives exactly as long as the app does."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        registry = ProviderRegistry(app_settings, service_factory=service_factory)
        if app_settings.groq_api_key:
            registry.set_credential(app_settings.groq_api_key)
            logger.info("Upstream credential loaded from environment.")
        sessions = SessionStore()
        app.state.relay = StreamingRelay(sessions=sessions, registry=registry, settings=app_settings)
        logger.info("Streaming relay started.")
        try:
            yield
        finally:
            sessions.clear_all()
            await registry.aclose()
            logger.info("Streaming relay stopped.")

    # --- FastAPI Application Initialization ---
    app = FastAPI(
        title="Groq Chat Relay",
        version="1.0.0",
        description="Relays chat turns to Groq and streams the completion back as server-sent events.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        logger.warning(f"Rejected {request.method} {request.url.path} with {exc.kind}: {exc}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(f"Malformed body for {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Malformed request body"},
        )

    # --- Include API Routers ---
    app.include_router(chat_router)
    app.include_router(credentials_router)
    app.include_router(legacy_router)

    @app.get("/health", tags=["Health Check"], response_model=HealthResponse)
    @app.get("/api/health", response_model=HealthResponse, include_in_schema=False)
    def health() -> HealthResponse:
        """Liveness check."""
        return HealthResponse(timestamp=datetime.now(timezone.utc).isoformat())

    return app


app = create_app()


# --- Main Execution Block ---
if __name__ == "__main__":
    logger.info("Starting Uvicorn server...")
    uvicorn.run("main:app", host=settings.host, port=settings.port)
