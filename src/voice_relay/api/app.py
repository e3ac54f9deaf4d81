"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import Settings, get_settings
from ..cors import CorsPolicy, CrossOriginGate
from ..errors import MethodNotAllowedError, RelayError
from .routes import assistant, voices

logger = logging.getLogger(__name__)

# Assistant endpoints carry no cookies or credentials and answer any origin
OPEN_CORS_PREFIXES = ("/api/chatgpt/",)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Voice relay service starting...")

    owns_client = getattr(app.state, "http_client", None) is None
    if owns_client:
        app.state.http_client = httpx.AsyncClient(timeout=app.state.settings.upstream_timeout)

    yield

    logger.info("Voice relay service shutting down...")
    if owns_client:
        await app.state.http_client.aclose()
        app.state.http_client = None
    logger.info("Voice relay service shutdown complete")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        return "Invalid JSON body"

    fields = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        if loc and loc[-1] not in fields:
            fields.append(loc[-1])
    if not fields:
        return "Invalid request body"
    return f"Missing or invalid field(s): {', '.join(fields)}"


def register_exception_handlers(app: FastAPI) -> None:
    """Convert every handler failure to a JSON ``{"error": ...}`` body."""

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        if exc.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            error = MethodNotAllowedError(f"Method Not Allowed: {request.method}")
            return JSONResponse(
                status_code=error.status_code,
                content={"error": error.message},
                headers=exc.headers,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=exc.headers,
        )


def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``http_client`` replaces the client the lifespan would open; the caller
    then owns closing it.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Voice Relay Service",
        description="Relays browser chat and speech requests to the assistant and voice APIs",
        version="1.0.0",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.http_client = http_client

    app.add_middleware(
        CrossOriginGate,
        policy=CorsPolicy(settings.allowed_origins),
        open_prefixes=OPEN_CORS_PREFIXES,
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(voices.router, prefix="/api", tags=["voice"])
    app.include_router(assistant.router, prefix="/api/chatgpt", tags=["assistant"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
