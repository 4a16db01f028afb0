"""imagegate - FastAPI Application.

This module defines the FastAPI application, its routes, and the ``main()``
CLI function that launches the uvicorn server.

Architecture
------------
- **Image generation** is delegated to
  :class:`~imagegate.core.gateway.ImageGenerationGateway`, built once at
  startup and stored on ``app.state``. The gateway returns a success or a
  classified failure; this module only maps that onto JSON and a status code.
- **Upstream HTTP** goes through a single shared ``httpx.AsyncClient`` opened
  in the lifespan and closed on shutdown.
- **The browser frontend** is a static ``index.html`` served for every
  non-API ``GET`` path.
- **Cross-cutting concerns** (CORS, security headers, per-client rate limit,
  request body cap) are middleware.

Endpoints
---------
========  ==========================  ====================================
Method    Path                        Purpose
========  ==========================  ====================================
GET       ``/api/health``             Liveness and environment name
POST      ``/api/generate-image``     Prompt in, data-URI image out
GET       ``/static/...``             Frontend assets
GET       any other path              The frontend ``index.html``
========  ==========================  ====================================

Usage
-----
CLI (installed entry point)::

    imagegate

Direct invocation::

    python -m imagegate.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from imagegate import __version__
from imagegate.api.middleware import (
    INVALID_BODY_MESSAGE,
    BodySizeLimitMiddleware,
    FixedWindowRateLimiter,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
)
from imagegate.api.models import (
    ErrorResponse,
    GenerateImageRequest,
    GenerateImageResponse,
    HealthResponse,
)
from imagegate.core.config import GatewayConfig, config
from imagegate.core.gateway import ImageGenerationGateway
from imagegate.core.models import GenerationFailure

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(ErrorResponse(error=message).model_dump(), status_code=status_code)


def create_app(
    settings: GatewayConfig | None = None,
    gateway: ImageGenerationGateway | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration to serve with. Defaults to the global
            :data:`~imagegate.core.config.config`.
        gateway: Pre-built gateway. When omitted, one is created in the
            lifespan around a shared ``httpx.AsyncClient``.

    Returns:
        The configured application.
    """
    settings = settings or config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the gateway on startup and close its HTTP client on shutdown."""
        # --- Startup -------------------------------------------------------
        client: httpx.AsyncClient | None = None
        if gateway is not None:
            app.state.gateway = gateway
        else:
            client = httpx.AsyncClient(timeout=settings.request_timeout)
            app.state.gateway = ImageGenerationGateway(settings, client=client)

        provider = app.state.gateway.adapter.name
        if settings.has_credential:
            logger.info(f"Provider '{provider}' API key configured")
        else:
            primary, legacy = settings.credential_env_vars
            logger.error(
                f"No API key configured for provider '{provider}'! "
                f"Set {primary} (or {legacy}) in the environment or .env file"
            )
        logger.info(f"Serving static files from: {settings.static_dir}")

        yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        if client is not None:
            await client.aclose()
            logger.info("Upstream HTTP client closed on shutdown.")

    app = FastAPI(
        title="imagegate",
        description="Server-side proxy for text-to-image generation APIs.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = FixedWindowRateLimiter(
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )

    # Middleware added last runs first: CORS answers preflights before the
    # rate limiter counts them.
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter, path_prefix="/api/")
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    if settings.static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=str(settings.static_dir)), name="static")

    # -----------------------------------------------------------------------
    # Error handlers.
    # -----------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed or non-object JSON bodies are caller errors."""
        logger.info(f"Rejected malformed request body on {request.url.path}")
        return _error(400, INVALID_BODY_MESSAGE)

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return _error(500, "Something went wrong!")

    # -----------------------------------------------------------------------
    # Routes.
    # -----------------------------------------------------------------------

    @app.get("/api/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Report liveness, server time and environment name."""
        return HealthResponse(
            status="OK",
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=settings.environment,
        )

    @app.post(
        "/api/generate-image",
        response_model=GenerateImageResponse,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            429: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
            503: {"model": ErrorResponse},
        },
    )
    async def generate_image(req: GenerateImageRequest, request: Request):
        """Generate one image from a text prompt.

        Returns:
            ``{"success": true, "image": <data URI>, "prompt": <prompt>}`` on
            success, otherwise ``{"error": <message>}`` with the failure's
            status code (400 validation, 500 configuration/internal, or the
            provider's 401/429/503).
        """
        gateway: ImageGenerationGateway = request.app.state.gateway
        result = await gateway.generate(req.prompt)

        if isinstance(result, GenerationFailure):
            return _error(result.status_code, result.message)

        return GenerateImageResponse(success=True, image=result.data_uri, prompt=result.prompt)

    @app.get("/{full_path:path}", include_in_schema=False)
    async def frontend(full_path: str):
        """Serve the frontend page for any non-API path."""
        if full_path == "api" or full_path.startswith("api/"):
            return _error(404, "Not found")

        index_path = settings.static_dir / "index.html"
        if index_path.is_file():
            return FileResponse(index_path)
        return _error(404, "index.html not found")

    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~imagegate.core.config.config`
    (``IMAGEGATE_SERVER_HOST`` / ``IMAGEGATE_SERVER_PORT``). Defaults to
    ``0.0.0.0:3000``.

    This function is registered as the ``imagegate`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Server running on http://{config.server_host}:{config.server_port}")

    uvicorn.run(
        "imagegate.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
