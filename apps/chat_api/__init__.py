"""HTTP surface of the chat backend.

:func:`create_app` wires validated settings into the gateways, the command
dispatcher and the message router, and mounts them behind CORS, the rate
limiter and the JSON error handlers.  Gateways can be injected, which is how
the tests replace the identity, data and completion services.
"""

from __future__ import annotations

import logging
import math
import time
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from apps.command_dispatcher import CommandDispatcher, load_catalog
from apps.command_dispatcher.handlers import default_handlers
from apps.router import MessageRouter
from lib.config.catalog_loader import CommandCatalog
from lib.config.settings import AppSettings
from lib.contracts.errors import AppError
from lib.gateways.completion import CompletionGateway
from lib.gateways.data import DataGateway
from lib.gateways.identity import IdentityVerifier
from lib.gateways.supabase_client import build_http_client, build_supabase_client
from lib.telemetry.logger import configure_logging, get_logger, log_event
from lib.utils.helpers import _utcnow_iso

from .routes import auth_router, chat_router, debug_router
from .security import build_limiter, enforce_rate_limit

logger = get_logger(__name__)

SERVICE_NAME = "HPZ Chatbot Backend"
SERVICE_VERSION = "1.0.0"


async def _rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    limiter = request.app.state.limiter
    current = request.state.view_rate_limit
    reset_at, _ = limiter.limiter.get_window_stats(current[0], *current[1])
    retry_in = max(0, math.ceil(reset_at - time.time()))
    log_event(logger, "rate_limited", level=logging.WARNING, path=request.url.path, retry_in=retry_in)
    response = JSONResponse(
        {
            "error": "Too many requests",
            "message": f"Rate limit exceeded. Try again in {retry_in} seconds.",
        },
        status_code=429,
    )
    return limiter._inject_headers(response, current)


async def _app_error(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(exc.to_body(), status_code=exc.status_code)


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"error": "Bad Request", "message": "Invalid request body"}, status_code=400)


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        return JSONResponse(
            {"error": "Not Found", "message": f"Route {url} not found."},
            status_code=404,
        )
    return JSONResponse(
        {"error": "Error", "message": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        {"error": "Internal Server Error", "message": "An unexpected error occurred."},
        status_code=500,
    )


def create_app(
    settings: AppSettings,
    *,
    identity: Optional[Any] = None,
    data: Optional[Any] = None,
    completion: Optional[Any] = None,
    catalog: Optional[CommandCatalog] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Parameters
    ----------
    settings:
        Validated process configuration.
    identity, data, completion:
        Gateway overrides.  Identity and data default to gateways over one
        supabase client built from ``settings``; completion defaults to the
        OpenAI-compatible provider client.
    catalog:
        Command catalog; defaults to the bundled ``catalog.yaml``.
    """

    configure_logging(settings.log_level)

    catalog = catalog or load_catalog()
    http_client = None
    if identity is None or data is None:
        http_client = build_http_client(settings)
        supabase = build_supabase_client(settings, http_client)
        identity = identity or IdentityVerifier(supabase)
        data = data or DataGateway(supabase)
    completion = completion or CompletionGateway.from_settings(settings)

    dispatcher = CommandDispatcher(
        default_handlers(data, catalog, timeout=settings.gateway_timeout_seconds),
        catalog,
    )
    router = MessageRouter(dispatcher, completion)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "%s starting (environment=%s, frontend=%s)",
            SERVICE_NAME,
            settings.environment,
            settings.frontend_url,
        )
        yield
        await completion.aclose()
        if http_client is not None:
            await http_client.aclose()
        logger.info("%s stopped", SERVICE_NAME)

    app = FastAPI(
        title=SERVICE_NAME,
        version=SERVICE_VERSION,
        lifespan=lifespan,
        dependencies=[Depends(enforce_rate_limit)],
    )
    app.state.settings = settings
    app.state.identity = identity
    app.state.data = data
    app.state.completion = completion
    app.state.dispatcher = dispatcher
    app.state.router = router
    app.state.limiter = build_limiter(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded)
    app.add_exception_handler(AppError, _app_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unexpected_error)

    @app.get("/health")
    async def health():
        return {
            "status": "OK",
            "timestamp": _utcnow_iso(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
        }

    app.include_router(auth_router)
    app.include_router(chat_router)
    if not settings.is_production:
        app.include_router(debug_router)

    return app


__all__ = ["create_app", "SERVICE_NAME", "SERVICE_VERSION"]
