"""FastAPI application factory.

App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis pool, database
engine). Service collaborators that hold configuration (token issuer,
mailer) are built here and kept on app.state; routes reach them through
dependencies. Exception handlers turn every failure into the
{"success": false, "error": ...} envelope.
"""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from docvault import __version__
from docvault.api import api_router
from docvault.auth.jwt import TokenIssuer
from docvault.config import Settings, settings
from docvault.errors import AppError
from docvault.schemas.common import fail
from docvault.services.mailer import build_mailer

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    """Console output in development, JSON lines everywhere else."""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.environment == "development"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if settings.debug else logging.INFO
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "docvault.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        verification_strategy=settings.verification_strategy,
        mailer=type(app.state.mailer).__name__,
    )

    from docvault.db.redis import close_redis, init_redis
    try:
        await init_redis()
        logger.info("docvault.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("docvault.redis_unavailable", error=str(e))
        # Redis is optional; rate limiting is skipped without it

    yield

    logger.info("docvault.shutdown")
    await close_redis()

    from docvault.db.engine import engine
    await engine.dispose()


# ─── Exception handlers ─────────────────────────────────

_LOC_SOURCES = ("body", "query", "path", "header")


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=fail(exc.message),
        headers=exc.headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request validation failures are 400s with a readable first error."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in _LOC_SOURCES)
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=fail(message))


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=fail(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "request.unhandled_error",
        method=request.method,
        path=request.url.path,
    )
    message = "Internal server error"
    if settings.debug:
        message = f"{message}: {exc}"
    return JSONResponse(status_code=500, content=fail(message))


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(settings)

    app = FastAPI(
        title="docvault",
        description="Personal document and smart-contract vault",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.token_issuer = TokenIssuer.from_settings(settings)
    app.state.mailer = build_mailer(settings)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from docvault.middleware.rate_limit import RateLimitMiddleware
    from docvault.middleware.request_id import RequestIdMiddleware
    from docvault.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        SecurityHeadersMiddleware,
        auth_prefix=f"{settings.api_prefix}/auth",
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
        prefix=settings.api_prefix,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: docvault.main:app)
app = create_app()
