"""FastAPI application with lifespan management."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from restaurant_hub.api.middleware import RequestLoggingMiddleware
from restaurant_hub.api.routes.comments import router as comments_router
from restaurant_hub.api.routes.scan import router as scan_router
from restaurant_hub.api.throttle import rate_limiter
from restaurant_hub.config import settings
from restaurant_hub.errors import (
    BackingStoreFailure,
    RateLimited,
    RestaurantHubError,
    ValidationFailure,
)
from restaurant_hub.logging_config import configure_logging
from restaurant_hub.scan_tokens.factory import create_scan_token_service
from restaurant_hub.scan_tokens.service import ScanTokenService
from restaurant_hub.storage.database import async_session, engine
from restaurant_hub.tenancy.rate_limiter import InMemoryRateLimiter

logger = structlog.get_logger()

CLEANUP_INTERVAL_SECONDS = 300


async def _cleanup_loop(limiter: InMemoryRateLimiter, tokens: ScanTokenService) -> None:
    """Periodic eviction of expired rate limit windows and stale scan tokens."""
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
        try:
            cleaned = await asyncio.to_thread(limiter.cleanup)
            if cleaned:
                logger.debug("rate_limiter_cleanup", keys_removed=cleaned)
            await tokens.purge_expired()
        except Exception:
            logger.exception("cleanup_loop_error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application startup and shutdown.

    Startup:
        - Create ScanTokenService on the configured backend.
        - Start the cleanup task.
    Shutdown:
        - Cancel cleanup task.
        - Dispose database engine (close connection pool).
    """
    configure_logging(
        environment=str(settings.environment),
        log_level=settings.log_level,
    )
    tokens = create_scan_token_service(settings, async_session)
    app.state.scan_token_service = tokens

    cleanup_task = asyncio.create_task(_cleanup_loop(rate_limiter, tokens))

    logger.info(
        "app_started",
        environment=str(settings.environment),
        root_domain=settings.root_domain,
        scan_token_backend=str(settings.scan_token_backend),
        scan_cookies_enabled=settings.scan_cookies_enabled,
    )
    yield

    cleanup_task.cancel()
    await engine.dispose()
    logger.info("app_stopped")


app = FastAPI(
    title="Restaurant Hub",
    description="Multi-tenant restaurant menus with scan-gated comments",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.is_dev,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
)


HEALTH_CHECK_TIMEOUT = 5.0


@app.get("/health")
async def health() -> JSONResponse:
    """Deep health check: verifies DB connectivity."""
    checks: dict[str, str] = {}
    overall = "ok"

    try:
        async with async_session() as session:
            await asyncio.wait_for(
                session.execute(text("SELECT 1")),
                timeout=HEALTH_CHECK_TIMEOUT,
            )
        checks["db"] = "ok"
    except (TimeoutError, OperationalError, SQLAlchemyError) as e:
        logger.warning("health_check_db_error", error=type(e).__name__)
        checks["db"] = f"error: {type(e).__name__}"
        overall = "degraded"
    except Exception as e:
        logger.error("health_check_db_unexpected", error=str(e), exc_info=True)
        checks["db"] = f"error: {type(e).__name__}"
        overall = "degraded"

    status_code = 200 if overall == "ok" else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall,
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(timespec="seconds"),
        },
    )


@app.exception_handler(RestaurantHubError)
async def domain_error_handler(
    request: Request,
    exc: RestaurantHubError,
) -> JSONResponse:
    """Map domain errors to their status and generic public message."""
    headers: dict[str, str] = {}
    if isinstance(exc, BackingStoreFailure):
        logger.error(
            "backing_store_failure",
            exc_info=exc,
            path=request.url.path,
            detail=str(exc),
        )
    else:
        logger.info(
            "request_rejected",
            error=type(exc).__name__,
            path=request.url.path,
            detail=str(exc),
        )
    if isinstance(exc, RateLimited):
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.public_message},
        headers=headers or None,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed input as ValidationFailure without echoing it back."""
    errors = exc.errors()
    in_body = any(tuple(err.get("loc", ()))[:1] == ("body",) for err in errors)
    logger.info(
        "request_validation_failed",
        path=request.url.path,
        locations=[".".join(str(p) for p in err.get("loc", ())) for err in errors],
    )
    failure = ValidationFailure(
        "Invalid request body" if in_body else "Invalid request parameters"
    )
    return await domain_error_handler(request, failure)


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Catch-all handler for unhandled exceptions."""
    logger.error("unhandled_exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.include_router(scan_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
