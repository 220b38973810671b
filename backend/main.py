# ruff: noqa: E402
# E402 disabled: load_dotenv() must run before other imports for Sentry DSN

import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import sentry_sdk
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from core.correlation import (
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from core.logging_config import configure_logging
from core.scheduler import start_background_scheduler
from core.sentry_config import init_sentry
from helpers.rate_limiter import limiter
from models.config import settings
from models.exceptions import AuthenticationException, DomainException
from repositories.database import Base, engine
from routers import (
    admin_messages_router,
    admin_router,
    analytics_router,
    appraisals_router,
    auth_router,
    ban_router,
    issues_router,
    profile_router,
    public_router,
    recaptcha_router,
    suggestions_router,
    theme_router,
)

# Initialize Sentry BEFORE app creation
init_sentry()

# Configure logging with Loguru
configure_logging(settings.ENVIRONMENT)


def _scheduler_wanted() -> bool:
    return settings.SCHEDULER_ENABLED and settings.ENVIRONMENT != "test"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Optionally create tables when `AUTO_CREATE_DB` is enabled (development).
    - Own the background scheduler handle (weekly digest, message auto-close)
      and stop it on shutdown.
    """
    if settings.AUTO_CREATE_DB:
        logger.info(
            "AUTO_CREATE_DB enabled; creating database tables via SQLAlchemy create_all()"
        )
        Base.metadata.create_all(bind=engine)
    else:
        logger.info("AUTO_CREATE_DB disabled; skipping automatic create_all()")

    handle = start_background_scheduler() if _scheduler_wanted() else None
    app.state.scheduler = handle

    try:
        yield
    finally:
        if handle is not None:
            handle.stop()
        app.state.scheduler = None


app = FastAPI(title=f"{settings.APP_NAME} API", lifespan=lifespan)

# Attach rate limiter to app
app.state.limiter = limiter


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Inject correlation ID into request context and Sentry."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # Reuse the frontend's ID when it sends one
        correlation_id = (
            request.headers.get("X-Correlation-ID") or generate_correlation_id()
        )
        set_correlation_id(correlation_id)
        sentry_sdk.set_tag("correlation_id", correlation_id)

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests with performance monitoring."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()

        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request: {request.method} {request.url.path} from {client_host}")

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s"
        )

        if duration > settings.SLOW_REQUEST_THRESHOLD:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {duration:.2f}s (threshold: {settings.SLOW_REQUEST_THRESHOLD}s)"
            )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


# Middleware runs in reverse order of registration
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

# In development, allow all origins for mobile/network testing
cors_origins = ["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True if settings.ENVIRONMENT != "development" else False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)

# Submitted images
uploads_dir = Path(settings.UPLOAD_DIR)
uploads_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(uploads_dir)), name="uploads")


def _error_body(detail: str, code: str, correlation_id: str) -> dict:
    return {"detail": detail, "code": code, "correlation_id": correlation_id}


# Global unhandled exception handler (returns generic 500 and logs details)
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions with full Sentry capture."""
    correlation_id = get_correlation_id() or generate_correlation_id()

    sentry_sdk.set_tag("correlation_id", correlation_id)
    sentry_sdk.capture_exception(exc)

    # repr() keeps braces in the message away from loguru's formatter
    logger.exception(
        f"Unhandled exception: {exc!r}",
        correlation_id=correlation_id,
        path=str(request.url.path),
        method=request.method,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error", "INTERNAL_ERROR", correlation_id),
    )


@app.exception_handler(DomainException)
async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Map every domain exception to its status code and stable error code."""
    sentry_sdk.set_tag("correlation_id", exc.correlation_id)
    sentry_sdk.set_tag("exception_type", exc.__class__.__name__)

    # Server-side faults and auth failures are worth an event
    if exc.status_code >= 500 or isinstance(exc, AuthenticationException):
        sentry_sdk.capture_exception(exc)

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{exc.code}: {exc.message}",
        correlation_id=exc.correlation_id,
        exception_type=exc.__class__.__name__,
        path=str(request.url.path),
    )

    headers = (
        {"WWW-Authenticate": "Bearer"}
        if isinstance(exc, AuthenticationException)
        else None
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.code, exc.correlation_id),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies and parameters as VALIDATION_ERROR."""
    correlation_id = get_correlation_id() or generate_correlation_id()
    problems = []
    for error in exc.errors():
        location = ".".join(
            str(part) for part in error.get("loc", ()) if part not in ("body", "query")
        )
        message = error.get("msg", "Invalid value")
        problems.append(f"{location}: {message}" if location else message)
    detail = "; ".join(problems) or "Invalid request"

    logger.warning(
        f"Request validation failed: {detail}",
        correlation_id=correlation_id,
        path=str(request.url.path),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(detail, "VALIDATION_ERROR", correlation_id),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    correlation_id = get_correlation_id() or generate_correlation_id()
    logger.warning(
        f"Rate limit exceeded: {exc.detail}", path=str(request.url.path)
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_body(
            "Too many requests. Please try again later.",
            "RATE_LIMITED",
            correlation_id,
        ),
    )


app.include_router(auth_router.router, prefix="/api")
app.include_router(profile_router.router, prefix="/api")
app.include_router(issues_router.router, prefix="/api")
app.include_router(suggestions_router.router, prefix="/api")
app.include_router(public_router.router, prefix="/api")
app.include_router(appraisals_router.router, prefix="/api")
app.include_router(admin_router.router, prefix="/api")
app.include_router(admin_messages_router.router, prefix="/api")
app.include_router(analytics_router.router, prefix="/api")
app.include_router(recaptcha_router.router, prefix="/api")
app.include_router(theme_router.router, prefix="/api")
app.include_router(ban_router.router, prefix="/api")


@app.get("/")
def root() -> dict:
    return {"message": f"Welcome to {settings.APP_NAME} API"}


@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}
