"""
FastAPI application entry point.

Configures the application with routes, middleware, and settings.
"""
import logging
import os

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

# Initialize Sentry for error tracking (must be done early)
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from slowapi.errors import RateLimitExceeded

from attestcheck import __version__

SENTRY_SENSITIVE_KEYS = {"password", "token", "secret", "authorization", "api_key", "filebase64", "file_base64"}


def _filter_sensitive_data(event: dict) -> dict:
    """Filter credentials and document payloads from Sentry events."""

    def _redact(obj):
        if isinstance(obj, dict):
            return {
                k: "[REDACTED]" if any(s in k.lower() for s in SENTRY_SENSITIVE_KEYS) else _redact(v)
                for k, v in obj.items()
            }
        elif isinstance(obj, list):
            return [_redact(item) for item in obj]
        return obj

    if "request" in event and "data" in event["request"]:
        event["request"]["data"] = _redact(event["request"]["data"])
    if "extra" in event:
        event["extra"] = _redact(event["extra"])

    return event


sentry_dsn = os.getenv("SENTRY_DSN")
if sentry_dsn:
    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=os.getenv("ENVIRONMENT", "development"),
        release=os.getenv("APP_VERSION", __version__),
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1")),
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoggingIntegration(level=None, event_level="ERROR"),
        ],
        send_default_pii=False,
        before_send=lambda event, hint: _filter_sensitive_data(event),
    )


from attestcheck.api.routes import attestation, monitoring
from attestcheck.config import get_settings
from attestcheck.database import init_db
from attestcheck.exceptions import AttestCheckError
from attestcheck.middleware.logging import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    add_correlation_id_processor,
    redact_sensitive_processor,
)
from attestcheck.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from attestcheck.middleware.security import SecurityHeadersMiddleware, get_cors_origins

settings = get_settings()

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        add_correlation_id_processor,
        redact_sensitive_processor,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

app = FastAPI(
    title="AttestCheck API",
    description="""
## Insurance Attestation Verification API

Checks the insurance attestation supplied with a construction quote against
the company that issued the quote.

- **Extraction**: reads insurer, policy, coverage dates and covered activities from the document
- **Comparison**: company name, SIRET, address, validity period and activity coverage
- **Scoring**: green / amber / red verdict per attestation, reconciled across the
  decennial and professional-liability attestations of an analysis
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Attestations", "description": "Attestation analysis and stored results"},
        {"name": "Monitoring", "description": "Health checks"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type", "x-correlation-id"],
    expose_headers=["X-Correlation-ID", "Retry-After"],
)

app.add_middleware(SecurityHeadersMiddleware)

# Order matters: correlation ID first
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.include_router(attestation.router, prefix="/api/v1", tags=["Attestations"])
app.include_router(monitoring.router, tags=["Monitoring"])


@app.exception_handler(AttestCheckError)
async def attestcheck_exception_handler(request: Request, exc: AttestCheckError):
    """Handle all AttestCheck errors with the standard error body."""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        "attestcheck_error",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        path=str(request.url.path),
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with the standard error body."""
    sentry_sdk.capture_exception(exc)

    logger.exception(
        "unhandled_error",
        error_type=type(exc).__name__,
        message=str(exc),
        path=str(request.url.path),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc) or "Internal server error",
            "error_code": "ATT-999",
            "details": {"error_type": type(exc).__name__} if settings.debug else {},
        },
    )


@app.on_event("startup")
async def startup_event() -> None:
    """Initialize application on startup."""
    logger.info("Starting AttestCheck API", debug=settings.debug)

    if sentry_dsn:
        logger.info("Sentry error tracking enabled", environment=os.getenv("ENVIRONMENT", "development"))
    else:
        logger.warning("Sentry error tracking not configured (SENTRY_DSN not set)")

    if not settings.extraction_api_key:
        logger.warning("Extraction API key not configured, attestations will read as unreadable")

    init_db()

    logger.info("AttestCheck API started successfully")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """Cleanup on application shutdown."""
    logger.info("Shutting down AttestCheck API")
