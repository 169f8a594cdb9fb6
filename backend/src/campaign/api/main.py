"""FastAPI application for the redemption campaign."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from campaign import __version__
from campaign.api.rate_limit import limiter
from campaign.api.v1 import routers as v1_routers
from campaign.errors import CampaignError
from campaign.logging_config import bind_request_context, configure_logging, get_logger
from campaign.realtime.feed import feed
from campaign.settings import settings
from campaign.storage.db import db

logger = get_logger(__name__)

# Toast titles for errors raised by FastAPI itself or by auth dependencies
HTTP_ERROR_TITLES = {
    401: "Please Sign In",
    403: "Access Denied",
    404: "Not Found",
    405: "Not Allowed",
}


def validation_message(exc: RequestValidationError) -> str:
    """First validation problem as one readable sentence, e.g. "product_code: String should have at most 64 characters"."""
    errors = exc.errors()
    if not errors:
        return "The request could not be read."
    error = errors[0]
    field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
    return f"{field}: {error.get('msg', 'invalid value')}" if field else error.get("msg", "Invalid value")


# Long-lived SSE responses are logged when opened, not per request
_UNTIMED_PREFIXES = ("/api/v1/realtime/",)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and log each response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        bind_request_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        if not request.url.path.startswith(_UNTIMED_PREFIXES):
            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Security headers for the dashboard and landing page API."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), geolocation=(), microphone=(), payment=()"
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app_starting", env=settings.env, version=__version__)
    db.create_tables()

    yield

    logger.info("app_shutting_down", feed_subscribers=feed.subscriber_count)


def _cors_origins(is_production: bool) -> list[str]:
    origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]
    if is_production and "*" in origins:
        logger.error("cors_wildcard_blocked", message="Wildcard CORS not allowed in production")
        return []
    return origins


def create_app() -> FastAPI:
    """Build the application: middleware, error handlers and v1 routers."""
    configure_logging()
    is_production = settings.env == "production"

    app = FastAPI(
        title="Campaign Tracker API",
        description="Influencer code redemption campaign",
        version=__version__,
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        openapi_url=None if is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(is_production),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
        max_age=3600,
    )
    app.add_middleware(RequestContextMiddleware)

    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning("rate_limited", limit=str(exc.detail))
        return JSONResponse(
            status_code=429,
            content={"title": "Slow Down", "detail": "Too many requests. Please try again later."},
        )

    @app.exception_handler(CampaignError)
    async def campaign_error_handler(request: Request, exc: CampaignError):
        # Rendered by the client as a toast
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "title": HTTP_ERROR_TITLES.get(exc.status_code, "Request Failed"),
                "detail": exc.detail,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("request_invalid", errors=len(exc.errors()))
        return JSONResponse(
            status_code=422,
            content={"title": "Invalid Input", "detail": validation_message(exc)},
        )

    for router in v1_routers:
        app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        database_ok = db.ping()
        return JSONResponse(
            status_code=200 if database_ok else 503,
            content={
                "status": "healthy" if database_ok else "degraded",
                "version": __version__,
                "env": settings.env,
                "database": database_ok,
                "realtime": feed.status(),
            },
        )

    @app.get("/")
    async def root():
        return {
            "name": "Campaign Tracker API",
            "version": __version__,
            "docs": None if is_production else "/api/docs",
        }

    return app


app = create_app()
