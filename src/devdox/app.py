"""FastAPI application factory."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from devdox.api.git_tokens import router as git_tokens_router
from devdox.api.health import router as health_router
from devdox.api.version import router as version_router
from devdox.config import Settings
from devdox.db import init_db
from devdox.errors import (
    SECURITY_HEADERS,
    error_response,
    register_error_handlers,
    unexpected_error_response,
)
from devdox.logging_config import configure_logging
from devdox.ratelimit import RateLimiter

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("devdox.http")

RATE_LIMITED_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle: open and close the database."""
    settings: Settings = app.state.settings
    app.state.db = await init_db(settings.db_path)

    if not settings.master_key_configured:
        logger.warning(
            "ENCRYPTION_MASTER_KEY is missing or too short; git token storage is disabled"
        )
    logger.info("DevDox API %s started (%s)", settings.api_version, settings.env)

    yield

    await app.state.db.close()
    app.state.db = None


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings.from_env()
    configure_logging(settings)

    app = FastAPI(title="DevDox API", version=settings.api_version, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    rate_limiter = RateLimiter(settings.rate_limit)
    app.state.rate_limiter = rate_limiter

    def reject_early(request: Request) -> Response | None:
        """Oversized bodies get 413; /api clients over the rate limit get 429."""
        length = request.headers.get("content-length")
        if length is not None:
            if not length.isdigit():
                return error_response(400, "Invalid Content-Length header")
            if int(length) > settings.max_body_bytes:
                return error_response(413, "Request body too large")

        if request.url.path.startswith(RATE_LIMITED_PREFIX):
            client_key = request.client.host if request.client else "unknown"
            if not rate_limiter.hit(client_key):
                response = error_response(
                    429, "Too many requests, please try again later."
                )
                retry_after = rate_limiter.reset_after(client_key) - int(time.time())
                response.headers["Retry-After"] = str(max(retry_after, 0))
                return response
        return None

    @app.middleware("http")
    async def security_and_access_log(request: Request, call_next) -> Response:
        start = time.perf_counter()
        response = reject_early(request)
        if response is None:
            try:
                response = await call_next(request)
            except Exception as exc:
                response = unexpected_error_response(request, exc, settings)
        response.headers.update(SECURITY_HEADERS)
        if settings.env != "test":
            access_logger.info(
                "%s %s %d %.1fms",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - start) * 1000,
            )
        return response

    register_error_handlers(app, settings)

    app.include_router(health_router)
    app.include_router(version_router)
    app.include_router(git_tokens_router)

    return app
