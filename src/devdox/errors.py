"""Application errors and the JSON error envelope returned by every route."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from devdox.config import Settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """An operational error with an HTTP status code attached."""

    def __init__(self, message: str, status_code: int, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def error_response(status_code: int, message: str, details: Any = None) -> JSONResponse:
    """Build an error envelope response."""
    return JSONResponse(status_code=status_code, content=_error_body(message, details))


def _error_body(message: str, details: Any = None) -> dict:
    body: dict[str, Any] = {"status": "error", "message": message}
    if details is not None:
        body["details"] = details
    return body


def _log(request: Request, status_code: int, message: str, exc: Exception) -> None:
    if status_code >= 500:
        logger.error(
            "%s %s -> %d: %s", request.method, request.url.path, status_code, message,
            exc_info=exc,
        )
    else:
        logger.warning(
            "%s %s -> %d: %s", request.method, request.url.path, status_code, message
        )


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Attach handlers that normalize all errors into the error envelope."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        _log(request, exc.status_code, exc.message, exc)
        return JSONResponse(
            status_code=exc.status_code, content=_error_body(exc.message, exc.details)
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Can't find {request.url.path} on this server!"
        else:
            message = str(exc.detail)
        _log(request, exc.status_code, message, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(p) for p in err["loc"] if p != "body"),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        _log(request, 400, "Validation error", exc)
        return JSONResponse(
            status_code=400, content=_error_body("Validation error", details)
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        response = unexpected_error_response(request, exc, settings)
        response.headers.update(SECURITY_HEADERS)
        return response


def unexpected_error_response(
    request: Request, exc: Exception, settings: Settings
) -> JSONResponse:
    """500 envelope for an unhandled exception. Hides the message in production."""
    message = "Something went wrong" if settings.is_production else str(exc)
    _log(request, 500, message, exc)
    return error_response(500, message)
