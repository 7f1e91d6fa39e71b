"""Consistent JSON error bodies: ``{"error": ..., "details": ...}``.

Usage:
    from libs.common.error_handler import add_exception_handlers

    add_exception_handlers(app, StoreError)

Domain error classes passed in must expose ``status_code``, ``message`` and
``details``.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)


def error_response(status_code: int, message, details=None, headers=None):
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "details": details},
        headers=headers,
    )


def add_exception_handlers(app: FastAPI, *domain_errors: type[Exception]) -> None:
    """Register handlers for domain errors, HTTP errors and anything unhandled."""

    async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s on %s: %s",
                type(exc).__name__,
                request.url.path,
                exc.message,
                exc_info=exc.__cause__ or exc,
            )
        else:
            logger.info("%s: %s", type(exc).__name__, exc.message)
        return error_response(exc.status_code, exc.message, exc.details)

    for error_type in domain_errors:
        app.add_exception_handler(error_type, domain_error_handler)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(
            exc.status_code, exc.detail, headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(
            500, "Internal server error", {"request_id": get_request_id()}
        )
