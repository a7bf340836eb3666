"""
Error taxonomy and the FastAPI handlers that render it.

Every error leaves the service as ``{"error": "<message>"}``.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

logger = logging.getLogger(__name__)


class SplitterError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(SplitterError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(SplitterError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(SplitterError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(SplitterError):
    status_code = status.HTTP_409_CONFLICT


class UpstreamError(SplitterError):
    """OCR or LLM call failed. Callers pick 400 or 500."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ParseError(SplitterError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InternalError(SplitterError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def splitter_error_handler(request: Request, exc: SplitterError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return error_response(exc.status_code, exc.message)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid input: {location} {first.get('msg', '')}".strip()
    else:
        message = "Invalid input"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return error_response(
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Rate limit exceeded. Please try again later.",
    )


async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SplitterError, splitter_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, global_exception_handler)
