"""
Mapping from application exceptions to JSON error responses.

Every error body has the shape ``{"error": message}``.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..utils.exceptions import (
    ConfigurationError,
    LLMProviderError,
    NotFoundError,
    StageboardError,
    ValidationError,
    sanitize_error_message,
)

log = logging.getLogger(__name__)

INVALID_BODY_MESSAGE = "Invalid request body"
UPSTREAM_FAILURE_MESSAGE = "AI request failed"
INTERNAL_ERROR_MESSAGE = "Internal server error"

STATUS_CODES = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConfigurationError, 500),
    (LLMProviderError, 502),
)


def status_for(error: StageboardError) -> int:
    for error_type, status in STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 500


def public_message(error: StageboardError) -> str:
    """Message safe to return to clients; upstream details stay in the logs."""
    if isinstance(error, LLMProviderError):
        return UPSTREAM_FAILURE_MESSAGE
    if status_for(error) == 500 and not isinstance(error, ConfigurationError):
        return INTERNAL_ERROR_MESSAGE
    return error.message


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_stageboard_error(request: Request, exc: StageboardError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        log.error(f"{request.method} {request.url.path} failed: {sanitize_error_message(exc.message)}")
    else:
        log.info(f"{request.method} {request.url.path} -> {status}: {exc.message}")
    return error_response(status, public_message(exc))


async def handle_invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    log.info(f"{request.method} {request.url.path} rejected: {len(exc.errors())} validation error(s)")
    return error_response(400, INVALID_BODY_MESSAGE)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.error(f"{request.method} {request.url.path} crashed: {sanitize_error_message(str(exc))}", exc_info=exc)
    return error_response(500, INTERNAL_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StageboardError, handle_stageboard_error)
    app.add_exception_handler(RequestValidationError, handle_invalid_body)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
