"""Exception handlers rendering every failure as ``{error, message, details?}``."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import get_logger
from app.modules.flashcards.errors import (
    GenerationErrorCode,
    GenerationServiceError,
    ServiceError,
)

logger = get_logger(__name__)

GENERIC_MESSAGE = "An unexpected error occurred"


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Any] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    body: dict[str, Any] = {"error": error, "message": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def validation_details(errors) -> list[dict[str, Any]]:
    """Keep the JSON-safe part of pydantic's error list."""
    return [
        {
            "loc": [str(p) for p in e.get("loc", ())],
            "msg": e.get("msg", ""),
            "type": e.get("type", ""),
        }
        for e in errors
    ]


def _generation_error(exc: GenerationServiceError) -> JSONResponse:
    if exc.code == GenerationErrorCode.AI_ERROR:
        label = (
            "Service unavailable" if exc.status_code == 503 else "AI processing error"
        )
        return error_response(exc.status_code, label, exc.message)
    if exc.code == GenerationErrorCode.VALIDATION_ERROR:
        return error_response(400, "Validation failed", exc.message, exc.details)
    return error_response(
        500,
        "Internal server error",
        "An error occurred while processing your request",
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info(
            "%s %s rejected: %s (%s)",
            request.method,
            request.url.path,
            exc.code.value,
            exc.status_code,
        )
    if isinstance(exc, GenerationServiceError):
        return _generation_error(exc)
    return error_response(exc.status_code, exc.code.value, exc.message, exc.details)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(
        400,
        "Validation failed",
        "Invalid request data",
        validation_details(exc.errors()),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    try:
        label = HTTPStatus(exc.status_code).phrase
    except ValueError:
        label = "Error"
    message = exc.detail if isinstance(exc.detail, str) else label
    return error_response(
        exc.status_code,
        label,
        message,
        None if isinstance(exc.detail, str) else exc.detail,
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path)
    return error_response(500, "Internal server error", GENERIC_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
