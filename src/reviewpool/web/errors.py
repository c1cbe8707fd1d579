"""Translation of Reviewpool errors into HTTP error responses.

Every error body has the shape ``{"error": {"code": ..., "message": ...}}``.
Business errors keep their code; not-found errors share one generic
message. Connection and lock failures of the store map to 503 so clients
know a retry may succeed, other driver errors map to 500, and an expired
operation deadline maps to 504.

Example:
    >>> from fastapi import FastAPI
    >>> from reviewpool.web.errors import register_exception_handlers
    >>>
    >>> app = FastAPI()
    >>> register_exception_handlers(app)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import status as http_status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

from reviewpool.database.connection import is_transient_failure
from reviewpool.errors import (
    InternalError,
    InvalidArgumentError,
    NoCandidateError,
    NotAssignedError,
    PRExistsError,
    PRMergedError,
    PRNotFoundError,
    ReviewpoolError,
    TeamExistsError,
    TeamNotFoundError,
    UserNotFoundError,
)
from reviewpool.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "resource not found"

STATUS_BY_ERROR: dict[type[ReviewpoolError], int] = {
    InvalidArgumentError: http_status.HTTP_400_BAD_REQUEST,
    UserNotFoundError: http_status.HTTP_404_NOT_FOUND,
    TeamNotFoundError: http_status.HTTP_404_NOT_FOUND,
    PRNotFoundError: http_status.HTTP_404_NOT_FOUND,
    TeamExistsError: http_status.HTTP_400_BAD_REQUEST,
    PRExistsError: http_status.HTTP_409_CONFLICT,
    PRMergedError: http_status.HTTP_409_CONFLICT,
    NotAssignedError: http_status.HTTP_409_CONFLICT,
    NoCandidateError: http_status.HTTP_409_CONFLICT,
}


def error_body(code: str, message: str) -> dict[str, dict[str, str]]:
    """Build the JSON error envelope."""
    return {"error": {"code": code, "message": message}}


def status_for(exc: ReviewpoolError) -> int:
    """Return the HTTP status for a business error (500 if unmapped)."""
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return http_status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_reviewpool_error(request: Request, exc: ReviewpoolError) -> JSONResponse:
    status_code = status_for(exc)
    message = NOT_FOUND_MESSAGE if status_code == http_status.HTTP_404_NOT_FOUND else exc.message

    if status_code >= http_status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("request_internal_error", path=request.url.path, error=exc.message)
    else:
        logger.info(
            "request_rejected",
            path=request.url.path,
            kind=exc.kind,
            status_code=status_code,
        )
    return JSONResponse(status_code=status_code, content=error_body(exc.code, message))


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies and parameters become INVALID_ARGUMENT."""
    logger.info("request_invalid", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=http_status.HTTP_400_BAD_REQUEST,
        content=error_body(InvalidArgumentError.code, "invalid body"),
    )


async def handle_store_error(request: Request, exc: DBAPIError) -> JSONResponse:
    """Retryable store failures become 503; any other driver error is a 500."""
    if is_transient_failure(exc):
        logger.error(
            "request_store_unavailable",
            path=request.url.path,
            error=str(exc.orig),
        )
        return JSONResponse(
            status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_body("UNAVAILABLE", "store unavailable"),
        )

    logger.error(
        "request_store_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc.orig),
    )
    return JSONResponse(
        status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(InternalError.code, InternalError.default_message),
    )


async def handle_timeout(request: Request, exc: TimeoutError) -> JSONResponse:
    logger.warning("request_deadline_exceeded", path=request.url.path)
    return JSONResponse(
        status_code=http_status.HTTP_504_GATEWAY_TIMEOUT,
        content=error_body("DEADLINE_EXCEEDED", "deadline exceeded"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error translators on an application."""
    app.add_exception_handler(ReviewpoolError, handle_reviewpool_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(DBAPIError, handle_store_error)  # type: ignore[arg-type]
    app.add_exception_handler(TimeoutError, handle_timeout)  # type: ignore[arg-type]
