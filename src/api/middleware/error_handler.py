"""Error handling middleware and exception handlers."""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from src.commons.telemetry.logger import get_logger
from src.domain.exceptions import (
    DocumentStoreError,
    DomainException,
    InvalidEventError,
    InvalidStatusTransitionError,
    PathParseError,
    VideoRecordNotFoundError,
)

logger = get_logger(__name__)


class APIError(Exception):
    """Base API error with code and details."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            code: Error code for clients.
            message: Human-readable error message.
            status_code: HTTP status code.
            details: Additional error details.
        """
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def _build_error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build standardized error response."""
    request_id = getattr(request.state, "request_id", "unknown")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
            }
        },
    )


def _handle_exception(  # noqa: PLR0911
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle exception and return appropriate error response."""
    if isinstance(exc, APIError):
        logger.warning(
            f"API error: {exc.code}",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "details": exc.details,
            },
        )
        return _build_error_response(
            request=request,
            code=exc.code,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details,
        )

    if isinstance(exc, InvalidEventError):
        logger.warning(f"Invalid event payload: {exc}")
        return _build_error_response(
            request=request,
            code="INVALID_EVENT",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, PathParseError):
        logger.warning(f"Invalid object path: {exc}")
        return _build_error_response(
            request=request,
            code="INVALID_OBJECT_PATH",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"object_path": exc.object_path},
        )

    if isinstance(exc, VideoRecordNotFoundError):
        logger.warning(f"Video record not found: {exc}")
        return _build_error_response(
            request=request,
            code="VIDEO_NOT_FOUND",
            message=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
            details={"parent_id": exc.parent_id, "video_id": exc.video_id},
        )

    if isinstance(exc, InvalidStatusTransitionError):
        logger.warning(f"Invalid status transition: {exc}")
        return _build_error_response(
            request=request,
            code="INVALID_STATUS_TRANSITION",
            message=str(exc),
            status_code=status.HTTP_409_CONFLICT,
        )

    if isinstance(exc, DocumentStoreError):
        # 5xx so the bucket notification is redelivered
        logger.error(f"Document store error: {exc}")
        return _build_error_response(
            request=request,
            code="DOCUMENT_STORE_ERROR",
            message=str(exc),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"collection": exc.collection, "document_id": exc.document_id},
        )

    if isinstance(exc, DomainException):
        logger.warning(f"Domain error: {exc}")
        return _build_error_response(
            request=request,
            code="DOMAIN_ERROR",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    # Catch-all for unexpected errors
    logger.exception(f"Unexpected error: {exc}")
    return _build_error_response(
        request=request,
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Middleware to catch and format all exceptions."""
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)
