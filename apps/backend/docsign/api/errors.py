"""Translate service errors into HTTP responses."""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from docsign.core.logging import get_logger
from docsign.services.errors import (
    Forbidden,
    InvalidState,
    NotFound,
    NotReady,
    OutOfSequence,
    SigningError,
    ValidationError,
)

LOGGER = get_logger(__name__)

STATUS_CODES: dict[type[SigningError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    Forbidden: status.HTTP_403_FORBIDDEN,
    OutOfSequence: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidState: status.HTTP_409_CONFLICT,
    NotReady: status.HTTP_409_CONFLICT,
}


def status_code_for(exc: SigningError) -> int:
    for error_type, code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def signing_error_handler(request: Request, exc: SigningError) -> JSONResponse:
    """Render a service error with its code and any reasons."""
    status_code = status_code_for(exc)
    LOGGER.info(
        "%s %s -> %s %s",
        request.method,
        request.url.path,
        status_code,
        exc.code,
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "code": exc.code,
            "reasons": getattr(exc, "reasons", []),
            "waiting_for": getattr(exc, "waiting_for", []),
        },
    )
