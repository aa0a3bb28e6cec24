"""Translation of service errors into HTTP problem responses."""

from typing import Optional, Tuple, Type

from fastapi import HTTPException, Request, status

from viberide.core.exceptions import (
    AppError,
    ConcurrencyConflictError,
    ConversionError,
    DatabaseError,
    IllegalTransitionError,
    ItineraryNotCompletedError,
    NotFoundError,
    TooManyPointsError,
    ValidationError,
)
from viberide.utils.logging import get_logger
from viberide.utils.responses import create_error_detail

LOGGER = get_logger(__name__)

# First match wins
ERROR_STATUS: Tuple[Tuple[Type[AppError], int, str], ...] = (
    (ItineraryNotCompletedError, status.HTTP_422_UNPROCESSABLE_ENTITY, "Itinerary Not Completed"),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid Route"),
    (TooManyPointsError, status.HTTP_422_UNPROCESSABLE_ENTITY, "Too Many Points"),
    (ConversionError, status.HTTP_500_INTERNAL_SERVER_ERROR, "Export Failed"),
    (DatabaseError, status.HTTP_503_SERVICE_UNAVAILABLE, "Database Unavailable"),
    (ConcurrencyConflictError, status.HTTP_409_CONFLICT, "Generation In Progress"),
    (IllegalTransitionError, status.HTTP_409_CONFLICT, "Illegal Status Transition"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not Found"),
)


def http_error(error: AppError, request: Optional[Request] = None) -> HTTPException:
    """Build the HTTPException for a service error."""
    status_code, title = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Error"
    for error_cls, code, error_title in ERROR_STATUS:
        if isinstance(error, error_cls):
            status_code, title = code, error_title
            break

    if status_code >= 500:
        LOGGER.error(f"{title}: {error.message}", exc_info=error)
    error_detail = create_error_detail(
        title=title,
        status=status_code,
        detail=error.message,
        request=request,
    )
    return HTTPException(status_code=status_code, detail=error_detail.model_dump(mode="json"))
