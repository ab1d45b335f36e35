"""Builders for the structured error payloads returned by the API.

Every payload carries the active request id and a UTC timestamp so clients can
correlate a rejection with the server log line that explains it.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from ufl_records.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from ufl_records.services.records_service import (
    CommandRejectedError,
    DuplicateFighterError,
    FighterNotFoundError,
    FightNotFoundError,
)
from ufl_records.utils.request_context import get_request_id

__all__ = [
    "build_error_response",
    "build_validation_error_response",
    "classify_rejection",
]


def _current_timestamp() -> datetime:
    return datetime.now(UTC)


def classify_rejection(exc: CommandRejectedError) -> tuple[ErrorType, int]:
    """Map a rejected command onto its error category and HTTP status."""

    if isinstance(exc, DuplicateFighterError):
        return ErrorType.DUPLICATE_ERROR, 409
    if isinstance(exc, (FighterNotFoundError, FightNotFoundError)):
        return ErrorType.NOT_FOUND, 404
    return ErrorType.VALIDATION_ERROR, 422


def build_validation_error_response(
    *,
    errors: Sequence[ValidationErrorDetail],
    message: str,
    detail: str,
    status_code: int,
    path: str,
    error_type: ErrorType = ErrorType.VALIDATION_ERROR,
    request_id: str | None = None,
) -> ValidationErrorResponse:
    """Construct a ``ValidationErrorResponse`` with one entry per failing field."""

    return ValidationErrorResponse(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        errors=list(errors),
    )


def build_error_response(
    *,
    error_type: ErrorType,
    message: str,
    detail: str,
    status_code: int,
    path: str,
    request_id: str | None = None,
) -> ErrorResponse:
    return ErrorResponse(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
    )
