"""Translation of domain errors to HTTP errors."""

from fastapi import HTTPException, status

from examquiz.utils.validators import (
    ConflictError,
    ExamQuizError,
    NotFoundError,
    PermissionDeniedError,
)

_STATUS_BY_ERROR: list[tuple[type[ExamQuizError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
]


def http_error(error: ExamQuizError) -> HTTPException:
    """HTTPException carrying the error message; 400 unless mapped above."""
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=code, detail=error.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)
