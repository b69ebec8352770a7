"""Shared errors and input validation helpers.

Domain modules raise the errors defined here; the web layer maps them to
HTTP status codes and the CLI prints them.

Functions:
- validate_email(email) -> bool
- require_role(learner, allowed) -> None: raise PermissionDeniedError
"""

from __future__ import annotations

import re
from typing import Iterable

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ExamQuizError(Exception):
    """Base class for domain errors with a user-facing message."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ExamQuizError):
    """Raised when a referenced record does not exist."""


class LearnerNotFoundError(NotFoundError):
    """Raised when no learner has the given uid."""

    def __init__(self, uid: str, message: str = "Learner not found"):
        self.uid = uid
        super().__init__(message)


class QuestionNotFoundError(NotFoundError):
    """Raised when no question has the given id."""

    def __init__(self, question_id: int):
        self.question_id = question_id
        super().__init__("Question not found")


class PermissionDeniedError(ExamQuizError):
    """Raised when a learner's role does not allow the operation."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ConflictError(ExamQuizError):
    """Raised when a uniqueness rule would be violated."""


class ValidationError(ExamQuizError):
    """Raised when input fails a business rule."""


def validate_email(email: str) -> bool:
    """Check that an email address looks valid. Empty is valid (optional field)."""
    if not email:
        return True
    return bool(EMAIL_PATTERN.match(email.strip()))


def require_role(role: str, allowed: Iterable[str]) -> None:
    """Raise PermissionDeniedError unless role is one of allowed."""
    if role not in set(allowed):
        raise PermissionDeniedError()
