"""Subject discussion threads and their messages."""

from __future__ import annotations

import structlog

from examquiz.db.reference_repository import get_subject_by_id
from examquiz.db.threads_repository import (
    MessageRecord,
    ThreadRecord,
    delete_thread as db_delete_thread,
    get_messages,
    get_reported_messages,
    get_thread_by_id,
    get_threads_by_subject,
    insert_message,
    insert_thread,
    set_message_reported,
)
from examquiz.utils.validators import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

ANONYMOUS = "Anonymous"


def get_thread(thread_id: int) -> ThreadRecord:
    thread = get_thread_by_id(thread_id)
    if thread is None:
        raise NotFoundError("Thread not found")
    return thread


def create_thread(
    title: str,
    subject_id: int,
    created_by_id: str,
    created_by_name: str | None = None,
    grade: int | None = None,
    initial_message: str | None = None,
) -> ThreadRecord:
    """Open a thread on a subject, optionally with a first message.

    Raises:
        ValidationError: If title or subject is missing
        NotFoundError: If the subject does not exist
    """
    if not (title or "").strip() or not subject_id:
        raise ValidationError("Title and subject_id are required")
    if get_subject_by_id(subject_id) is None:
        raise NotFoundError("Subject not found")

    name = created_by_name or ANONYMOUS
    thread_id = insert_thread(title.strip(), subject_id, created_by_id, name, grade=grade)
    if initial_message and initial_message.strip():
        insert_message(thread_id, created_by_id, name, initial_message.strip())

    logger.info("thread.created", thread_id=thread_id, subject_id=subject_id)
    return get_thread(thread_id)


def list_threads(subject_id: int) -> list[ThreadRecord]:
    """Threads of a subject, newest first."""
    return get_threads_by_subject(subject_id)


def post_message(
    thread_id: int,
    author_uid: str,
    text: str,
    user_name: str | None = None,
) -> MessageRecord:
    """Add a message to a thread."""
    if not (text or "").strip():
        raise ValidationError("Message text is required")
    get_thread(thread_id)

    message = insert_message(thread_id, author_uid, user_name or ANONYMOUS, text.strip())
    logger.info("message.posted", thread_id=thread_id, message_id=message.id)
    return message


def list_messages(thread_id: int) -> list[MessageRecord]:
    """Messages of a thread, oldest first."""
    get_thread(thread_id)
    return get_messages(thread_id)


def report_message(message_id: int) -> None:
    if not set_message_reported(message_id):
        raise NotFoundError("Message not found")
    logger.info("message.reported", message_id=message_id)


def reported_messages() -> list[MessageRecord]:
    return get_reported_messages()


def delete_thread(thread_id: int) -> None:
    """Delete a thread and its messages."""
    if not db_delete_thread(thread_id):
        raise NotFoundError("Thread not found")
    logger.info("thread.deleted", thread_id=thread_id)
