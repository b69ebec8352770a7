"""Repository functions for discussion threads and messages."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from examquiz.db.database import get_db, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class MessageRecord:
    """Message record from database."""

    id: int
    thread_id: int
    author_uid: str
    user_name: str
    text: str
    reported: bool
    created_at: str


@dataclass
class ThreadRecord:
    """Thread record with message summary."""

    id: int
    title: str
    subject_id: int
    subject_name: str
    grade: int | None
    created_by_id: str
    created_by_name: str
    created_at: str
    message_count: int = 0
    last_message: MessageRecord | None = None


def insert_thread(
    title: str,
    subject_id: int,
    created_by_id: str,
    created_by_name: str,
    grade: int | None = None,
) -> int:
    """Insert a thread and return its id."""
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO thread (title, subject_id, grade, created_by_id, created_by_name, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (title, subject_id, grade, created_by_id, created_by_name, utc_now()),
        )

    logger.debug("threads.inserted", thread_id=cursor.lastrowid, subject_id=subject_id)
    return cursor.lastrowid


_THREAD_SELECT = """
    SELECT t.*, s.name AS subject_name,
           (SELECT COUNT(*) FROM message m WHERE m.thread_id = t.id) AS message_count
    FROM thread t JOIN subject s ON s.id = t.subject_id
"""


def get_thread_by_id(thread_id: int) -> ThreadRecord | None:
    """Get a thread with its message summary."""
    with get_db() as conn:
        row = conn.execute(_THREAD_SELECT + " WHERE t.id = ?", (thread_id,)).fetchone()

    if row is None:
        return None
    thread = _row_to_thread(row)
    thread.last_message = get_last_message(thread_id)
    return thread


def get_threads_by_subject(subject_id: int) -> list[ThreadRecord]:
    """Threads of a subject, newest first, each with its last message."""
    with get_db() as conn:
        rows = conn.execute(
            _THREAD_SELECT + " WHERE t.subject_id = ? ORDER BY t.created_at DESC, t.id DESC",
            (subject_id,),
        ).fetchall()

    threads = [_row_to_thread(r) for r in rows]
    for thread in threads:
        thread.last_message = get_last_message(thread.id)
    return threads


def delete_thread(thread_id: int) -> bool:
    """Delete a thread and its messages."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM thread WHERE id = ?", (thread_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("threads.deleted", thread_id=thread_id)
    return deleted


def insert_message(thread_id: int, author_uid: str, user_name: str, text: str) -> MessageRecord:
    """Insert a message and return it."""
    created_at = utc_now()
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO message (thread_id, author_uid, user_name, text, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (thread_id, author_uid, user_name, text, created_at),
        )

    return MessageRecord(
        id=cursor.lastrowid,
        thread_id=thread_id,
        author_uid=author_uid,
        user_name=user_name,
        text=text,
        reported=False,
        created_at=created_at,
    )


def get_messages(thread_id: int) -> list[MessageRecord]:
    """Messages of a thread, oldest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM message WHERE thread_id = ? ORDER BY created_at, id",
            (thread_id,),
        ).fetchall()

    return [_row_to_message(r) for r in rows]


def get_last_message(thread_id: int) -> MessageRecord | None:
    """Newest message of a thread."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM message WHERE thread_id = ? ORDER BY created_at DESC, id DESC LIMIT 1",
            (thread_id,),
        ).fetchone()

    return _row_to_message(row) if row else None


def set_message_reported(message_id: int) -> bool:
    """Flag a message for moderation."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE message SET reported = 1 WHERE id = ?", (message_id,)
        )
    return cursor.rowcount > 0


def get_reported_messages() -> list[MessageRecord]:
    """All reported messages, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM message WHERE reported = 1 ORDER BY created_at DESC, id DESC"
        ).fetchall()

    return [_row_to_message(r) for r in rows]


def _row_to_thread(row) -> ThreadRecord:
    return ThreadRecord(
        id=row["id"],
        title=row["title"],
        subject_id=row["subject_id"],
        subject_name=row["subject_name"],
        grade=row["grade"],
        created_by_id=row["created_by_id"],
        created_by_name=row["created_by_name"],
        created_at=row["created_at"],
        message_count=row["message_count"],
    )


def _row_to_message(row) -> MessageRecord:
    return MessageRecord(
        id=row["id"],
        thread_id=row["thread_id"],
        author_uid=row["author_uid"],
        user_name=row["user_name"],
        text=row["text"],
        reported=bool(row["reported"]),
        created_at=row["created_at"],
    )
