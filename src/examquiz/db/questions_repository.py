"""Repository functions for question and question_status_log tables.

Answers are stored as a JSON list of accepted answers, options as a JSON
object (option1..option4).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from examquiz.db.database import get_db, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class QuestionRecord:
    """Exam question record from database."""

    id: int
    subject_id: int
    subject_name: str
    grade_number: int
    capturer_id: int | None
    reviewer_id: int | None
    question: str
    type: str
    context: str | None
    answer: list[str]
    options: dict[str, str]
    explanation: str | None
    year: int | None
    term: int | None
    curriculum: str
    status: str
    comment: str | None
    active: bool
    posted: bool
    created_at: str
    updated_at: str
    reviewed_at: str | None = None
    capturer_name: str | None = None
    capturer_email: str | None = None


@dataclass
class StatusChange:
    """One entry of a question's moderation history."""

    old_status: str | None
    new_status: str
    feedback: str | None
    changed_by: str | None
    created_at: str


@dataclass
class QuestionFilter:
    """Filters for listing questions."""

    status: str | None = None
    subject_id: int | None = None
    capturer_ids: list[int] = field(default_factory=list)
    active: bool | None = None
    types: list[str] = field(default_factory=list)


_QUESTION_SELECT = """
    SELECT q.*, s.name AS subject_name, g.number AS grade_number,
           c.name AS capturer_name, c.email AS capturer_email
    FROM question q
    JOIN subject s ON s.id = q.subject_id
    JOIN grade g ON g.id = s.grade_id
    LEFT JOIN learner c ON c.id = q.capturer_id
"""


def insert_question(
    subject_id: int,
    capturer_id: int,
    question: str,
    type: str,
    answer: list[str],
    options: dict[str, str],
    context: str | None = None,
    explanation: str | None = None,
    year: int | None = None,
    term: int | None = None,
    curriculum: str = "CAPS",
    status: str = "new",
    comment: str | None = "new",
) -> int:
    """Insert a new question.

    Returns:
        The new question id

    Raises:
        sqlite3.IntegrityError: If the same text exists for the subject
    """
    now = utc_now()
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO question (
                subject_id, capturer_id, reviewer_id, question, type, context,
                answer, options, explanation, year, term, curriculum,
                status, comment, active, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
            """,
            (
                subject_id,
                capturer_id,
                capturer_id,
                question,
                type,
                context,
                json.dumps(answer),
                json.dumps(options),
                explanation,
                year,
                term,
                curriculum,
                status,
                comment,
                now,
                now,
            ),
        )

    logger.debug("questions.inserted", question_id=cursor.lastrowid, subject_id=subject_id)
    return cursor.lastrowid


def get_question_by_id(question_id: int) -> QuestionRecord | None:
    """Get question by id, joined with its subject, grade and capturer."""
    with get_db() as conn:
        row = conn.execute(
            _QUESTION_SELECT + " WHERE q.id = ?", (question_id,)
        ).fetchone()

    return _row_to_record(row) if row else None


def find_question_by_text(subject_id: int, text: str) -> QuestionRecord | None:
    """Find a question with identical text in the same subject."""
    with get_db() as conn:
        row = conn.execute(
            _QUESTION_SELECT + " WHERE q.subject_id = ? AND q.question = ?",
            (subject_id, text),
        ).fetchone()

    return _row_to_record(row) if row else None


def count_by_capturer(capturer_id: int, status: str | None = None, type: str | None = None) -> int:
    """Count questions captured by a learner, optionally by status or type."""
    sql = "SELECT COUNT(*) FROM question WHERE capturer_id = ?"
    params: list[Any] = [capturer_id]
    if status is not None:
        sql += " AND status = ?"
        params.append(status)
    if type is not None:
        sql += " AND type = ?"
        params.append(type)

    with get_db() as conn:
        return conn.execute(sql, params).fetchone()[0]


def _filter_clause(flt: QuestionFilter) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if flt.status is not None:
        clauses.append("q.status = ?")
        params.append(flt.status)
    if flt.subject_id is not None:
        clauses.append("q.subject_id = ?")
        params.append(flt.subject_id)
    if flt.capturer_ids:
        clauses.append(f"q.capturer_id IN ({', '.join('?' for _ in flt.capturer_ids)})")
        params.extend(flt.capturer_ids)
    if flt.active is not None:
        clauses.append("q.active = ?")
        params.append(int(flt.active))
    if flt.types:
        clauses.append(f"q.type IN ({', '.join('?' for _ in flt.types)})")
        params.extend(flt.types)
    where = " WHERE " + " AND ".join(clauses) if clauses else ""
    return where, params


def list_questions(
    flt: QuestionFilter,
    offset: int = 0,
    limit: int | None = None,
) -> list[QuestionRecord]:
    """List questions matching a filter, newest first."""
    where, params = _filter_clause(flt)
    sql = _QUESTION_SELECT + where + " ORDER BY q.created_at DESC, q.id DESC"
    if limit is not None:
        sql += " LIMIT ? OFFSET ?"
        params = [*params, limit, offset]

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [_row_to_record(r) for r in rows]


def count_questions(flt: QuestionFilter) -> int:
    """Count questions matching a filter."""
    where, params = _filter_clause(flt)
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM question q" + where, params
        ).fetchone()[0]


def update_question_status(
    question_id: int,
    status: str,
    reviewer_id: int | None,
    comment: str | None = None,
    activate: bool = False,
) -> None:
    """Set the moderation status of a question."""
    now = utc_now()
    assignments = ["status = ?", "reviewed_at = ?", "updated_at = ?"]
    params: list[Any] = [status, now, now]
    if reviewer_id is not None:
        assignments.append("reviewer_id = ?")
        params.append(reviewer_id)
    if comment:
        assignments.append("comment = ?")
        params.append(comment)
    if activate:
        assignments.append("active = 1")

    with get_db() as conn:
        cursor = conn.execute(
            f"UPDATE question SET {', '.join(assignments)} WHERE id = ?",
            (*params, question_id),
        )
        if cursor.rowcount == 0:
            raise ValueError(f"Question not found: {question_id}")

    logger.debug("questions.status_updated", question_id=question_id, status=status)


def set_posted(question_id: int, posted: bool) -> bool:
    """Flag a question as posted to social channels."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE question SET posted = ?, updated_at = ? WHERE id = ?",
            (int(posted), utc_now(), question_id),
        )
    return cursor.rowcount > 0


def delete_question(question_id: int) -> bool:
    """Delete a question and its dependent rows.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM question WHERE id = ?", (question_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("questions.deleted", question_id=question_id)
    return deleted


def insert_status_log(
    question_id: int,
    old_status: str | None,
    new_status: str,
    feedback: str | None,
    changed_by: int | None,
) -> None:
    """Append an entry to the moderation history."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO question_status_log (
                question_id, old_status, new_status, feedback, changed_by, created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (question_id, old_status, new_status, feedback, changed_by, utc_now()),
        )


def get_latest_status_change(question_id: int) -> StatusChange | None:
    """Most recent moderation history entry of a question."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT log.*, l.name AS changed_by_name
            FROM question_status_log log
            LEFT JOIN learner l ON l.id = log.changed_by
            WHERE log.question_id = ?
            ORDER BY log.created_at DESC, log.id DESC
            LIMIT 1
            """,
            (question_id,),
        ).fetchone()

    if row is None:
        return None

    return StatusChange(
        old_status=row["old_status"],
        new_status=row["new_status"],
        feedback=row["feedback"],
        changed_by=row["changed_by_name"],
        created_at=row["created_at"],
    )


def get_status_rows(from_date: str | None = None) -> list[dict[str, Any]]:
    """Status and capturer of every active question, for dashboard counts."""
    sql = """
        SELECT q.status, q.created_at, c.id AS capturer_id,
               c.name AS capturer_name, c.email AS capturer_email
        FROM question q
        LEFT JOIN learner c ON c.id = q.capturer_id
        WHERE q.active = 1
    """
    params: list[Any] = []
    if from_date:
        sql += " AND q.created_at >= ?"
        params.append(from_date)

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [dict(r) for r in rows]


def get_subject_status_rows() -> list[dict[str, Any]]:
    """Question counts grouped by subject, grade and status."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT s.name AS subject_name, g.number AS grade_number,
                   q.status, COUNT(*) AS total
            FROM question q
            JOIN subject s ON s.id = q.subject_id
            JOIN grade g ON g.id = s.grade_id
            GROUP BY s.name, g.number, q.status
            ORDER BY g.number, s.name
            """
        ).fetchall()

    return [dict(r) for r in rows]


def _row_to_record(row) -> QuestionRecord:
    """Convert database row to QuestionRecord."""
    answer = json.loads(row["answer"]) if row["answer"] else []
    if not isinstance(answer, list):
        answer = [answer]
    return QuestionRecord(
        id=row["id"],
        subject_id=row["subject_id"],
        subject_name=row["subject_name"],
        grade_number=row["grade_number"],
        capturer_id=row["capturer_id"],
        reviewer_id=row["reviewer_id"],
        question=row["question"],
        type=row["type"],
        context=row["context"],
        answer=answer,
        options=json.loads(row["options"]) if row["options"] else {},
        explanation=row["explanation"],
        year=row["year"],
        term=row["term"],
        curriculum=row["curriculum"],
        status=row["status"],
        comment=row["comment"],
        active=bool(row["active"]),
        posted=bool(row["posted"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        reviewed_at=row["reviewed_at"],
        capturer_name=row["capturer_name"],
        capturer_email=row["capturer_email"],
    )


def update_question_content(
    question_id: int,
    subject_id: int,
    question: str,
    type: str,
    answer: list[str],
    options: dict[str, str],
    context: str | None,
    explanation: str | None,
    year: int | None,
    term: int | None,
    curriculum: str,
) -> None:
    """Replace the authored fields of a question and send it back to review.

    Raises:
        ValueError: If question_id doesn't exist
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE question SET
                subject_id = ?, question = ?, type = ?, answer = ?, options = ?,
                context = ?, explanation = ?, year = ?, term = ?, curriculum = ?,
                status = 'new', comment = 'resubmitted', active = 1, updated_at = ?
            WHERE id = ?
            """,
            (
                subject_id,
                question,
                type,
                json.dumps(answer),
                json.dumps(options),
                context,
                explanation,
                year,
                term,
                curriculum,
                utc_now(),
                question_id,
            ),
        )
        if cursor.rowcount == 0:
            raise ValueError(f"Question not found: {question_id}")

    logger.debug("questions.updated", question_id=question_id)
