"""Repository functions for the result table (recorded learner answers)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from examquiz.db.database import get_db, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class ResultRow:
    """A recorded answer joined with learner and subject context."""

    id: int
    learner_id: int
    learner_name: str
    grade_number: int | None
    question_id: int
    subject_id: int
    subject_name: str
    answer: str
    outcome: str
    points: int
    created_at: str


def insert_result(
    learner_id: int,
    question_id: int,
    answer: str,
    outcome: str,
    points: int = 0,
    created_at: str | None = None,
) -> int:
    """Record a learner answer.

    Returns:
        The new result id
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO result (learner_id, question_id, answer, outcome, points, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (learner_id, question_id, answer, outcome, points, created_at or utc_now()),
        )

    logger.debug(
        "results.inserted",
        learner_id=learner_id,
        question_id=question_id,
        outcome=outcome,
    )
    return cursor.lastrowid


def get_recent_outcomes(learner_id: int, question_id: int, limit: int) -> list[str]:
    """Outcomes of the latest attempts at a question, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT outcome FROM result
            WHERE learner_id = ? AND question_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            (learner_id, question_id, limit),
        ).fetchall()

    return [r["outcome"] for r in rows]


_RESULT_SELECT = """
    SELECT r.*, l.name AS learner_name, g.number AS grade_number,
           q.subject_id, s.name AS subject_name
    FROM result r
    JOIN learner l ON l.id = r.learner_id
    LEFT JOIN grade g ON g.id = l.grade_id
    JOIN question q ON q.id = r.question_id
    JOIN subject s ON s.id = q.subject_id
"""


def get_results(
    learner_id: int | None = None,
    since: str | None = None,
    subject_id: int | None = None,
    subject_name: str | None = None,
    grade_id: int | None = None,
) -> list[ResultRow]:
    """Recorded answers matching the filters, oldest first."""
    clauses: list[str] = []
    params: list[Any] = []
    if learner_id is not None:
        clauses.append("r.learner_id = ?")
        params.append(learner_id)
    if since is not None:
        clauses.append("r.created_at >= ?")
        params.append(since)
    if subject_id is not None:
        clauses.append("q.subject_id = ?")
        params.append(subject_id)
    if subject_name is not None:
        clauses.append("s.name = ?")
        params.append(subject_name)
    if grade_id is not None:
        clauses.append("l.grade_id = ?")
        params.append(grade_id)

    sql = _RESULT_SELECT
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY r.created_at, r.id"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [
        ResultRow(
            id=r["id"],
            learner_id=r["learner_id"],
            learner_name=r["learner_name"],
            grade_number=r["grade_number"],
            question_id=r["question_id"],
            subject_id=r["subject_id"],
            subject_name=r["subject_name"],
            answer=r["answer"],
            outcome=r["outcome"],
            points=r["points"],
            created_at=r["created_at"],
        )
        for r in rows
    ]


def delete_results_for_learner(learner_id: int) -> int:
    """Delete every result of a learner. Returns rows deleted."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM result WHERE learner_id = ?", (learner_id,))

    logger.debug("results.deleted", learner_id=learner_id, count=cursor.rowcount)
    return cursor.rowcount


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def delete_results_for_subject(learner_id: int, subject_name: str) -> int:
    """Delete a learner's results for every subject whose name starts with
    ``subject_name`` (case-insensitive), so "Mathematics" covers all papers.

    Returns:
        Rows deleted
    """
    pattern = _escape_like(subject_name.strip()) + "%"
    with get_db() as conn:
        cursor = conn.execute(
            """
            DELETE FROM result
            WHERE learner_id = ? AND question_id IN (
                SELECT q.id FROM question q JOIN subject s ON s.id = q.subject_id
                WHERE s.name LIKE ? ESCAPE '\\'
            )
            """,
            (learner_id, pattern),
        )

    logger.debug(
        "results.deleted",
        learner_id=learner_id,
        subject=subject_name,
        count=cursor.rowcount,
    )
    return cursor.rowcount


def count_results(since: str | None = None) -> int:
    """Total recorded answers, optionally since a timestamp."""
    sql = "SELECT COUNT(*) FROM result"
    params: list[Any] = []
    if since:
        sql += " WHERE created_at >= ?"
        params.append(since)
    with get_db() as conn:
        return conn.execute(sql, params).fetchone()[0]
