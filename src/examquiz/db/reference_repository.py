"""Repository functions for grade and subject tables."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from examquiz.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class GradeRecord:
    """Grade record from database."""

    id: int
    number: int
    active: bool


@dataclass
class SubjectRecord:
    """Subject record from database."""

    id: int
    name: str
    grade_id: int
    grade_number: int
    active: bool


def insert_grade(number: int, active: bool = True) -> GradeRecord:
    """Insert a grade.

    Raises:
        sqlite3.IntegrityError: If the grade number already exists
    """
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT INTO grade (number, active) VALUES (?, ?)",
            (number, int(active)),
        )
        grade_id = cursor.lastrowid

    logger.debug("grades.inserted", number=number)
    return GradeRecord(id=grade_id, number=number, active=active)


def get_grade_by_number(number: int) -> GradeRecord | None:
    """Get grade by its number (e.g. 12)."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM grade WHERE number = ?", (number,)
        ).fetchone()

    if row is None:
        return None
    return GradeRecord(id=row["id"], number=row["number"], active=bool(row["active"]))


def get_grade_by_id(grade_id: int) -> GradeRecord | None:
    """Get grade by primary key."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM grade WHERE id = ?", (grade_id,)).fetchone()

    if row is None:
        return None
    return GradeRecord(id=row["id"], number=row["number"], active=bool(row["active"]))


def get_all_grades() -> list[GradeRecord]:
    """Get all grades ordered by number."""
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM grade ORDER BY number").fetchall()

    return [
        GradeRecord(id=r["id"], number=r["number"], active=bool(r["active"]))
        for r in rows
    ]


def insert_subject(name: str, grade_id: int, active: bool = True) -> int:
    """Insert a subject for a grade.

    Returns:
        The new subject id

    Raises:
        sqlite3.IntegrityError: If the subject already exists for that grade
    """
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT INTO subject (name, grade_id, active) VALUES (?, ?, ?)",
            (name, grade_id, int(active)),
        )

    logger.debug("subjects.inserted", name=name, grade_id=grade_id)
    return cursor.lastrowid


_SUBJECT_SELECT = """
    SELECT s.*, g.number AS grade_number
    FROM subject s JOIN grade g ON g.id = s.grade_id
"""


def get_subject_by_id(subject_id: int) -> SubjectRecord | None:
    """Get subject by primary key."""
    with get_db() as conn:
        row = conn.execute(
            _SUBJECT_SELECT + " WHERE s.id = ?", (subject_id,)
        ).fetchone()

    return _row_to_subject(row) if row else None


def get_subject_by_name(name: str, grade_id: int) -> SubjectRecord | None:
    """Get subject by exact name within a grade."""
    with get_db() as conn:
        row = conn.execute(
            _SUBJECT_SELECT + " WHERE s.name = ? AND s.grade_id = ?",
            (name, grade_id),
        ).fetchone()

    return _row_to_subject(row) if row else None


def get_subjects(grade_id: int | None = None, active_only: bool = False) -> list[SubjectRecord]:
    """List subjects, optionally filtered by grade and active flag."""
    clauses = []
    params: list = []
    if grade_id is not None:
        clauses.append("s.grade_id = ?")
        params.append(grade_id)
    if active_only:
        clauses.append("s.active = 1")

    sql = _SUBJECT_SELECT
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY g.number, s.name"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [_row_to_subject(r) for r in rows]


def _row_to_subject(row) -> SubjectRecord:
    """Convert database row to SubjectRecord."""
    return SubjectRecord(
        id=row["id"],
        name=row["name"],
        grade_id=row["grade_id"],
        grade_number=row["grade_number"],
        active=bool(row["active"]),
    )
