"""Repository functions for learner, learner_streak and favorite tables.

Provides CRUD operations for learner profiles and their engagement state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from examquiz.db.database import get_db, utc_now

logger = structlog.get_logger(__name__)

# Columns a profile update may touch
UPDATABLE_FIELDS = (
    "name",
    "email",
    "grade_id",
    "role",
    "curriculum",
    "terms",
    "school_name",
    "school_address",
    "school_latitude",
    "school_longitude",
    "notification_hour",
    "private_school",
    "avatar",
)


@dataclass
class LearnerRecord:
    """Learner record from database."""

    id: int
    uid: str
    name: str
    email: str
    grade_id: int | None
    grade_number: int | None
    role: str
    curriculum: str
    terms: str
    school_name: str | None
    school_address: str | None
    school_latitude: float | None
    school_longitude: float | None
    notification_hour: int | None
    private_school: bool
    avatar: str | None
    points: int
    created_at: str
    updated_at: str


@dataclass
class StreakRecord:
    """Persisted streak row for a learner."""

    learner_id: int
    current_streak: int
    longest_streak: int
    questions_answered_today: int
    last_answered_at: str | None
    last_streak_update_date: str | None


_LEARNER_SELECT = """
    SELECT l.*, g.number AS grade_number
    FROM learner l LEFT JOIN grade g ON g.id = l.grade_id
"""


def insert_learner(uid: str, fields: dict[str, Any]) -> int:
    """Insert a new learner.

    Args:
        uid: External auth identifier
        fields: Column values, restricted to UPDATABLE_FIELDS

    Raises:
        sqlite3.IntegrityError: If uid already exists
    """
    values = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
    if "private_school" in values:
        values["private_school"] = int(bool(values["private_school"]))
    now = utc_now()
    columns = ["uid", *values.keys(), "created_at", "updated_at"]
    params = [uid, *values.values(), now, now]

    with get_db() as conn:
        cursor = conn.execute(
            f"INSERT INTO learner ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})",
            params,
        )

    logger.debug("learners.inserted", uid=uid, learner_id=cursor.lastrowid)
    return cursor.lastrowid


def update_learner(uid: str, fields: dict[str, Any]) -> bool:
    """Update the given fields of a learner.

    Returns:
        True if a row was updated, False if uid not found
    """
    values = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
    if "private_school" in values:
        values["private_school"] = int(bool(values["private_school"]))
    values["updated_at"] = utc_now()
    assignments = ", ".join(f"{k} = ?" for k in values)

    with get_db() as conn:
        cursor = conn.execute(
            f"UPDATE learner SET {assignments} WHERE uid = ?",
            (*values.values(), uid),
        )

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("learners.updated", uid=uid, fields=sorted(values))
    return updated


def get_learner_by_uid(uid: str) -> LearnerRecord | None:
    """Get learner by external uid."""
    with get_db() as conn:
        row = conn.execute(_LEARNER_SELECT + " WHERE l.uid = ?", (uid,)).fetchone()

    return _row_to_learner(row) if row else None


def get_learner_ids_by_email(email: str) -> list[int]:
    """Ids of every learner account that shares an email address."""
    if not email:
        return []
    with get_db() as conn:
        rows = conn.execute(
            "SELECT id FROM learner WHERE email = ?", (email,)
        ).fetchall()
    return [r["id"] for r in rows]


def count_learners() -> int:
    """Total number of learner rows."""
    with get_db() as conn:
        return conn.execute("SELECT COUNT(*) FROM learner").fetchone()[0]


def delete_learner(uid: str) -> bool:
    """Delete learner by uid, cascading results, streak and favorites.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM learner WHERE uid = ?", (uid,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("learners.deleted", uid=uid)
    return deleted


def add_points(learner_id: int, points: int) -> int:
    """Add points to a learner and return the new total."""
    with get_db() as conn:
        conn.execute(
            "UPDATE learner SET points = points + ? WHERE id = ?",
            (points, learner_id),
        )
        row = conn.execute(
            "SELECT points FROM learner WHERE id = ?", (learner_id,)
        ).fetchone()

    return row["points"] if row else 0


# =============================================================================
# STREAKS
# =============================================================================


def get_streak(learner_id: int) -> StreakRecord | None:
    """Get the streak row of a learner, if one exists."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM learner_streak WHERE learner_id = ?", (learner_id,)
        ).fetchone()

    if row is None:
        return None

    return StreakRecord(
        learner_id=row["learner_id"],
        current_streak=row["current_streak"],
        longest_streak=row["longest_streak"],
        questions_answered_today=row["questions_answered_today"],
        last_answered_at=row["last_answered_at"],
        last_streak_update_date=row["last_streak_update_date"],
    )


def save_streak(record: StreakRecord) -> None:
    """Insert or replace the streak row of a learner."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO learner_streak (
                learner_id, current_streak, longest_streak,
                questions_answered_today, last_answered_at, last_streak_update_date
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(learner_id) DO UPDATE SET
                current_streak = excluded.current_streak,
                longest_streak = excluded.longest_streak,
                questions_answered_today = excluded.questions_answered_today,
                last_answered_at = excluded.last_answered_at,
                last_streak_update_date = excluded.last_streak_update_date
            """,
            (
                record.learner_id,
                record.current_streak,
                record.longest_streak,
                record.questions_answered_today,
                record.last_answered_at,
                record.last_streak_update_date,
            ),
        )

    logger.debug(
        "streaks.saved",
        learner_id=record.learner_id,
        current_streak=record.current_streak,
    )


# =============================================================================
# FAVORITES
# =============================================================================


def add_favorite(learner_id: int, question_id: int) -> bool:
    """Mark a question as favourite. Returns False if it already was."""
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT OR IGNORE INTO favorite (learner_id, question_id, created_at) "
            "VALUES (?, ?, ?)",
            (learner_id, question_id, utc_now()),
        )
    return cursor.rowcount > 0


def remove_favorite(learner_id: int, question_id: int) -> bool:
    """Remove a favourite. Returns False if it did not exist."""
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM favorite WHERE learner_id = ? AND question_id = ?",
            (learner_id, question_id),
        )
    return cursor.rowcount > 0


def get_favorite_question_ids(learner_id: int) -> list[int]:
    """Favourite question ids, most recent first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT question_id FROM favorite WHERE learner_id = ? "
            "ORDER BY created_at DESC, question_id DESC",
            (learner_id,),
        ).fetchall()
    return [r["question_id"] for r in rows]


def _row_to_learner(row) -> LearnerRecord:
    """Convert database row to LearnerRecord."""
    return LearnerRecord(
        id=row["id"],
        uid=row["uid"],
        name=row["name"],
        email=row["email"],
        grade_id=row["grade_id"],
        grade_number=row["grade_number"],
        role=row["role"],
        curriculum=row["curriculum"],
        terms=row["terms"],
        school_name=row["school_name"],
        school_address=row["school_address"],
        school_latitude=row["school_latitude"],
        school_longitude=row["school_longitude"],
        notification_hour=row["notification_hour"],
        private_school=bool(row["private_school"]),
        avatar=row["avatar"],
        points=row["points"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
