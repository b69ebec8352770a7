"""Repository functions for badge and learner_badge tables."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from examquiz.db.database import get_db, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class BadgeRecord:
    """Badge record from database."""

    id: int
    name: str
    image: str | None
    rules: str
    category: str
    created_at: str


@dataclass
class LearnerBadgeRecord:
    """A badge held by a learner."""

    badge_id: int
    learner_id: int
    name: str
    image: str | None
    rules: str
    category: str
    earned_at: str


def insert_badge(name: str, image: str | None, rules: str, category: str) -> int:
    """Insert a badge.

    Returns:
        The new badge id

    Raises:
        sqlite3.IntegrityError: If a badge with that name exists
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO badge (name, image, rules, category, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (name, image, rules, category, utc_now()),
        )

    logger.debug("badges.inserted", badge_id=cursor.lastrowid, name=name)
    return cursor.lastrowid


def _row_to_badge(row) -> BadgeRecord:
    return BadgeRecord(
        id=row["id"],
        name=row["name"],
        image=row["image"],
        rules=row["rules"],
        category=row["category"],
        created_at=row["created_at"],
    )


def get_badge_by_id(badge_id: int) -> BadgeRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM badge WHERE id = ?", (badge_id,)).fetchone()

    return _row_to_badge(row) if row else None


def get_badges() -> list[BadgeRecord]:
    """All badges grouped by category, then name."""
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM badge ORDER BY category, name").fetchall()

    return [_row_to_badge(r) for r in rows]


def insert_learner_badge(learner_id: int, badge_id: int, earned_at: str | None = None) -> None:
    """Give a badge to a learner.

    Raises:
        sqlite3.IntegrityError: If the learner already holds the badge
    """
    with get_db() as conn:
        conn.execute(
            "INSERT INTO learner_badge (learner_id, badge_id, created_at) VALUES (?, ?, ?)",
            (learner_id, badge_id, earned_at or utc_now()),
        )

    logger.debug("badges.awarded", learner_id=learner_id, badge_id=badge_id)


def get_learner_badges(learner_id: int) -> list[LearnerBadgeRecord]:
    """Badges held by a learner, most recently earned first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT lb.badge_id, lb.learner_id, lb.created_at AS earned_at,
                   b.name, b.image, b.rules, b.category
            FROM learner_badge lb JOIN badge b ON b.id = lb.badge_id
            WHERE lb.learner_id = ?
            ORDER BY lb.created_at DESC, lb.id DESC
            """,
            (learner_id,),
        ).fetchall()

    return [
        LearnerBadgeRecord(
            badge_id=r["badge_id"],
            learner_id=r["learner_id"],
            name=r["name"],
            image=r["image"],
            rules=r["rules"],
            category=r["category"],
            earned_at=r["earned_at"],
        )
        for r in rows
    ]
