"""Learner achievements and badges.

Achievements are derived from recorded results every time they are asked
for; nothing is stored. Badges are named awards kept in the database and
given to learners one at a time.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable

import structlog

from examquiz.core.leaderboard import Tally, base_subject_name
from examquiz.db.badges_repository import (
    BadgeRecord,
    LearnerBadgeRecord,
    get_badge_by_id,
    get_badges,
    get_learner_badges,
    insert_badge,
    insert_learner_badge,
)
from examquiz.db.learners_repository import get_learner_by_uid
from examquiz.db.results_repository import ResultRow, get_results
from examquiz.utils.validators import (
    ConflictError,
    LearnerNotFoundError,
    NotFoundError,
    ValidationError,
    require_role,
)

logger = structlog.get_logger(__name__)

PERFECT_DAY_MIN_ANSWERS = 5
MASTERY_CORRECT = 5
STREAK_DAYS = 7
SPEED_CORRECT = 10
SPEED_WINDOW = timedelta(minutes=30)

BADGE_ADMIN_ROLES = ("admin",)


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str


ACHIEVEMENTS = (
    Achievement("first_correct", "First Correct Answer", "Got your first question right!"),
    Achievement("perfect_day", "Perfect Day", "Got all questions correct in a day"),
    Achievement("mastery_5", "Subject Expert", "Mastered 5 questions in a subject"),
    Achievement("streak_7", "Week Warrior", "Answered questions 7 days in a row"),
    Achievement(
        "speed_demon",
        "Speed Demon",
        "Answered 10 questions correctly in under 30 minutes",
    ),
)


@dataclass
class AchievementSummary:
    """Earned and outstanding achievements of one learner."""

    earned_ids: set[str] = field(default_factory=set)
    current_streak: int = 0
    max_streak: int = 0

    @property
    def items(self) -> list[dict[str, Any]]:
        """Earned achievements first, each group in definition order."""
        ordered = sorted(ACHIEVEMENTS, key=lambda a: a.id not in self.earned_ids)
        return [
            {
                "id": a.id,
                "name": a.name,
                "description": a.description,
                "achieved": a.id in self.earned_ids,
            }
            for a in ordered
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "earned": len(self.earned_ids),
            "total": len(ACHIEVEMENTS),
            "current_streak": self.current_streak,
            "max_streak": self.max_streak,
            "items": self.items,
        }


def day_streaks(days: Iterable[date]) -> tuple[int, int]:
    """(streak ending on the last day, longest streak) of consecutive days."""
    current = longest = 0
    previous: date | None = None
    for day in sorted(set(days)):
        if previous is not None and (day - previous).days == 1:
            current += 1
        else:
            current = 1
        longest = max(longest, current)
        previous = day
    return current, longest


def has_fast_run(
    times: list[datetime],
    count: int = SPEED_CORRECT,
    window: timedelta = SPEED_WINDOW,
) -> bool:
    """Whether ``count`` of the given times fall within less than ``window``."""
    times = sorted(times)
    return any(
        times[i + count - 1] - times[i] < window for i in range(len(times) - count + 1)
    )


def build_achievements(rows: Iterable[ResultRow]) -> AchievementSummary:
    """Work out achievements from one learner's results."""
    summary = AchievementSummary()
    by_day: dict[str, Tally] = {}
    mastery: dict[str, int] = {}
    correct_times: list[datetime] = []

    for row in rows:
        is_correct = row.outcome == "correct"
        by_day.setdefault(row.created_at[:10], Tally()).add(is_correct)
        if not is_correct:
            continue
        summary.earned_ids.add("first_correct")
        subject = base_subject_name(row.subject_name)
        mastery[subject] = mastery.get(subject, 0) + 1
        if mastery[subject] >= MASTERY_CORRECT:
            summary.earned_ids.add("mastery_5")
        correct_times.append(datetime.fromisoformat(row.created_at))

    if any(t.total >= PERFECT_DAY_MIN_ANSWERS and t.incorrect == 0 for t in by_day.values()):
        summary.earned_ids.add("perfect_day")

    summary.current_streak, summary.max_streak = day_streaks(
        date.fromisoformat(day) for day in by_day
    )
    if summary.max_streak >= STREAK_DAYS:
        summary.earned_ids.add("streak_7")

    if has_fast_run(correct_times):
        summary.earned_ids.add("speed_demon")

    return summary


def get_achievements(uid: str) -> AchievementSummary:
    """Achievements of a learner over every recorded answer.

    Raises:
        LearnerNotFoundError: If uid is unknown
    """
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid)

    summary = build_achievements(get_results(learner_id=learner.id))
    logger.debug("achievements.built", uid=uid, earned=sorted(summary.earned_ids))
    return summary


# =============================================================================
# BADGES
# =============================================================================


def list_badges() -> list[BadgeRecord]:
    return get_badges()


def create_badge(
    uid: str,
    name: str,
    rules: str = "",
    category: str = "Achievement",
    image: str | None = None,
) -> BadgeRecord:
    """Add a badge; only admins may.

    Raises:
        LearnerNotFoundError: If uid is unknown
        PermissionDeniedError: If the caller is not an admin
        ValidationError: If name is blank
        ConflictError: If a badge with that name exists
    """
    admin = get_learner_by_uid(uid)
    if admin is None:
        raise LearnerNotFoundError(uid, "Admin not found")
    require_role(admin.role, BADGE_ADMIN_ROLES)

    name = (name or "").strip()
    if not name:
        raise ValidationError("Badge name is required")
    try:
        badge_id = insert_badge(name, image, rules, category)
    except sqlite3.IntegrityError:
        raise ConflictError(f"Badge '{name}' already exists")

    logger.info("badge.created", badge_id=badge_id, name=name)
    return get_badge(badge_id)


def get_badge(badge_id: int) -> BadgeRecord:
    badge = get_badge_by_id(badge_id)
    if badge is None:
        raise NotFoundError("Badge not found")
    return badge


def award_badge(uid: str, badge_id: int) -> LearnerBadgeRecord:
    """Give a badge to a learner.

    Raises:
        LearnerNotFoundError: If uid is unknown
        NotFoundError: If badge_id is unknown
        ConflictError: If the learner already holds the badge
    """
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid)
    get_badge(badge_id)

    try:
        insert_learner_badge(learner.id, badge_id)
    except sqlite3.IntegrityError:
        raise ConflictError("Learner already has this badge")

    logger.info("badge.awarded", uid=uid, badge_id=badge_id)
    return next(b for b in get_learner_badges(learner.id) if b.badge_id == badge_id)


def list_learner_badges(uid: str) -> list[LearnerBadgeRecord]:
    """Badges of a learner, most recently earned first."""
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid)
    return get_learner_badges(learner.id)
