"""Learner rankings and statistics.

Aggregations run over recorded results (see results_repository.ResultRow).
Subjects are grouped by their base name, the first word of the subject
name, so "Mathematics P1" and "Mathematics P2" count as one subject.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

import structlog

from examquiz.config.app_config import load_app_config
from examquiz.db.learners_repository import get_learner_by_uid
from examquiz.db.results_repository import ResultRow, get_results
from examquiz.utils.validators import LearnerNotFoundError

logger = structlog.get_logger(__name__)


@dataclass
class LeaderboardEntry:
    """One ranked learner."""

    learner_id: int
    name: str
    grade: int | None
    total_questions: int
    correct_answers: int
    accuracy: int
    subjects: list[str]
    last_active: str | None
    score: int

    @property
    def unique_subjects(self) -> int:
        return len(self.subjects)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.learner_id,
            "name": self.name,
            "grade": self.grade,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "accuracy": self.accuracy,
            "unique_subjects": self.unique_subjects,
            "subjects": self.subjects,
            "last_active": self.last_active,
            "score": self.score,
        }


@dataclass
class Leaderboard:
    """Ranked learners for a period plus the caller's position."""

    period: int
    rankings: list[LeaderboardEntry]
    user_rank: int | None = None
    user_score: int = 0


@dataclass
class Tally:
    """Answered/correct counter."""

    total: int = 0
    correct: int = 0

    @property
    def incorrect(self) -> int:
        return self.total - self.correct

    @property
    def accuracy(self) -> int:
        return accuracy(self.correct, self.total)

    def add(self, is_correct: bool) -> None:
        self.total += 1
        if is_correct:
            self.correct += 1

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "correct": self.correct,
            "incorrect": self.incorrect,
            "accuracy": self.accuracy,
        }


@dataclass
class LearnerStats:
    """Totals of one learner over a period."""

    period: int
    overall: Tally = field(default_factory=Tally)
    by_subject: dict[str, Tally] = field(default_factory=dict)
    by_day: dict[str, Tally] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "period": self.period,
            "total_questions": self.overall.total,
            "correct_answers": self.overall.correct,
            "accuracy": self.overall.accuracy,
            "subjects": {k: v.to_dict() for k, v in self.by_subject.items()},
            "daily": {k: v.to_dict() for k, v in self.by_day.items()},
        }


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (12.5 -> 13)."""
    return math.floor(value + 0.5)


def base_subject_name(subject_name: str) -> str:
    """First word of a subject name ("Physical Sciences P1" -> "Physical")."""
    parts = subject_name.split(" ")
    return parts[0] if parts else subject_name


def accuracy(correct: int, total: int) -> int:
    """Rounded percentage of correct answers; 0 when nothing was answered."""
    if total == 0:
        return 0
    return round_half_up(correct / total * 100)


def leaderboard_score(correct: int, total: int, unique_subjects: int) -> int:
    """Ranking score rewarding accuracy, subject breadth and volume."""
    if total == 0:
        return 0
    return round_half_up(correct / total * 100 + unique_subjects * 10 + total * 0.5)


def build_leaderboard(rows: Iterable[ResultRow], limit: int) -> list[LeaderboardEntry]:
    """Rank learners by score, highest first, keeping the top ``limit``."""
    per_learner: dict[int, dict[str, Any]] = {}

    for row in rows:
        stats = per_learner.setdefault(
            row.learner_id,
            {
                "name": row.learner_name,
                "grade": row.grade_number,
                "tally": Tally(),
                "subjects": [],
                "last_active": None,
            },
        )
        stats["tally"].add(row.outcome == "correct")
        subject = base_subject_name(row.subject_name)
        if subject not in stats["subjects"]:
            stats["subjects"].append(subject)
        if stats["last_active"] is None or row.created_at > stats["last_active"]:
            stats["last_active"] = row.created_at

    entries = []
    for learner_id, stats in per_learner.items():
        tally: Tally = stats["tally"]
        entries.append(
            LeaderboardEntry(
                learner_id=learner_id,
                name=stats["name"],
                grade=stats["grade"],
                total_questions=tally.total,
                correct_answers=tally.correct,
                accuracy=tally.accuracy,
                subjects=stats["subjects"],
                last_active=stats["last_active"],
                score=leaderboard_score(tally.correct, tally.total, len(stats["subjects"])),
            )
        )

    # Stable on learner id for equal scores
    entries.sort(key=lambda e: (-e.score, e.learner_id))
    return entries[:limit]


def rank_of(entries: list[LeaderboardEntry], learner_id: int) -> int | None:
    """1-based position of a learner, or None when not ranked."""
    for position, entry in enumerate(entries, start=1):
        if entry.learner_id == learner_id:
            return position
    return None


def build_learner_stats(rows: Iterable[ResultRow], period: int) -> LearnerStats:
    """Per-subject and per-day totals for one learner's results."""
    stats = LearnerStats(period=period)
    for row in rows:
        is_correct = row.outcome == "correct"
        stats.overall.add(is_correct)
        stats.by_subject.setdefault(base_subject_name(row.subject_name), Tally()).add(is_correct)
        stats.by_day.setdefault(row.created_at[:10], Tally()).add(is_correct)
    return stats


def build_subject_tallies(rows: Iterable[ResultRow]) -> dict[str, Tally]:
    """Totals keyed by full subject name."""
    tallies: dict[str, Tally] = {}
    for row in rows:
        tallies.setdefault(row.subject_name, Tally()).add(row.outcome == "correct")
    return tallies


def _since(period_days: int, now: datetime | None) -> str:
    now = now or datetime.now(timezone.utc)
    return (now - timedelta(days=period_days)).isoformat()


def get_leaderboard(
    uid: str,
    period: int | None = None,
    subject_id: int | None = None,
    grade_id: int | None = None,
    limit: int | None = None,
    now: datetime | None = None,
) -> Leaderboard:
    """Leaderboard for a period, with the requesting learner's rank.

    Raises:
        LearnerNotFoundError: If uid is unknown
    """
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid)

    config = load_app_config().leaderboard
    period = period or config.default_period_days
    limit = limit or config.default_limit

    rows = get_results(
        since=_since(period, now),
        subject_id=subject_id,
        grade_id=grade_id,
    )
    rankings = build_leaderboard(rows, limit)
    user_rank = rank_of(rankings, learner.id)
    user_score = rankings[user_rank - 1].score if user_rank else 0

    logger.debug("leaderboard.built", period=period, entries=len(rankings), user_rank=user_rank)
    return Leaderboard(
        period=period,
        rankings=rankings,
        user_rank=user_rank,
        user_score=user_score,
    )


def get_learner_stats(uid: str, period: int | None = None, now: datetime | None = None) -> LearnerStats:
    """Statistics of one learner over the last ``period`` days.

    Raises:
        LearnerNotFoundError: If uid is unknown
    """
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid)

    period = period or load_app_config().leaderboard.default_period_days
    rows = get_results(learner_id=learner.id, since=_since(period, now))
    return build_learner_stats(rows, period)
