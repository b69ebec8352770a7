"""Daily answer streaks.

A learner keeps a streak alive by answering at least
``required_daily_questions`` questions every calendar day. The streak grows
by one on the day the requirement is first met and resets to zero once a
whole day passes without meeting it.

The transition functions are pure (state in, state out); track_streak and
get_streak_info load and persist the state for a learner.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from typing import Any

import structlog

from examquiz.config.app_config import load_app_config
from examquiz.db.learners_repository import (
    StreakRecord,
    get_learner_by_uid,
    get_streak,
    save_streak,
)
from examquiz.utils.validators import LearnerNotFoundError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StreakState:
    """Streak counters as of ``last_update``."""

    current_streak: int = 0
    longest_streak: int = 0
    questions_answered_today: int = 0
    last_update: date | None = None


@dataclass
class StreakSummary:
    """Streak status reported to clients."""

    current_streak: int
    longest_streak: int
    questions_answered_today: int
    questions_needed_today: int
    streak_maintained: bool

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "questions_answered_today": self.questions_answered_today,
            "questions_needed_today": self.questions_needed_today,
            "streak_maintained": self.streak_maintained,
        }


def roll_over(state: StreakState, today: date, required: int) -> StreakState:
    """Move the counters forward to ``today``.

    Yesterday counts only if its requirement was met; any older gap breaks
    the streak. A state already at (or ahead of) today is returned as is.
    """
    if state.last_update is not None and state.last_update >= today:
        return state

    current = state.current_streak
    if state.last_update is not None:
        yesterday = today - timedelta(days=1)
        met_yesterday = (
            state.last_update == yesterday
            and state.questions_answered_today >= required
        )
        if not met_yesterday:
            current = 0

    return replace(
        state,
        current_streak=current,
        questions_answered_today=0,
        last_update=today,
    )


def record_answer(state: StreakState, today: date, required: int) -> StreakState:
    """Count one answered question for ``today``."""
    state = roll_over(state, today, required)
    answered = state.questions_answered_today + 1
    current = state.current_streak
    if answered == required:
        current += 1

    return replace(
        state,
        current_streak=current,
        longest_streak=max(state.longest_streak, current),
        questions_answered_today=answered,
    )


def summarize(state: StreakState, required: int) -> StreakSummary:
    """Build the client-facing summary of a state."""
    answered = state.questions_answered_today
    return StreakSummary(
        current_streak=state.current_streak,
        longest_streak=state.longest_streak,
        questions_answered_today=answered,
        questions_needed_today=max(0, required - answered),
        streak_maintained=answered >= required,
    )


# =============================================================================
# PERSISTENCE
# =============================================================================


def _to_state(record: StreakRecord | None) -> StreakState:
    if record is None:
        return StreakState()
    last_update = (
        date.fromisoformat(record.last_streak_update_date[:10])
        if record.last_streak_update_date
        else None
    )
    return StreakState(
        current_streak=record.current_streak,
        longest_streak=record.longest_streak,
        questions_answered_today=record.questions_answered_today,
        last_update=last_update,
    )


def _to_record(
    learner_id: int, state: StreakState, last_answered_at: str | None
) -> StreakRecord:
    return StreakRecord(
        learner_id=learner_id,
        current_streak=state.current_streak,
        longest_streak=state.longest_streak,
        questions_answered_today=state.questions_answered_today,
        last_answered_at=last_answered_at,
        last_streak_update_date=state.last_update.isoformat() if state.last_update else None,
    )


def track_answer_for_learner(learner_id: int, now: datetime | None = None) -> StreakSummary:
    """Record one answered question in a learner's streak."""
    required = load_app_config().scoring.required_daily_questions
    now = now or datetime.now(timezone.utc)

    state = record_answer(_to_state(get_streak(learner_id)), now.date(), required)
    save_streak(_to_record(learner_id, state, now.isoformat()))

    logger.info(
        "streak.updated",
        learner_id=learner_id,
        current_streak=state.current_streak,
        answered_today=state.questions_answered_today,
    )
    return summarize(state, required)


def track_streak(uid: str, now: datetime | None = None) -> StreakSummary:
    """Record one answered question for the learner with ``uid``.

    Raises:
        LearnerNotFoundError: If uid is unknown
    """
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid)
    return track_answer_for_learner(learner.id, now)


def get_streak_info(uid: str, today: date | None = None) -> StreakSummary:
    """Current streak of a learner, rolled over to today and persisted.

    Raises:
        LearnerNotFoundError: If uid is unknown
    """
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid)

    required = load_app_config().scoring.required_daily_questions
    record = get_streak(learner.id)
    if record is None:
        return summarize(StreakState(), required)

    today = today or datetime.now(timezone.utc).date()
    state = _to_state(record)
    rolled = roll_over(state, today, required)
    if rolled != state:
        save_streak(_to_record(learner.id, rolled, record.last_answered_at))
        logger.debug("streak.rolled_over", learner_id=learner.id, current_streak=rolled.current_streak)

    return summarize(rolled, required)
