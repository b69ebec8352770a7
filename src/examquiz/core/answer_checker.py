"""Answer checking for learner submissions.

Responsibilities:
- Normalize free-text and numeric answers before comparison
- Decide correctness against the accepted answers of a question
- Record the attempt, award points and update the daily streak
- Detect mastery (consecutive correct answers to the same question)
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

from examquiz.config.app_config import load_app_config
from examquiz.core.streaks import StreakSummary, track_answer_for_learner
from examquiz.db.learners_repository import add_points, get_learner_by_uid
from examquiz.db.questions_repository import get_question_by_id
from examquiz.db.results_repository import get_recent_outcomes, insert_result
from examquiz.utils.validators import LearnerNotFoundError, QuestionNotFoundError

logger = structlog.get_logger(__name__)

_QUOTES = re.compile(r"['\"]")
_EDGE_BRACKETS = re.compile(r"^\[|\]$")
_WHITESPACE = re.compile(r"\s")
_DECIMAL_COMMA = re.compile(r",(?=\d)")


@dataclass
class AnswerCheck:
    """Outcome of comparing one submission with the accepted answers."""

    is_correct: bool
    normalized_answer: str
    accepted_answers: list[str]


@dataclass
class AnswerOutcome:
    """Everything the check-answer endpoint reports back."""

    correct: bool
    mastered: bool
    explanation: str | None
    correct_answer: list[str]
    subject: str
    points_earned: int
    total_points: int
    streak: StreakSummary | None = None
    recorded: bool = True

    @property
    def message(self) -> str:
        return "Correct answer!" if self.correct else "Incorrect answer"


def normalize_answer(answer: Any) -> str:
    """Normalize an answer for comparison.

    Lowercases, drops quotes, a leading ``[`` and a trailing ``]``, removes
    all whitespace and turns a decimal comma into a dot, so ``" 3 "`` and
    ``"3"`` compare equal and so do ``"3,5"`` and ``"3.5"``.
    """
    text = str(answer).strip().lower()
    text = _QUOTES.sub("", text)
    text = _EDGE_BRACKETS.sub("", text)
    text = _WHITESPACE.sub("", text)
    return _DECIMAL_COMMA.sub(".", text)


def parse_correct_answers(stored: Any) -> list[str]:
    """Accepted answers from a stored value.

    The stored value may be a list, a JSON-encoded string holding a list
    or a scalar, or a plain string.
    """
    value = stored
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            pass

    if isinstance(value, list):
        return [_as_text(v) for v in value]
    return [_as_text(value)]


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def check_answer(submitted: Any, stored: Any) -> AnswerCheck:
    """Compare a submission with the accepted answers of a question."""
    accepted = parse_correct_answers(stored)
    normalized = normalize_answer(submitted)
    is_correct = any(normalized == normalize_answer(a) for a in accepted)
    return AnswerCheck(
        is_correct=is_correct,
        normalized_answer=normalized,
        accepted_answers=accepted,
    )


def is_mastered(is_correct: bool, previous_outcomes: list[str], required: int) -> bool:
    """True when this answer completes ``required`` consecutive correct answers.

    Args:
        is_correct: Whether the current answer is correct
        previous_outcomes: Earlier outcomes, newest first
        required: Consecutive correct answers needed
    """
    if not is_correct:
        return False
    needed = required - 1
    recent = previous_outcomes[:needed]
    return len(recent) == needed and all(o == "correct" for o in recent)


def points_for(is_correct: bool) -> int:
    """Points awarded for an answer."""
    scoring = load_app_config().scoring
    return scoring.points_correct if is_correct else scoring.points_incorrect


def submit_learner_answer(
    uid: str,
    question_id: int,
    answer: Any,
    now: datetime | None = None,
) -> AnswerOutcome:
    """Check a learner's answer, record it and update points and streak.

    Raises:
        LearnerNotFoundError: If uid is unknown
        QuestionNotFoundError: If question_id is unknown
    """
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid)

    question = get_question_by_id(question_id)
    if question is None:
        raise QuestionNotFoundError(question_id)

    scoring = load_app_config().scoring
    now = now or datetime.now(timezone.utc)

    result = check_answer(answer, question.answer)
    previous = get_recent_outcomes(learner.id, question.id, scoring.mastery_streak - 1)
    mastered = is_mastered(result.is_correct, previous, scoring.mastery_streak)
    points = points_for(result.is_correct)

    recorded = True
    try:
        insert_result(
            learner_id=learner.id,
            question_id=question.id,
            answer=result.normalized_answer,
            outcome="correct" if result.is_correct else "incorrect",
            points=points,
            created_at=now.isoformat(),
        )
    except Exception as e:
        # Recording failures never block the learner's feedback
        recorded = False
        logger.warning(
            "answer.record_failed",
            learner_id=learner.id,
            question_id=question.id,
            error=str(e),
        )

    total_points = add_points(learner.id, points) if recorded else learner.points
    streak = track_answer_for_learner(learner.id, now) if recorded else None

    logger.info(
        "answer.checked",
        learner_id=learner.id,
        question_id=question.id,
        correct=result.is_correct,
        mastered=mastered,
        points=points,
    )

    return AnswerOutcome(
        correct=result.is_correct,
        mastered=mastered,
        explanation=question.explanation,
        correct_answer=question.answer,
        subject=question.subject_name,
        points_earned=points if recorded else 0,
        total_points=total_points,
        streak=streak,
        recorded=recorded,
    )
