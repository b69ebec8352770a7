"""Learner onboarding and profile management."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import structlog

from examquiz.core.leaderboard import Tally, build_subject_tallies
from examquiz.db.learners_repository import (
    LearnerRecord,
    add_favorite,
    delete_learner as db_delete_learner,
    get_favorite_question_ids,
    get_learner_by_uid,
    insert_learner,
    remove_favorite,
    update_learner,
)
from examquiz.db.questions_repository import QuestionRecord, get_question_by_id
from examquiz.db.reference_repository import get_grade_by_number, get_subjects
from examquiz.db.results_repository import (
    ResultRow,
    delete_results_for_learner,
    delete_results_for_subject,
    get_results,
)
from examquiz.utils.validators import (
    LearnerNotFoundError,
    NotFoundError,
    QuestionNotFoundError,
    ValidationError,
    validate_email,
)

logger = structlog.get_logger(__name__)

NEW_LEARNER_CURRICULUM = "CAPS,IEB"
PUBLIC_CURRICULUM = "CAPS"

_EDGE_QUOTE = re.compile(r"^[\"']|[\"']$")

# Optional fields copied as given when truthy
_PLAIN_FIELDS = (
    "name",
    "email",
    "school_name",
    "school_address",
    "school_latitude",
    "school_longitude",
    "notification_hour",
    "avatar",
)


@dataclass
class SubjectProgress:
    """A subject of the learner's grade with the learner's answer totals."""

    id: int
    name: str
    tally: Tally

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, **self.tally.to_dict()}


def clean_comma_string(value: Any) -> str:
    """Normalize a comma separated value.

    Items are trimmed, lose one surrounding quote and empty items are
    dropped: ``' "1", 2 ,,3'`` becomes ``'1,2,3'``. Lists are joined first.
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        value = ",".join(str(v) for v in value)

    items = (_EDGE_QUOTE.sub("", item.strip()) for item in str(value).split(","))
    return ",".join(item for item in items if item)


def build_profile_update(data: dict[str, Any], existing: LearnerRecord | None) -> dict[str, Any]:
    """Column values to write for an onboarding payload.

    Grade lookups are left to the caller; only fields present in ``data``
    are returned.
    """
    update: dict[str, Any] = {}

    if data.get("terms") is not None:
        update["terms"] = clean_comma_string(data["terms"])

    curriculum = data.get("curriculum")
    if curriculum is not None:
        update["curriculum"] = (
            NEW_LEARNER_CURRICULUM if existing is None else clean_comma_string(curriculum)
        )

    for key in _PLAIN_FIELDS:
        if data.get(key):
            update[key] = data[key]

    if curriculum == PUBLIC_CURRICULUM:
        update["private_school"] = False
    elif curriculum:
        update["private_school"] = True

    return update


def upsert_learner(uid: str, data: dict[str, Any]) -> tuple[LearnerRecord, bool]:
    """Create a learner or update the provided fields of an existing one.

    Changing the grade of an existing learner deletes its results.

    Returns:
        (learner, is_new)

    Raises:
        ValidationError: If uid is empty or the email is malformed
        NotFoundError: If the grade number does not exist
    """
    if not uid:
        raise ValidationError("UID is required")
    if not validate_email(data.get("email") or ""):
        raise ValidationError("Invalid email address")

    existing = get_learner_by_uid(uid)
    update = build_profile_update(data, existing)

    if data.get("grade"):
        grade = get_grade_by_number(int(data["grade"]))
        if grade is None:
            raise NotFoundError("Grade not found")
        if existing is not None and existing.grade_id != grade.id:
            removed = delete_results_for_learner(existing.id)
            logger.info("learner.grade_changed", uid=uid, grade=grade.number, results_removed=removed)
        update["grade_id"] = grade.id

    if existing is None:
        learner_id = insert_learner(uid, update)
        logger.info("learner.created", uid=uid, learner_id=learner_id)
        return get_learner(uid), True

    if update:
        update_learner(uid, update)
    logger.info("learner.updated", uid=uid, fields=sorted(update))
    return get_learner(uid), False


def get_learner(uid: str) -> LearnerRecord:
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid)
    return learner


def delete_learner(uid: str) -> None:
    """Delete a learner with its results, streak and favourites."""
    if not db_delete_learner(uid):
        raise LearnerNotFoundError(uid)
    logger.info("learner.deleted", uid=uid)


def get_learner_subjects(uid: str) -> list[SubjectProgress]:
    """Active subjects of the learner's grade with answered and correct counts."""
    learner = get_learner(uid)
    if learner.grade_id is None:
        raise NotFoundError("Learner grade not found")

    tallies = build_subject_tallies(get_results(learner_id=learner.id))
    return [
        SubjectProgress(id=s.id, name=s.name, tally=tallies.get(s.name, Tally()))
        for s in get_subjects(grade_id=learner.grade_id, active_only=True)
    ]


def get_learner_results(
    uid: str,
    subject_name: str | None = None,
    paper_name: str | None = None,
) -> list[ResultRow]:
    """Recorded answers of a learner, optionally for "<subject> <paper>"."""
    learner = get_learner(uid)
    full_name = None
    if subject_name:
        full_name = f"{subject_name} {paper_name}" if paper_name else subject_name
    return get_results(learner_id=learner.id, subject_name=full_name)


def remove_subject_results(uid: str, subject_name: str) -> int:
    """Forget a learner's answers for one subject. Returns rows removed."""
    learner = get_learner(uid)
    removed = delete_results_for_subject(learner.id, subject_name)
    logger.info("learner.results_removed", uid=uid, subject=subject_name, count=removed)
    return removed


# =============================================================================
# FAVORITES
# =============================================================================


def list_favorites(uid: str) -> list[QuestionRecord]:
    learner = get_learner(uid)
    questions = (get_question_by_id(qid) for qid in get_favorite_question_ids(learner.id))
    return [q for q in questions if q is not None]


def add_to_favorites(uid: str, question_id: int) -> bool:
    learner = get_learner(uid)
    if get_question_by_id(question_id) is None:
        raise QuestionNotFoundError(question_id)
    added = add_favorite(learner.id, question_id)
    logger.debug("favorite.added", uid=uid, question_id=question_id, added=added)
    return added


def remove_from_favorites(uid: str, question_id: int) -> bool:
    learner = get_learner(uid)
    return remove_favorite(learner.id, question_id)
