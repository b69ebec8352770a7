"""Exam-question capture and moderation.

Responsibilities:
- Validate questions submitted by capturers (quotas, options, answer length)
- Move questions through the review workflow: new -> approved | rejected
- Keep a status log for every transition
- Build the paginated review queue and per-capturer status counts
- Auto-reject multiple-choice questions whose correct answer gives itself
  away by length
- Serve random questions to learners (approved) and reviewers (new)

Roles:
- capturer: creates questions, sees its own questions in the queue
- reviewer, admin: approve or reject, see every question
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Any, Iterable

import structlog

from examquiz.config.app_config import ModerationConfig, load_app_config
from examquiz.db.learners_repository import (
    LearnerRecord,
    get_learner_by_uid,
    get_learner_ids_by_email,
)
from examquiz.db.questions_repository import (
    QuestionFilter,
    QuestionRecord,
    StatusChange,
    count_by_capturer,
    count_questions,
    delete_question as db_delete_question,
    find_question_by_text,
    get_latest_status_change,
    get_question_by_id,
    get_status_rows,
    insert_question,
    insert_status_log,
    list_questions,
    set_posted,
    update_question_content,
    update_question_status,
)
from examquiz.db.reference_repository import get_grade_by_number, get_subject_by_name
from examquiz.utils.validators import (
    LearnerNotFoundError,
    NotFoundError,
    PermissionDeniedError,
    QuestionNotFoundError,
    ValidationError,
    require_role,
)

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

STATUSES = ("new", "approved", "rejected")
QUESTION_TYPES = ("multiple_choice", "multi_select", "single", "true_false")
OPTION_TYPES = ("multiple_choice", "multi_select")
OPTION_KEYS = ("option1", "option2", "option3", "option4")

CAPTURE_ROLES = ("capturer", "reviewer", "admin")
REVIEW_ROLES = ("reviewer", "admin")
QUEUE_ROLES = ("capturer", "reviewer", "admin")
POSTED_ROLES = ("capturer", "admin")

_OPTION_WRAPPER_START = '{"answers":"'
_OPTION_WRAPPER_END = '"}'


class QuestionValidationError(ValidationError):
    """Raised when a captured question breaks a capture rule."""


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class QuestionDraft:
    """A question as submitted by a capturer."""

    question: str
    type: str
    subject: str
    grade: int | None
    year: int | None
    term: int | None
    answer: str | list[str]
    curriculum: str
    options: dict[str, str] = field(default_factory=dict)
    context: str | None = None
    explanation: str | None = None

    @property
    def answers(self) -> list[str]:
        """Accepted answers as a list."""
        if isinstance(self.answer, list):
            return [str(a) for a in self.answer]
        return [self.answer]


@dataclass
class CapturerCounts:
    """Questions a capturer already has in the pipeline."""

    rejected: int = 0
    new: int = 0
    single: int = 0


@dataclass
class ReviewItem:
    """A question in the review queue with its latest status change."""

    question: QuestionRecord
    latest_status_change: StatusChange | None


@dataclass
class ReviewQueuePage:
    """One page of the review queue."""

    items: list[ReviewItem]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0


@dataclass
class CapturerStatusCounts:
    """Status counts of one capturer's questions."""

    capturer_id: int
    name: str
    email: str
    new: int = 0
    approved: int = 0
    rejected: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "capturer": {"id": self.capturer_id, "name": self.name, "email": self.email},
            "counts": {
                "new": self.new,
                "approved": self.approved,
                "rejected": self.rejected,
                "total": self.total,
            },
        }


# =============================================================================
# CAPTURE RULES
# =============================================================================


def clean_option(text: str) -> str:
    """Strip the ``{"answers":"...""}`` wrapper some clients send."""
    return text.replace(_OPTION_WRAPPER_START, "", 1).replace(_OPTION_WRAPPER_END, "", 1)


def validate_draft(
    draft: QuestionDraft,
    counts: CapturerCounts | None,
    limits: ModerationConfig,
) -> None:
    """Apply capture rules to a draft.

    Args:
        draft: Submitted question
        counts: Pipeline counts for new questions, None when editing
        limits: Moderation limits

    Raises:
        QuestionValidationError: On the first rule the draft breaks
    """
    required = (draft.type, draft.subject, draft.grade, draft.year, draft.term, draft.curriculum)
    if any(v in (None, "") for v in required) or not any(a for a in draft.answers):
        raise QuestionValidationError("Missing required fields")

    if draft.type not in QUESTION_TYPES:
        raise QuestionValidationError(f"Unknown question type '{draft.type}'")

    if counts is not None:
        if counts.rejected >= limits.max_rejected:
            raise QuestionValidationError(
                "Cannot create new question - Please fix the errors in your rejected questions"
            )
        if counts.new >= limits.max_new:
            raise QuestionValidationError(
                "Cannot create new question - You have reached the maximum number of new questions"
            )
        if counts.single >= 1:
            raise QuestionValidationError(
                "You have single questions to convert to multiple choice"
            )

    if draft.type in OPTION_TYPES:
        if any(not (draft.options.get(key) or "").strip() for key in OPTION_KEYS):
            raise QuestionValidationError(
                "Options cannot be empty for multiple_choice or multi_select types"
            )

    if draft.type == "single":
        for answer in draft.answers:
            for part in answer.split("|"):
                if len(part.split(" ")) > limits.max_single_answer_words:
                    raise QuestionValidationError(
                        "Too many words in the expected answer, use multiple choice instead"
                    )


def _get_capturer(uid: str) -> LearnerRecord:
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid, "User not found")
    require_role(learner.role, CAPTURE_ROLES)
    return learner


def _resolve_subject_id(draft: QuestionDraft) -> int:
    grade = get_grade_by_number(int(draft.grade)) if draft.grade is not None else None
    subject = get_subject_by_name(draft.subject, grade.id) if grade else None
    if subject is None:
        raise NotFoundError(f"Subject {draft.subject} not found for grade {draft.grade}")
    return subject.id


def capture_question(uid: str, draft: QuestionDraft) -> int:
    """Create a new question for review.

    Returns:
        The new question id

    Raises:
        LearnerNotFoundError: If uid is unknown
        PermissionDeniedError: If the learner may not capture
        QuestionValidationError: If a capture rule fails
        NotFoundError: If the subject does not exist for the grade
    """
    capturer = _get_capturer(uid)
    limits = load_app_config().moderation

    counts = CapturerCounts(
        rejected=count_by_capturer(capturer.id, status="rejected"),
        new=count_by_capturer(capturer.id, status="new"),
        single=count_by_capturer(capturer.id, type="single"),
    )
    validate_draft(draft, counts, limits)
    subject_id = _resolve_subject_id(draft)

    existing = find_question_by_text(subject_id, draft.question)
    if existing is not None:
        raise QuestionValidationError(
            "A question with the same subject and text already exists. "
            f"Question ID: {existing.id}"
        )

    options = {key: clean_option(draft.options.get(key, "")) for key in OPTION_KEYS if key in draft.options}
    question_id = insert_question(
        subject_id=subject_id,
        capturer_id=capturer.id,
        question=draft.question,
        type=draft.type,
        answer=draft.answers,
        options=options,
        context=draft.context,
        explanation=draft.explanation,
        year=draft.year,
        term=draft.term,
        curriculum=draft.curriculum or "CAPS",
    )
    insert_status_log(question_id, None, "new", None, capturer.id)

    logger.info("question.captured", question_id=question_id, capturer_id=capturer.id)
    return question_id


def resubmit_question(uid: str, question_id: int, draft: QuestionDraft) -> None:
    """Edit a captured question and send it back to review.

    Only the capturer of the question or an admin may edit it. Quotas do
    not apply to edits.
    """
    editor = _get_capturer(uid)
    question = get_question_by_id(question_id)
    if question is None:
        raise QuestionNotFoundError(question_id)
    if editor.role != "admin" and question.capturer_id != editor.id:
        raise PermissionDeniedError()

    validate_draft(draft, None, load_app_config().moderation)
    subject_id = _resolve_subject_id(draft)

    existing = find_question_by_text(subject_id, draft.question)
    if existing is not None and existing.id != question_id:
        raise QuestionValidationError(
            "A question with the same subject and text already exists. "
            f"Question ID: {existing.id}"
        )

    update_question_content(
        question_id=question_id,
        subject_id=subject_id,
        question=draft.question,
        type=draft.type,
        answer=draft.answers,
        options={key: clean_option(v) for key, v in draft.options.items() if key in OPTION_KEYS},
        context=draft.context,
        explanation=draft.explanation,
        year=draft.year,
        term=draft.term,
        curriculum=draft.curriculum or "CAPS",
    )
    if question.status != "new":
        insert_status_log(question_id, question.status, "new", "resubmitted", editor.id)

    logger.info("question.resubmitted", question_id=question_id, editor_id=editor.id)


def delete_question(uid: str, question_id: int) -> None:
    """Delete a question owned by the caller, or any question for admins."""
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid, "User not found")
    question = get_question_by_id(question_id)
    if question is None:
        raise QuestionNotFoundError(question_id)
    if learner.role != "admin" and question.capturer_id != learner.id:
        raise PermissionDeniedError()

    db_delete_question(question_id)
    logger.info("question.deleted", question_id=question_id, by=learner.id)


# =============================================================================
# REVIEW WORKFLOW
# =============================================================================


def change_status(
    uid: str,
    question_id: int,
    status: str,
    comment: str | None = None,
) -> QuestionRecord:
    """Approve, reject or reopen a question.

    Approving also activates the question. Every change is logged.

    Raises:
        LearnerNotFoundError: If uid is unknown
        PermissionDeniedError: If the learner is not a reviewer or admin
        QuestionNotFoundError: If question_id is unknown
        ValidationError: If status is not a known status
    """
    if status not in STATUSES:
        raise ValidationError(f"Invalid status '{status}'")

    reviewer = get_learner_by_uid(uid)
    if reviewer is None:
        raise LearnerNotFoundError(uid, "Admin not found")
    require_role(reviewer.role, REVIEW_ROLES)

    question = get_question_by_id(question_id)
    if question is None:
        raise QuestionNotFoundError(question_id)

    update_question_status(
        question_id,
        status,
        reviewer_id=reviewer.id,
        comment=comment,
        activate=status == "approved",
    )
    insert_status_log(question_id, question.status, status, comment, reviewer.id)

    logger.info(
        "question.status_changed",
        question_id=question_id,
        old_status=question.status,
        new_status=status,
        reviewer_id=reviewer.id,
    )
    updated = get_question_by_id(question_id)
    if updated is None:
        raise QuestionNotFoundError(question_id)
    return updated


def set_posted_status(uid: str, question_id: int, posted: bool) -> QuestionRecord:
    """Mark a question as shared (or not yet shared) on social channels.

    Raises:
        LearnerNotFoundError: If uid is unknown
        PermissionDeniedError: Unless the caller is an admin or capturer
        QuestionNotFoundError: If question_id is unknown
    """
    user = get_learner_by_uid(uid)
    if user is None:
        raise LearnerNotFoundError(uid, "User not found")
    if user.role not in POSTED_ROLES:
        raise PermissionDeniedError(
            "Unauthorized: Only admins and capturers can update posted status"
        )

    if not set_posted(question_id, posted):
        raise QuestionNotFoundError(question_id)

    logger.info("question.posted_changed", question_id=question_id, posted=posted, by=user.id)
    question = get_question_by_id(question_id)
    if question is None:
        raise QuestionNotFoundError(question_id)
    return question


def get_review_queue(
    uid: str,
    status: str = "new",
    subject_id: int | None = None,
    page: int = 1,
    limit: int = 20,
) -> ReviewQueuePage:
    """Paginated questions awaiting (or past) review, newest first.

    Capturers only see questions captured by accounts sharing their email.
    """
    viewer = get_learner_by_uid(uid)
    if viewer is None:
        raise LearnerNotFoundError(uid, "Admin not found")
    require_role(viewer.role, QUEUE_ROLES)

    page = max(page, 1)
    limit = max(limit, 1)
    flt = QuestionFilter(status=status, subject_id=subject_id)
    if viewer.role == "capturer":
        flt.capturer_ids = get_learner_ids_by_email(viewer.email) or [viewer.id]

    total = count_questions(flt)
    questions = list_questions(flt, offset=(page - 1) * limit, limit=limit)
    items = [ReviewItem(q, get_latest_status_change(q.id)) for q in questions]

    return ReviewQueuePage(items=items, total=total, page=page, limit=limit)


# =============================================================================
# AUTO-REJECT
# =============================================================================


def auto_reject_reason(question: QuestionRecord, length_gap: int) -> str | None:
    """Why a multiple-choice question should be rejected, if it should.

    The correct answer must not be more than ``length_gap`` characters longer,
    on average, than the incorrect options.
    """
    answers = [a for a in question.answer if a]
    options = list(question.options.values())
    if not answers or not options:
        return None

    incorrect = [o for o in options if o not in answers]
    # Answer missing from the options, or nothing to compare against
    if len(incorrect) == len(options) or not incorrect:
        return None

    avg_correct = sum(len(a) for a in answers) / len(answers)
    avg_incorrect = sum(len(o) for o in incorrect) / len(incorrect)
    if avg_correct - avg_incorrect > length_gap:
        return (
            f"Auto-rejected: answer length is {avg_correct:g} "
            f"and average incorrect length is {avg_incorrect:g}"
        )
    return None


def run_auto_reject() -> list[int]:
    """Reject approved multiple-choice questions with a give-away answer.

    Returns:
        Ids of the rejected questions
    """
    gap = load_app_config().moderation.auto_reject_length_gap
    candidates = list_questions(
        QuestionFilter(status="approved", active=True, types=list(OPTION_TYPES))
    )

    rejected = []
    for question in candidates:
        reason = auto_reject_reason(question, gap)
        if reason is None:
            continue
        update_question_status(question.id, "rejected", reviewer_id=None, comment=reason)
        insert_status_log(question.id, question.status, "rejected", reason, None)
        rejected.append(question.id)

    logger.info("questions.auto_rejected", checked=len(candidates), rejected=len(rejected))
    return rejected


# =============================================================================
# DASHBOARD COUNTS
# =============================================================================


def build_status_counts(rows: Iterable[dict[str, Any]]) -> list[CapturerStatusCounts]:
    """Per-capturer status counts, largest total first.

    Rows without a capturer are skipped; unknown statuses only count
    towards the total.
    """
    per_capturer: dict[int, CapturerStatusCounts] = {}
    for row in rows:
        capturer_id = row.get("capturer_id")
        if capturer_id is None:
            continue
        counts = per_capturer.setdefault(
            capturer_id,
            CapturerStatusCounts(
                capturer_id=capturer_id,
                name=row.get("capturer_name") or "",
                email=row.get("capturer_email") or "",
            ),
        )
        status = (row.get("status") or "new").lower()
        if status in STATUSES:
            setattr(counts, status, getattr(counts, status) + 1)
        counts.total += 1

    return sorted(per_capturer.values(), key=lambda c: (-c.total, c.capturer_id))


def get_status_counts(from_date: str | None = None) -> list[CapturerStatusCounts]:
    """Per-capturer status counts of active questions."""
    return build_status_counts(get_status_rows(from_date))


# =============================================================================
# RANDOM QUESTIONS
# =============================================================================


def shuffle_options(options: dict[str, str], rng: random.Random) -> dict[str, str]:
    """Shuffle option values while keeping the option keys in place."""
    values = list(options.values())
    rng.shuffle(values)
    return dict(zip(options.keys(), values))


def pick_random_question(
    uid: str,
    subject_name: str,
    paper_name: str,
    rng: random.Random | None = None,
) -> QuestionRecord:
    """A random question of "<subject_name> <paper_name>" with shuffled options.

    Learners get approved, active questions for their grade; reviewers and
    admins get new questions awaiting review.
    """
    rng = rng or random.Random()
    learner = get_learner_by_uid(uid)
    if learner is None:
        raise LearnerNotFoundError(uid)

    full_name = f"{subject_name} {paper_name}"

    if learner.role in REVIEW_ROLES:
        candidates = [
            q
            for q in list_questions(QuestionFilter(status="new", active=True))
            if q.subject_name == full_name
        ]
        if not candidates:
            raise NotFoundError("No new questions found for review")
    else:
        if learner.grade_id is None:
            raise NotFoundError("Learner grade not found")
        subject = get_subject_by_name(full_name, learner.grade_id)
        if subject is None:
            raise NotFoundError("Subject not found")
        candidates = list_questions(
            QuestionFilter(status="approved", active=True, subject_id=subject.id)
        )
        if not candidates:
            raise NotFoundError("No more questions available")

    question = rng.choice(candidates)
    if question.options:
        question.options = shuffle_options(question.options, rng)
    return question
