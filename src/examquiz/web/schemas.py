"""Pydantic schemas for the Web API.

Request bodies and response models. Response models read straight from the
repository/core dataclasses (``from_attributes``).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    timestamp: str


class StatusResponse(BaseModel):
    """Generic acknowledgement."""

    status: str = "OK"
    message: str


# =============================================================================
# LEARNER SCHEMAS
# =============================================================================


class LearnerUpsert(BaseModel):
    """Onboarding payload; only provided fields are written."""

    uid: str = Field(..., min_length=1)
    name: str | None = None
    email: str | None = None
    grade: int | None = None
    curriculum: str | list[str] | None = None
    terms: str | list[str | int] | int | None = None
    school_name: str | None = None
    school_address: str | None = None
    school_latitude: float | None = None
    school_longitude: float | None = None
    notification_hour: int | None = Field(default=None, ge=0, le=23)
    avatar: str | None = None


class LearnerResponse(BaseModel):
    """Response for a learner."""

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

    model_config = {"from_attributes": True}


class LearnerUpsertResponse(BaseModel):
    """Response for the onboarding call."""

    status: str = "OK"
    message: str = "Successfully updated learner"
    is_new: bool
    learner: LearnerResponse


class TallyResponse(BaseModel):
    total: int
    correct: int
    incorrect: int
    accuracy: int

    model_config = {"from_attributes": True}


class SubjectProgressResponse(BaseModel):
    """A subject of the learner's grade with answer totals."""

    id: int
    name: str
    total: int
    correct: int
    incorrect: int
    accuracy: int


class ResultResponse(BaseModel):
    """A recorded answer."""

    id: int
    question_id: int
    subject_id: int
    subject_name: str
    answer: str
    outcome: str
    points: int
    created_at: str

    model_config = {"from_attributes": True}


class LearnerStatsResponse(BaseModel):
    """Learner totals over a period."""

    period: int
    total_questions: int
    correct_answers: int
    accuracy: int
    subjects: dict[str, TallyResponse]
    daily: dict[str, TallyResponse]


# =============================================================================
# ANSWER / STREAK SCHEMAS
# =============================================================================


class StreakResponse(BaseModel):
    """Daily streak status."""

    current_streak: int
    longest_streak: int
    questions_answered_today: int
    questions_needed_today: int
    streak_maintained: bool

    model_config = {"from_attributes": True}


class CheckAnswerRequest(BaseModel):
    """A learner's answer to a question."""

    uid: str = Field(..., min_length=1)
    question_id: int
    answer: Any = Field(...)


class CheckAnswerResponse(BaseModel):
    """Outcome of a checked answer."""

    correct: bool
    mastered: bool
    message: str
    explanation: str | None
    correct_answer: list[str]
    subject: str
    points_earned: int
    total_points: int
    streak: StreakResponse | None = None
    recorded: bool = True

    model_config = {"from_attributes": True}


class TrackStreakRequest(BaseModel):
    uid: str = Field(..., min_length=1)


# =============================================================================
# LEADERBOARD SCHEMAS
# =============================================================================


class LeaderboardEntryResponse(BaseModel):
    """One ranked learner."""

    learner_id: int
    name: str
    grade: int | None
    total_questions: int
    correct_answers: int
    accuracy: int
    unique_subjects: int
    subjects: list[str]
    last_active: str | None
    score: int

    model_config = {"from_attributes": True}


class LeaderboardResponse(BaseModel):
    """Rankings with the caller's position."""

    period: int
    rankings: list[LeaderboardEntryResponse]
    user_rank: int | None = None
    user_score: int = 0

    model_config = {"from_attributes": True}


# =============================================================================
# ACHIEVEMENT / BADGE SCHEMAS
# =============================================================================


class AchievementItem(BaseModel):
    id: str
    name: str
    description: str
    achieved: bool


class AchievementsResponse(BaseModel):
    """Earned and outstanding achievements of a learner."""

    earned: int
    total: int
    current_streak: int
    max_streak: int
    items: list[AchievementItem]


class BadgeCreate(BaseModel):
    """New badge; uid must belong to an admin."""

    uid: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    rules: str = ""
    category: str = "Achievement"
    image: str | None = None


class BadgeResponse(BaseModel):
    id: int
    name: str
    image: str | None
    rules: str
    category: str

    model_config = {"from_attributes": True}


class BadgeAwardRequest(BaseModel):
    badge_id: int


class LearnerBadgeResponse(BaseModel):
    """A badge held by a learner."""

    badge_id: int
    name: str
    image: str | None
    rules: str
    category: str
    earned_at: str

    model_config = {"from_attributes": True}


# =============================================================================
# REFERENCE DATA SCHEMAS
# =============================================================================


class GradeCreate(BaseModel):
    number: int = Field(..., ge=1, le=12)
    active: bool = True


class GradeResponse(BaseModel):
    id: int
    number: int
    active: bool

    model_config = {"from_attributes": True}


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    grade_id: int
    active: bool = True


class SubjectResponse(BaseModel):
    id: int
    name: str
    grade_id: int
    grade_number: int
    active: bool

    model_config = {"from_attributes": True}


# =============================================================================
# EXAM QUESTION SCHEMAS
# =============================================================================


class QuestionCreate(BaseModel):
    """A question captured by a capturer."""

    uid: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)
    type: Literal["multiple_choice", "multi_select", "single", "true_false"]
    subject: str
    grade: int | None = None
    year: int | None = None
    term: int | None = None
    answer: str | list[str]
    curriculum: str = "CAPS"
    options: dict[str, str] = Field(default_factory=dict)
    context: str | None = None
    explanation: str | None = None


class QuestionResponse(BaseModel):
    """Response for an exam question."""

    id: int
    subject_id: int
    subject_name: str
    grade_number: int
    capturer_id: int | None
    reviewer_id: int | None
    question: str
    type: str
    context: str | None
    answer: list[str]
    options: dict[str, str]
    explanation: str | None
    year: int | None
    term: int | None
    curriculum: str
    status: str
    comment: str | None
    active: bool
    posted: bool
    created_at: str
    updated_at: str
    reviewed_at: str | None = None
    capturer_name: str | None = None
    capturer_email: str | None = None

    model_config = {"from_attributes": True}


class QuestionCreatedResponse(BaseModel):
    status: str = "OK"
    message: str = "Question created successfully"
    question_id: int


class StatusChangeRequest(BaseModel):
    """Review decision on a question."""

    uid: str = Field(..., min_length=1)
    status: Literal["new", "approved", "rejected"]
    comment: str | None = None


class PostedStatusRequest(BaseModel):
    uid: str = Field(..., min_length=1)
    posted: bool


class StatusChangeResponse(BaseModel):
    """One moderation history entry."""

    old_status: str | None
    new_status: str
    feedback: str | None
    changed_by: str | None
    created_at: str

    model_config = {"from_attributes": True}


class ReviewItemResponse(BaseModel):
    question: QuestionResponse
    latest_status_change: StatusChangeResponse | None = None

    model_config = {"from_attributes": True}


class ReviewQueueResponse(BaseModel):
    """One page of the review queue."""

    items: list[ReviewItemResponse]
    total: int
    page: int
    limit: int
    total_pages: int

    model_config = {"from_attributes": True}


class AutoRejectResponse(BaseModel):
    rejected: list[int]
    count: int


class CapturerInfo(BaseModel):
    id: int
    name: str
    email: str


class StatusCounts(BaseModel):
    new: int = 0
    approved: int = 0
    rejected: int = 0
    total: int = 0


class CapturerStatusCountsResponse(BaseModel):
    capturer: CapturerInfo
    counts: StatusCounts


class QuestionStatsResponse(BaseModel):
    """Question totals for the admin dashboard."""

    total: int
    by_status: dict[str, int]
    by_subject: dict[str, dict[str, int]]


class RejectedByCapturer(BaseModel):
    capturer_id: int
    name: str
    email: str
    rejected: int


class DashboardResponse(BaseModel):
    learners: int
    questions: int
    new_questions: int
    answers: int
    rejected_by_capturer: list[RejectedByCapturer]


# =============================================================================
# LESSON CONTENT SCHEMAS
# =============================================================================


class UnitCreate(BaseModel):
    title: str
    available_languages: list[str] = Field(default_factory=list)
    unit_order: int | None = Field(default=None, ge=0)


class UnitResponse(BaseModel):
    id: int
    title: str
    unit_order: int
    available_languages: list[str]
    lesson_count: int = 0

    model_config = {"from_attributes": True}


class LessonCreate(BaseModel):
    unit_id: int
    title: str
    lesson_order: int | None = Field(default=None, ge=0)


class LessonUpdate(BaseModel):
    title: str
    lesson_order: int | None = Field(default=None, ge=0)


class LessonResponse(BaseModel):
    id: int
    unit_id: int
    title: str
    lesson_order: int
    question_count: int = 0

    model_config = {"from_attributes": True}


class LessonQuestionCreate(BaseModel):
    """Lesson question; ``content`` shape depends on ``type``."""

    type: str
    content: dict[str, Any] = Field(default_factory=dict)


class LessonQuestionResponse(BaseModel):
    id: int
    lesson_id: int
    type: str
    question_order: int
    content: dict[str, Any]

    model_config = {"from_attributes": True}


class ReorderRequest(BaseModel):
    question_ids: list[int]


class WordCreate(BaseModel):
    translations: dict[str, str]
    group_id: int | None = None
    image: str | None = None
    audio: dict[str, str] = Field(default_factory=dict)


class WordUpdate(BaseModel):
    translations: dict[str, str] | None = None
    group_id: int | None = None
    image: str | None = None
    audio: dict[str, str] | None = None


class WordTranslationUpdate(BaseModel):
    language: str = Field(..., min_length=1)
    text: str = ""


class WordAudioUpdate(BaseModel):
    language: str = Field(..., min_length=1)
    url: str | None = None


class WordResponse(BaseModel):
    id: int
    group_id: int | None
    image: str | None
    translations: dict[str, str]
    audio: dict[str, str]

    model_config = {"from_attributes": True}


class WordGroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class WordGroupResponse(BaseModel):
    id: int
    name: str
    word_count: int = 0

    model_config = {"from_attributes": True}


# =============================================================================
# DISCUSSION SCHEMAS
# =============================================================================


class ThreadCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    subject_id: int
    created_by_id: str = Field(..., min_length=1)
    created_by_name: str | None = None
    grade: int | None = None
    initial_message: str | None = Field(default=None, max_length=2000)


class MessageCreate(BaseModel):
    author_uid: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1, max_length=2000)
    user_name: str | None = None


class MessageResponse(BaseModel):
    id: int
    thread_id: int
    author_uid: str
    user_name: str
    text: str
    reported: bool
    created_at: str

    model_config = {"from_attributes": True}


class ThreadResponse(BaseModel):
    id: int
    title: str
    subject_id: int
    subject_name: str
    grade: int | None
    created_by_id: str
    created_by_name: str
    created_at: str
    message_count: int = 0
    last_message: MessageResponse | None = None

    model_config = {"from_attributes": True}
