"""Exam question endpoints: capture, review and practice."""

from fastapi import APIRouter, HTTPException, Query, status

from examquiz.core.moderation import (
    QuestionDraft,
    capture_question,
    change_status,
    delete_question,
    get_review_queue,
    get_status_counts,
    pick_random_question,
    resubmit_question,
    run_auto_reject,
    set_posted_status,
)
from examquiz.db.questions_repository import get_question_by_id
from examquiz.utils.validators import ExamQuizError
from examquiz.web.errors import http_error
from examquiz.web.schemas import (
    AutoRejectResponse,
    CapturerStatusCountsResponse,
    QuestionCreate,
    QuestionCreatedResponse,
    PostedStatusRequest,
    QuestionResponse,
    ReviewQueueResponse,
    StatusChangeRequest,
)

router = APIRouter(prefix="/api/questions", tags=["questions"])


def _draft(data: QuestionCreate) -> QuestionDraft:
    return QuestionDraft(
        question=data.question,
        type=data.type,
        subject=data.subject,
        grade=data.grade,
        year=data.year,
        term=data.term,
        answer=data.answer,
        curriculum=data.curriculum,
        options=data.options,
        context=data.context,
        explanation=data.explanation,
    )


@router.post("", response_model=QuestionCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create(data: QuestionCreate) -> QuestionCreatedResponse:
    """Capture a new question; it starts in the ``new`` state."""
    try:
        question_id = capture_question(data.uid, _draft(data))
    except ExamQuizError as e:
        raise http_error(e) from e

    return QuestionCreatedResponse(question_id=question_id)


@router.get("/review-queue", response_model=ReviewQueueResponse)
async def review_queue(
    uid: str = Query(..., min_length=1),
    status_filter: str = Query(default="new", alias="status"),
    subject_id: int | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> ReviewQueueResponse:
    """Paginated questions for review, newest first."""
    try:
        queue = get_review_queue(uid, status_filter, subject_id, page, limit)
    except ExamQuizError as e:
        raise http_error(e) from e

    return ReviewQueueResponse.model_validate(queue)


@router.get("/random", response_model=QuestionResponse)
async def random_question(
    uid: str = Query(..., min_length=1),
    subject_name: str = Query(..., min_length=1),
    paper_name: str = Query(..., min_length=1),
) -> QuestionResponse:
    """A random question of "<subject_name> <paper_name>"."""
    try:
        question = pick_random_question(uid, subject_name, paper_name)
    except ExamQuizError as e:
        raise http_error(e) from e

    return QuestionResponse.model_validate(question)


@router.post("/auto-reject", response_model=AutoRejectResponse)
async def auto_reject() -> AutoRejectResponse:
    """Reject approved questions whose answer gives itself away by length."""
    rejected = run_auto_reject()
    return AutoRejectResponse(rejected=rejected, count=len(rejected))


@router.get("/status-counts", response_model=list[CapturerStatusCountsResponse])
async def status_counts(from_date: str | None = None) -> list[CapturerStatusCountsResponse]:
    """Per-capturer status counts, largest total first."""
    return [CapturerStatusCountsResponse(**c.to_dict()) for c in get_status_counts(from_date)]


@router.get("/{question_id}", response_model=QuestionResponse)
async def get(question_id: int) -> QuestionResponse:
    question = get_question_by_id(question_id)
    if question is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question not found",
        )
    return QuestionResponse.model_validate(question)


@router.put("/{question_id}", response_model=QuestionResponse)
async def resubmit(question_id: int, data: QuestionCreate) -> QuestionResponse:
    """Edit a question and send it back to review."""
    try:
        resubmit_question(data.uid, question_id, _draft(data))
    except ExamQuizError as e:
        raise http_error(e) from e

    return QuestionResponse.model_validate(get_question_by_id(question_id))


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(question_id: int, uid: str = Query(..., min_length=1)) -> None:
    """Delete a question; only its capturer or an admin may."""
    try:
        delete_question(uid, question_id)
    except ExamQuizError as e:
        raise http_error(e) from e


@router.put("/{question_id}/status", response_model=QuestionResponse)
async def set_status(question_id: int, request: StatusChangeRequest) -> QuestionResponse:
    """Approve, reject or reopen a question."""
    try:
        question = change_status(request.uid, question_id, request.status, request.comment)
    except ExamQuizError as e:
        raise http_error(e) from e

    return QuestionResponse.model_validate(question)


@router.put("/{question_id}/posted", response_model=QuestionResponse)
async def set_posted(question_id: int, request: PostedStatusRequest) -> QuestionResponse:
    """Flag a question as shared on social channels (admins and capturers)."""
    try:
        question = set_posted_status(request.uid, question_id, request.posted)
    except ExamQuizError as e:
        raise http_error(e) from e

    return QuestionResponse.model_validate(question)
