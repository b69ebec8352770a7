"""Learner endpoints: onboarding, answers, results, favourites and badges."""

from fastapi import APIRouter, HTTPException, Query, status

from examquiz.core.achievements import award_badge, get_achievements, list_learner_badges
from examquiz.core.answer_checker import submit_learner_answer
from examquiz.core.leaderboard import get_learner_stats
from examquiz.core.learner_profile import (
    add_to_favorites,
    delete_learner,
    get_learner,
    get_learner_results,
    get_learner_subjects,
    list_favorites,
    remove_from_favorites,
    remove_subject_results,
    upsert_learner,
)
from examquiz.utils.validators import ExamQuizError
from examquiz.web.errors import http_error
from examquiz.web.schemas import (
    AchievementsResponse,
    BadgeAwardRequest,
    CheckAnswerRequest,
    CheckAnswerResponse,
    LearnerBadgeResponse,
    LearnerResponse,
    LearnerStatsResponse,
    LearnerUpsert,
    LearnerUpsertResponse,
    QuestionResponse,
    ResultResponse,
    StatusResponse,
    SubjectProgressResponse,
)

router = APIRouter(prefix="/api/learners", tags=["learners"])


@router.post("", response_model=LearnerUpsertResponse)
async def upsert(data: LearnerUpsert) -> LearnerUpsertResponse:
    """Create a learner or update the provided profile fields."""
    try:
        learner, is_new = upsert_learner(data.uid, data.model_dump(exclude_none=True))
    except ExamQuizError as e:
        raise http_error(e) from e

    return LearnerUpsertResponse(
        is_new=is_new,
        learner=LearnerResponse.model_validate(learner),
    )


@router.post("/check-answer", response_model=CheckAnswerResponse)
async def check_answer(request: CheckAnswerRequest) -> CheckAnswerResponse:
    """Check an answer, record it and update points and streak."""
    if request.answer is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields",
        )
    try:
        outcome = submit_learner_answer(request.uid, request.question_id, request.answer)
    except ExamQuizError as e:
        raise http_error(e) from e

    return CheckAnswerResponse.model_validate(outcome)


@router.get("/{uid}", response_model=LearnerResponse)
async def get(uid: str) -> LearnerResponse:
    """Get a learner by uid."""
    try:
        return LearnerResponse.model_validate(get_learner(uid))
    except ExamQuizError as e:
        raise http_error(e) from e


@router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(uid: str) -> None:
    """Delete a learner with results, streak and favourites."""
    try:
        delete_learner(uid)
    except ExamQuizError as e:
        raise http_error(e) from e


@router.get("/{uid}/subjects", response_model=list[SubjectProgressResponse])
async def subjects(uid: str) -> list[SubjectProgressResponse]:
    """Subjects of the learner's grade with answer totals."""
    try:
        progress = get_learner_subjects(uid)
    except ExamQuizError as e:
        raise http_error(e) from e

    return [SubjectProgressResponse(**p.to_dict()) for p in progress]


@router.get("/{uid}/results", response_model=list[ResultResponse])
async def results(
    uid: str,
    subject_name: str | None = None,
    paper_name: str | None = None,
) -> list[ResultResponse]:
    """Recorded answers, optionally for one subject paper."""
    try:
        rows = get_learner_results(uid, subject_name, paper_name)
    except ExamQuizError as e:
        raise http_error(e) from e

    return [ResultResponse.model_validate(r) for r in rows]


@router.delete("/{uid}/results", response_model=StatusResponse)
async def remove_results(uid: str, subject_name: str = Query(..., min_length=1)) -> StatusResponse:
    """Forget the learner's answers for one subject."""
    try:
        removed = remove_subject_results(uid, subject_name)
    except ExamQuizError as e:
        raise http_error(e) from e

    return StatusResponse(message=f"Removed {removed} results")


@router.get("/{uid}/stats", response_model=LearnerStatsResponse)
async def stats(uid: str, period: int | None = Query(default=None, ge=1)) -> LearnerStatsResponse:
    """Totals per subject and per day over the last ``period`` days."""
    try:
        learner_stats = get_learner_stats(uid, period)
    except ExamQuizError as e:
        raise http_error(e) from e

    return LearnerStatsResponse(**learner_stats.to_dict())


# =============================================================================
# FAVORITES
# =============================================================================


@router.get("/{uid}/favorites", response_model=list[QuestionResponse])
async def favorites(uid: str) -> list[QuestionResponse]:
    try:
        questions = list_favorites(uid)
    except ExamQuizError as e:
        raise http_error(e) from e

    return [QuestionResponse.model_validate(q) for q in questions]


@router.post("/{uid}/favorites/{question_id}", status_code=status.HTTP_201_CREATED)
async def add_favorite(uid: str, question_id: int) -> StatusResponse:
    try:
        added = add_to_favorites(uid, question_id)
    except ExamQuizError as e:
        raise http_error(e) from e

    return StatusResponse(message="Added to favorites" if added else "Already a favorite")


@router.delete("/{uid}/favorites/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_favorite(uid: str, question_id: int) -> None:
    try:
        removed = remove_from_favorites(uid, question_id)
    except ExamQuizError as e:
        raise http_error(e) from e

    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Favorite not found",
        )


# =============================================================================
# ACHIEVEMENTS AND BADGES
# =============================================================================


@router.get("/{uid}/achievements", response_model=AchievementsResponse)
async def achievements(uid: str) -> AchievementsResponse:
    """Achievements earned from every recorded answer."""
    try:
        summary = get_achievements(uid)
    except ExamQuizError as e:
        raise http_error(e) from e

    return AchievementsResponse(**summary.to_dict())


@router.get("/{uid}/badges", response_model=list[LearnerBadgeResponse])
async def badges(uid: str) -> list[LearnerBadgeResponse]:
    try:
        held = list_learner_badges(uid)
    except ExamQuizError as e:
        raise http_error(e) from e

    return [LearnerBadgeResponse.model_validate(b) for b in held]


@router.post(
    "/{uid}/badges",
    response_model=LearnerBadgeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_badge(uid: str, request: BadgeAwardRequest) -> LearnerBadgeResponse:
    """Give a badge to the learner."""
    try:
        badge = award_badge(uid, request.badge_id)
    except ExamQuizError as e:
        raise http_error(e) from e

    return LearnerBadgeResponse.model_validate(badge)
