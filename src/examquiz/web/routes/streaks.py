"""Daily streak endpoints."""

from fastapi import APIRouter

from examquiz.core.streaks import get_streak_info, track_streak
from examquiz.utils.validators import ExamQuizError
from examquiz.web.errors import http_error
from examquiz.web.schemas import StreakResponse, TrackStreakRequest

router = APIRouter(prefix="/api/streaks", tags=["streaks"])


@router.post("/track", response_model=StreakResponse)
async def track(request: TrackStreakRequest) -> StreakResponse:
    """Count one answered question towards today's streak."""
    try:
        summary = track_streak(request.uid)
    except ExamQuizError as e:
        raise http_error(e) from e

    return StreakResponse.model_validate(summary)


@router.get("/{uid}", response_model=StreakResponse)
async def info(uid: str) -> StreakResponse:
    """Current streak of a learner."""
    try:
        summary = get_streak_info(uid)
    except ExamQuizError as e:
        raise http_error(e) from e

    return StreakResponse.model_validate(summary)
