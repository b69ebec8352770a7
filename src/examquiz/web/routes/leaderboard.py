"""Leaderboard endpoint."""

from fastapi import APIRouter, Query

from examquiz.core.leaderboard import get_leaderboard
from examquiz.utils.validators import ExamQuizError
from examquiz.web.errors import http_error
from examquiz.web.schemas import LeaderboardResponse

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def leaderboard(
    uid: str = Query(..., min_length=1),
    period: int | None = Query(default=None, ge=1),
    subject_id: int | None = None,
    grade_id: int | None = None,
    limit: int | None = Query(default=None, ge=1, le=100),
) -> LeaderboardResponse:
    """Top learners over the last ``period`` days with the caller's rank."""
    try:
        board = get_leaderboard(uid, period, subject_id, grade_id, limit)
    except ExamQuizError as e:
        raise http_error(e) from e

    return LeaderboardResponse.model_validate(board)
