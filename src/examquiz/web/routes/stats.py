"""Admin dashboard endpoints."""

from fastapi import APIRouter

from examquiz.core.stats import get_dashboard_totals, get_question_stats
from examquiz.web.schemas import DashboardResponse, QuestionStatsResponse

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("/questions", response_model=QuestionStatsResponse)
async def question_stats() -> QuestionStatsResponse:
    """Question counts per status and per subject."""
    return QuestionStatsResponse(**get_question_stats().to_dict())


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(from_date: str | None = None) -> DashboardResponse:
    """Learner, question and answer totals."""
    return DashboardResponse(**get_dashboard_totals(from_date))
