"""Route handlers for the Web API."""

from examquiz.web.routes.badges import router as badges_router
from examquiz.web.routes.content import router as content_router
from examquiz.web.routes.health import router as health_router
from examquiz.web.routes.leaderboard import router as leaderboard_router
from examquiz.web.routes.learners import router as learners_router
from examquiz.web.routes.questions import router as questions_router
from examquiz.web.routes.reference import router as reference_router
from examquiz.web.routes.stats import router as stats_router
from examquiz.web.routes.streaks import router as streaks_router
from examquiz.web.routes.threads import router as threads_router

__all__ = [
    "badges_router",
    "content_router",
    "health_router",
    "leaderboard_router",
    "learners_router",
    "questions_router",
    "reference_router",
    "stats_router",
    "streaks_router",
    "threads_router",
]
