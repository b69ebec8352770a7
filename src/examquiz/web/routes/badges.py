"""Badge catalogue endpoints."""

from fastapi import APIRouter, status

from examquiz.core.achievements import create_badge, list_badges
from examquiz.utils.validators import ExamQuizError
from examquiz.web.errors import http_error
from examquiz.web.schemas import BadgeCreate, BadgeResponse

router = APIRouter(prefix="/api/badges", tags=["badges"])


@router.get("", response_model=list[BadgeResponse])
async def list_all() -> list[BadgeResponse]:
    return [BadgeResponse.model_validate(b) for b in list_badges()]


@router.post("", response_model=BadgeResponse, status_code=status.HTTP_201_CREATED)
async def create(data: BadgeCreate) -> BadgeResponse:
    """Add a badge to the catalogue (admins only)."""
    try:
        badge = create_badge(data.uid, data.name, data.rules, data.category, data.image)
    except ExamQuizError as e:
        raise http_error(e) from e

    return BadgeResponse.model_validate(badge)
