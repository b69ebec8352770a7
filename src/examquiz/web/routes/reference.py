"""Grade and subject endpoints."""

from fastapi import APIRouter, status

from examquiz.core.reference import create_grade, create_subject
from examquiz.db.reference_repository import get_all_grades, get_subjects
from examquiz.utils.validators import ExamQuizError
from examquiz.web.errors import http_error
from examquiz.web.schemas import GradeCreate, GradeResponse, SubjectCreate, SubjectResponse

router = APIRouter(prefix="/api", tags=["reference"])


@router.get("/grades", response_model=list[GradeResponse])
async def list_grades() -> list[GradeResponse]:
    return [GradeResponse.model_validate(g) for g in get_all_grades()]


@router.post("/grades", response_model=GradeResponse, status_code=status.HTTP_201_CREATED)
async def add_grade(data: GradeCreate) -> GradeResponse:
    try:
        grade = create_grade(data.number, data.active)
    except ExamQuizError as e:
        raise http_error(e) from e

    return GradeResponse.model_validate(grade)


@router.get("/subjects", response_model=list[SubjectResponse])
async def list_subjects(grade_id: int | None = None, active_only: bool = False) -> list[SubjectResponse]:
    """Subjects, optionally of one grade."""
    return [SubjectResponse.model_validate(s) for s in get_subjects(grade_id, active_only)]


@router.post("/subjects", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def add_subject(data: SubjectCreate) -> SubjectResponse:
    try:
        subject = create_subject(data.name, data.grade_id, data.active)
    except ExamQuizError as e:
        raise http_error(e) from e

    return SubjectResponse.model_validate(subject)
