"""Language-lesson content endpoints: units, lessons, questions and words."""

from fastapi import APIRouter, status

from examquiz.core import content
from examquiz.core.lesson_questions import (
    add_lesson_question,
    edit_lesson_question,
    list_lesson_questions,
    remove_lesson_question,
    reorder_lesson_questions,
)
from examquiz.utils.validators import ExamQuizError
from examquiz.web.errors import http_error
from examquiz.web.schemas import (
    LessonCreate,
    LessonQuestionCreate,
    LessonQuestionResponse,
    LessonResponse,
    LessonUpdate,
    ReorderRequest,
    UnitCreate,
    UnitResponse,
    WordAudioUpdate,
    WordCreate,
    WordGroupCreate,
    WordGroupResponse,
    WordResponse,
    WordTranslationUpdate,
    WordUpdate,
)

router = APIRouter(prefix="/api", tags=["content"])


# =============================================================================
# UNITS
# =============================================================================


@router.get("/units", response_model=list[UnitResponse])
async def list_units() -> list[UnitResponse]:
    return [UnitResponse.model_validate(u) for u in content.list_units()]


@router.post("/units", response_model=UnitResponse, status_code=status.HTTP_201_CREATED)
async def create_unit(data: UnitCreate) -> UnitResponse:
    try:
        unit = content.create_unit(data.title, data.available_languages, data.unit_order)
    except ExamQuizError as e:
        raise http_error(e) from e

    return UnitResponse.model_validate(unit)


@router.get("/units/{unit_id}", response_model=UnitResponse)
async def get_unit(unit_id: int) -> UnitResponse:
    try:
        return UnitResponse.model_validate(content.get_unit(unit_id))
    except ExamQuizError as e:
        raise http_error(e) from e


@router.put("/units/{unit_id}", response_model=UnitResponse)
async def update_unit(unit_id: int, data: UnitCreate) -> UnitResponse:
    try:
        unit = content.edit_unit(unit_id, data.title, data.available_languages, data.unit_order)
    except ExamQuizError as e:
        raise http_error(e) from e

    return UnitResponse.model_validate(unit)


@router.delete("/units/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_unit(unit_id: int) -> None:
    """Delete a unit with its lessons and their questions."""
    try:
        content.remove_unit(unit_id)
    except ExamQuizError as e:
        raise http_error(e) from e


@router.get("/units/{unit_id}/lessons", response_model=list[LessonResponse])
async def list_lessons(unit_id: int) -> list[LessonResponse]:
    try:
        lessons = content.list_lessons(unit_id)
    except ExamQuizError as e:
        raise http_error(e) from e

    return [LessonResponse.model_validate(lesson) for lesson in lessons]


# =============================================================================
# LESSONS
# =============================================================================


@router.post("/lessons", response_model=LessonResponse, status_code=status.HTTP_201_CREATED)
async def create_lesson(data: LessonCreate) -> LessonResponse:
    try:
        lesson = content.create_lesson(data.unit_id, data.title, data.lesson_order)
    except ExamQuizError as e:
        raise http_error(e) from e

    return LessonResponse.model_validate(lesson)


@router.get("/lessons/{lesson_id}", response_model=LessonResponse)
async def get_lesson(lesson_id: int) -> LessonResponse:
    try:
        return LessonResponse.model_validate(content.get_lesson(lesson_id))
    except ExamQuizError as e:
        raise http_error(e) from e


@router.put("/lessons/{lesson_id}", response_model=LessonResponse)
async def update_lesson(lesson_id: int, data: LessonUpdate) -> LessonResponse:
    try:
        lesson = content.edit_lesson(lesson_id, data.title, data.lesson_order)
    except ExamQuizError as e:
        raise http_error(e) from e

    return LessonResponse.model_validate(lesson)


@router.delete("/lessons/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lesson(lesson_id: int) -> None:
    try:
        content.remove_lesson(lesson_id)
    except ExamQuizError as e:
        raise http_error(e) from e


@router.get("/lessons/{lesson_id}/questions", response_model=list[LessonQuestionResponse])
async def list_questions(lesson_id: int) -> list[LessonQuestionResponse]:
    """Questions of a lesson in order."""
    try:
        questions = list_lesson_questions(lesson_id)
    except ExamQuizError as e:
        raise http_error(e) from e

    return [LessonQuestionResponse.model_validate(q) for q in questions]


@router.post(
    "/lessons/{lesson_id}/questions",
    response_model=LessonQuestionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_question(lesson_id: int, data: LessonQuestionCreate) -> LessonQuestionResponse:
    """Append a question to a lesson."""
    try:
        question = add_lesson_question(lesson_id, data.type, data.content)
    except ExamQuizError as e:
        raise http_error(e) from e

    return LessonQuestionResponse.model_validate(question)


@router.put("/lessons/{lesson_id}/questions/order", response_model=list[LessonQuestionResponse])
async def reorder_questions(lesson_id: int, data: ReorderRequest) -> list[LessonQuestionResponse]:
    """Set the order of every question in a lesson."""
    try:
        questions = reorder_lesson_questions(lesson_id, data.question_ids)
    except ExamQuizError as e:
        raise http_error(e) from e

    return [LessonQuestionResponse.model_validate(q) for q in questions]


@router.put("/lessons/{lesson_id}/questions/{question_id}", response_model=LessonQuestionResponse)
async def update_question(
    lesson_id: int, question_id: int, data: LessonQuestionCreate
) -> LessonQuestionResponse:
    try:
        question = edit_lesson_question(lesson_id, question_id, data.type, data.content)
    except ExamQuizError as e:
        raise http_error(e) from e

    return LessonQuestionResponse.model_validate(question)


@router.delete("/lessons/{lesson_id}/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(lesson_id: int, question_id: int) -> None:
    try:
        remove_lesson_question(lesson_id, question_id)
    except ExamQuizError as e:
        raise http_error(e) from e


# =============================================================================
# WORDS
# =============================================================================


@router.get("/words", response_model=list[WordResponse])
async def list_words(group_id: int | None = None) -> list[WordResponse]:
    return [WordResponse.model_validate(w) for w in content.list_words(group_id)]


@router.post("/words", response_model=WordResponse, status_code=status.HTTP_201_CREATED)
async def create_word(data: WordCreate) -> WordResponse:
    try:
        word = content.create_word(data.translations, data.group_id, data.image, data.audio)
    except ExamQuizError as e:
        raise http_error(e) from e

    return WordResponse.model_validate(word)


@router.get("/words/{word_id}", response_model=WordResponse)
async def get_word(word_id: int) -> WordResponse:
    try:
        return WordResponse.model_validate(content.get_word(word_id))
    except ExamQuizError as e:
        raise http_error(e) from e


@router.put("/words/{word_id}", response_model=WordResponse)
async def update_word(word_id: int, data: WordUpdate) -> WordResponse:
    """Update the fields present in the body."""
    try:
        word = content.edit_word(word_id, data.model_dump(exclude_unset=True))
    except ExamQuizError as e:
        raise http_error(e) from e

    return WordResponse.model_validate(word)


@router.put("/words/{word_id}/translation", response_model=WordResponse)
async def set_translation(word_id: int, data: WordTranslationUpdate) -> WordResponse:
    try:
        word = content.set_word_translation(word_id, data.language, data.text)
    except ExamQuizError as e:
        raise http_error(e) from e

    return WordResponse.model_validate(word)


@router.put("/words/{word_id}/audio", response_model=WordResponse)
async def set_audio(word_id: int, data: WordAudioUpdate) -> WordResponse:
    try:
        word = content.set_word_audio(word_id, data.language, data.url)
    except ExamQuizError as e:
        raise http_error(e) from e

    return WordResponse.model_validate(word)


@router.delete("/words/{word_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_word(word_id: int) -> None:
    try:
        content.remove_word(word_id)
    except ExamQuizError as e:
        raise http_error(e) from e


# =============================================================================
# WORD GROUPS
# =============================================================================


@router.get("/word-groups", response_model=list[WordGroupResponse])
async def list_word_groups() -> list[WordGroupResponse]:
    return [WordGroupResponse.model_validate(g) for g in content.list_word_groups()]


@router.post("/word-groups", response_model=WordGroupResponse, status_code=status.HTTP_201_CREATED)
async def create_word_group(data: WordGroupCreate) -> WordGroupResponse:
    try:
        group = content.create_word_group(data.name)
    except ExamQuizError as e:
        raise http_error(e) from e

    return WordGroupResponse.model_validate(group)


@router.put("/word-groups/{group_id}", response_model=WordGroupResponse)
async def rename_word_group(group_id: int, data: WordGroupCreate) -> WordGroupResponse:
    try:
        group = content.rename_word_group(group_id, data.name)
    except ExamQuizError as e:
        raise http_error(e) from e

    return WordGroupResponse.model_validate(group)


@router.delete("/word-groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_word_group(group_id: int) -> None:
    """Delete a group; its words stay, ungrouped."""
    try:
        content.remove_word_group(group_id)
    except ExamQuizError as e:
        raise http_error(e) from e
