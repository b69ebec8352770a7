"""Lesson question authoring.

Each lesson question has a ``type`` and a JSON ``content`` whose shape
depends on the type. Word references (options, sentence words, possible
answers) are word ids stored as strings.

Validation is a dispatch table keyed by type (see VALIDATORS); every
validator raises LessonQuestionValidationError with a user-facing message.
"""

from __future__ import annotations

from typing import Any, Callable

import structlog

from examquiz.db.content_repository import (
    LessonQuestionRecord,
    delete_lesson_question,
    get_existing_word_ids,
    get_lesson_by_id,
    get_lesson_question,
    get_lesson_questions,
    insert_lesson_question,
    set_lesson_question_orders,
    update_lesson_question,
)
from examquiz.utils.validators import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

POSSIBLE_ANSWER_SLOTS = 6
DIRECTIONS = ("from_english", "to_english")
MATCH_TYPES = ("text", "audio")

# Content keys whose empty entries are dropped once the content validates
_CLEANED_KEYS: dict[str, tuple[str, ...]] = {
    "translate": ("sentence", "options"),
    "tap_what_you_hear": ("options", "possibleAnswers"),
    "type_what_you_hear": ("options",),
    "fill_in_blank": ("options",),
    "complete_translation": ("options",),
}


class LessonQuestionValidationError(ValidationError):
    """Raised when lesson question content does not fit its type."""


# =============================================================================
# VALIDATORS
# =============================================================================


def _words(content: dict[str, Any], key: str) -> list[str]:
    value = content.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise LessonQuestionValidationError(f"'{key}' must be a list")
    return ["" if v is None else str(v) for v in value]


def _require_length(words: list[str], length: int, message: str) -> None:
    if len(words) != length:
        raise LessonQuestionValidationError(message)


def _require_some(words: list[str], message: str) -> None:
    if not any(words):
        raise LessonQuestionValidationError(message)


def _blank_index(content: dict[str, Any], options: list[str]) -> None:
    index = content.get("blankIndex")
    if not isinstance(index, int) or isinstance(index, bool) or index < 0:
        raise LessonQuestionValidationError("Must select a word to omit")
    if index >= len([o for o in options if o]):
        raise LessonQuestionValidationError("Omitted word must be one of the options")


def _validate_select_image(content: dict[str, Any]) -> None:
    _require_length(_words(content, "options"), 4, "Must provide exactly 4 word options")
    if any(not o for o in _words(content, "options")):
        raise LessonQuestionValidationError("Must provide exactly 4 word options")
    correct = content.get("correct")
    if not isinstance(correct, int) or isinstance(correct, bool) or not 0 <= correct <= 3:
        raise LessonQuestionValidationError("Correct answer must be between 0 and 3")


def _validate_translate(content: dict[str, Any]) -> None:
    _require_some(_words(content, "sentence"), "At least one word is required for the sentence")
    _require_length(_words(content, "options"), 6, "Must provide exactly 6 possible answers")
    if content.get("direction") not in DIRECTIONS:
        raise LessonQuestionValidationError("Translation direction is required")


def _validate_tap_what_you_hear(content: dict[str, Any]) -> None:
    _require_some(_words(content, "options"), "At least one word is required")
    _require_length(
        _words(content, "possibleAnswers"),
        POSSIBLE_ANSWER_SLOTS,
        "Must provide exactly 6 possible answers",
    )


def _validate_type_what_you_hear(content: dict[str, Any]) -> None:
    _require_some(_words(content, "options"), "At least one word is required")


def _validate_blank(content: dict[str, Any]) -> None:
    options = _words(content, "options")
    _require_some(options, "At least one word is required")
    _blank_index(content, options)


def _validate_match_pairs(content: dict[str, Any]) -> None:
    options = _words(content, "options")
    _require_length(options, 4, "Must provide exactly 4 options")
    if any(not o for o in options) or len(set(options)) != 4:
        raise LessonQuestionValidationError("Match pairs need 4 different words")
    if content.get("matchType", "text") not in MATCH_TYPES:
        raise LessonQuestionValidationError("Match type must be 'text' or 'audio'")


VALIDATORS: dict[str, Callable[[dict[str, Any]], None]] = {
    "select_image": _validate_select_image,
    "translate": _validate_translate,
    "tap_what_you_hear": _validate_tap_what_you_hear,
    "type_what_you_hear": _validate_type_what_you_hear,
    "fill_in_blank": _validate_blank,
    "complete_translation": _validate_blank,
    "match_pairs": _validate_match_pairs,
}

QUESTION_TYPES = tuple(VALIDATORS)


def validate_content(type: str, content: dict[str, Any]) -> None:
    """Validate content against the rules of its question type."""
    validator = VALIDATORS.get(type)
    if validator is None:
        raise LessonQuestionValidationError(f"Unknown question type '{type}'")
    validator(content)


def clean_payload(type: str, content: dict[str, Any]) -> dict[str, Any]:
    """Prepare submitted content for storage.

    Sets the ``type`` discriminator, validates the submitted slots and then
    drops empty word slots. ``blankIndex`` refers to the cleaned options.
    """
    cleaned = dict(content)
    cleaned["type"] = type
    if type == "match_pairs":
        cleaned.setdefault("matchType", "text")
    validate_content(type, cleaned)

    for key in _CLEANED_KEYS.get(type, ()):
        if key in cleaned:
            cleaned[key] = [w for w in _words(cleaned, key) if w]
    return cleaned


def sync_possible_answers(
    sentence_words: list[str],
    possible_answers: list[str],
    slots: int = POSSIBLE_ANSWER_SLOTS,
) -> list[str]:
    """Make sure every sentence word is offered as a possible answer.

    Sentence words come first in sentence order, followed by the remaining
    distractors; the result is padded with "" and cut to ``slots``.
    """
    words = [w for w in sentence_words if w]
    result = list(dict.fromkeys(words))
    result.extend(w for w in possible_answers if w and w not in result)
    result.extend("" for _ in range(slots - len(result)))
    return result[:slots]


def default_content(type: str) -> dict[str, Any]:
    """Blank content for a freshly selected question type."""
    defaults: dict[str, dict[str, Any]] = {
        "select_image": {"options": ["", "", "", ""], "correct": 0},
        "translate": {
            "sentence": [],
            "options": [""] * POSSIBLE_ANSWER_SLOTS,
            "direction": "from_english",
        },
        "tap_what_you_hear": {"options": [], "possibleAnswers": [""] * POSSIBLE_ANSWER_SLOTS},
        "type_what_you_hear": {"options": []},
        "fill_in_blank": {"options": [], "blankIndex": 0},
        "complete_translation": {"options": [], "blankIndex": 0},
        "match_pairs": {"options": ["", "", "", ""], "matchType": "text"},
    }
    if type not in defaults:
        raise LessonQuestionValidationError(f"Unknown question type '{type}'")
    return {"type": type, **defaults[type]}


# =============================================================================
# SERVICE
# =============================================================================


def _referenced_word_ids(content: dict[str, Any]) -> list[int]:
    ids = []
    for key in ("options", "sentence", "possibleAnswers"):
        for value in content.get(key) or []:
            text = str(value)
            if text.isdigit():
                ids.append(int(text))
    return ids


def _check_words_exist(content: dict[str, Any]) -> None:
    referenced = set(_referenced_word_ids(content))
    missing = referenced - get_existing_word_ids(sorted(referenced))
    if missing:
        raise LessonQuestionValidationError(
            f"Unknown word ids: {', '.join(str(i) for i in sorted(missing))}"
        )


def _require_lesson(lesson_id: int) -> None:
    if get_lesson_by_id(lesson_id) is None:
        raise NotFoundError("Lesson not found")


def _get_question(lesson_id: int, question_id: int) -> LessonQuestionRecord:
    question = get_lesson_question(lesson_id, question_id)
    if question is None:
        raise NotFoundError("Question not found")
    return question


def list_lesson_questions(lesson_id: int) -> list[LessonQuestionRecord]:
    _require_lesson(lesson_id)
    return get_lesson_questions(lesson_id)


def add_lesson_question(lesson_id: int, type: str, content: dict[str, Any]) -> LessonQuestionRecord:
    """Append a question to a lesson.

    The new question is placed after the existing ones.
    """
    _require_lesson(lesson_id)
    cleaned = clean_payload(type, content)
    _check_words_exist(cleaned)

    order = len(get_lesson_questions(lesson_id))
    question_id = insert_lesson_question(lesson_id, type, order, cleaned)

    logger.info("lesson_question.created", lesson_id=lesson_id, question_id=question_id, type=type)
    return _get_question(lesson_id, question_id)


def edit_lesson_question(
    lesson_id: int, question_id: int, type: str, content: dict[str, Any]
) -> LessonQuestionRecord:
    """Replace a question's type and content, keeping its position."""
    _get_question(lesson_id, question_id)

    cleaned = clean_payload(type, content)
    _check_words_exist(cleaned)
    update_lesson_question(lesson_id, question_id, type, cleaned)

    logger.info("lesson_question.updated", lesson_id=lesson_id, question_id=question_id)
    return _get_question(lesson_id, question_id)


def remove_lesson_question(lesson_id: int, question_id: int) -> None:
    if not delete_lesson_question(lesson_id, question_id):
        raise NotFoundError("Question not found")
    logger.info("lesson_question.deleted", lesson_id=lesson_id, question_id=question_id)


def reorder_lesson_questions(lesson_id: int, ordered_ids: list[int]) -> list[LessonQuestionRecord]:
    """Set the question order of a lesson.

    ``ordered_ids`` must list every question of the lesson exactly once.
    """
    current = {q.id for q in list_lesson_questions(lesson_id)}
    if len(ordered_ids) != len(set(ordered_ids)) or set(ordered_ids) != current:
        raise LessonQuestionValidationError("Order must list every question of the lesson once")

    set_lesson_question_orders(lesson_id, ordered_ids)
    logger.info("lesson_question.reordered", lesson_id=lesson_id, count=len(ordered_ids))
    return get_lesson_questions(lesson_id)
