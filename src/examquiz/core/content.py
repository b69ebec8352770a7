"""Units, lessons, words and word groups of the language-learning module."""

from __future__ import annotations

import re
import sqlite3
from typing import Any

import structlog

from examquiz.db.content_repository import (
    LessonRecord,
    UnitRecord,
    WordGroupRecord,
    WordRecord,
    count_lessons,
    count_units,
    delete_lesson,
    delete_unit,
    delete_word,
    delete_word_group,
    get_all_units,
    get_lesson_by_id,
    get_lessons_by_unit,
    get_unit_by_id,
    get_word_by_id,
    get_word_group_by_id,
    get_word_groups,
    get_words,
    insert_lesson,
    insert_unit,
    insert_word,
    insert_word_group,
    update_lesson,
    update_unit,
    update_word,
    update_word_group,
)
from examquiz.utils.validators import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

LESSON_TITLE_MIN = 3
LESSON_TITLE_MAX = 100
_LESSON_TITLE = re.compile(r"^[a-zA-Z0-9\s\-_]+$")


# =============================================================================
# VALIDATION
# =============================================================================


def validate_unit(title: str, available_languages: list[str]) -> None:
    if not (title or "").strip():
        raise ValidationError("Title is required")
    if not [lang for lang in available_languages if lang]:
        raise ValidationError("At least one language must be selected")


def validate_lesson_title(title: str) -> None:
    """Lesson titles: 3 to 100 letters, digits, spaces, hyphens or underscores."""
    if len(title) < LESSON_TITLE_MIN:
        raise ValidationError("Title must be at least 3 characters")
    if len(title) > LESSON_TITLE_MAX:
        raise ValidationError("Title must be less than 100 characters")
    if not _LESSON_TITLE.match(title):
        raise ValidationError(
            "Title can only contain letters, numbers, spaces, hyphens, and underscores"
        )


# =============================================================================
# UNITS
# =============================================================================


def get_unit(unit_id: int) -> UnitRecord:
    unit = get_unit_by_id(unit_id)
    if unit is None:
        raise NotFoundError("Unit not found")
    return unit


def list_units() -> list[UnitRecord]:
    return get_all_units()


def create_unit(
    title: str,
    available_languages: list[str],
    unit_order: int | None = None,
) -> UnitRecord:
    """Create a unit; without an order it goes after the existing units."""
    validate_unit(title, available_languages)
    if unit_order is None:
        unit_order = count_units()

    unit_id = insert_unit(title.strip(), unit_order, available_languages)
    logger.info("unit.created", unit_id=unit_id, title=title, unit_order=unit_order)
    return get_unit(unit_id)


def edit_unit(
    unit_id: int,
    title: str,
    available_languages: list[str],
    unit_order: int | None = None,
) -> UnitRecord:
    current = get_unit(unit_id)
    validate_unit(title, available_languages)
    order = current.unit_order if unit_order is None else unit_order
    update_unit(unit_id, title.strip(), order, available_languages)
    logger.info("unit.updated", unit_id=unit_id)
    return get_unit(unit_id)


def remove_unit(unit_id: int) -> None:
    if not delete_unit(unit_id):
        raise NotFoundError("Unit not found")
    logger.info("unit.deleted", unit_id=unit_id)


# =============================================================================
# LESSONS
# =============================================================================


def get_lesson(lesson_id: int) -> LessonRecord:
    lesson = get_lesson_by_id(lesson_id)
    if lesson is None:
        raise NotFoundError("Lesson not found")
    return lesson


def list_lessons(unit_id: int) -> list[LessonRecord]:
    get_unit(unit_id)
    return get_lessons_by_unit(unit_id)


def create_lesson(unit_id: int, title: str, lesson_order: int | None = None) -> LessonRecord:
    """Create a lesson in a unit; without an order it goes last."""
    get_unit(unit_id)
    validate_lesson_title(title)
    if lesson_order is None:
        lesson_order = count_lessons(unit_id)

    lesson_id = insert_lesson(unit_id, title, lesson_order)
    logger.info("lesson.created", lesson_id=lesson_id, unit_id=unit_id, lesson_order=lesson_order)
    return get_lesson(lesson_id)


def edit_lesson(lesson_id: int, title: str, lesson_order: int | None = None) -> LessonRecord:
    current = get_lesson(lesson_id)
    validate_lesson_title(title)
    order = current.lesson_order if lesson_order is None else lesson_order
    update_lesson(lesson_id, title, order)
    logger.info("lesson.updated", lesson_id=lesson_id)
    return get_lesson(lesson_id)


def remove_lesson(lesson_id: int) -> None:
    if not delete_lesson(lesson_id):
        raise NotFoundError("Lesson not found")
    logger.info("lesson.deleted", lesson_id=lesson_id)


# =============================================================================
# WORDS
# =============================================================================


def get_word(word_id: int) -> WordRecord:
    word = get_word_by_id(word_id)
    if word is None:
        raise NotFoundError("Word not found")
    return word


def list_words(group_id: int | None = None) -> list[WordRecord]:
    return get_words(group_id)


def _require_group(group_id: int | None) -> None:
    if group_id is not None and get_word_group_by_id(group_id) is None:
        raise NotFoundError("Word group not found")


def create_word(
    translations: dict[str, str],
    group_id: int | None = None,
    image: str | None = None,
    audio: dict[str, str] | None = None,
) -> WordRecord:
    """Create a word; at least one non-empty translation is required."""
    translations = {lang: text for lang, text in translations.items() if text}
    if not translations:
        raise ValidationError("At least one translation is required")
    _require_group(group_id)

    word_id = insert_word(translations, group_id=group_id, image=image, audio=audio)
    logger.info("word.created", word_id=word_id, group_id=group_id)
    return get_word(word_id)


def edit_word(word_id: int, changes: dict[str, Any]) -> WordRecord:
    """Update the provided fields of a word.

    ``translations`` and ``audio`` are merged by language code.
    """
    word = get_word(word_id)
    if "group_id" in changes:
        _require_group(changes["group_id"])
        word.group_id = changes["group_id"]
    if "image" in changes:
        word.image = changes["image"]
    if changes.get("translations"):
        word.translations.update(changes["translations"])
    if changes.get("audio"):
        word.audio.update(changes["audio"])

    update_word(word)
    logger.info("word.updated", word_id=word_id, fields=sorted(changes))
    return word


def set_word_translation(word_id: int, language: str, text: str) -> WordRecord:
    """Set (or with empty text, remove) the translation for one language."""
    if not language:
        raise ValidationError("Language is required")
    word = get_word(word_id)
    if text:
        word.translations[language] = text
    else:
        word.translations.pop(language, None)
    update_word(word)
    logger.info("word.translation_set", word_id=word_id, language=language)
    return word


def set_word_audio(word_id: int, language: str, url: str | None) -> WordRecord:
    """Set (or with no url, remove) the audio recording for one language."""
    if not language:
        raise ValidationError("Language is required")
    word = get_word(word_id)
    if url:
        word.audio[language] = url
    else:
        word.audio.pop(language, None)
    update_word(word)
    logger.info("word.audio_set", word_id=word_id, language=language)
    return word


def remove_word(word_id: int) -> None:
    if not delete_word(word_id):
        raise NotFoundError("Word not found")
    logger.info("word.deleted", word_id=word_id)


# =============================================================================
# WORD GROUPS
# =============================================================================


def get_word_group(group_id: int) -> WordGroupRecord:
    group = get_word_group_by_id(group_id)
    if group is None:
        raise NotFoundError("Word group not found")
    return group


def list_word_groups() -> list[WordGroupRecord]:
    return get_word_groups()


def create_word_group(name: str) -> WordGroupRecord:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    try:
        group_id = insert_word_group(name)
    except sqlite3.IntegrityError:
        raise ConflictError(f"Word group '{name}' already exists")

    logger.info("word_group.created", group_id=group_id, name=name)
    return get_word_group(group_id)


def rename_word_group(group_id: int, name: str) -> WordGroupRecord:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    try:
        updated = update_word_group(group_id, name)
    except sqlite3.IntegrityError:
        raise ConflictError(f"Word group '{name}' already exists")
    if not updated:
        raise NotFoundError("Word group not found")

    return get_word_group(group_id)


def remove_word_group(group_id: int) -> None:
    if not delete_word_group(group_id):
        raise NotFoundError("Word group not found")
    logger.info("word_group.deleted", group_id=group_id)
