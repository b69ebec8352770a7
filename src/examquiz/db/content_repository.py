"""Repository functions for language-lesson content.

Tables: unit, lesson, lesson_question, word_group, word.
Ordered lists are always returned by their order column.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from examquiz.db.database import get_db

logger = structlog.get_logger(__name__)


@dataclass
class UnitRecord:
    """Unit record from database."""

    id: int
    title: str
    unit_order: int
    available_languages: list[str]
    lesson_count: int = 0


@dataclass
class LessonRecord:
    """Lesson record from database."""

    id: int
    unit_id: int
    title: str
    lesson_order: int
    question_count: int = 0


@dataclass
class LessonQuestionRecord:
    """Lesson question record from database."""

    id: int
    lesson_id: int
    type: str
    question_order: int
    content: dict[str, Any]


@dataclass
class WordRecord:
    """Word record from database."""

    id: int
    group_id: int | None
    image: str | None
    translations: dict[str, str] = field(default_factory=dict)
    audio: dict[str, str] = field(default_factory=dict)


@dataclass
class WordGroupRecord:
    """Word group record from database."""

    id: int
    name: str
    word_count: int = 0


# =============================================================================
# UNITS
# =============================================================================


def insert_unit(title: str, unit_order: int, available_languages: list[str]) -> int:
    """Insert a unit and return its id."""
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT INTO unit (title, unit_order, available_languages) VALUES (?, ?, ?)",
            (title, unit_order, json.dumps(available_languages)),
        )

    logger.debug("units.inserted", unit_id=cursor.lastrowid, title=title)
    return cursor.lastrowid


def count_units() -> int:
    """Number of units."""
    with get_db() as conn:
        return conn.execute("SELECT COUNT(*) FROM unit").fetchone()[0]


def get_unit_by_id(unit_id: int) -> UnitRecord | None:
    """Get unit by id."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT u.*, (SELECT COUNT(*) FROM lesson l WHERE l.unit_id = u.id) AS lesson_count
            FROM unit u WHERE u.id = ?
            """,
            (unit_id,),
        ).fetchone()

    return _row_to_unit(row) if row else None


def get_all_units() -> list[UnitRecord]:
    """All units ordered by unit_order."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT u.*, (SELECT COUNT(*) FROM lesson l WHERE l.unit_id = u.id) AS lesson_count
            FROM unit u ORDER BY u.unit_order, u.id
            """
        ).fetchall()

    return [_row_to_unit(r) for r in rows]


def update_unit(unit_id: int, title: str, unit_order: int, available_languages: list[str]) -> bool:
    """Update a unit. Returns False if not found."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE unit SET title = ?, unit_order = ?, available_languages = ? WHERE id = ?",
            (title, unit_order, json.dumps(available_languages), unit_id),
        )
    return cursor.rowcount > 0


def delete_unit(unit_id: int) -> bool:
    """Delete a unit with its lessons and their questions."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM unit WHERE id = ?", (unit_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("units.deleted", unit_id=unit_id)
    return deleted


def _row_to_unit(row) -> UnitRecord:
    return UnitRecord(
        id=row["id"],
        title=row["title"],
        unit_order=row["unit_order"],
        available_languages=json.loads(row["available_languages"] or "[]"),
        lesson_count=row["lesson_count"],
    )


# =============================================================================
# LESSONS
# =============================================================================

_LESSON_SELECT = """
    SELECT l.*, (SELECT COUNT(*) FROM lesson_question q WHERE q.lesson_id = l.id)
           AS question_count
    FROM lesson l
"""


def insert_lesson(unit_id: int, title: str, lesson_order: int) -> int:
    """Insert a lesson and return its id."""
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT INTO lesson (unit_id, title, lesson_order) VALUES (?, ?, ?)",
            (unit_id, title, lesson_order),
        )

    logger.debug("lessons.inserted", lesson_id=cursor.lastrowid, unit_id=unit_id)
    return cursor.lastrowid


def count_lessons(unit_id: int) -> int:
    """Number of lessons in a unit."""
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM lesson WHERE unit_id = ?", (unit_id,)
        ).fetchone()[0]


def get_lesson_by_id(lesson_id: int) -> LessonRecord | None:
    """Get lesson by id."""
    with get_db() as conn:
        row = conn.execute(_LESSON_SELECT + " WHERE l.id = ?", (lesson_id,)).fetchone()

    return _row_to_lesson(row) if row else None


def get_lessons_by_unit(unit_id: int) -> list[LessonRecord]:
    """Lessons of a unit ordered by lesson_order."""
    with get_db() as conn:
        rows = conn.execute(
            _LESSON_SELECT + " WHERE l.unit_id = ? ORDER BY l.lesson_order, l.id",
            (unit_id,),
        ).fetchall()

    return [_row_to_lesson(r) for r in rows]


def update_lesson(lesson_id: int, title: str, lesson_order: int) -> bool:
    """Update a lesson. Returns False if not found."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE lesson SET title = ?, lesson_order = ? WHERE id = ?",
            (title, lesson_order, lesson_id),
        )
    return cursor.rowcount > 0


def delete_lesson(lesson_id: int) -> bool:
    """Delete a lesson and its questions."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM lesson WHERE id = ?", (lesson_id,))
    return cursor.rowcount > 0


def _row_to_lesson(row) -> LessonRecord:
    return LessonRecord(
        id=row["id"],
        unit_id=row["unit_id"],
        title=row["title"],
        lesson_order=row["lesson_order"],
        question_count=row["question_count"],
    )


# =============================================================================
# LESSON QUESTIONS
# =============================================================================


def insert_lesson_question(
    lesson_id: int, type: str, question_order: int, content: dict[str, Any]
) -> int:
    """Insert a lesson question and return its id."""
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT INTO lesson_question (lesson_id, type, question_order, content)
            VALUES (?, ?, ?, ?)
            """,
            (lesson_id, type, question_order, json.dumps(content)),
        )

    logger.debug(
        "lesson_questions.inserted",
        question_id=cursor.lastrowid,
        lesson_id=lesson_id,
        type=type,
    )
    return cursor.lastrowid


def get_lesson_questions(lesson_id: int) -> list[LessonQuestionRecord]:
    """Questions of a lesson ordered by question_order."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM lesson_question WHERE lesson_id = ? "
            "ORDER BY question_order, id",
            (lesson_id,),
        ).fetchall()

    return [_row_to_lesson_question(r) for r in rows]


def get_lesson_question(lesson_id: int, question_id: int) -> LessonQuestionRecord | None:
    """Get one question of a lesson."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM lesson_question WHERE lesson_id = ? AND id = ?",
            (lesson_id, question_id),
        ).fetchone()

    return _row_to_lesson_question(row) if row else None


def update_lesson_question(
    lesson_id: int, question_id: int, type: str, content: dict[str, Any]
) -> bool:
    """Replace the type and content of a lesson question; order is kept."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE lesson_question SET type = ?, content = ? WHERE lesson_id = ? AND id = ?",
            (type, json.dumps(content), lesson_id, question_id),
        )
    return cursor.rowcount > 0


def set_lesson_question_orders(lesson_id: int, ordered_ids: list[int]) -> None:
    """Assign question_order 0..n-1 following ordered_ids."""
    with get_db() as conn:
        for position, question_id in enumerate(ordered_ids):
            conn.execute(
                "UPDATE lesson_question SET question_order = ? WHERE lesson_id = ? AND id = ?",
                (position, lesson_id, question_id),
            )

    logger.debug("lesson_questions.reordered", lesson_id=lesson_id, count=len(ordered_ids))


def delete_lesson_question(lesson_id: int, question_id: int) -> bool:
    """Delete a lesson question."""
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM lesson_question WHERE lesson_id = ? AND id = ?",
            (lesson_id, question_id),
        )
    return cursor.rowcount > 0


def _row_to_lesson_question(row) -> LessonQuestionRecord:
    return LessonQuestionRecord(
        id=row["id"],
        lesson_id=row["lesson_id"],
        type=row["type"],
        question_order=row["question_order"],
        content=json.loads(row["content"] or "{}"),
    )


# =============================================================================
# WORDS
# =============================================================================


def insert_word(
    translations: dict[str, str],
    group_id: int | None = None,
    image: str | None = None,
    audio: dict[str, str] | None = None,
) -> int:
    """Insert a word and return its id."""
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT INTO word (group_id, image, translations, audio) VALUES (?, ?, ?, ?)",
            (group_id, image, json.dumps(translations), json.dumps(audio or {})),
        )

    logger.debug("words.inserted", word_id=cursor.lastrowid)
    return cursor.lastrowid


def get_word_by_id(word_id: int) -> WordRecord | None:
    """Get word by id."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM word WHERE id = ?", (word_id,)).fetchone()

    return _row_to_word(row) if row else None


def get_words(group_id: int | None = None) -> list[WordRecord]:
    """All words, optionally of one group."""
    sql = "SELECT * FROM word"
    params: list[Any] = []
    if group_id is not None:
        sql += " WHERE group_id = ?"
        params.append(group_id)
    sql += " ORDER BY id"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()

    return [_row_to_word(r) for r in rows]


def get_existing_word_ids(word_ids: list[int]) -> set[int]:
    """Subset of word_ids that exist."""
    if not word_ids:
        return set()
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT id FROM word WHERE id IN ({', '.join('?' for _ in word_ids)})",
            word_ids,
        ).fetchall()
    return {r["id"] for r in rows}


def update_word(word: WordRecord) -> bool:
    """Persist every field of a word."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE word SET group_id = ?, image = ?, translations = ?, audio = ? WHERE id = ?",
            (
                word.group_id,
                word.image,
                json.dumps(word.translations),
                json.dumps(word.audio),
                word.id,
            ),
        )
    return cursor.rowcount > 0


def delete_word(word_id: int) -> bool:
    """Delete a word."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM word WHERE id = ?", (word_id,))
    return cursor.rowcount > 0


def _row_to_word(row) -> WordRecord:
    return WordRecord(
        id=row["id"],
        group_id=row["group_id"],
        image=row["image"],
        translations=json.loads(row["translations"] or "{}"),
        audio=json.loads(row["audio"] or "{}"),
    )


# =============================================================================
# WORD GROUPS
# =============================================================================


def insert_word_group(name: str) -> int:
    """Insert a word group.

    Raises:
        sqlite3.IntegrityError: If the name already exists
    """
    with get_db() as conn:
        cursor = conn.execute("INSERT INTO word_group (name) VALUES (?)", (name,))
    return cursor.lastrowid


def get_word_groups() -> list[WordGroupRecord]:
    """All word groups with their word counts."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT g.*, (SELECT COUNT(*) FROM word w WHERE w.group_id = g.id) AS word_count
            FROM word_group g ORDER BY g.name
            """
        ).fetchall()

    return [WordGroupRecord(id=r["id"], name=r["name"], word_count=r["word_count"]) for r in rows]


def get_word_group_by_id(group_id: int) -> WordGroupRecord | None:
    """Get a word group by id."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT g.*, (SELECT COUNT(*) FROM word w WHERE w.group_id = g.id) AS word_count
            FROM word_group g WHERE g.id = ?
            """,
            (group_id,),
        ).fetchone()

    if row is None:
        return None
    return WordGroupRecord(id=row["id"], name=row["name"], word_count=row["word_count"])


def update_word_group(group_id: int, name: str) -> bool:
    """Rename a word group."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE word_group SET name = ? WHERE id = ?", (name, group_id)
        )
    return cursor.rowcount > 0


def delete_word_group(group_id: int) -> bool:
    """Delete a word group; its words are kept without a group."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM word_group WHERE id = ?", (group_id,))
    return cursor.rowcount > 0
