"""SQLite database connection and schema management.

Provides connection management and schema initialization for the ExamQuiz
service. Every repository opens a short-lived connection through get_db().
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import structlog

from examquiz.config.app_config import load_app_config

logger = structlog.get_logger(__name__)

# Current database (module-level, set by init_db)
_db_path: Path | None = None


def utc_now() -> str:
    """Current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def get_db_path() -> Path:
    """Path of the active database file."""
    return _db_path or load_app_config().db_path


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to the configured path.
    """
    global _db_path
    _db_path = db_path or load_app_config().db_path

    # Ensure directory exists
    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def reset_db_path() -> None:
    """Forget the path set by init_db (used by tests)."""
    global _db_path
    _db_path = None


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM learner").fetchall()
    """
    db_path = get_db_path()

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- Reference data
        CREATE TABLE IF NOT EXISTS grade (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            number INTEGER NOT NULL UNIQUE,
            active INTEGER NOT NULL DEFAULT 1
        );

        CREATE TABLE IF NOT EXISTS subject (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            grade_id INTEGER NOT NULL REFERENCES grade(id) ON DELETE CASCADE,
            active INTEGER NOT NULL DEFAULT 1,
            UNIQUE(name, grade_id)
        );

        -- Learners (also capturers, reviewers and admins)
        CREATE TABLE IF NOT EXISTS learner (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            uid TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL DEFAULT '',
            email TEXT NOT NULL DEFAULT '',
            grade_id INTEGER REFERENCES grade(id),
            role TEXT NOT NULL DEFAULT 'learner'
                CHECK(role IN ('learner', 'capturer', 'reviewer', 'admin')),
            curriculum TEXT NOT NULL DEFAULT '',
            terms TEXT NOT NULL DEFAULT '',
            school_name TEXT,
            school_address TEXT,
            school_latitude REAL,
            school_longitude REAL,
            notification_hour INTEGER,
            private_school INTEGER NOT NULL DEFAULT 0,
            avatar TEXT,
            points INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        -- Exam questions
        CREATE TABLE IF NOT EXISTS question (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            subject_id INTEGER NOT NULL REFERENCES subject(id),
            capturer_id INTEGER REFERENCES learner(id) ON DELETE SET NULL,
            reviewer_id INTEGER REFERENCES learner(id) ON DELETE SET NULL,
            question TEXT NOT NULL DEFAULT '',
            type TEXT NOT NULL
                CHECK(type IN ('multiple_choice', 'multi_select', 'single', 'true_false')),
            context TEXT,
            answer TEXT NOT NULL DEFAULT '[]',
            options TEXT NOT NULL DEFAULT '{}',
            explanation TEXT,
            year INTEGER,
            term INTEGER,
            curriculum TEXT NOT NULL DEFAULT 'CAPS',
            status TEXT NOT NULL DEFAULT 'new'
                CHECK(status IN ('new', 'approved', 'rejected')),
            comment TEXT,
            active INTEGER NOT NULL DEFAULT 1,
            posted INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            reviewed_at TEXT,
            UNIQUE(subject_id, question)
        );

        CREATE TABLE IF NOT EXISTS question_status_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            question_id INTEGER NOT NULL REFERENCES question(id) ON DELETE CASCADE,
            old_status TEXT,
            new_status TEXT NOT NULL,
            feedback TEXT,
            changed_by INTEGER REFERENCES learner(id) ON DELETE SET NULL,
            created_at TEXT NOT NULL
        );

        -- Learner answers and engagement
        CREATE TABLE IF NOT EXISTS result (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            learner_id INTEGER NOT NULL REFERENCES learner(id) ON DELETE CASCADE,
            question_id INTEGER NOT NULL REFERENCES question(id) ON DELETE CASCADE,
            answer TEXT NOT NULL,
            outcome TEXT NOT NULL CHECK(outcome IN ('correct', 'incorrect')),
            points INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS learner_streak (
            learner_id INTEGER PRIMARY KEY REFERENCES learner(id) ON DELETE CASCADE,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            questions_answered_today INTEGER NOT NULL DEFAULT 0,
            last_answered_at TEXT,
            last_streak_update_date TEXT
        );

        CREATE TABLE IF NOT EXISTS favorite (
            learner_id INTEGER NOT NULL REFERENCES learner(id) ON DELETE CASCADE,
            question_id INTEGER NOT NULL REFERENCES question(id) ON DELETE CASCADE,
            created_at TEXT NOT NULL,
            PRIMARY KEY (learner_id, question_id)
        );

        CREATE TABLE IF NOT EXISTS badge (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            image TEXT,
            rules TEXT NOT NULL DEFAULT '',
            category TEXT NOT NULL DEFAULT 'Achievement',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS learner_badge (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            learner_id INTEGER NOT NULL REFERENCES learner(id) ON DELETE CASCADE,
            badge_id INTEGER NOT NULL REFERENCES badge(id) ON DELETE CASCADE,
            created_at TEXT NOT NULL,
            UNIQUE (learner_id, badge_id)
        );

        -- Language-lesson content
        CREATE TABLE IF NOT EXISTS unit (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            unit_order INTEGER NOT NULL DEFAULT 0,
            available_languages TEXT NOT NULL DEFAULT '[]'
        );

        CREATE TABLE IF NOT EXISTS lesson (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            unit_id INTEGER NOT NULL REFERENCES unit(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            lesson_order INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS lesson_question (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            lesson_id INTEGER NOT NULL REFERENCES lesson(id) ON DELETE CASCADE,
            type TEXT NOT NULL,
            question_order INTEGER NOT NULL DEFAULT 0,
            content TEXT NOT NULL DEFAULT '{}'
        );

        CREATE TABLE IF NOT EXISTS word_group (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE
        );

        CREATE TABLE IF NOT EXISTS word (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            group_id INTEGER REFERENCES word_group(id) ON DELETE SET NULL,
            image TEXT,
            translations TEXT NOT NULL DEFAULT '{}',
            audio TEXT NOT NULL DEFAULT '{}'
        );

        -- Discussion threads
        CREATE TABLE IF NOT EXISTS thread (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            subject_id INTEGER NOT NULL REFERENCES subject(id) ON DELETE CASCADE,
            grade INTEGER,
            created_by_id TEXT NOT NULL,
            created_by_name TEXT NOT NULL DEFAULT 'Anonymous',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS message (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            thread_id INTEGER NOT NULL REFERENCES thread(id) ON DELETE CASCADE,
            author_uid TEXT NOT NULL,
            user_name TEXT NOT NULL DEFAULT 'Anonymous',
            text TEXT NOT NULL,
            reported INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        -- Indices
        CREATE INDEX IF NOT EXISTS idx_question_status ON question(status);
        CREATE INDEX IF NOT EXISTS idx_question_capturer ON question(capturer_id);
        CREATE INDEX IF NOT EXISTS idx_result_learner ON result(learner_id, created_at);
        CREATE INDEX IF NOT EXISTS idx_message_thread ON message(thread_id, created_at);
        """
    )
