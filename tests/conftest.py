"""Pytest configuration for phased testing.

Tests are organized by phase (f1, f2, ..., f6).
Only tests for the current phase and completed phases should run.
Future phase tests are automatically skipped.

Every test that touches the database uses the ``db`` fixture, which points
the service at a fresh SQLite file under ``tmp_path``.
"""

import pytest

from examquiz.config.app_config import DB_PATH_ENV, clear_config_cache
from examquiz.core.learner_profile import upsert_learner
from examquiz.core.moderation import QuestionDraft, capture_question, change_status
from examquiz.core.reference import seed_reference_data
from examquiz.db.database import init_db, reset_db_path
from examquiz.db.learners_repository import get_learner_by_uid, update_learner
from examquiz.web.message_broker import reset_message_broker

# Current implementation phase
CURRENT_PHASE = 6

SEED_DATA = {
    "grades": [10, 11, 12],
    "subjects": [
        {"name": "Mathematics P1", "grades": [10, 12]},
        {"name": "Mathematics P2", "grades": [12]},
        {"name": "Physical Sciences P1", "grades": [12]},
    ],
}

DEFAULT_OPTIONS = {
    "option1": "4",
    "option2": "5",
    "option3": "6",
    "option4": "7",
}


def pytest_collection_modifyitems(config, items):
    """Skip tests from phases that haven't been implemented yet."""
    for item in items:
        # Extract phase from path (tests/f2/... -> 2)
        parts = item.fspath.strpath.split("/")
        for part in parts:
            if part.startswith("f") and part[1:].isdigit():
                test_phase = int(part[1:])
                if test_phase > CURRENT_PHASE:
                    item.add_marker(
                        pytest.mark.skip(
                            reason=f"Phase F{test_phase} not yet implemented (current: F{CURRENT_PHASE})"
                        )
                    )
                break


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Fresh database in a temp directory."""
    db_path = tmp_path / "db" / "examquiz.db"
    monkeypatch.setenv(DB_PATH_ENV, str(db_path))
    clear_config_cache()
    init_db(db_path)

    yield db_path

    reset_db_path()
    reset_message_broker()
    clear_config_cache()


@pytest.fixture
def seeded(db):
    """Database with grades 10-12 and a few subjects."""
    seed_reference_data(SEED_DATA)
    return db


@pytest.fixture
def make_learner(seeded):
    """Factory creating a learner with a role."""

    def _make(uid, role="learner", grade=12, name=None, email=None):
        data = {"name": name or uid.title(), "email": email or f"{uid}@example.com"}
        if grade is not None:
            data["grade"] = grade
        upsert_learner(uid, data)
        if role != "learner":
            update_learner(uid, {"role": role})
        return get_learner_by_uid(uid)

    return _make


@pytest.fixture
def make_question(make_learner):
    """Factory capturing a question (creates the capturer on first use)."""

    def _make(
        text="What is 2 + 2?",
        type="multiple_choice",
        answer="4",
        options=None,
        subject="Mathematics P1",
        grade=12,
        capturer="cap1",
        **extra,
    ):
        if get_learner_by_uid(capturer) is None:
            make_learner(capturer, role="capturer")
        if options is None:
            options = dict(DEFAULT_OPTIONS) if type in ("multiple_choice", "multi_select") else {}
        draft = QuestionDraft(
            question=text,
            type=type,
            subject=subject,
            grade=grade,
            year=2023,
            term=2,
            answer=answer,
            curriculum="CAPS",
            options=options,
            **extra,
        )
        return capture_question(capturer, draft)

    return _make


@pytest.fixture
def approved_question(make_question, make_learner):
    """Factory capturing a question and approving it."""

    def _make(**kwargs):
        question_id = make_question(**kwargs)
        if get_learner_by_uid("rev1") is None:
            make_learner("rev1", role="reviewer")
        change_status("rev1", question_id, "approved")
        return question_id

    return _make
