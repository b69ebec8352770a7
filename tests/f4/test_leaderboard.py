"""Tests for rankings and learner statistics (F4)."""

from datetime import datetime, timedelta, timezone

import pytest

from examquiz.core.leaderboard import (
    Tally,
    accuracy,
    base_subject_name,
    build_leaderboard,
    build_learner_stats,
    get_leaderboard,
    get_learner_stats,
    leaderboard_score,
    rank_of,
    round_half_up,
)
from examquiz.db.results_repository import ResultRow, insert_result
from examquiz.utils.validators import LearnerNotFoundError

NOW = datetime(2024, 3, 14, 12, 0, tzinfo=timezone.utc)


def _row(learner_id, subject, outcome, created_at="2024-03-14T08:00:00+00:00", name=None):
    return ResultRow(
        id=0,
        learner_id=learner_id,
        learner_name=name or f"Learner {learner_id}",
        grade_number=12,
        question_id=1,
        subject_id=1,
        subject_name=subject,
        answer="x",
        outcome=outcome,
        points=1 if outcome == "correct" else 0,
        created_at=created_at,
    )


class TestScoring:
    """Tests for the scoring helpers."""

    def test_round_half_up(self):
        assert round_half_up(12.5) == 13
        assert round_half_up(12.4) == 12
        assert round_half_up(2.5) == 3

    def test_accuracy(self):
        assert accuracy(1, 3) == 33
        assert accuracy(2, 3) == 67
        assert accuracy(0, 0) == 0

    def test_score(self):
        """accuracy + 10 per subject + half a point per answer."""
        # 75 + 20 + 2 = 97
        assert leaderboard_score(3, 4, 2) == 97

    def test_score_rounds_half_up(self):
        # 100 + 10 + 0.5 = 110.5
        assert leaderboard_score(1, 1, 1) == 111

    def test_score_without_answers(self):
        assert leaderboard_score(0, 0, 0) == 0

    def test_base_subject_name(self):
        assert base_subject_name("Mathematics P1") == "Mathematics"
        assert base_subject_name("Physical Sciences P2") == "Physical"

    def test_tally(self):
        tally = Tally()
        tally.add(True)
        tally.add(False)
        assert tally.to_dict() == {"total": 2, "correct": 1, "incorrect": 1, "accuracy": 50}


class TestBuildLeaderboard:
    """Tests for ranking result rows."""

    def test_orders_by_score(self):
        rows = [
            _row(1, "Mathematics P1", "incorrect"),
            _row(2, "Mathematics P1", "correct"),
            _row(2, "Geography P1", "correct"),
        ]
        entries = build_leaderboard(rows, limit=10)

        assert [e.learner_id for e in entries] == [2, 1]
        assert entries[0].unique_subjects == 2
        assert entries[0].accuracy == 100
        # 100 + 20 + 1
        assert entries[0].score == 121

    def test_papers_count_as_one_subject(self):
        rows = [
            _row(1, "Mathematics P1", "correct"),
            _row(1, "Mathematics P2", "correct"),
        ]
        entry = build_leaderboard(rows, limit=10)[0]
        assert entry.subjects == ["Mathematics"]

    def test_ties_keep_learner_order(self):
        rows = [_row(5, "Mathematics P1", "correct"), _row(3, "Mathematics P1", "correct")]
        assert [e.learner_id for e in build_leaderboard(rows, limit=10)] == [3, 5]

    def test_limit(self):
        rows = [_row(i, "Mathematics P1", "correct") for i in range(1, 6)]
        assert len(build_leaderboard(rows, limit=3)) == 3

    def test_last_active(self):
        rows = [
            _row(1, "Mathematics P1", "correct", created_at="2024-03-13T08:00:00+00:00"),
            _row(1, "Mathematics P1", "correct", created_at="2024-03-14T08:00:00+00:00"),
        ]
        entry = build_leaderboard(rows, limit=10)[0]
        assert entry.last_active == "2024-03-14T08:00:00+00:00"

    def test_rank_of(self):
        entries = build_leaderboard(
            [_row(1, "Mathematics P1", "correct"), _row(2, "Mathematics P1", "incorrect")],
            limit=10,
        )
        assert rank_of(entries, 2) == 2
        assert rank_of(entries, 99) is None


class TestBuildLearnerStats:
    def test_groups_by_subject_and_day(self):
        rows = [
            _row(1, "Mathematics P1", "correct", created_at="2024-03-13T08:00:00+00:00"),
            _row(1, "Mathematics P2", "incorrect", created_at="2024-03-14T08:00:00+00:00"),
            _row(1, "Geography P1", "correct", created_at="2024-03-14T09:00:00+00:00"),
        ]
        data = build_learner_stats(rows, period=7).to_dict()

        assert data["total_questions"] == 3
        assert data["correct_answers"] == 2
        assert data["accuracy"] == 67
        assert data["subjects"]["Mathematics"]["total"] == 2
        assert data["daily"]["2024-03-14"]["correct"] == 1


class TestGetLeaderboard:
    """Tests for the leaderboard over recorded results."""

    def test_ranks_learners_in_period(self, make_learner, approved_question):
        question_id = approved_question()
        alice = make_learner("alice")
        bob = make_learner("bob")
        recent = (NOW - timedelta(days=1)).isoformat()
        old = (NOW - timedelta(days=30)).isoformat()

        insert_result(alice.id, question_id, "4", "correct", 1, created_at=recent)
        insert_result(bob.id, question_id, "5", "incorrect", 0, created_at=recent)
        insert_result(bob.id, question_id, "4", "correct", 1, created_at=old)

        board = get_leaderboard("bob", now=NOW)

        assert board.period == 7
        assert [e.name for e in board.rankings] == ["Alice", "Bob"]
        assert board.user_rank == 2
        assert board.user_score == board.rankings[1].score
        assert board.rankings[1].total_questions == 1

    def test_caller_not_ranked(self, make_learner):
        make_learner("carol")
        board = get_leaderboard("carol", now=NOW)
        assert board.rankings == []
        assert board.user_rank is None
        assert board.user_score == 0

    def test_longer_period(self, make_learner, approved_question):
        question_id = approved_question()
        bob = make_learner("bob")
        insert_result(bob.id, question_id, "4", "correct", 1,
                      created_at=(NOW - timedelta(days=30)).isoformat())

        assert get_leaderboard("bob", period=60, now=NOW).user_rank == 1

    def test_unknown_learner(self, seeded):
        with pytest.raises(LearnerNotFoundError):
            get_leaderboard("ghost")


class TestGetLearnerStats:
    def test_stats(self, make_learner, approved_question):
        question_id = approved_question()
        learner = make_learner("u1")
        insert_result(learner.id, question_id, "4", "correct", 1,
                      created_at=(NOW - timedelta(hours=2)).isoformat())

        stats = get_learner_stats("u1", now=NOW)

        assert stats.overall.total == 1
        assert "Mathematics" in stats.by_subject
