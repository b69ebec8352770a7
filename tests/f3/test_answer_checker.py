"""Tests for answer checking and recording (F3)."""

from datetime import datetime, timedelta, timezone

import pytest

from examquiz.core import answer_checker
from examquiz.core.answer_checker import (
    check_answer,
    is_mastered,
    normalize_answer,
    parse_correct_answers,
    submit_learner_answer,
)
from examquiz.db.learners_repository import get_learner_by_uid
from examquiz.db.results_repository import get_results
from examquiz.utils.validators import LearnerNotFoundError, QuestionNotFoundError

NOW = datetime(2024, 3, 14, 9, 0, tzinfo=timezone.utc)


class TestNormalizeAnswer:
    """Tests for normalize_answer."""

    def test_whitespace_is_ignored(self):
        assert normalize_answer(" 3 ") == normalize_answer("3")

    def test_case_and_quotes(self):
        assert normalize_answer('"Newton"') == "newton"

    def test_decimal_comma(self):
        assert normalize_answer("3,5") == "3.5"

    def test_edge_brackets(self):
        assert normalize_answer("[x + 1]") == "x+1"

    def test_numbers(self):
        assert normalize_answer(42) == "42"


class TestParseCorrectAnswers:
    def test_list(self):
        assert parse_correct_answers(["a", "b"]) == ["a", "b"]

    def test_json_list_string(self):
        assert parse_correct_answers('["x", "y"]') == ["x", "y"]

    def test_plain_string(self):
        assert parse_correct_answers("Pretoria") == ["Pretoria"]

    def test_json_scalar(self):
        assert parse_correct_answers("12") == ["12"]

    def test_booleans(self):
        assert parse_correct_answers([True]) == ["true"]


class TestCheckAnswer:
    """Tests for check_answer."""

    def test_any_accepted_answer_matches(self):
        assert check_answer("Jo'burg", ["Johannesburg", "Joburg"]).is_correct

    def test_wrong_answer(self):
        result = check_answer("Durban", ["Johannesburg"])
        assert result.is_correct is False
        assert result.normalized_answer == "durban"

    def test_true_false(self):
        assert check_answer("True", ["true"]).is_correct


class TestIsMastered:
    """Mastery needs consecutive correct answers including this one."""

    def test_third_correct_in_a_row(self):
        assert is_mastered(True, ["correct", "correct"], 3)

    def test_not_enough_history(self):
        assert not is_mastered(True, ["correct"], 3)

    def test_broken_run(self):
        assert not is_mastered(True, ["correct", "incorrect"], 3)

    def test_incorrect_answer_never_masters(self):
        assert not is_mastered(False, ["correct", "correct"], 3)


class TestSubmitLearnerAnswer:
    """Tests for submit_learner_answer."""

    def test_correct_answer_awards_point(self, make_learner, approved_question):
        question_id = approved_question()
        make_learner("u1")

        outcome = submit_learner_answer("u1", question_id, " 4 ", now=NOW)

        assert outcome.correct is True
        assert outcome.message == "Correct answer!"
        assert outcome.points_earned == 1
        assert outcome.total_points == 1
        assert outcome.subject == "Mathematics P1"
        assert outcome.correct_answer == ["4"]
        assert get_learner_by_uid("u1").points == 1

    def test_incorrect_answer(self, make_learner, approved_question):
        question_id = approved_question()
        make_learner("u1")

        outcome = submit_learner_answer("u1", question_id, "5", now=NOW)

        assert outcome.correct is False
        assert outcome.message == "Incorrect answer"
        assert outcome.points_earned == 0

    def test_result_is_recorded(self, make_learner, approved_question):
        question_id = approved_question()
        learner = make_learner("u1")

        submit_learner_answer("u1", question_id, "4", now=NOW)

        rows = get_results(learner_id=learner.id)
        assert len(rows) == 1
        assert rows[0].outcome == "correct"
        assert rows[0].answer == "4"

    def test_mastery_after_three_correct(self, make_learner, approved_question):
        """Mastery counts the answers recorded before this one."""
        question_id = approved_question()
        make_learner("u1")

        results = [
            submit_learner_answer("u1", question_id, "4", now=NOW + timedelta(minutes=i))
            for i in range(3)
        ]

        assert [r.mastered for r in results] == [False, False, True]

    def test_streak_updated(self, make_learner, approved_question):
        question_id = approved_question()
        make_learner("u1")

        outcome = submit_learner_answer("u1", question_id, "4", now=NOW)

        assert outcome.streak is not None
        assert outcome.streak.current_streak == 1
        assert outcome.streak.streak_maintained is True

    def test_unknown_learner(self, approved_question):
        question_id = approved_question()
        with pytest.raises(LearnerNotFoundError):
            submit_learner_answer("ghost", question_id, "4")

    def test_unknown_question(self, make_learner):
        make_learner("u1")
        with pytest.raises(QuestionNotFoundError):
            submit_learner_answer("u1", 999, "4")

    def test_recording_failure_still_answers(self, make_learner, approved_question, monkeypatch):
        """A failed insert still returns the verdict, without points."""
        question_id = approved_question()
        make_learner("u1")

        def broken_insert(**kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(answer_checker, "insert_result", broken_insert)
        outcome = submit_learner_answer("u1", question_id, "4", now=NOW)

        assert outcome.correct is True
        assert outcome.recorded is False
        assert outcome.points_earned == 0
        assert outcome.streak is None
        assert get_learner_by_uid("u1").points == 0
