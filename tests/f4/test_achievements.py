"""Tests for achievements and badges (F4)."""

from datetime import date, datetime, timedelta, timezone

import pytest

from examquiz.core.achievements import (
    ACHIEVEMENTS,
    award_badge,
    build_achievements,
    create_badge,
    day_streaks,
    get_achievements,
    has_fast_run,
    list_badges,
    list_learner_badges,
)
from examquiz.db.badges_repository import insert_learner_badge
from examquiz.db.results_repository import ResultRow, insert_result
from examquiz.utils.validators import (
    ConflictError,
    LearnerNotFoundError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

START = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


def _row(outcome="correct", at=START, subject="Mathematics P1"):
    return ResultRow(
        id=0,
        learner_id=1,
        learner_name="Learner 1",
        grade_number=12,
        question_id=1,
        subject_id=1,
        subject_name=subject,
        answer="x",
        outcome=outcome,
        points=1 if outcome == "correct" else 0,
        created_at=at.isoformat(),
    )


def _spaced(count, step, outcome="correct"):
    return [_row(outcome, START + step * i) for i in range(count)]


class TestDayStreaks:
    def test_consecutive_days(self):
        days = [date(2024, 3, d) for d in (1, 2, 3)]
        assert day_streaks(days) == (3, 3)

    def test_gap_resets_current(self):
        days = [date(2024, 3, d) for d in (1, 2, 3, 5)]
        assert day_streaks(days) == (1, 3)

    def test_repeated_day_counts_once(self):
        days = [date(2024, 3, 1), date(2024, 3, 1), date(2024, 3, 2)]
        assert day_streaks(days) == (2, 2)

    def test_no_days(self):
        assert day_streaks([]) == (0, 0)


class TestHasFastRun:
    def test_ten_within_window(self):
        times = [START + timedelta(minutes=3 * i) for i in range(10)]
        assert has_fast_run(times) is True

    def test_window_is_exclusive(self):
        # 9 gaps of 200 seconds span exactly 30 minutes
        times = [START + timedelta(seconds=200 * i) for i in range(10)]
        assert has_fast_run(times) is False

    def test_too_few(self):
        assert has_fast_run([START] * 9) is False


class TestBuildAchievements:
    """Tests for working out achievements from results."""

    def test_no_results(self):
        data = build_achievements([]).to_dict()

        assert data["earned"] == 0
        assert data["total"] == len(ACHIEVEMENTS)
        assert data["max_streak"] == 0
        assert not any(item["achieved"] for item in data["items"])

    def test_first_correct(self):
        summary = build_achievements([_row("incorrect"), _row()])
        assert summary.earned_ids == {"first_correct"}

    def test_only_incorrect(self):
        assert build_achievements([_row("incorrect")]).earned_ids == set()

    def test_mastery_counts_papers_together(self):
        rows = [_row(subject="Mathematics P1", at=START + timedelta(days=i)) for i in range(3)]
        rows += [_row(subject="Mathematics P2", at=START + timedelta(days=i)) for i in range(2)]
        assert "mastery_5" in build_achievements(rows).earned_ids

    def test_mastery_needs_one_subject(self):
        rows = [_row(at=START + timedelta(days=i)) for i in range(4)]
        rows.append(_row(subject="Physical Sciences P1"))
        assert "mastery_5" not in build_achievements(rows).earned_ids

    def test_perfect_day(self):
        rows = _spaced(5, timedelta(hours=1))
        assert "perfect_day" in build_achievements(rows).earned_ids

    def test_perfect_day_needs_five_answers(self):
        rows = _spaced(4, timedelta(hours=1))
        assert "perfect_day" not in build_achievements(rows).earned_ids

    def test_perfect_day_broken_by_mistake(self):
        rows = _spaced(5, timedelta(hours=1)) + [_row("incorrect", START + timedelta(hours=6))]
        assert "perfect_day" not in build_achievements(rows).earned_ids

    def test_week_streak(self):
        summary = build_achievements(_spaced(7, timedelta(days=1), "incorrect"))

        assert summary.max_streak == 7
        assert summary.current_streak == 7
        assert summary.earned_ids == {"streak_7"}

    def test_streak_broken(self):
        rows = _spaced(6, timedelta(days=1)) + [_row(at=START + timedelta(days=7))]
        summary = build_achievements(rows)

        assert summary.max_streak == 6
        assert summary.current_streak == 1
        assert "streak_7" not in summary.earned_ids

    def test_speed_demon(self):
        rows = _spaced(10, timedelta(minutes=2))
        assert "speed_demon" in build_achievements(rows).earned_ids

    def test_too_slow_for_speed_demon(self):
        rows = _spaced(10, timedelta(minutes=4))
        assert "speed_demon" not in build_achievements(rows).earned_ids

    def test_earned_items_listed_first(self):
        items = build_achievements(_spaced(7, timedelta(days=1), "incorrect")).items

        assert items[0] == {
            "id": "streak_7",
            "name": "Week Warrior",
            "description": "Answered questions 7 days in a row",
            "achieved": True,
        }
        assert [i["id"] for i in items[1:]] == [
            "first_correct",
            "perfect_day",
            "mastery_5",
            "speed_demon",
        ]


class TestGetAchievements:
    def test_reads_recorded_results(self, make_learner, approved_question):
        question_id = approved_question()
        learner = make_learner("u1")
        insert_result(learner.id, question_id, "4", "correct", 1)

        data = get_achievements("u1").to_dict()

        assert data["earned"] == 1
        assert data["current_streak"] == 1
        assert data["items"][0]["id"] == "first_correct"

    def test_unknown_learner(self, seeded):
        with pytest.raises(LearnerNotFoundError):
            get_achievements("ghost")


class TestBadges:
    """Tests for the badge catalogue and awards."""

    def test_admin_creates_badge(self, make_learner):
        make_learner("admin1", role="admin")

        badge = create_badge("admin1", " Streak Master ", "Keep a 7-day streak", "Streak")

        assert badge.name == "Streak Master"
        assert badge.category == "Streak"
        assert [b.id for b in list_badges()] == [badge.id]

    def test_non_admin_refused(self, make_learner):
        make_learner("cap1", role="capturer")
        with pytest.raises(PermissionDeniedError):
            create_badge("cap1", "First Quiz")

    def test_unknown_admin(self, seeded):
        with pytest.raises(LearnerNotFoundError, match="Admin not found"):
            create_badge("ghost", "First Quiz")

    def test_blank_name(self, make_learner):
        make_learner("admin1", role="admin")
        with pytest.raises(ValidationError, match="Badge name is required"):
            create_badge("admin1", "  ")

    def test_duplicate_name(self, make_learner):
        make_learner("admin1", role="admin")
        create_badge("admin1", "First Quiz")
        with pytest.raises(ConflictError):
            create_badge("admin1", "First Quiz")

    def test_award_and_list(self, make_learner):
        make_learner("admin1", role="admin")
        learner = make_learner("u1")
        first = create_badge("admin1", "First Quiz")
        second = create_badge("admin1", "Perfect Score")
        insert_learner_badge(learner.id, first.id, earned_at="2024-01-15T10:30:00+00:00")

        awarded = award_badge("u1", second.id)

        assert awarded.name == "Perfect Score"
        assert [b.badge_id for b in list_learner_badges("u1")] == [second.id, first.id]

    def test_award_twice(self, make_learner):
        make_learner("admin1", role="admin")
        make_learner("u1")
        badge = create_badge("admin1", "First Quiz")
        award_badge("u1", badge.id)

        with pytest.raises(ConflictError, match="Learner already has this badge"):
            award_badge("u1", badge.id)

    def test_award_unknown_badge(self, make_learner):
        make_learner("u1")
        with pytest.raises(NotFoundError, match="Badge not found"):
            award_badge("u1", 42)

    def test_award_unknown_learner(self, seeded):
        with pytest.raises(LearnerNotFoundError):
            award_badge("ghost", 1)
