"""Admin dashboard figures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from examquiz.core.moderation import STATUSES, CapturerStatusCounts, get_status_counts
from examquiz.db.learners_repository import count_learners
from examquiz.db.questions_repository import QuestionFilter, count_questions, get_subject_status_rows
from examquiz.db.results_repository import count_results


@dataclass
class QuestionStats:
    """Question totals by status and by "<subject> (Grade n)"."""

    by_status: dict[str, int] = field(default_factory=lambda: {s: 0 for s in STATUSES})
    by_subject: dict[str, dict[str, int]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.by_status.values())

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "by_status": self.by_status, "by_subject": self.by_subject}


def build_question_stats(rows: list[dict[str, Any]]) -> QuestionStats:
    """Fold (subject_name, grade_number, status, total) rows into QuestionStats."""
    stats = QuestionStats()
    for row in rows:
        status = row["status"]
        stats.by_status[status] = stats.by_status.get(status, 0) + row["total"]

        key = f"{row['subject_name']} (Grade {row['grade_number']})"
        subject = stats.by_subject.setdefault(key, {**{s: 0 for s in STATUSES}, "total": 0})
        subject[status] = subject.get(status, 0) + row["total"]
        subject["total"] += row["total"]
    return stats


def get_question_stats() -> QuestionStats:
    return build_question_stats(get_subject_status_rows())


def get_dashboard_totals(from_date: str | None = None) -> dict[str, Any]:
    """Headline numbers for the admin dashboard.

    ``rejected_by_capturer`` lists capturers with rejected questions,
    most rejected first.
    """
    capturers: list[CapturerStatusCounts] = get_status_counts(from_date)
    rejected = sorted(
        (c for c in capturers if c.rejected),
        key=lambda c: (-c.rejected, c.capturer_id),
    )
    return {
        "learners": count_learners(),
        "questions": count_questions(QuestionFilter()),
        "new_questions": count_questions(QuestionFilter(status="new")),
        "answers": count_results(since=from_date),
        "rejected_by_capturer": [
            {"capturer_id": c.capturer_id, "name": c.name, "email": c.email, "rejected": c.rejected}
            for c in rejected
        ],
    }
