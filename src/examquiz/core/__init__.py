"""Core business logic.

Modules:
- answer_checker: Answer normalization, checking, points and mastery
- streaks: Daily answer streaks
- leaderboard: Rankings and learner statistics
- moderation: Exam question capture and review workflow
- learner_profile: Onboarding, learner subjects and favourites
- lesson_questions: Lesson question content rules and authoring
- content: Units, lessons, words and word groups
- chat: Subject discussion threads
- reference: Grades and subjects
- stats: Admin dashboard figures
"""

__all__ = [
    "answer_checker",
    "streaks",
    "leaderboard",
    "moderation",
    "learner_profile",
    "lesson_questions",
    "content",
    "chat",
    "reference",
    "stats",
]
