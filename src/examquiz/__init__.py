"""ExamQuiz: content management and learner engagement service."""

__version__ = "0.1.0"
