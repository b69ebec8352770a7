"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for reference data, learners, questions,
  results, lesson content and discussion threads
"""

from examquiz.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
