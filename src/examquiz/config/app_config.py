"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml
and falls back to built-in defaults when the file is missing.

Usage:
    from examquiz.config.app_config import load_app_config

    config = load_app_config()
    required = config.scoring.required_daily_questions
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

# Overrides database.path when set
DB_PATH_ENV = "EXAMQUIZ_DB_PATH"


@dataclass
class DatabaseConfig:
    """SQLite database settings."""

    path: str = "db/examquiz.db"


@dataclass
class ScoringConfig:
    """Points, streak and mastery rules for learner answers."""

    required_daily_questions: int = 1
    points_correct: int = 1
    points_incorrect: int = 0
    mastery_streak: int = 3


@dataclass
class ModerationConfig:
    """Limits applied to capturers and the auto-reject pass."""

    max_rejected: int = 10
    max_new: int = 50
    max_single_answer_words: int = 4
    auto_reject_length_gap: int = 20


@dataclass
class LeaderboardConfig:
    """Leaderboard defaults."""

    default_period_days: int = 7
    default_limit: int = 10


@dataclass
class ServerConfig:
    """HTTP server settings."""

    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    moderation: ModerationConfig = field(default_factory=ModerationConfig)
    leaderboard: LeaderboardConfig = field(default_factory=LeaderboardConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @property
    def db_path(self) -> Path:
        """Database path, honouring the environment override."""
        return Path(os.environ.get(DB_PATH_ENV) or self.database.path)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {"path": "db/examquiz.db"},
        "scoring": {
            "required_daily_questions": 1,
            "points_correct": 1,
            "points_incorrect": 0,
            "mastery_streak": 3,
        },
        "moderation": {
            "max_rejected": 10,
            "max_new": 50,
            "max_single_answer_words": 4,
            "auto_reject_length_gap": 20,
        },
        "leaderboard": {
            "default_period_days": 7,
            "default_limit": 10,
        },
        "server": {"cors_origins": ["*"]},
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    def section(name: str) -> dict[str, Any]:
        merged = dict(defaults[name])
        merged.update(data.get(name) or {})
        return merged

    db = section("database")
    scoring = section("scoring")
    moderation = section("moderation")
    leaderboard = section("leaderboard")
    server = section("server")

    return AppConfig(
        database=DatabaseConfig(path=str(db["path"])),
        scoring=ScoringConfig(
            required_daily_questions=int(scoring["required_daily_questions"]),
            points_correct=int(scoring["points_correct"]),
            points_incorrect=int(scoring["points_incorrect"]),
            mastery_streak=int(scoring["mastery_streak"]),
        ),
        moderation=ModerationConfig(
            max_rejected=int(moderation["max_rejected"]),
            max_new=int(moderation["max_new"]),
            max_single_answer_words=int(moderation["max_single_answer_words"]),
            auto_reject_length_gap=int(moderation["auto_reject_length_gap"]),
        ),
        leaderboard=LeaderboardConfig(
            default_period_days=int(leaderboard["default_period_days"]),
            default_limit=int(leaderboard["default_limit"]),
        ),
        server=ServerConfig(cors_origins=list(server["cors_origins"])),
    )


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
