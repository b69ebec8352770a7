"""Configuration package for the ExamQuiz service."""

from examquiz.config.app_config import (
    AppConfig,
    LeaderboardConfig,
    ModerationConfig,
    ScoringConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "LeaderboardConfig",
    "ModerationConfig",
    "ScoringConfig",
    "clear_config_cache",
    "load_app_config",
]
