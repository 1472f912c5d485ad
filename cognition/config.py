"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Pipeline configuration. All values come from environment variables."""

    # Logging
    log_level: str = Field(default="INFO")

    # Pattern persistence
    database_path: Path = Field(default=Path("data/cognition.db"))
    pattern_store_key: str = Field(default="learning_patterns")

    # Scheduler
    scheduler_timezone: str = Field(default="UTC")

    # Conversation context
    max_messages: int = Field(default=50)
    max_topics: int = Field(default=20)
    max_entities: int = Field(default=50)
    recent_message_count: int = Field(default=5)
    max_archived_sessions: int = Field(default=10)
    session_timeout_seconds: float = Field(default=1800)
    follow_up_window_seconds: float = Field(default=30)
    follow_up_similarity: float = Field(default=0.6)

    # Module dispatch
    module_timeout_seconds: float = Field(default=5.0)
    min_module_confidence: float = Field(default=0.2)
    response_confidence_floor: float = Field(default=0.1)

    # Reasoning
    reasoning_enabled: bool = Field(default=True)
    reasoning_context_window: int = Field(default=3)
    reasoning_history_size: int = Field(default=100)

    # Learning
    high_confidence_threshold: float = Field(default=0.8)
    learning_queue_size: int = Field(default=1000)
    pattern_sweep_interval_seconds: float = Field(default=30)
    pattern_batch_size: int = Field(default=10)
    persistence_interval_seconds: float = Field(default=300)
    similarity_threshold: float = Field(default=0.6)
    pattern_example_limit: int = Field(default=10)
    pattern_stale_days: int = Field(default=7)
    pattern_stale_min_occurrences: int = Field(default=3)

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)


settings = Settings()
