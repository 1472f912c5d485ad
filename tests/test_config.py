"""Tests for Settings configuration model."""

from pathlib import Path

from cognition.config import Settings


class TestDefaults:
    def test_default_log_level(self):
        assert Settings().log_level == "INFO"

    def test_default_database_path(self):
        assert Settings().database_path == Path("data/cognition.db")

    def test_context_bounds(self):
        s = Settings()
        assert s.max_messages == 50
        assert s.max_topics == 20
        assert s.max_entities == 50
        assert s.recent_message_count == 5
        assert s.max_archived_sessions == 10

    def test_session_timing(self):
        s = Settings()
        assert s.session_timeout_seconds == 1800
        assert s.follow_up_window_seconds == 30
        assert s.follow_up_similarity == 0.6

    def test_dispatch_thresholds(self):
        s = Settings()
        assert s.module_timeout_seconds == 5.0
        assert s.min_module_confidence == 0.2
        assert s.response_confidence_floor == 0.1

    def test_learning_cadence(self):
        s = Settings()
        assert s.high_confidence_threshold == 0.8
        assert s.pattern_sweep_interval_seconds == 30
        assert s.pattern_batch_size == 10
        assert s.persistence_interval_seconds == 300
        assert s.pattern_example_limit == 10


class TestOverrides:
    def test_init_kwargs_override_defaults(self):
        s = Settings(module_timeout_seconds=0.5, reasoning_enabled=False)
        assert s.module_timeout_seconds == 0.5
        assert s.reasoning_enabled is False

    def test_environment_ignored_under_pytest(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert Settings().log_level == "INFO"
