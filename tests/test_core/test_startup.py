"""
Tests for Startup Validation

Tests for storygen/core/startup.py and storygen/core/logging_config.py
"""

import logging

from storygen.core.config import StorygenConfig
from storygen.core.logging_config import LogContext, LogLevel, get_logger
from storygen.core.startup import validate_environment


def clear_keys(monkeypatch):
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "STORYGEN_TEST_KEY"):
        monkeypatch.delenv(name, raising=False)


class TestValidateEnvironment:
    """Tests for validate_environment."""

    def test_missing_key(self, monkeypatch):
        clear_keys(monkeypatch)

        result = validate_environment(StorygenConfig())

        assert not result.valid
        assert "GEMINI_API_KEY" in result.errors[0]

    def test_fallback_key(self, monkeypatch):
        clear_keys(monkeypatch)
        monkeypatch.setenv("GOOGLE_API_KEY", "abc")

        assert validate_environment(StorygenConfig()).valid

    def test_configured_key(self, monkeypatch, sample_config):
        clear_keys(monkeypatch)
        monkeypatch.setenv("STORYGEN_TEST_KEY", "abc")

        result = validate_environment(StorygenConfig.from_dict(sample_config))

        assert result.valid
        assert any("Review mode" in warning for warning in result.warnings)


class TestLogging:
    """Tests for logging helpers."""

    def test_logger_namespace(self):
        assert get_logger("review.gate").name == "storygen.review.gate"
        assert get_logger("storygen.api").name == "storygen.api"

    def test_log_level_from_name(self):
        assert LogLevel.from_name("debug") == LogLevel.DEBUG
        assert LogLevel.from_name("nonsense") == LogLevel.INFO

    def test_log_context(self):
        logger = get_logger("tests.context")
        logger.setLevel(logging.INFO)

        with LogContext(logger, LogLevel.DEBUG):
            assert logger.level == logging.DEBUG

        assert logger.level == logging.INFO
