"""Unit tests for logging setup."""

import json

import structlog

from voice_chat.core.logging import configure_logging, get_logger


def test_json_logs_carry_event_and_context(capsys):
    """Should render one JSON object per event with its keyword context."""
    try:
        configure_logging(level="DEBUG", json_logs=True)
        get_logger("voice_chat.test").info("chat_session_created", session_id="s1")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "chat_session_created"
        assert record["session_id"] == "s1"
        assert record["level"] == "info"
    finally:
        structlog.reset_defaults()


def test_level_filters_lower_events(capsys):
    """Should drop events below the configured level."""
    try:
        configure_logging(level="WARNING", json_logs=True)
        get_logger("voice_chat.test").info("ignored_event")

        assert "ignored_event" not in capsys.readouterr().out
    finally:
        structlog.reset_defaults()
