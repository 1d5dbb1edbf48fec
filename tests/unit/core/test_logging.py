"""Tests for structured logging configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
import structlog
from structlog.testing import capture_logs

from rpg_bot.core.config import Settings
from rpg_bot.core.logging import (
    app_context_processor,
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_context,
)


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    """Undo global logging configuration after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    clear_context()


def _renderer() -> object:
    return structlog.get_config()["processors"][-1]


class TestAppContextProcessor:
    """Tests for the app context processor."""

    def test_adds_name_and_version(self) -> None:
        """Test that app and version keys are stamped."""
        processor = app_context_processor("RPG Bot", "0.1.0")
        event_dict = processor(None, "info", {"event": "hello"})
        assert event_dict["app"] == "RPG Bot"
        assert event_dict["version"] == "0.1.0"

    def test_version_omitted_when_none(self) -> None:
        """Test that no version key is added without a version."""
        processor = app_context_processor("RPG Bot")
        event_dict = processor(None, "info", {"event": "hello"})
        assert "version" not in event_dict

    def test_does_not_override_existing_keys(self) -> None:
        """Test that an explicit app key wins."""
        processor = app_context_processor("RPG Bot")
        event_dict = processor(None, "info", {"event": "hello", "app": "worker"})
        assert event_dict["app"] == "worker"


class TestConfigureLogging:
    """Tests for configure_logging and configure_from_settings."""

    def test_json_renderer(self) -> None:
        """Test that json_format selects the JSON renderer."""
        configure_logging(level="WARNING", json_format=True)
        assert isinstance(_renderer(), structlog.processors.JSONRenderer)
        assert logging.getLogger().level == logging.WARNING

    def test_console_renderer(self) -> None:
        """Test that the console renderer is the default."""
        configure_logging()
        assert isinstance(_renderer(), structlog.dev.ConsoleRenderer)

    def test_log_file_handler(self, tmp_path: Path) -> None:
        """Test that a file handler is attached when a path is given."""
        log_file = tmp_path / "rpg_bot.log"
        configure_logging(log_file=str(log_file))
        file_handlers = [
            h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename == str(log_file)

    def test_noisy_libraries_quieted(self) -> None:
        """Test that transport library loggers are raised to WARNING."""
        configure_logging(level="DEBUG")
        assert logging.getLogger("discord").level == logging.WARNING

    def test_from_settings_json(self) -> None:
        """Test that json_logs in settings selects JSON output."""
        configure_from_settings(Settings(json_logs=True, log_level="ERROR"))
        assert isinstance(_renderer(), structlog.processors.JSONRenderer)
        assert logging.getLogger().level == logging.ERROR

    def test_from_settings_debug_forces_debug_level(self) -> None:
        """Test that debug mode logs at DEBUG regardless of log_level."""
        configure_from_settings(Settings(debug=True, log_level="ERROR"))
        assert logging.getLogger().level == logging.DEBUG


class TestContext:
    """Tests for context binding helpers."""

    def test_bind_and_clear(self) -> None:
        """Test that bound values are visible until cleared."""
        bind_context(actor_id="123")
        assert structlog.contextvars.get_contextvars() == {"actor_id": "123"}
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_log_context_restores_previous(self) -> None:
        """Test that log_context only lasts for its block."""
        bind_context(guild_id="outer")
        with log_context(actor_id="123", guild_id="456"):
            assert structlog.contextvars.get_contextvars() == {
                "actor_id": "123",
                "guild_id": "456",
            }
        assert structlog.contextvars.get_contextvars() == {"guild_id": "outer"}

    def test_log_context_restored_on_error(self) -> None:
        """Test that context is restored when the block raises."""
        with pytest.raises(RuntimeError), log_context(actor_id="123"):
            raise RuntimeError("boom")
        assert structlog.contextvars.get_contextvars() == {}

    def test_get_logger_emits_fields(self) -> None:
        """Test that key/value fields reach the log entry."""
        logger = get_logger(__name__)
        with capture_logs() as logs:
            logger.info("Creation session started", owner_id="123")
        assert logs == [
            {"event": "Creation session started", "owner_id": "123", "log_level": "info"}
        ]
