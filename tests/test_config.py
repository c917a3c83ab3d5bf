"""Tests for EditorConfig and the logging setup."""

import logging
from pathlib import Path

import pytest

from config import EditorConfig, configure_logging, default_log_file


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("BTEDITOR_MAX_UNDO_STEPS", "BTEDITOR_GRID_SIZE", "BTEDITOR_LOG_LEVEL",
                 "BTEDITOR_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestEditorConfig:
    def test_defaults(self, clean_env):
        config = EditorConfig.from_env()
        assert config.max_undo_steps == 50
        assert config.grid_size == 20
        assert config.log_level == "INFO"

    def test_from_env(self, clean_env, tmp_path):
        clean_env.setenv("BTEDITOR_MAX_UNDO_STEPS", "5")
        clean_env.setenv("BTEDITOR_GRID_SIZE", "32")
        clean_env.setenv("BTEDITOR_LOG_LEVEL", "debug")
        clean_env.setenv("BTEDITOR_LOG_FILE", str(tmp_path / "editor.log"))
        config = EditorConfig.from_env()
        assert config.max_undo_steps == 5
        assert config.grid_size == 32
        assert config.log_level == "DEBUG"
        assert config.log_file == tmp_path / "editor.log"

    def test_invalid_number_keeps_default(self, clean_env, caplog):
        clean_env.setenv("BTEDITOR_MAX_UNDO_STEPS", "lots")
        clean_env.setenv("BTEDITOR_GRID_SIZE", "-4")
        clean_env.setenv("BTEDITOR_LOG_LEVEL", "warning")
        with caplog.at_level(logging.WARNING, logger="config"):
            config = EditorConfig.from_env()
        assert config.max_undo_steps == 50
        assert config.grid_size == 20
        assert config.log_level == "WARNING"
        assert len(caplog.records) == 2

    def test_unknown_log_level(self, clean_env, caplog):
        clean_env.setenv("BTEDITOR_LOG_LEVEL", "chatty")
        with caplog.at_level(logging.WARNING, logger="config"):
            config = EditorConfig.from_env()
        assert config.log_level == "INFO"
        assert "chatty" in caplog.text

    def test_keyword_overrides(self, clean_env):
        config = EditorConfig(max_undo_steps=3, log_level="error")
        assert config.max_undo_steps == 3
        assert config.log_level == "ERROR"

    def test_default_log_file_follows_xdg(self, clean_env, tmp_path):
        clean_env.setenv("XDG_STATE_HOME", str(tmp_path))
        assert default_log_file() == tmp_path / "bteditor" / "bteditor.log"
        assert EditorConfig().log_file == tmp_path / "bteditor" / "bteditor.log"

    def test_default_log_file_without_xdg(self, monkeypatch):
        monkeypatch.delenv("XDG_STATE_HOME", raising=False)
        assert default_log_file() == Path.home() / ".local" / "state" / "bteditor" / "bteditor.log"


class TestConfigureLogging:
    def test_creates_log_directory(self, tmp_path, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        log_file = tmp_path / "state" / "bteditor.log"
        config = EditorConfig(log_file=log_file, log_level="DEBUG")

        assert configure_logging(config) == log_file
        assert log_file.parent.is_dir()
        assert calls == [{
            "filename": str(log_file),
            "level": logging.DEBUG,
            "format": "%(asctime)s - %(levelname)s - %(message)s",
        }]
