"""Editor settings read from BTEDITOR_* environment variables, and the logging setup."""

import logging
import os
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def default_log_file() -> Path:
    """Log file location under the XDG state directory"""
    xdg_state = os.environ.get("XDG_STATE_HOME", str(Path.home() / ".local" / "state"))
    return Path(xdg_state) / "bteditor" / "bteditor.log"


class EditorConfig(BaseSettings):
    max_undo_steps: int = Field(50, gt=0)
    grid_size: int = Field(20, gt=0)
    log_level: str = "INFO"
    log_file: Path = Field(default_factory=default_log_file)

    model_config = SettingsConfigDict(
        env_prefix="BTEDITOR_",
        extra="ignore",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _check_log_level(cls, value):
        level = str(value).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def _expand_log_file(cls, value):
        return Path(value).expanduser()

    @classmethod
    def from_env(cls) -> "EditorConfig":
        """Read the environment, keeping the default for every invalid setting."""
        try:
            return cls()
        except ValidationError as e:
            defaults = {}
            for error in e.errors():
                name = error["loc"][0] if error["loc"] else None
                if name not in cls.model_fields:
                    raise
                log.warning("Ignoring invalid %s setting: %s", name, error["msg"])
                defaults[name] = cls.model_fields[name].get_default(call_default_factory=True)
            return cls(**defaults)


def configure_logging(config: EditorConfig) -> Path:
    config.log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(config.log_file),
        level=getattr(logging, config.log_level),
        format=LOG_FORMAT,
    )
    return config.log_file
