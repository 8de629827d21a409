"""Configuration loading for CorePatch.

Settings live in ``~/.config/corepatch/config.toml``::

    db_path = "~/.config/corepatch/corepatch.db"

    [api]
    url = "https://api.snapfont.app/api/corepatch/chat"
    user_id = "corepatch-user"
    timeout = 30

    [editor]
    autosave_delay = 0.6

    [history]
    weeks = 5

    [logging]
    level = "WARNING"

A handful of environment variables override the file.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import toml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "corepatch"
CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = CONFIG_DIR / "corepatch.db"
DEFAULT_API_URL = "https://api.snapfont.app/api/corepatch/chat"


class ApiSettings(BaseModel):
    url: str = Field(default=DEFAULT_API_URL, description="Chat endpoint URL")
    user_id: str = Field(default="corepatch-user", description="User ID sent with every request")
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Request timeout in seconds (None for httpx default)"
    )


class EditorSettings(BaseModel):
    autosave_delay: float = Field(default=0.6, ge=0, description="Autosave quiet period in seconds")


class HistorySettings(BaseModel):
    weeks: int = Field(default=5, ge=1, le=52, description="Weeks shown in the activity grid")


class LoggingSettings(BaseModel):
    level: str = Field(default="WARNING", description="Log level name")


class Settings(BaseModel):
    """Validated CorePatch configuration."""

    db_path: Path = Field(default=DEFAULT_DB_PATH, description="SQLite database path")
    api: ApiSettings = Field(default_factory=ApiSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from the toml file and environment.

    A missing or unreadable file yields the defaults.

    Args:
        config_path: Path to the config file, defaults to ``CONFIG_PATH``.

    Returns:
        Validated settings.
    """
    config_path = config_path or CONFIG_PATH
    data: dict = {}

    if config_path.exists():
        try:
            data = toml.load(config_path)
        except (toml.TomlDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable config %s: %s", config_path, e)
            data = {}

    if os.environ.get("COREPATCH_API_URL"):
        data.setdefault("api", {})["url"] = os.environ["COREPATCH_API_URL"]
    if os.environ.get("COREPATCH_LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = os.environ["COREPATCH_LOG_LEVEL"]
    if os.environ.get("COREPATCH_DB_PATH"):
        data["db_path"] = os.environ["COREPATCH_DB_PATH"]

    settings = Settings.model_validate(data)
    return settings.model_copy(update={"db_path": settings.db_path.expanduser()})
