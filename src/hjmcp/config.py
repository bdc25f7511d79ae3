"""Configuration management for hjmcp."""

import json
import logging
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .version import __version__

logger = logging.getLogger(__name__)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ServerProcessConfig(BaseModel):
    """How the client launches the server process."""

    command: str = Field(default_factory=lambda: sys.executable)
    args: list[str] = Field(default_factory=lambda: ["-m", "hjmcp", "serve"])
    env: dict[str, str] = Field(default_factory=dict)
    cwd: str | None = None


class ClientConfig(BaseModel):
    """Configuration for the stdio client."""

    model_config = ConfigDict(validate_assignment=True)

    request_timeout: float = 5.0
    startup_timeout: float = 10.0
    shutdown_timeout: float = 5.0
    server: ServerProcessConfig = Field(default_factory=ServerProcessConfig)


class ServerConfig(BaseModel):
    """Configuration for the stdio server."""

    model_config = ConfigDict(validate_assignment=True)

    name: str = "hjmcp-stdio"
    version: str = __version__
    project_root: Path | None = None
    log_level: LogLevel = "INFO"

    def resolved_root(self) -> Path:
        """Project root, defaulting to the working directory."""
        return (self.project_root or Path.cwd()).resolve()


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(env_prefix="HJMCP_", env_nested_delimiter="__")

    client: ClientConfig = Field(default_factory=ClientConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


class ConfigManager:
    """Manages configuration loading and saving."""

    CONFIG_DIR = Path.home() / ".config" / "hjmcp"
    CONFIG_FILE = CONFIG_DIR / "config.json"
    LOCAL_CONFIG_NAME = "hjmcp.json"

    def __init__(self):
        self._config: AppConfig | None = None
        self._config_path: Path | None = None

    @property
    def config_path(self) -> Path:
        return self._config_path or self.CONFIG_FILE

    def _ensure_config_dir(self) -> None:
        """Ensure configuration directory exists."""
        self.CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    def _load_file(self, path: Path) -> AppConfig | None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return AppConfig(**data)
        except (OSError, json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning("Ignoring unreadable config file %s: %s", path, e)
            return None

    def load_config(self) -> AppConfig:
        """Load configuration from file or fall back to defaults and environment."""
        if self._config is not None:
            return self._config

        # A project-local file wins over the user config
        candidates = [Path.cwd() / self.LOCAL_CONFIG_NAME, self.CONFIG_FILE]
        for path in candidates:
            if not path.exists():
                continue
            config = self._load_file(path)
            if config is not None:
                logger.debug("Loaded configuration from %s", path)
                self._config = config
                self._config_path = path
                return self._config

        self._config = AppConfig()
        self._config_path = self.CONFIG_FILE
        return self._config

    def save_config(self, config: AppConfig) -> None:
        """Save configuration to file."""
        self._config = config
        target_path = self.config_path
        if target_path == self.CONFIG_FILE:
            self._ensure_config_dir()
        else:
            target_path.parent.mkdir(parents=True, exist_ok=True)

        with open(target_path, "w", encoding="utf-8") as f:
            json.dump(config.model_dump(mode="json"), f, indent=2, ensure_ascii=False)

    def get_config(self) -> AppConfig:
        """Get current configuration."""
        if self._config is None:
            return self.load_config()
        return self._config

    def reset(self) -> None:
        """Forget the cached configuration so the next access reloads it."""
        self._config = None
        self._config_path = None


# Global config manager instance
config_manager = ConfigManager()
