"""Configuration management for panesd.

Loads settings from a YAML configuration file with environment variable
overrides (``PANESD_`` prefix, ``__`` for nested sections). Supports .env
files.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/panesd.yaml")


class ConfigurationError(Exception):
    """Raised when the configuration is missing or invalid."""


class BrowserConfig(BaseModel):
    host: str = Field(default="127.0.0.1", description="Remote debugging host")
    port: int = Field(default=2345, ge=1, le=65535)
    discovery_path: str = Field(default="/json")
    poll_interval: float = Field(default=0.1, gt=0, description="Seconds between discovery polls")
    open_timeout: float = Field(default=10.0, gt=0)

    @property
    def discovery_url(self) -> str:
        return f"http://{self.host}:{self.port}{self.discovery_path}"


class PresentationConfig(BaseModel):
    next_url: str = Field(default="http://localhost:3000/presentations/next")
    slide_timeout: float = Field(default=60.0, gt=0, description="Seconds without keepAlive")
    presentation_timeout: float = Field(default=600.0, gt=0)
    watchdog_tick: float = Field(default=1.0, gt=0)
    id_pattern: str = Field(default=r"presentations/(\d+)/display")
    script_src: str = Field(default="/javascripts/growingpanes.js")

    @field_validator("id_pattern")
    @classmethod
    def _compiles_with_group(cls, value: str) -> str:
        try:
            pattern = re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid regular expression: {e}") from e
        if pattern.groups < 1:
            raise ValueError("pattern must capture the presentation id in a group")
        return value


class ControlConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001, ge=1, le=65535)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the panesd daemon.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "PANESD_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    presentation: PresentationConfig = Field(default_factory=PresentationConfig)
    control: ControlConfig = Field(default_factory=ControlConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs; the environment must win over them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults

    An explicitly requested config file must exist; the default path is
    optional.

    Raises:
        ConfigurationError: If the file is missing, unreadable, or the
            resulting settings fail validation.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        try:
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        if not isinstance(yaml_data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        logger.info("Loaded configuration from %s", path)
    elif config_path:
        raise ConfigurationError(f"Config file {path} not found")
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    try:
        return Settings(**yaml_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
