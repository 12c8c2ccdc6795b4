from __future__ import annotations

import logging
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from protic.exceptions import ConfigError
from protic.logging import configure_logging, get_logger

__all__ = [
    "ProticConfig",
    "ExpressionConfig",
    "load_config",
    "get_user_config_path",
    "PROJECT_CONFIG_NAME",
]

logger = get_logger(__name__)

PROJECT_CONFIG_NAME = "protic.yaml"

_VERBOSITY_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

# Project config path chosen by load_config() for the settings being built.
_project_config_path: ContextVar[Path | None] = ContextVar(
    "protic_project_config_path", default=None
)


class ExpressionConfig(BaseModel):
    """Settings for attribute expression handling.

    Attributes:
        cache_size: Maximum number of parsed expressions memoized per engine.
            0 disables the cache.
        report_positions: Include the failing character position in
            diagnostics produced for unparseable expressions.
    """

    cache_size: int = Field(default=256, ge=0, le=65536)
    report_positions: bool = True


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source reading a single YAML mapping file."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file is None or not yaml_file.exists():
            return
        try:
            loaded = yaml.safe_load(yaml_file.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_file}: {e}") from e
        if loaded is None:
            logger.warning("config_file_empty", path=str(yaml_file))
        elif not isinstance(loaded, dict):
            raise ConfigError(
                f"Config file {yaml_file} must contain a mapping",
                value=loaded,
            )
        else:
            self._config_data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        return self._config_data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._config_data


class ProticConfig(BaseSettings):
    """Root configuration object containing all Protic settings.

    Attributes:
        expressions: Parse cache and diagnostic settings.
        verbosity: Log level applied by ``apply_logging()``.
    """

    model_config = SettingsConfigDict(
        env_prefix="PROTIC_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    expressions: ExpressionConfig = Field(default_factory=ExpressionConfig)
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @property
    def log_level(self) -> int:
        """Stdlib logging level for the configured verbosity."""
        return _VERBOSITY_LEVELS[self.verbosity]

    def apply_logging(self, *, force_json: bool = False) -> None:
        """Configure Protic logging at the level set by ``verbosity``."""
        configure_logging(force_json=force_json, level=self.log_level)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order settings sources, highest priority first.

        1. Init arguments
        2. Environment variables (PROTIC_*)
        3. Project YAML config (./protic.yaml, or the path given to load_config)
        4. User YAML config (~/.config/protic/config.yaml)
        """
        project_config_path = (
            _project_config_path.get() or Path.cwd() / PROJECT_CONFIG_NAME
        )
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, project_config_path),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Get the path to the user configuration file.

    Returns:
        Path to ~/.config/protic/config.yaml
    """
    return Path.home() / ".config" / "protic" / "config.yaml"


def load_config(config_path: Path | None = None) -> ProticConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Optional path to the project config file. Defaults to
            ./protic.yaml

    Returns:
        ProticConfig instance with merged configuration.

    Raises:
        ConfigError: If configuration is invalid.
    """
    if config_path is None:
        config_path = Path.cwd() / PROJECT_CONFIG_NAME

    if not config_path.exists():
        logger.info("project_config_not_found", path=str(config_path))

    token = _project_config_path.set(config_path)
    try:
        return ProticConfig()
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        _project_config_path.reset(token)
