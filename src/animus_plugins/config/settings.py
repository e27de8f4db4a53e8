"""Settings and configuration management."""

import logging
import re
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

logger = logging.getLogger(__name__)

# Regex for ${ENV_VAR} placeholders in YAML values
_ENV_VAR_PLACEHOLDER_RE = re.compile(r"^\$\{[A-Z_][A-Z0-9_]*\}$")

# YAML config search paths (checked in order, first found wins)
_YAML_SEARCH_PATHS = [
    Path("animus.yaml"),
    Path("config/animus.yaml"),
    Path.home() / ".config" / "animus" / "animus.yaml",
]


def _find_yaml_config() -> Path | None:
    """Find the first animus.yaml in search paths."""
    for path in _YAML_SEARCH_PATHS:
        if path.is_file():
            logger.debug(f"Loading settings from {path}")
            return path
    return None


class Settings(BaseSettings):
    """Plugin subsystem settings.

    Priority chain: init kwargs > env vars (ANIMUS_*) > .env file > animus.yaml > defaults
    """

    model_config = SettingsConfigDict(
        env_prefix="ANIMUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings source priority.

        Priority: init kwargs > env vars > .env file > animus.yaml > file secrets > defaults
        """
        sources: list[PydanticBaseSettingsSource] = [
            init_settings,
            env_settings,
            dotenv_settings,
        ]

        yaml_path = _find_yaml_config()
        if yaml_path:
            sources.append(
                YamlConfigSettingsSource(
                    settings_cls,
                    yaml_file=yaml_path,
                    yaml_file_encoding="utf-8",
                )
            )

        sources.append(file_secret_settings)
        return tuple(sources)

    @model_validator(mode="before")
    @classmethod
    def _resolve_env_var_placeholders(cls, data: dict) -> dict:
        """Strip unresolved ${VAR} placeholders so they become None."""
        if not isinstance(data, dict):
            return data
        for key, value in data.items():
            if isinstance(value, str) and _ENV_VAR_PLACEHOLDER_RE.match(value):
                data[key] = None
        return data

    # Paths
    state_dir: Path = Field(
        default_factory=lambda: Path.home() / ".animus",
        description="Root directory for plugin state",
    )
    extensions_dir: Path | None = Field(
        None,
        description="Directory installed plugins are placed in (default: <state_dir>/extensions)",
    )
    plugins_config_path: Path | None = Field(
        None, description="Plugin configuration YAML (default: <state_dir>/plugins.yaml)"
    )
    loader_outcomes_path: Path | None = Field(
        None, description="JSON file with the host loader's last observed outcomes"
    )

    # Manifest
    manifest_filename: str = Field("package.json", description="Package manifest file name")
    manifest_key: str = Field(
        "animus", description="Manifest key holding the 'extensions' entry-point list"
    )

    # Registry fetch
    npm_executable: str = Field("npm", description="Executable used to pack registry specs")
    fetch_timeout_seconds: int = Field(120, description="Timeout for a registry fetch")

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    log_format: str = Field("text", description="Log format: 'text' or 'json'")
    sanitize_logs: bool = Field(True, description="Sanitize credentials from logs")

    def model_post_init(self, __context) -> None:
        """Resolve paths that default relative to state_dir."""
        self.state_dir = self.state_dir.expanduser()
        if self.extensions_dir is None:
            self.extensions_dir = self.state_dir / "extensions"
        else:
            self.extensions_dir = self.extensions_dir.expanduser()
        if self.plugins_config_path is None:
            self.plugins_config_path = self.state_dir / "plugins.yaml"
        else:
            self.plugins_config_path = self.plugins_config_path.expanduser()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Alias for CLI and other consumers that expect get_config()
get_config = get_settings
