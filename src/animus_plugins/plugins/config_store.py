"""Plugin configuration store.

Persists which plugins are enabled, which local paths the host should load,
and how archive/registry plugins were installed. The file is plain YAML::

    plugins:
      load:
        paths: [/home/me/dev/my-plugin]
      entries:
        voice-call: {enabled: true}
      installs:
        voice-call: {source: registry, spec: "@animus/voice-call", install_path: ...}
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from animus_plugins.errors import ConfigStoreError

from .models import Installed, PluginSource

logger = logging.getLogger(__name__)


class PluginEntry(BaseModel):
    enabled: bool = True


class PluginInstallRecord(BaseModel):
    source: Literal["archive", "registry"]
    spec: str
    install_path: str
    version: str | None = None


class PluginLoadConfig(BaseModel):
    paths: list[str] = Field(default_factory=list)


class PluginsSection(BaseModel):
    load: PluginLoadConfig = Field(default_factory=PluginLoadConfig)
    entries: dict[str, PluginEntry] = Field(default_factory=dict)
    installs: dict[str, PluginInstallRecord] = Field(default_factory=dict)


class PluginsConfig(BaseModel):
    plugins: PluginsSection = Field(default_factory=PluginsSection)


class PluginConfigStore:
    """Reads and writes the plugin configuration file.

    Every mutation is a read-modify-write followed by an atomic replace, so
    concurrent readers never see a half-written file.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> PluginsConfig:
        """Load the configuration; a missing file is an empty configuration.

        Raises:
            ConfigStoreError: The file exists but is not valid plugin configuration
        """
        if not self.path.exists():
            return PluginsConfig()
        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
            return PluginsConfig.model_validate(data)
        except (yaml.YAMLError, OSError, ValidationError) as e:
            raise ConfigStoreError(f"Failed to read plugin config {self.path}: {e}", str(self.path))

    def save(self, config: PluginsConfig) -> None:
        """Atomically write the configuration."""
        content = yaml.dump(
            config.model_dump(mode="json", exclude_none=True),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, suffix=".tmp", prefix=f".{self.path.stem}-"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ConfigStoreError(
                f"Failed to write plugin config {self.path}: {e}", str(self.path)
            )

    def is_enabled(self, plugin_id: str, config: PluginsConfig | None = None) -> bool:
        """Whether ``plugin_id`` is enabled. Plugins without an entry are enabled."""
        config = config or self.load()
        entry = config.plugins.entries.get(plugin_id)
        return entry.enabled if entry else True

    def set_enabled(self, plugin_id: str, enabled: bool) -> None:
        config = self.load()
        entry = config.plugins.entries.setdefault(plugin_id, PluginEntry())
        entry.enabled = enabled
        self.save(config)
        logger.info(f"{'Enabled' if enabled else 'Disabled'} plugin {plugin_id} in {self.path}")

    def load_paths(self) -> list[str]:
        return list(self.load().plugins.load.paths)

    def add_load_path(self, path: Path | str) -> bool:
        """Register an explicit load path. Returns False if it was already present."""
        config = self.load()
        value = str(path)
        if value in config.plugins.load.paths:
            return False
        config.plugins.load.paths.append(value)
        self.save(config)
        logger.info(f"Added plugin load path {value}")
        return True

    def record_install(self, outcome: Installed) -> None:
        """Register a successful install so the host picks it up."""
        if outcome.source == PluginSource.PATH:
            self.add_load_path(outcome.target_dir)
            return

        config = self.load()
        entry = config.plugins.entries.setdefault(outcome.plugin_id, PluginEntry())
        entry.enabled = True
        config.plugins.installs[outcome.plugin_id] = PluginInstallRecord(
            source="registry" if outcome.source == PluginSource.REGISTRY_INSTALL else "archive",
            spec=outcome.spec,
            install_path=str(outcome.target_dir),
            version=outcome.version,
        )
        self.save(config)
        logger.info(f"Recorded install of {outcome.plugin_id} in {self.path}")
