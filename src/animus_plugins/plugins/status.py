"""Plugin status registry.

Builds a :class:`StatusReport` by scanning every plugin origin, reading each
manifest (never importing plugin code), and joining the result by id with the
host loader's last observed outcomes. A bad origin degrades to an error record
plus a diagnostic; the scan itself never fails.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from animus_plugins.errors import ConfigStoreError, PluginInstallError

from .config_store import PluginConfigStore, PluginsConfig
from .diagnostics import DiagnosticsCollector
from .manifest import ManifestReader
from .models import (
    BuiltinPlugin,
    LoadOutcome,
    PluginCapabilities,
    PluginRecord,
    PluginSource,
    PluginStatus,
    StatusReport,
)
from .placement import derive_plugin_id

if TYPE_CHECKING:
    from animus_plugins.config.settings import Settings

logger = logging.getLogger(__name__)

LoaderOutcomes = Mapping[str, LoadOutcome]
LoaderOutcomeSource = LoaderOutcomes | Callable[[], LoaderOutcomes]

BUILTIN_ORIGIN = "bundled"

_CAPABILITY_KEYS = ("tool_names", "gateway_methods", "cli_commands", "services")


@dataclass
class DiscoveredPlugin:
    """Static metadata for one origin entry, before the loader join."""

    id: str
    display_name: str
    source: PluginSource
    origin: str
    version: str | None = None
    description: str | None = None
    error: str | None = None


def parse_loader_outcomes(data: Mapping[str, Any]) -> dict[str, LoadOutcome]:
    """Parse ``{id: {loaded, error?, tool_names?, ...}}`` into load outcomes.

    Capability lists may be given flat or under a ``capabilities`` key.
    """
    outcomes: dict[str, LoadOutcome] = {}
    for plugin_id, raw in data.items():
        if not isinstance(raw, Mapping):
            raise ValueError(f"Loader outcome for {plugin_id!r} must be an object")
        payload = dict(raw)
        if "capabilities" not in payload:
            payload["capabilities"] = {
                key: payload.pop(key) for key in _CAPABILITY_KEYS if key in payload
            }
        outcomes[plugin_id] = LoadOutcome.model_validate(payload)
    return outcomes


def load_outcomes_file(path: Path | str) -> dict[str, LoadOutcome]:
    """Read loader outcomes from a JSON file written by the host.

    Raises:
        ValueError: The file is not a JSON object of outcomes
        OSError: The file cannot be read
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return parse_loader_outcomes(data)


class PluginStatusRegistry:
    """Reports which plugins exist, whether they loaded, and why not.

    Origins are scanned in precedence order: explicit load paths from the
    configuration, the extensions directory, then built-ins. The first origin
    to claim an id wins; later ones are reported as shadowed.
    """

    def __init__(
        self,
        extensions_dir: Path | str,
        config_store: PluginConfigStore | None = None,
        builtins: Iterable[BuiltinPlugin] = (),
        loader_outcomes: LoaderOutcomeSource | None = None,
        manifest_reader: ManifestReader | None = None,
    ):
        """Initialize registry.

        Args:
            extensions_dir: Directory installed plugins live in.
            config_store: Source of load paths, enabled flags and install records.
            builtins: Plugins bundled with the host.
            loader_outcomes: Mapping of id to outcome, or a callable returning one.
            manifest_reader: Reader for package manifests.
        """
        self.extensions_dir = Path(extensions_dir)
        self.config_store = config_store
        self.builtins = list(builtins)
        self.loader_outcomes = loader_outcomes
        self.manifest_reader = manifest_reader or ManifestReader()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        builtins: Iterable[BuiltinPlugin] = (),
        loader_outcomes: LoaderOutcomeSource | None = None,
    ) -> PluginStatusRegistry:
        if loader_outcomes is None and settings.loader_outcomes_path:
            outcomes_path = settings.loader_outcomes_path

            def read_outcomes() -> LoaderOutcomes:
                if not outcomes_path.exists():
                    return {}
                return load_outcomes_file(outcomes_path)

            loader_outcomes = read_outcomes

        return cls(
            settings.extensions_dir,
            config_store=PluginConfigStore(settings.plugins_config_path),
            builtins=builtins,
            loader_outcomes=loader_outcomes,
            manifest_reader=ManifestReader(settings.manifest_filename, settings.manifest_key),
        )

    def status(self) -> StatusReport:
        """Build a fresh status report."""
        collector = DiagnosticsCollector()
        config = self._load_config(collector)
        outcomes = self._load_outcomes(collector)

        discovered = [
            *self._scan_load_paths(config, collector),
            *self._scan_extensions_dir(config, collector),
            *self._scan_builtins(),
        ]

        records: list[PluginRecord] = []
        winners: dict[str, DiscoveredPlugin] = {}
        for item in discovered:
            winner = winners.get(item.id)
            if winner is not None:
                collector.warn(
                    f"Duplicate plugin id {item.id!r}: "
                    f"{item.origin} is shadowed by {winner.origin}",
                    plugin_id=item.id,
                )
                records.append(
                    self._record(item, PluginStatus.DISABLED, error=f"shadowed by {winner.origin}")
                )
                continue
            winners[item.id] = item
            records.append(self._resolve(item, outcomes.get(item.id), config, collector))

        for plugin_id in sorted(outcomes):
            outcome = outcomes[plugin_id]
            if plugin_id not in winners and outcome.error:
                collector.error(f"Plugin {plugin_id!r} failed to load: {outcome.error}")

        logger.debug(f"Status scan found {len(records)} plugins, {len(collector)} diagnostics")
        return StatusReport(
            extensions_dir=self.extensions_dir,
            plugins=records,
            diagnostics=collector.diagnostics,
        )

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def _load_config(self, collector: DiagnosticsCollector) -> PluginsConfig:
        if self.config_store is None:
            return PluginsConfig()
        try:
            return self.config_store.load()
        except ConfigStoreError as e:
            logger.warning(e.message)
            collector.error(e.message)
            return PluginsConfig()

    def _load_outcomes(self, collector: DiagnosticsCollector) -> LoaderOutcomes:
        source = self.loader_outcomes
        if source is None:
            return {}
        if not callable(source):
            return source
        try:
            return source()
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Loader outcomes unavailable: {e}")
            collector.error(f"Loader outcomes unavailable: {e}")
            return {}

    # ------------------------------------------------------------------
    # Origins
    # ------------------------------------------------------------------

    def _scan_load_paths(
        self, config: PluginsConfig, collector: DiagnosticsCollector
    ) -> Iterator[DiscoveredPlugin]:
        for raw in config.plugins.load.paths:
            path = Path(raw).expanduser()
            try:
                exists = path.exists()
                is_file = exists and path.is_file()
            except OSError as e:
                logger.warning(f"Configured plugin path unreadable: {raw}: {e}")
                collector.error(f"Configured plugin path unreadable: {raw}: {e}")
                continue
            if not exists:
                logger.warning(f"Configured plugin path not found: {raw}")
                collector.error(f"Configured plugin path not found: {raw}")
                continue

            if is_file:
                yield DiscoveredPlugin(
                    id=path.stem, display_name=path.stem, source=PluginSource.PATH, origin=str(path)
                )
                continue

            yield self._describe_dir(path, None, PluginSource.PATH, collector)

    def _scan_extensions_dir(
        self, config: PluginsConfig, collector: DiagnosticsCollector
    ) -> Iterator[DiscoveredPlugin]:
        try:
            if not self.extensions_dir.is_dir():
                return
            entries = sorted(
                entry
                for entry in self.extensions_dir.iterdir()
                if not entry.name.startswith(".") and entry.is_dir()
            )
        except OSError as e:
            logger.warning(f"Cannot scan extensions directory {self.extensions_dir}: {e}")
            collector.error(f"Cannot scan extensions directory {self.extensions_dir}: {e}")
            return

        for entry in entries:
            install = config.plugins.installs.get(entry.name)
            source = (
                PluginSource.REGISTRY_INSTALL
                if install is not None and install.source == "registry"
                else PluginSource.ARCHIVE_INSTALL
            )
            yield self._describe_dir(entry, entry.name, source, collector)

    def _scan_builtins(self) -> Iterator[DiscoveredPlugin]:
        for builtin in self.builtins:
            yield DiscoveredPlugin(
                id=builtin.id,
                display_name=builtin.name or builtin.id,
                source=PluginSource.BUILTIN,
                origin=BUILTIN_ORIGIN,
                version=builtin.version,
                description=builtin.description,
            )

    def _describe_dir(
        self,
        directory: Path,
        plugin_id: str | None,
        source: PluginSource,
        collector: DiagnosticsCollector,
    ) -> DiscoveredPlugin:
        """Read one plugin directory. ``plugin_id`` None derives it from the manifest."""
        fallback_id = plugin_id or directory.name
        try:
            manifest = self.manifest_reader.read(directory)
            resolved_id = plugin_id or derive_plugin_id(manifest.declared_name)
        except PluginInstallError as e:
            return self._unreadable(directory, fallback_id, source, e.message, collector)
        except OSError as e:
            return self._unreadable(directory, fallback_id, source, str(e), collector)

        if not manifest.extension_entry_points:
            collector.warn(
                f"{self.manifest_reader.filename} declares no "
                f"{self.manifest_reader.entry_points_field}",
                plugin_id=resolved_id,
            )
        return DiscoveredPlugin(
            id=resolved_id,
            display_name=manifest.declared_name,
            source=source,
            origin=str(directory),
            version=manifest.version,
            description=manifest.description,
        )

    @staticmethod
    def _unreadable(
        directory: Path,
        plugin_id: str,
        source: PluginSource,
        message: str,
        collector: DiagnosticsCollector,
    ) -> DiscoveredPlugin:
        logger.warning(f"Unreadable plugin at {directory}: {message}")
        collector.error(f"Unreadable plugin at {directory}: {message}", plugin_id=plugin_id)
        return DiscoveredPlugin(
            id=plugin_id,
            display_name=plugin_id,
            source=source,
            origin=str(directory),
            error=message,
        )

    # ------------------------------------------------------------------
    # Loader join
    # ------------------------------------------------------------------

    def _resolve(
        self,
        item: DiscoveredPlugin,
        outcome: LoadOutcome | None,
        config: PluginsConfig,
        collector: DiagnosticsCollector,
    ) -> PluginRecord:
        entry = config.plugins.entries.get(item.id)
        disabled_in_config = entry is not None and not entry.enabled
        if disabled_in_config and outcome is None:
            collector.info("Plugin is disabled in config", plugin_id=item.id)

        if item.error is not None:
            return self._record(item, PluginStatus.ERROR, error=item.error)
        if outcome is None:
            # Never observed by the loader, so it is not running
            return self._record(item, PluginStatus.DISABLED)
        if outcome.error:
            return self._record(
                item, PluginStatus.ERROR, error=outcome.error, capabilities=outcome.capabilities
            )
        if outcome.loaded:
            return self._record(item, PluginStatus.LOADED, capabilities=outcome.capabilities)
        return self._record(item, PluginStatus.DISABLED)

    @staticmethod
    def _record(
        item: DiscoveredPlugin,
        status: PluginStatus,
        error: str | None = None,
        capabilities: PluginCapabilities | None = None,
    ) -> PluginRecord:
        return PluginRecord(
            id=item.id,
            display_name=item.display_name,
            status=status,
            source=item.source,
            origin=item.origin,
            version=item.version,
            error=error,
            description=item.description,
            capabilities=capabilities or PluginCapabilities(),
        )


def status(settings: Settings | None = None, **kwargs: Any) -> StatusReport:
    """Build a status report using configured settings."""
    if settings is None:
        from animus_plugins.config import get_settings

        settings = get_settings()
    return PluginStatusRegistry.from_settings(settings, **kwargs).status()
