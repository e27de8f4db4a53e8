"""Plugin installer: classifies an install argument and dispatches it."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from animus_plugins.errors import InvalidPluginIdError, PluginInstallError
from animus_plugins.utils.validation import is_safe_path_segment

from .archive import ArchiveInstaller, Extractor, extract_tarball, failed_outcome
from .classifier import classify_install_spec, looks_like_path, resolve_user_path
from .fetch import NpmPackFetcher, RegistryFetcher
from .manifest import ManifestReader
from .models import (
    InstallErrorKind,
    Installed,
    InstallFailed,
    InstallOutcome,
    InstallSpecKind,
    PluginSource,
)
from .placement import derive_plugin_id
from .registry_install import RegistrySpecInstaller

if TYPE_CHECKING:
    from animus_plugins.config.settings import Settings

logger = logging.getLogger(__name__)


class PathInstaller:
    """Validates a local plugin path without copying it.

    The plugin stays where it is; the caller records the path in the plugin
    configuration so the host loads it from there.
    """

    def __init__(self, manifest_reader: ManifestReader | None = None):
        self.manifest_reader = manifest_reader or ManifestReader()

    def install(self, path: Path | str, spec: str | None = None) -> InstallOutcome:
        path = Path(path)
        spec = spec if spec is not None else str(path)
        try:
            if path.is_dir():
                manifest = self.manifest_reader.read(path)
                self.manifest_reader.require_entry_points(manifest)
                plugin_id = derive_plugin_id(manifest.declared_name)
                version = manifest.version
            elif path.is_file():
                # Single-file plugin
                plugin_id = path.stem
                if not is_safe_path_segment(plugin_id):
                    raise InvalidPluginIdError(
                        f"Invalid plugin id {plugin_id!r} from {path.name}",
                        declared_name=path.name,
                    )
                version = None
            else:
                return InstallFailed(
                    kind=InstallErrorKind.SOURCE_NOT_FOUND, message=f"Path not found: {path}"
                )
        except PluginInstallError as e:
            logger.warning(f"Plugin path rejected ({e.kind}): {e.message}")
            return failed_outcome(e)

        logger.info(f"Linked plugin {plugin_id} at {path}")
        return Installed(
            plugin_id=plugin_id,
            target_dir=path,
            source=PluginSource.PATH,
            spec=spec,
            version=version,
        )


class PluginInstaller:
    """Turns a raw install argument into an installed plugin.

    Example:
        installer = PluginInstaller(Path("~/.animus/extensions").expanduser())
        outcome = installer.install("@animus/voice-call")
        if outcome.ok:
            print(outcome.plugin_id, outcome.target_dir)
    """

    def __init__(
        self,
        extensions_dir: Path | str,
        fetcher: RegistryFetcher | None = None,
        manifest_reader: ManifestReader | None = None,
        extractor: Extractor = extract_tarball,
    ):
        """Initialize installer.

        Args:
            extensions_dir: Directory installed plugins are placed in.
            fetcher: Registry fetch capability (default: ``npm pack``).
            manifest_reader: Reader for package manifests.
            extractor: Archive extraction capability.
        """
        self.extensions_dir = Path(extensions_dir)
        self.manifest_reader = manifest_reader or ManifestReader()
        self.archive_installer = ArchiveInstaller(
            self.extensions_dir,
            manifest_reader=self.manifest_reader,
            extractor=extractor,
        )
        self.path_installer = PathInstaller(self.manifest_reader)
        self.registry_installer = RegistrySpecInstaller(
            fetcher or NpmPackFetcher(), self.archive_installer
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, fetcher: RegistryFetcher | None = None
    ) -> PluginInstaller:
        return cls(
            settings.extensions_dir,
            fetcher=fetcher
            or NpmPackFetcher(settings.npm_executable, timeout=settings.fetch_timeout_seconds),
            manifest_reader=ManifestReader(settings.manifest_filename, settings.manifest_key),
        )

    def install(self, raw: str) -> InstallOutcome:
        """Install a plugin from a path, an archive, or a registry spec.

        Args:
            raw: User-supplied install argument.

        Returns:
            ``Installed`` or ``InstallFailed``; never raises for install failures.
        """
        start_time = time.perf_counter()
        outcome = self._dispatch(raw)
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        if outcome.ok:
            logger.info(
                f"Install of {raw!r} finished in {duration_ms:.1f}ms",
                extra={
                    "spec": raw,
                    "plugin_id": outcome.plugin_id,
                    "target_dir": str(outcome.target_dir),
                    "duration_ms": duration_ms,
                },
            )
        else:
            logger.warning(
                f"Install of {raw!r} failed ({outcome.kind.value}) in {duration_ms:.1f}ms",
                extra={"spec": raw, "kind": outcome.kind.value, "duration_ms": duration_ms},
            )
        return outcome

    def _dispatch(self, raw: str) -> InstallOutcome:
        spec = classify_install_spec(raw)

        if spec.kind == InstallSpecKind.ARCHIVE:
            return self.archive_installer.install(spec.value, spec=raw)
        if spec.kind == InstallSpecKind.PATH:
            return self.path_installer.install(spec.value, spec=raw)

        if not raw or not raw.strip() or looks_like_path(raw):
            resolved = resolve_user_path(raw) if raw and raw.strip() else raw
            logger.warning(f"Install source not found: {resolved!r}")
            return InstallFailed(
                kind=InstallErrorKind.SOURCE_NOT_FOUND, message=f"Path not found: {resolved}"
            )

        return self.registry_installer.install(raw.strip())


def install(raw: str, settings: Settings | None = None) -> InstallOutcome:
    """Install ``raw`` using configured settings."""
    if settings is None:
        from animus_plugins.config import get_settings

        settings = get_settings()
    return PluginInstaller.from_settings(settings).install(raw)


__all__ = ["Installed", "InstallFailed", "PathInstaller", "PluginInstaller", "install"]
