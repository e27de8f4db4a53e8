"""Archive extraction and installation."""

from __future__ import annotations

import logging
import tarfile
import tempfile
from collections.abc import Callable
from pathlib import Path

from animus_plugins.errors import ExtractionError, PluginInstallError

from .manifest import ManifestReader
from .models import InstallErrorKind, Installed, InstallFailed, InstallOutcome, PluginSource
from .placement import derive_plugin_id, promote_package

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".animus-staging-"

# (archive path, destination directory) -> None
Extractor = Callable[[Path, Path], None]


def extract_tarball(archive_path: Path, dest_dir: Path) -> None:
    """Extract a (gzipped) tarball into ``dest_dir``.

    Uses the ``data`` extraction filter, which rejects absolute names, links
    pointing outside ``dest_dir`` and device files.

    Raises:
        ExtractionError: The archive is unreadable or contains unsafe members
    """
    try:
        with tarfile.open(archive_path, "r:*") as tar:
            tar.extractall(dest_dir, filter="data")
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ExtractionError(f"Failed to extract archive {archive_path}: {e}")


def failed_outcome(error: PluginInstallError) -> InstallFailed:
    return InstallFailed(kind=error.kind, message=error.message)


class ArchiveInstaller:
    """Installs a plugin from a packed archive.

    Every call extracts into its own staging directory, validates the manifest
    there, and only then promotes the package into the extensions directory.
    Staging is removed on every exit path.
    """

    def __init__(
        self,
        extensions_dir: Path | str,
        manifest_reader: ManifestReader | None = None,
        extractor: Extractor = extract_tarball,
        staging_root: Path | str | None = None,
    ):
        """Initialize installer.

        Args:
            extensions_dir: Directory installed plugins are placed in.
            manifest_reader: Reader for package manifests.
            extractor: Archive extraction capability.
            staging_root: Parent for per-call staging directories. Defaults to the
                parent of extensions_dir so promotion is a same-filesystem rename.
        """
        self.extensions_dir = Path(extensions_dir)
        self.manifest_reader = manifest_reader or ManifestReader()
        self.extractor = extractor
        self.staging_root = Path(staging_root) if staging_root else self.extensions_dir.parent

    def install(
        self,
        archive_path: Path | str,
        source: PluginSource = PluginSource.ARCHIVE_INSTALL,
        spec: str | None = None,
    ) -> InstallOutcome:
        """Install a plugin archive.

        Args:
            archive_path: Local .tgz/.tar.gz file.
            source: Recorded on the outcome (registry installs reuse this path).
            spec: Raw install argument, defaults to the archive path.

        Returns:
            ``Installed`` or ``InstallFailed``.
        """
        archive_path = Path(archive_path)
        spec = spec if spec is not None else str(archive_path)

        if not archive_path.is_file():
            logger.warning(f"Archive not found: {archive_path}")
            return InstallFailed(
                kind=InstallErrorKind.SOURCE_NOT_FOUND,
                message=f"Archive not found: {archive_path}",
            )

        logger.info(f"Installing plugin from archive {archive_path}")
        try:
            self.staging_root.mkdir(parents=True, exist_ok=True)
            with tempfile.TemporaryDirectory(
                prefix=STAGING_PREFIX, dir=self.staging_root, ignore_cleanup_errors=True
            ) as staging:
                return self._install_staged(archive_path, Path(staging), source, spec)
        except PluginInstallError as e:
            logger.warning(
                f"Plugin install failed ({e.kind}): {e.message}",
                extra={"spec": spec, "kind": e.kind},
            )
            return failed_outcome(e)
        except OSError as e:
            logger.error(f"Plugin install failed on filesystem error: {e}")
            return InstallFailed(kind=InstallErrorKind.FILESYSTEM_ERROR, message=str(e))

    def _install_staged(
        self, archive_path: Path, staging: Path, source: PluginSource, spec: str
    ) -> Installed:
        extract_dir = staging / "extract"
        extract_dir.mkdir()
        try:
            self.extractor(archive_path, extract_dir)
        except PluginInstallError:
            raise
        except Exception as e:
            raise ExtractionError(f"Failed to extract archive {archive_path}: {e}")

        package_dir, manifest = self.manifest_reader.locate(extract_dir)
        self.manifest_reader.require_entry_points(manifest)
        plugin_id = derive_plugin_id(manifest.declared_name)

        target_dir = promote_package(package_dir, self.extensions_dir, plugin_id)
        logger.info(
            f"Installed plugin {plugin_id} ({manifest.declared_name}) to {target_dir}",
            extra={"plugin_id": plugin_id, "spec": spec, "target_dir": str(target_dir)},
        )
        return Installed(
            plugin_id=plugin_id,
            target_dir=target_dir,
            source=source,
            spec=spec,
            version=manifest.version,
        )
