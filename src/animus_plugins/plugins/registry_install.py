"""Installation from package-registry specs."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from animus_plugins.errors import FetchError
from animus_plugins.utils.validation import sanitize_log_message

from .archive import ArchiveInstaller
from .fetch import RegistryFetcher
from .models import InstallErrorKind, InstallFailed, InstallOutcome, PluginSource

logger = logging.getLogger(__name__)

DOWNLOAD_PREFIX = ".animus-fetch-"


class RegistrySpecInstaller:
    """Resolves a spec to a tarball, then installs it like any other archive.

    Reusing :class:`ArchiveInstaller` unchanged gives registry installs the
    same validation and placement guarantees as local archives.
    """

    def __init__(self, fetcher: RegistryFetcher, archive_installer: ArchiveInstaller):
        self.fetcher = fetcher
        self.archive_installer = archive_installer

    def install(self, spec: str) -> InstallOutcome:
        """Install a plugin from a registry spec such as ``@scope/name@1.2.0``."""
        download_root = self.archive_installer.staging_root
        try:
            download_root.mkdir(parents=True, exist_ok=True)
            with tempfile.TemporaryDirectory(
                prefix=DOWNLOAD_PREFIX, dir=download_root, ignore_cleanup_errors=True
            ) as download_dir:
                try:
                    archive = self.fetcher.fetch(spec, Path(download_dir))
                except FetchError as e:
                    return self._fetch_failed(spec, e.message)
                except Exception as e:
                    return self._fetch_failed(spec, str(e) or type(e).__name__)

                return self.archive_installer.install(
                    archive, source=PluginSource.REGISTRY_INSTALL, spec=spec
                )
        except OSError as e:
            logger.error(f"Registry install of {spec} failed on filesystem error: {e}")
            return InstallFailed(kind=InstallErrorKind.FILESYSTEM_ERROR, message=str(e))

    def _fetch_failed(self, spec: str, message: str) -> InstallFailed:
        logger.error(
            f"Fetch failed for {spec}: {sanitize_log_message(message)}",
            extra={"spec": spec, "kind": InstallErrorKind.FETCH_FAILED.value},
        )
        return InstallFailed(kind=InstallErrorKind.FETCH_FAILED, message=message)
