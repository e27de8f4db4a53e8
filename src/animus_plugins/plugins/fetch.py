"""Registry fetch capability.

The registry-spec installer only needs "turn this spec into a local tarball".
Network, auth and registry selection belong to whatever implements
:class:`RegistryFetcher`; :class:`NpmPackFetcher` delegates all of it to
``npm pack``.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from animus_plugins.errors import FetchError

logger = logging.getLogger(__name__)


class RegistryFetcher(Protocol):
    """Resolves a registry spec to a local archive inside ``dest_dir``."""

    def fetch(self, spec: str, dest_dir: Path) -> Path: ...


class NpmPackFetcher:
    """Fetches a package tarball with ``npm pack``."""

    def __init__(self, executable: str = "npm", timeout: float = 120):
        """Initialize fetcher.

        Args:
            executable: npm executable to run.
            timeout: Seconds before the pack command is abandoned.
        """
        self.executable = executable
        self.timeout = timeout

    def fetch(self, spec: str, dest_dir: Path) -> Path:
        """Pack ``spec`` into ``dest_dir``.

        Raises:
            FetchError: npm is missing, failed, timed out, or produced no tarball
        """
        dest_dir = Path(dest_dir)
        cmd = [self.executable, "pack", spec, "--pack-destination", str(dest_dir), "--silent"]
        logger.info(f"Fetching plugin package {spec}")

        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError:
            raise FetchError(f"{self.executable} not found; cannot fetch {spec}", spec=spec)
        except subprocess.TimeoutExpired:
            raise FetchError(f"npm pack timed out after {self.timeout}s for {spec}", spec=spec)

        if proc.returncode != 0:
            output = (proc.stderr or proc.stdout or "").strip() or "<no output>"
            raise FetchError(f"npm pack failed for {spec}: {output}", spec=spec)

        lines = [line.strip() for line in (proc.stdout or "").splitlines() if line.strip()]
        if not lines:
            raise FetchError(f"npm pack produced no archive for {spec}", spec=spec)

        archive = dest_dir / lines[-1]
        if not archive.is_file():
            raise FetchError(f"npm pack archive missing: {archive}", spec=spec)
        return archive
