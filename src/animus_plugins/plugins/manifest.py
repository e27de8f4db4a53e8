"""Package manifest reading.

The reader extracts declared metadata from a package directory without
importing or executing anything from it. It backs both install validation and
status scanning.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from pathlib import Path, PurePosixPath
from typing import Any

from animus_plugins.errors import ManifestInvalidError, ManifestMissingError

from .models import PluginManifest

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_FILENAME = "package.json"
DEFAULT_MANIFEST_KEY = "animus"

# `npm pack` tarballs nest their contents under this directory
PACK_ROOT_DIRNAME = "package"

# How far below the staging root a package manifest is searched for
MAX_PACKAGE_ROOT_DEPTH = 2


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


class ManifestReader:
    """Reads ``<directory>/<filename>`` into a :class:`PluginManifest`.

    Entry points are declared under ``<key>.extensions`` as a list of
    package-relative paths, e.g.::

        {"name": "@scope/voice-call", "animus": {"extensions": ["./dist/index.js"]}}
    """

    def __init__(
        self,
        filename: str = DEFAULT_MANIFEST_FILENAME,
        key: str = DEFAULT_MANIFEST_KEY,
    ):
        self.filename = filename
        self.key = key

    @property
    def entry_points_field(self) -> str:
        """Dotted name of the entry-point declaration, used in error messages."""
        return f"{self.key}.extensions"

    def manifest_path(self, directory: str | Path) -> Path:
        return Path(directory) / self.filename

    def has_manifest(self, directory: str | Path) -> bool:
        return self.manifest_path(directory).is_file()

    def read(self, directory: str | Path) -> PluginManifest:
        """Read and parse the manifest in ``directory``.

        Args:
            directory: Package directory

        Returns:
            Parsed manifest; ``extension_entry_points`` may be empty

        Raises:
            ManifestMissingError: No manifest file, or it is not a JSON object
            ManifestInvalidError: Name or entry-point declaration is malformed
        """
        path = self.manifest_path(directory)
        if not path.is_file():
            raise ManifestMissingError(f"{self.filename} missing in {directory}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            raise ManifestMissingError(f"Failed to parse {path}: {e}")

        if not isinstance(data, dict):
            raise ManifestMissingError(f"{path} is not a JSON object")

        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ManifestInvalidError(f"{self.filename} missing 'name'", field="name")

        return PluginManifest(
            declared_name=name.strip(),
            version=_optional_str(data, "version"),
            extension_entry_points=self._entry_points(data),
            description=_optional_str(data, "description"),
            raw=data,
        )

    def _entry_points(self, data: dict[str, Any]) -> list[str]:
        section = data.get(self.key)
        if section is None:
            return []
        if not isinstance(section, dict):
            raise ManifestInvalidError(
                f"{self.filename} field '{self.key}' must be an object", field=self.key
            )

        extensions = section.get("extensions")
        if extensions is None:
            return []
        if not isinstance(extensions, list):
            raise ManifestInvalidError(
                f"{self.filename} field '{self.entry_points_field}' must be a list",
                field=self.entry_points_field,
            )

        entry_points: list[str] = []
        for entry in extensions:
            if not isinstance(entry, str) or not entry.strip():
                raise ManifestInvalidError(
                    f"{self.entry_points_field} entries must be non-empty strings",
                    field=self.entry_points_field,
                )
            relative = PurePosixPath(entry.replace("\\", "/"))
            if relative.is_absolute() or ".." in relative.parts:
                raise ManifestInvalidError(
                    f"{self.entry_points_field} entry escapes the package: {entry!r}",
                    field=self.entry_points_field,
                )
            entry_points.append(entry)
        return entry_points

    def require_entry_points(self, manifest: PluginManifest) -> None:
        """Reject manifests that declare no extension entry points.

        Raises:
            ManifestInvalidError: The entry-point list is absent or empty
        """
        if not manifest.extension_entry_points:
            raise ManifestInvalidError(
                f"{self.filename} missing {self.entry_points_field}",
                field=self.entry_points_field,
            )

    def locate(self, root: str | Path) -> tuple[Path, PluginManifest]:
        """Find the installable package directory below ``root``.

        Archives may carry their contents at the root or nested one level down
        (``package/`` for npm pack tarballs). Directories are searched
        breadth-first, ``package/`` before its siblings, and the first one
        holding a parseable manifest wins.

        Args:
            root: Extracted staging directory

        Returns:
            (package directory, manifest)

        Raises:
            ManifestMissingError: No parseable manifest within the search depth
            ManifestInvalidError: The first parseable manifest is malformed
        """
        root = Path(root)
        first_error: ManifestMissingError | None = None
        queue: deque[tuple[Path, int]] = deque([(root, 0)])

        while queue:
            directory, depth = queue.popleft()
            if self.has_manifest(directory):
                try:
                    return directory, self.read(directory)
                except ManifestMissingError as e:
                    logger.debug(f"Skipping unparseable manifest in {directory}: {e}")
                    first_error = first_error or e

            if depth >= MAX_PACKAGE_ROOT_DEPTH:
                continue
            children = sorted(
                (p for p in directory.iterdir() if p.is_dir() and not p.is_symlink()),
                key=lambda p: (p.name != PACK_ROOT_DIRNAME, p.name),
            )
            queue.extend((child, depth + 1) for child in children)

        if first_error is not None:
            raise first_error
        raise ManifestMissingError(f"No {self.filename} found in {root}")


def read_manifest(
    directory: str | Path,
    filename: str = DEFAULT_MANIFEST_FILENAME,
    key: str = DEFAULT_MANIFEST_KEY,
) -> PluginManifest:
    """Read the manifest in ``directory`` with a one-off reader."""
    return ManifestReader(filename, key).read(directory)
