"""Plugin id derivation and staging-to-target promotion.

Both installers funnel through :func:`promote_package`, so the rule that an
existing plugin directory is rejected and never overwritten lives here only.
The extensions directory is shared between processes without a lock: the
existence check up front is a fast path, and claiming the target directory
with ``mkdir`` is the authoritative conflict signal.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path

from animus_plugins.errors import InvalidPluginIdError, PlacementError, PluginAlreadyExistsError
from animus_plugins.utils.validation import is_safe_path_segment

logger = logging.getLogger(__name__)

SCOPE_PREFIX = "@"
SCOPE_SEPARATOR = "/"


def derive_plugin_id(declared_name: str) -> str:
    """Derive the directory-safe plugin id from a declared package name.

    ``@scope/name`` yields ``name``; any other name is used verbatim, so an
    unscoped ``foo/bar`` is rejected rather than truncated to ``bar``.

    Raises:
        InvalidPluginIdError: The derived id is empty or not a single path segment
    """
    plugin_id = declared_name
    if declared_name.startswith(SCOPE_PREFIX) and SCOPE_SEPARATOR in declared_name:
        plugin_id = declared_name.split(SCOPE_SEPARATOR, 1)[1]

    if not is_safe_path_segment(plugin_id):
        raise InvalidPluginIdError(
            f"Invalid plugin id {plugin_id!r} derived from package name {declared_name!r}",
            declared_name=declared_name,
        )
    return plugin_id


def resolve_target_dir(extensions_dir: str | Path, plugin_id: str) -> Path:
    return Path(extensions_dir) / plugin_id


def _already_exists(plugin_id: str, target: Path) -> PluginAlreadyExistsError:
    return PluginAlreadyExistsError(
        f"Plugin already exists: {target} (delete it first)",
        plugin_id=plugin_id,
        target_dir=str(target),
    )


def promote_package(source_dir: str | Path, extensions_dir: str | Path, plugin_id: str) -> Path:
    """Move a validated package directory to ``extensions_dir/<plugin_id>``.

    Args:
        source_dir: Validated package directory inside staging
        extensions_dir: Shared extensions directory
        plugin_id: Id from :func:`derive_plugin_id`

    Returns:
        The target directory

    Raises:
        PluginAlreadyExistsError: The target exists, before or during placement
        PlacementError: The filesystem refused the move
    """
    source = Path(source_dir)
    target = resolve_target_dir(extensions_dir, plugin_id)

    if target.exists() or target.is_symlink():
        raise _already_exists(plugin_id, target)

    try:
        Path(extensions_dir).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PlacementError(f"Cannot create extensions directory {extensions_dir}: {e}")

    # Claim the name; a concurrent installer that got here first makes this fail
    try:
        target.mkdir()
    except FileExistsError:
        raise _already_exists(plugin_id, target)
    except OSError as e:
        raise PlacementError(f"Cannot create {target}: {e}")

    try:
        # Replaces our own empty claim directory in a single rename
        os.rename(source, target)
    except OSError as e:
        if e.errno in (errno.EEXIST, errno.ENOTEMPTY):
            raise _already_exists(plugin_id, target)
        logger.debug(f"Rename into {target} failed ({e}), copying instead")
        _copy_into_claim(source, target)

    logger.info(
        f"Placed plugin {plugin_id} at {target}",
        extra={"plugin_id": plugin_id, "target_dir": str(target)},
    )
    return target


def _copy_into_claim(source: Path, target: Path) -> None:
    """Fallback for staging on another filesystem (or platforms without dir rename-over)."""
    try:
        shutil.copytree(source, target, symlinks=True, dirs_exist_ok=True)
    except (OSError, shutil.Error) as e:
        shutil.rmtree(target, ignore_errors=True)
        raise PlacementError(f"Failed to copy plugin into {target}: {e}")
