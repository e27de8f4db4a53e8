"""Install argument classification."""

from __future__ import annotations

import os
from pathlib import Path

from .models import InstallSpec, InstallSpecKind

ARCHIVE_SUFFIXES = (".tgz", ".tar.gz")

# Suffixes that mark an argument as a filesystem path rather than a package spec
PATH_LIKE_SUFFIXES = ARCHIVE_SUFFIXES + (".py", ".js", ".ts", ".mjs", ".cjs")


def resolve_user_path(raw: str) -> Path:
    """Expand ``~`` and make ``raw`` absolute against the working directory."""
    return Path(os.path.abspath(os.path.expanduser(raw.strip())))


def is_archive_path(value: str | Path) -> bool:
    return str(value).lower().endswith(ARCHIVE_SUFFIXES)


def classify_install_spec(raw: str) -> InstallSpec:
    """Classify a raw install argument.

    Existence on disk wins over any string heuristic: an existing archive file
    is ``archive``, anything else that exists is ``path``, and everything
    left over is a ``registrySpec`` carried verbatim. Never raises for string
    input; malformed values are surfaced later by the matching installer.
    """
    if raw and raw.strip():
        resolved = resolve_user_path(raw)
        try:
            exists = resolved.exists()
            is_archive = exists and resolved.is_file() and is_archive_path(resolved)
        except OSError:
            # e.g. ENAMETOOLONG; such an argument cannot name anything on disk
            exists = is_archive = False
        if is_archive:
            return InstallSpec(kind=InstallSpecKind.ARCHIVE, value=str(resolved))
        if exists:
            return InstallSpec(kind=InstallSpecKind.PATH, value=str(resolved))
    return InstallSpec(kind=InstallSpecKind.REGISTRY_SPEC, value=raw)


def looks_like_path(raw: str) -> bool:
    """Whether a non-existent argument was meant as a filesystem path."""
    value = raw.strip()
    return (
        value.startswith((".", "~", "/", "\\"))
        or os.path.isabs(value)
        or value.lower().endswith(PATH_LIKE_SUFFIXES)
    )
