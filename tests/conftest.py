"""Pytest configuration and fixtures."""

import io
import json
import sys
import tarfile
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def package_json(
    name: str = "@animus/voice-call",
    extensions: list[str] | None = None,
    version: str | None = "1.0.0",
    **extra,
) -> str:
    """Render a package.json document. ``extensions=None`` omits the entry points."""
    data: dict = {"name": name}
    if version is not None:
        data["version"] = version
    if extensions is not None:
        data["animus"] = {"extensions": extensions}
    data.update(extra)
    return json.dumps(data)


def write_tarball(path: Path, files: dict[str, str | bytes], root: str = "package") -> Path:
    """Write a gzipped tarball with ``files`` under ``root/`` (empty root is flat)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tar:
        for relative, content in files.items():
            data = content.encode() if isinstance(content, str) else content
            info = tarfile.TarInfo(name=f"{root}/{relative}" if root else relative)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return path


def write_plugin_dir(path: Path, files: dict[str, str]) -> Path:
    for relative, content in files.items():
        target = path / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    return path


@pytest.fixture
def state_dir(tmp_path):
    """State root holding the extensions directory."""
    path = tmp_path / "state"
    path.mkdir()
    return path


@pytest.fixture
def extensions_dir(state_dir):
    """Extensions directory path (not created, installers create it)."""
    return state_dir / "extensions"


@pytest.fixture
def make_archive(tmp_path):
    """Factory building plugin tarballs in npm pack layout by default."""

    def _make(
        name: str = "@animus/voice-call",
        extensions: list[str] | None = None,
        files: dict[str, str | bytes] | None = None,
        root: str = "package",
        filename: str = "plugin.tgz",
        version: str | None = "1.0.0",
    ) -> Path:
        contents: dict[str, str | bytes] = {
            "package.json": package_json(
                name, ["./dist/index.js"] if extensions is None else extensions, version
            ),
            "dist/index.js": "export default {};\n",
        }
        contents.update(files or {})
        return write_tarball(tmp_path / "archives" / filename, contents, root=root)

    return _make


@pytest.fixture
def isolated_settings(tmp_path, monkeypatch, state_dir):
    """Point settings at a temporary state dir and reset the settings cache."""
    from animus_plugins.config.settings import get_settings

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ANIMUS_STATE_DIR", str(state_dir))
    monkeypatch.delenv("ANIMUS_EXTENSIONS_DIR", raising=False)
    monkeypatch.delenv("ANIMUS_PLUGINS_CONFIG_PATH", raising=False)
    monkeypatch.delenv("ANIMUS_LOADER_OUTCOMES_PATH", raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
