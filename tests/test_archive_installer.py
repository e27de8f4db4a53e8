"""Tests for archive extraction and installation."""

import tarfile
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from conftest import package_json, write_tarball

from animus_plugins.errors import ExtractionError
from animus_plugins.plugins.archive import STAGING_PREFIX, ArchiveInstaller, extract_tarball
from animus_plugins.plugins.models import InstallErrorKind, PluginSource


def _snapshot(directory: Path) -> dict[str, bytes]:
    return {
        str(p.relative_to(directory)): p.read_bytes() for p in directory.rglob("*") if p.is_file()
    }


def _staging_leftovers(root: Path) -> list[Path]:
    return [p for p in root.iterdir() if p.name.startswith(STAGING_PREFIX)]


@pytest.fixture
def installer(extensions_dir):
    return ArchiveInstaller(extensions_dir)


class TestExtractTarball:
    def test_extracts_members(self, tmp_path):
        archive = write_tarball(tmp_path / "a.tgz", {"package.json": "{}", "lib/x.js": "x"})
        dest = tmp_path / "out"
        dest.mkdir()

        extract_tarball(archive, dest)

        assert (dest / "package" / "lib" / "x.js").read_text() == "x"

    def test_corrupt_archive(self, tmp_path):
        archive = tmp_path / "bad.tgz"
        archive.write_bytes(b"not a tarball")
        with pytest.raises(ExtractionError) as exc_info:
            extract_tarball(archive, tmp_path)
        assert exc_info.value.kind == "ExtractionFailed"

    def test_rejects_traversal_members(self, tmp_path):
        archive = write_tarball(tmp_path / "evil.tgz", {"../escape.txt": "x"}, root="")
        dest = tmp_path / "out"
        dest.mkdir()

        with pytest.raises(ExtractionError):
            extract_tarball(archive, dest)

        assert not (tmp_path / "escape.txt").exists()


class TestArchiveInstaller:
    def test_scoped_name_installs_under_unscoped_id(self, installer, extensions_dir, make_archive):
        archive = make_archive(
            name="@scope/foo",
            files={"lib/nested/deep.txt": "deep", "assets/logo.bin": b"\x00\x01\x02"},
        )

        outcome = installer.install(archive)

        assert outcome.ok is True
        assert outcome.plugin_id == "foo"
        assert outcome.target_dir == extensions_dir / "foo"
        assert outcome.source == PluginSource.ARCHIVE_INSTALL
        assert outcome.version == "1.0.0"
        with tarfile.open(archive) as tar:
            members = [m for m in tar.getmembers() if m.isfile()]
            for member in members:
                relative = Path(member.name).relative_to("package")
                expected = tar.extractfile(member).read()
                assert (outcome.target_dir / relative).read_bytes() == expected

    def test_flat_archive_layout(self, installer, extensions_dir, make_archive):
        outcome = installer.install(make_archive(name="flat-plugin", root=""))
        assert outcome.ok is True
        assert (extensions_dir / "flat-plugin" / "package.json").is_file()

    def test_second_install_already_exists(self, installer, extensions_dir, make_archive):
        archive = make_archive(name="@scope/foo")
        first = installer.install(archive)
        assert first.ok is True
        before = _snapshot(first.target_dir)

        again = make_archive(
            name="@scope/foo", filename="again.tgz", files={"dist/index.js": "changed"}
        )
        second = installer.install(again)

        assert second.ok is False
        assert second.kind == InstallErrorKind.ALREADY_EXISTS
        assert str(first.target_dir) in second.message
        assert _snapshot(first.target_dir) == before

    def test_missing_entry_points_is_manifest_invalid(
        self, installer, state_dir, extensions_dir, make_archive
    ):
        extensions_dir.mkdir()
        archive = make_archive(name="@scope/foo", extensions=[])

        outcome = installer.install(archive)

        assert outcome.ok is False
        assert outcome.kind == InstallErrorKind.MANIFEST_INVALID
        assert "animus.extensions" in outcome.message
        assert list(extensions_dir.iterdir()) == []
        assert _staging_leftovers(state_dir) == []

    def test_omitted_entry_points_declaration(self, installer, extensions_dir, tmp_path):
        archive = write_tarball(tmp_path / "x.tgz", {"package.json": package_json("x")})

        outcome = installer.install(archive)

        assert outcome.kind == InstallErrorKind.MANIFEST_INVALID
        assert not extensions_dir.exists()

    def test_missing_manifest(self, installer, tmp_path):
        archive = write_tarball(tmp_path / "x.tgz", {"README.md": "hi"})
        outcome = installer.install(archive)
        assert outcome.kind == InstallErrorKind.MANIFEST_MISSING

    def test_invalid_id(self, installer, make_archive, extensions_dir):
        outcome = installer.install(make_archive(name="@scope/"))
        assert outcome.kind == InstallErrorKind.INVALID_ID
        assert not extensions_dir.exists()

    def test_missing_archive_is_source_not_found(self, installer, state_dir, tmp_path):
        before = sorted(state_dir.iterdir())

        outcome = installer.install(tmp_path / "nope.tgz")

        assert outcome.ok is False
        assert outcome.kind == InstallErrorKind.SOURCE_NOT_FOUND
        assert sorted(state_dir.iterdir()) == before

    def test_corrupt_archive_is_extraction_failed(self, installer, state_dir, tmp_path):
        archive = tmp_path / "bad.tgz"
        archive.write_bytes(b"garbage")

        outcome = installer.install(archive)

        assert outcome.kind == InstallErrorKind.EXTRACTION_FAILED
        assert _staging_leftovers(state_dir) == []

    def test_unexpected_extractor_error_is_extraction_failed(self, extensions_dir, make_archive):
        extractor = MagicMock(side_effect=RuntimeError("boom"))
        installer = ArchiveInstaller(extensions_dir, extractor=extractor)

        outcome = installer.install(make_archive())

        assert outcome.kind == InstallErrorKind.EXTRACTION_FAILED
        assert "boom" in outcome.message

    def test_staging_is_removed_after_success(self, installer, state_dir, make_archive):
        installer.install(make_archive())
        assert _staging_leftovers(state_dir) == []

    def test_custom_staging_root(self, extensions_dir, tmp_path, make_archive):
        staging_root = tmp_path / "staging"
        installer = ArchiveInstaller(extensions_dir, staging_root=staging_root)

        outcome = installer.install(make_archive())

        assert outcome.ok is True
        assert list(staging_root.iterdir()) == []

    def test_source_and_spec_recorded(self, installer, make_archive):
        outcome = installer.install(
            make_archive(), source=PluginSource.REGISTRY_INSTALL, spec="@animus/voice-call"
        )
        assert outcome.source == PluginSource.REGISTRY_INSTALL
        assert outcome.spec == "@animus/voice-call"
