"""Tests for the plugin configuration store."""

from pathlib import Path

import pytest
import yaml

from animus_plugins.errors import ConfigStoreError
from animus_plugins.plugins.config_store import PluginConfigStore, PluginsConfig
from animus_plugins.plugins.models import Installed, PluginSource


@pytest.fixture
def store(tmp_path):
    return PluginConfigStore(tmp_path / "config" / "plugins.yaml")


class TestLoadSave:
    def test_missing_file_is_empty_config(self, store):
        config = store.load()
        assert config == PluginsConfig()
        assert config.plugins.load.paths == []

    def test_round_trip_writes_yaml(self, store):
        config = PluginsConfig()
        config.plugins.load.paths.append("/dev/plugin")

        store.save(config)

        data = yaml.safe_load(store.path.read_text())
        assert data["plugins"]["load"]["paths"] == ["/dev/plugin"]
        assert store.load() == config

    def test_save_leaves_no_temp_files(self, store):
        store.save(PluginsConfig())
        assert [p.name for p in store.path.parent.iterdir()] == ["plugins.yaml"]

    def test_empty_file_is_empty_config(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("")
        assert store.load() == PluginsConfig()

    def test_unparseable_file_raises(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("plugins: [unclosed")
        with pytest.raises(ConfigStoreError) as exc_info:
            store.load()
        assert exc_info.value.path == str(store.path)

    def test_wrong_shape_raises(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("plugins:\n  entries:\n    x: {enabled: maybe}\n")
        with pytest.raises(ConfigStoreError):
            store.load()


class TestEntries:
    def test_enabled_by_default(self, store):
        assert store.is_enabled("anything") is True

    def test_set_enabled(self, store):
        store.set_enabled("voice-call", False)
        assert store.is_enabled("voice-call") is False

        store.set_enabled("voice-call", True)
        assert store.is_enabled("voice-call") is True

    def test_set_enabled_preserves_other_sections(self, store):
        store.add_load_path("/dev/a")
        store.set_enabled("a", False)
        assert store.load_paths() == ["/dev/a"]


class TestLoadPaths:
    def test_add_is_deduplicated_and_ordered(self, store):
        assert store.add_load_path("/dev/a") is True
        assert store.add_load_path(Path("/dev/b")) is True
        assert store.add_load_path("/dev/a") is False
        assert store.load_paths() == ["/dev/a", "/dev/b"]


class TestRecordInstall:
    def test_archive_install_enables_and_records(self, store, tmp_path):
        outcome = Installed(
            plugin_id="foo",
            target_dir=tmp_path / "extensions" / "foo",
            source=PluginSource.ARCHIVE_INSTALL,
            spec="/tmp/foo.tgz",
            version="1.0.0",
        )

        store.record_install(outcome)

        config = store.load()
        assert config.plugins.entries["foo"].enabled is True
        record = config.plugins.installs["foo"]
        assert record.source == "archive"
        assert record.spec == "/tmp/foo.tgz"
        assert record.install_path == str(tmp_path / "extensions" / "foo")
        assert record.version == "1.0.0"

    def test_registry_install_reenables(self, store, tmp_path):
        store.set_enabled("voice-call", False)
        outcome = Installed(
            plugin_id="voice-call",
            target_dir=tmp_path / "voice-call",
            source=PluginSource.REGISTRY_INSTALL,
            spec="@animus/voice-call",
        )

        store.record_install(outcome)

        assert store.is_enabled("voice-call") is True
        assert store.load().plugins.installs["voice-call"].source == "registry"

    def test_path_install_adds_load_path(self, store, tmp_path):
        outcome = Installed(plugin_id="p", target_dir=tmp_path / "p", source=PluginSource.PATH)

        store.record_install(outcome)
        store.record_install(outcome)

        config = store.load()
        assert config.plugins.load.paths == [str(tmp_path / "p")]
        assert config.plugins.installs == {}
