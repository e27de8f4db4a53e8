"""Plugin System.

Installs third-party plugins from local paths, archives and registry specs,
and reports which plugins exist and whether they loaded.
"""

from .archive import ArchiveInstaller, extract_tarball
from .classifier import classify_install_spec
from .config_store import PluginConfigStore, PluginsConfig
from .diagnostics import DiagnosticsCollector, summarize_issues
from .fetch import NpmPackFetcher, RegistryFetcher
from .installer import PathInstaller, PluginInstaller, install
from .manifest import ManifestReader, read_manifest
from .models import (
    BuiltinPlugin,
    Diagnostic,
    DiagnosticLevel,
    DoctorSummary,
    InstallErrorKind,
    Installed,
    InstallFailed,
    InstallOutcome,
    InstallSpec,
    InstallSpecKind,
    LoadOutcome,
    PluginCapabilities,
    PluginManifest,
    PluginRecord,
    PluginSource,
    PluginStatus,
    StatusReport,
)
from .placement import derive_plugin_id, promote_package
from .registry_install import RegistrySpecInstaller
from .status import PluginStatusRegistry, load_outcomes_file, status

__all__ = [
    # Models
    "BuiltinPlugin",
    "Diagnostic",
    "DiagnosticLevel",
    "DoctorSummary",
    "InstallErrorKind",
    "Installed",
    "InstallFailed",
    "InstallOutcome",
    "InstallSpec",
    "InstallSpecKind",
    "LoadOutcome",
    "PluginCapabilities",
    "PluginManifest",
    "PluginRecord",
    "PluginSource",
    "PluginStatus",
    "StatusReport",
    # Install pipeline
    "classify_install_spec",
    "ManifestReader",
    "read_manifest",
    "derive_plugin_id",
    "promote_package",
    "extract_tarball",
    "ArchiveInstaller",
    "RegistryFetcher",
    "NpmPackFetcher",
    "RegistrySpecInstaller",
    "PathInstaller",
    "PluginInstaller",
    "install",
    # Config
    "PluginConfigStore",
    "PluginsConfig",
    # Status
    "PluginStatusRegistry",
    "DiagnosticsCollector",
    "summarize_issues",
    "load_outcomes_file",
    "status",
]
