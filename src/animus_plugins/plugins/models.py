"""Plugin install and status models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field


class InstallSpecKind(str, Enum):
    """How a raw install argument was classified."""

    PATH = "path"
    ARCHIVE = "archive"
    REGISTRY_SPEC = "registrySpec"


class InstallErrorKind(str, Enum):
    """Failure taxonomy for install outcomes."""

    SOURCE_NOT_FOUND = "SourceNotFound"
    EXTRACTION_FAILED = "ExtractionFailed"
    MANIFEST_MISSING = "ManifestMissing"
    MANIFEST_INVALID = "ManifestInvalid"
    INVALID_ID = "InvalidId"
    ALREADY_EXISTS = "AlreadyExists"
    FETCH_FAILED = "FetchFailed"
    FILESYSTEM_ERROR = "FilesystemError"


class PluginStatus(str, Enum):
    """Final status of a plugin in a status report."""

    LOADED = "loaded"
    DISABLED = "disabled"
    ERROR = "error"


class PluginSource(str, Enum):
    """Origin mechanism through which a plugin became known."""

    PATH = "path"
    ARCHIVE_INSTALL = "archive-install"
    REGISTRY_INSTALL = "registry-install"
    BUILTIN = "builtin"


class DiagnosticLevel(str, Enum):
    """Severity of a status diagnostic."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class InstallSpec(BaseModel):
    """A classified install argument."""

    kind: InstallSpecKind = Field(..., description="Classification of the raw argument")
    value: str = Field(..., description="Resolved path or verbatim registry spec")


class PluginManifest(BaseModel):
    """Metadata extracted from a package manifest without loading any code."""

    declared_name: str = Field(..., description="Package name as declared in the manifest")
    version: str | None = Field(default=None, description="Declared package version")
    extension_entry_points: list[str] = Field(
        default_factory=list, description="Relative paths of declared extension entry points"
    )
    description: str | None = Field(default=None, description="Package description")
    raw: dict[str, Any] = Field(default_factory=dict, description="Parsed manifest document")


class Installed(BaseModel):
    """Successful install outcome."""

    ok: Literal[True] = True
    plugin_id: str = Field(..., description="Derived plugin id")
    target_dir: Path = Field(..., description="Directory the plugin now lives in")
    source: PluginSource = Field(..., description="How the plugin was installed")
    spec: str = Field(default="", description="Raw install argument")
    version: str | None = Field(default=None, description="Installed package version")


class InstallFailed(BaseModel):
    """Failed install outcome."""

    ok: Literal[False] = False
    kind: InstallErrorKind = Field(..., description="Failure category")
    message: str = Field(..., description="Human-readable failure message")


InstallOutcome = Installed | InstallFailed


class PluginCapabilities(BaseModel):
    """Capabilities a loaded plugin registered with the host."""

    tool_names: list[str] = Field(default_factory=list)
    gateway_methods: list[str] = Field(default_factory=list)
    cli_commands: list[str] = Field(default_factory=list)
    services: list[str] = Field(default_factory=list)


class LoadOutcome(BaseModel):
    """Last observed outcome of the host loader for one plugin id."""

    loaded: bool = Field(default=False, description="Whether the host imported the plugin")
    error: str | None = Field(default=None, description="Loader error message")
    capabilities: PluginCapabilities = Field(default_factory=PluginCapabilities)


class BuiltinPlugin(BaseModel):
    """A plugin bundled with the host, supplied as a static list."""

    id: str = Field(..., description="Plugin id")
    name: str | None = Field(default=None, description="Display name")
    version: str | None = Field(default=None, description="Bundled version")
    description: str | None = Field(default=None, description="Plugin description")


class PluginRecord(BaseModel):
    """One plugin entry in a status report. Rebuilt on every query."""

    id: str = Field(..., description="Plugin id")
    display_name: str = Field(..., description="Declared name, or the id when unknown")
    status: PluginStatus = Field(..., description="Final status after joining loader outcomes")
    source: PluginSource = Field(..., description="Origin mechanism")
    origin: str = Field(..., description="Human-readable location")
    version: str | None = Field(default=None)
    error: str | None = Field(default=None)
    description: str | None = Field(default=None)
    capabilities: PluginCapabilities = Field(default_factory=PluginCapabilities)


class Diagnostic(BaseModel):
    """A non-fatal finding surfaced alongside a status report."""

    level: DiagnosticLevel
    plugin_id: str | None = None
    message: str


class StatusReport(BaseModel):
    """Merged view of every known plugin and its load state."""

    extensions_dir: Path
    plugins: list[PluginRecord] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    def get(self, key: str) -> PluginRecord | None:
        """Find the winning record whose id or display name matches ``key``."""
        for record in self.plugins:
            if record.id == key or record.display_name == key:
                return record
        return None


class DoctorSummary(BaseModel):
    """Error-level view of a status report."""

    errors: list[PluginRecord] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.errors or self.diagnostics)
