"""Animus Plugins Error Hierarchy.

Structured exception types for the plugin install pipeline and status registry.
Install errors are raised inside the pipeline and converted into
``InstallFailed`` outcomes at the public ``install()`` boundary.
"""

from __future__ import annotations


class AnimusPluginError(Exception):
    """Base error for all animus-plugins exceptions."""

    code = "PLUGIN_ERROR"

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Install Errors
class PluginInstallError(AnimusPluginError):
    """Base error for install pipeline failures."""

    code = "INSTALL_ERROR"
    # Matches an InstallErrorKind value
    kind = "FilesystemError"


class SourceNotFoundError(PluginInstallError):
    """Install source path or spec does not resolve to anything."""

    code = "SOURCE_NOT_FOUND"
    kind = "SourceNotFound"


class ExtractionError(PluginInstallError):
    """Archive could not be extracted into staging."""

    code = "EXTRACTION_FAILED"
    kind = "ExtractionFailed"


class ManifestMissingError(PluginInstallError):
    """No manifest found, or the manifest is not a structured object."""

    code = "MANIFEST_MISSING"
    kind = "ManifestMissing"


class ManifestInvalidError(PluginInstallError):
    """Manifest parsed but a required declaration is missing or malformed."""

    code = "MANIFEST_INVALID"
    kind = "ManifestInvalid"

    def __init__(self, message: str, field: str = None):
        super().__init__(message, {"field": field})
        self.field = field


class InvalidPluginIdError(PluginInstallError):
    """Declared name does not yield a filesystem-safe plugin id."""

    code = "INVALID_ID"
    kind = "InvalidId"

    def __init__(self, message: str, declared_name: str = None):
        super().__init__(message, {"declared_name": declared_name})
        self.declared_name = declared_name


class PluginAlreadyExistsError(PluginInstallError):
    """A plugin directory with the same id is already present."""

    code = "ALREADY_EXISTS"
    kind = "AlreadyExists"

    def __init__(self, message: str, plugin_id: str = None, target_dir: str = None):
        super().__init__(message, {"plugin_id": plugin_id, "target_dir": target_dir})
        self.plugin_id = plugin_id
        self.target_dir = target_dir


class FetchError(PluginInstallError):
    """Registry fetch capability failed to produce a local archive."""

    code = "FETCH_FAILED"
    kind = "FetchFailed"

    def __init__(self, message: str, spec: str = None):
        super().__init__(message, {"spec": spec})
        self.spec = spec


class PlacementError(PluginInstallError):
    """Filesystem failure while promoting a staged package."""

    code = "FILESYSTEM_ERROR"
    kind = "FilesystemError"


# Configuration Errors
class ConfigStoreError(AnimusPluginError):
    """Plugin configuration file could not be read or written."""

    code = "CONFIG_STORE_ERROR"

    def __init__(self, message: str, path: str = None):
        super().__init__(message, {"path": path})
        self.path = path
