"""Shared helpers for CLI modules: settings, installer and registry factories."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from pydantic import ValidationError
from rich.console import Console

from animus_plugins.errors import AnimusPluginError

if TYPE_CHECKING:
    from animus_plugins.config.settings import Settings
    from animus_plugins.plugins import (
        PluginConfigStore,
        PluginInstaller,
        PluginStatusRegistry,
        StatusReport,
    )

console = Console()


def get_cli_settings() -> Settings:
    """Load settings, exiting with a readable message when they are invalid."""
    from animus_plugins.config import get_settings

    try:
        return get_settings()
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1)


def get_config_store() -> PluginConfigStore:
    from animus_plugins.plugins import PluginConfigStore

    return PluginConfigStore(get_cli_settings().plugins_config_path)


def get_installer() -> PluginInstaller:
    from animus_plugins.plugins import PluginInstaller

    return PluginInstaller.from_settings(get_cli_settings())


def get_status_registry() -> PluginStatusRegistry:
    from animus_plugins.plugins import PluginStatusRegistry

    return PluginStatusRegistry.from_settings(get_cli_settings())


def build_report() -> StatusReport:
    """Run a status scan for CLI output."""
    try:
        return get_status_registry().status()
    except AnimusPluginError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)
