"""Plugin commands: list, info, enable, disable, install, doctor."""

from __future__ import annotations

import json

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from animus_plugins.errors import ConfigStoreError

from ..helpers import build_report, console, get_config_store, get_installer

STATUS_STYLES = {
    "loaded": "[green]loaded[/green]",
    "disabled": "[yellow]disabled[/yellow]",
    "error": "[red]error[/red]",
}

RESTART_HINT = "[dim]Restart the host to apply.[/dim]"


def _truncate(text: str | None, limit: int = 60) -> str:
    if not text:
        return "-"
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


def plugins_list(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
    enabled: bool = typer.Option(False, "--enabled", help="Only show loaded plugins"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed entries"),
):
    """List discovered plugins."""
    report = build_report()
    plugins = [p for p in report.plugins if p.status == "loaded"] if enabled else report.plugins

    if json_output:
        payload = report.model_dump(mode="json")
        payload["plugins"] = [p.model_dump(mode="json") for p in plugins]
        print(json.dumps(payload, indent=2))
        return

    if not plugins:
        console.print("[yellow]No plugins found.[/yellow]")
        return

    loaded = sum(1 for p in plugins if p.status == "loaded")
    console.print(f"[bold cyan]Plugins[/bold cyan] [dim]({loaded}/{len(plugins)} loaded)[/dim]\n")

    if verbose:
        for plugin in plugins:
            suffix = f" ({escape(plugin.id)})" if plugin.display_name != plugin.id else ""
            status = STATUS_STYLES[plugin.status]
            console.print(f"[bold]{escape(plugin.display_name)}[/bold]{suffix} {status}")
            console.print(f"  source: {plugin.source.value}")
            console.print(f"  origin: {escape(plugin.origin)}", soft_wrap=True)
            if plugin.version:
                console.print(f"  version: {escape(plugin.version)}")
            if plugin.error:
                console.print(f"  [red]error: {escape(plugin.error)}[/red]", soft_wrap=True)
            console.print()
        return

    table = Table(title="Discovered Plugins")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Status")
    table.add_column("Description")

    for plugin in plugins:
        table.add_row(
            escape(plugin.id),
            escape(plugin.display_name),
            escape(plugin.version or "-"),
            STATUS_STYLES[plugin.status],
            escape(_truncate(plugin.description)),
        )

    console.print(table)


def plugins_info(
    plugin_id: str = typer.Argument(..., help="Plugin id or name"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show detailed plugin information."""
    report = build_report()
    plugin = report.get(plugin_id)
    if plugin is None:
        console.print(f"[red]Plugin not found:[/red] {escape(plugin_id)}")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps(plugin.model_dump(mode="json"), indent=2))
        return

    lines = [f"[bold]{escape(plugin.display_name)}[/bold]"]
    if plugin.display_name != plugin.id:
        lines.append(f"[dim]id:[/dim] {escape(plugin.id)}")
    if plugin.description:
        lines.append(escape(plugin.description))
    lines.append("")
    lines.append(f"[dim]Status:[/dim] {STATUS_STYLES[plugin.status]}")
    lines.append(f"[dim]Source:[/dim] {plugin.source.value}")
    lines.append(f"[dim]Origin:[/dim] {escape(plugin.origin)}")
    if plugin.version:
        lines.append(f"[dim]Version:[/dim] {escape(plugin.version)}")

    console.print(Panel("\n".join(lines), title="Plugin Info", border_style="cyan"))

    capabilities = plugin.capabilities
    for label, values in (
        ("Tools", capabilities.tool_names),
        ("Gateway methods", capabilities.gateway_methods),
        ("CLI commands", capabilities.cli_commands),
        ("Services", capabilities.services),
    ):
        if values:
            console.print(f"[bold]{label}:[/bold] {escape(', '.join(values))}")

    if plugin.error:
        console.print(f"[red]Error:[/red] {escape(plugin.error)}", soft_wrap=True)


def _set_enabled(plugin_id: str, enabled: bool) -> None:
    try:
        get_config_store().set_enabled(plugin_id, enabled)
    except ConfigStoreError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        raise typer.Exit(1)


def plugins_enable(plugin_id: str = typer.Argument(..., help="Plugin id")):
    """Enable a plugin in config."""
    _set_enabled(plugin_id, True)
    console.print(f'[green]Enabled plugin "{escape(plugin_id)}".[/green] {RESTART_HINT}')


def plugins_disable(plugin_id: str = typer.Argument(..., help="Plugin id")):
    """Disable a plugin in config."""
    _set_enabled(plugin_id, False)
    console.print(f'[yellow]Disabled plugin "{escape(plugin_id)}".[/yellow] {RESTART_HINT}')


def plugins_install(
    source: str = typer.Argument(..., help="Path (.py/.js/.tgz) or a registry package spec"),
):
    """Install a plugin from a path, an archive, or a registry spec."""
    outcome = get_installer().install(source)
    if not outcome.ok:
        console.print(f"[red]{escape(outcome.message)}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    try:
        get_config_store().record_install(outcome)
    except ConfigStoreError as e:
        console.print(f"[red]Installed, but failed to update config:[/red] {escape(e.message)}")
        raise typer.Exit(1)

    if outcome.source == "path":
        console.print(
            f"[green]Added plugin path:[/green] {escape(str(outcome.target_dir))}", soft_wrap=True
        )
    else:
        console.print(f"[green]Installed plugin:[/green] {escape(outcome.plugin_id)}")
    console.print(RESTART_HINT)


def plugins_doctor():
    """Report plugin load issues."""
    from animus_plugins.plugins import summarize_issues

    summary = summarize_issues(build_report())
    if not summary.has_issues:
        console.print("[green]No plugin issues detected.[/green]")
        return

    if summary.errors:
        console.print("[bold red]Plugin errors:[/bold red]")
        for record in summary.errors:
            console.print(
                f"- {record.id}: {record.error or 'failed to load'} ({record.source.value})",
                soft_wrap=True,
                markup=False,
            )

    if summary.diagnostics:
        if summary.errors:
            console.print()
        console.print("[bold yellow]Diagnostics:[/bold yellow]")
        for diag in summary.diagnostics:
            target = f"{diag.plugin_id}: " if diag.plugin_id else ""
            console.print(f"- {target}{diag.message}", soft_wrap=True, markup=False)
