"""Animus plugins CLI - Main entry point."""

from __future__ import annotations

from typing import Annotated

import typer

from animus_plugins import __version__

from .helpers import console, get_cli_settings

app = typer.Typer(
    name="animus-plugins",
    help="Install Animus plugins and inspect their status.",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold cyan]animus-plugins[/bold cyan] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override the configured log level."),
    ] = None,
):
    """Animus plugins - install extensions and report their status.

    [bold]Quick Start:[/bold]

        animus-plugins list             Show discovered plugins
        animus-plugins install SPEC     Install from a path, archive or registry
        animus-plugins doctor           Report plugin load issues
    """
    from animus_plugins.config import configure_logging

    settings = get_cli_settings()
    configure_logging(
        level=log_level or settings.log_level,
        format=settings.log_format,
        sanitize_logs=settings.sanitize_logs,
    )


# =============================================================================
# Register commands
# =============================================================================

from .commands.plugins import (  # noqa: E402
    plugins_disable,
    plugins_doctor,
    plugins_enable,
    plugins_info,
    plugins_install,
    plugins_list,
)

app.command("list")(plugins_list)
app.command("info")(plugins_info)
app.command("enable")(plugins_enable)
app.command("disable")(plugins_disable)
app.command("install")(plugins_install)
app.command("doctor")(plugins_doctor)


if __name__ == "__main__":
    app()
