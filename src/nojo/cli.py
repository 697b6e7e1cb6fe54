"""nojo CLI entry point.

This module provides the main entry point for the nojo CLI application,
a non-destructive profile installer for Claude Code.
"""

import logging
from pathlib import Path

import typer

from nojo import __version__
from nojo.commands import (
    check,
    install,
    install_location,
    list_profiles,
    switch_profile,
    uninstall,
)
from nojo.commands.options import CLIState
from nojo.models.config import DEFAULT_AGENT
from nojo.utils import normalize_install_dir, set_silent

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="nojo",
    help="nojo - Profile installer for Claude Code",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Handle the version flag callback.

    Args:
        value: Whether the version flag was provided.

    Raises:
        typer.Exit: Always raised after printing version when value is True.
    """
    if value:
        typer.echo(f"nojo {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    install_dir: Path | None = typer.Option(
        None,
        "--install-dir",
        "-d",
        help="Installation directory (default: current directory).",
    ),
    non_interactive: bool = typer.Option(
        False, "--non-interactive", "-n", help="Run without interactive prompts."
    ),
    silent: bool = typer.Option(
        False, "--silent", "-s", help="Suppress all output (implies --non-interactive)."
    ),
    agent: str = typer.Option(
        DEFAULT_AGENT, "--agent", "-a", help="AI agent to configure."
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """nojo - Profile installer for Claude Code."""
    set_silent(silent)
    ctx.obj = CLIState(
        install_dir=normalize_install_dir(install_dir),
        non_interactive=non_interactive or silent,
        agent=agent,
    )


app.command(name="install", help="Install a profile")(install)
app.command(name="uninstall", help="Remove nojo-managed files")(uninstall)
app.command(name="switch-profile", help="Switch to another profile")(switch_profile)
app.command(name="list-profiles", help="List available profiles")(list_profiles)
app.command(name="check", help="Validate the installation")(check)
app.command(name="install-location", help="Show nojo installation directories")(
    install_location
)


if __name__ == "__main__":
    app()
