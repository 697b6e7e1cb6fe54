"""nojo install-location command."""

import typer

from nojo.commands.options import get_state
from nojo.utils import console, get_install_dirs, print_error


def install_location(ctx: typer.Context) -> None:
    """Show nojo installations in the install directory and its parents."""
    state = get_state(ctx)
    install_dirs = get_install_dirs(state.install_dir)

    if not install_dirs:
        print_error("No nojo installations found in current directory or parent directories")
        raise typer.Exit(1)

    console.print("\n[bold]nojo installation directories:[/bold]\n")
    for directory in install_dirs:
        console.print(f"  [green]{directory}[/green]")
    console.print()
