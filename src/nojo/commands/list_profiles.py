"""nojo list-profiles command."""

import typer

from nojo.commands.options import build_controller, get_state, report_error
from nojo.exceptions import NojoError
from nojo.utils import console


def list_profiles(ctx: typer.Context) -> None:
    """List the profiles available for installation.

    Shows the bundled profiles and any profiles in <install-dir>/.claude/profiles,
    marking the active one.
    """
    state = get_state(ctx)

    try:
        controller = build_controller(state)
        profiles = controller.list_profiles()
        current = controller.current_profile()
    except (NojoError, OSError) as e:
        report_error(e)
        raise typer.Exit(1) from e

    console.print("\n[bold]Available profiles:[/bold]\n")
    for profile in profiles:
        marker = "[green]*[/green]" if profile.name == current else " "
        kind = "built-in" if profile.builtin else "custom"
        console.print(f" {marker} [cyan]{profile.name}[/cyan] [dim]({kind})[/dim]")
        if profile.description:
            console.print(f"     [dim]{profile.description}[/dim]")
    console.print()
