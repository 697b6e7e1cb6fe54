"""nojo check command - validate an installation."""

import logging

import typer

from nojo.commands.options import build_controller, get_state, report_error
from nojo.exceptions import NojoError
from nojo.utils import console, print_error, print_success

logger = logging.getLogger(__name__)


def check(ctx: typer.Context) -> None:
    """Check that every feature of the active profile is installed correctly."""
    state = get_state(ctx)

    try:
        controller = build_controller(state)
        profile_name = controller.current_profile()
        results = controller.validate()
    except (NojoError, OSError) as e:
        report_error(e)
        raise typer.Exit(1) from e

    console.print(f"\n[bold]Checking profile:[/bold] {profile_name}\n")

    failures = 0
    for name, result in results.items():
        if result.valid:
            console.print(f"  [green]✓[/green] {name} [dim]({result.message})[/dim]")
            continue

        failures += 1
        console.print(f"  [red]✗[/red] {name} [dim]({result.message})[/dim]")
        for error in result.errors:
            console.print(f"      [dim]{error}[/dim]")

    console.print()
    if failures:
        print_error(f"{failures} feature(s) failed validation")
        raise typer.Exit(1)

    print_success("Installation is valid")
