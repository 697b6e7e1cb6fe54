"""nojo uninstall command - remove nojo-managed files.

Only files nojo wrote and that are unchanged since are removed. Edited
files, files nojo never wrote and custom profiles stay in place.
"""

import logging

import typer
from rich.prompt import Confirm

from nojo.commands.options import build_controller, get_state, report_error
from nojo.exceptions import NojoError
from nojo.utils import console, print_info, print_success, print_warning

logger = logging.getLogger(__name__)


def uninstall(
    ctx: typer.Context,
    keep_profiles: bool = typer.Option(
        False,
        "--keep-profiles",
        help="Keep the built-in profiles in .claude/profiles.",
    ),
) -> None:
    """Uninstall nojo from the install directory."""
    state = get_state(ctx)

    if not state.non_interactive and not Confirm.ask(
        f"Uninstall nojo from {state.install_dir}?", default=False
    ):
        print_info("Uninstall cancelled.")
        raise typer.Exit(0)

    try:
        controller = build_controller(state)
        result = controller.uninstall(remove_profiles=not keep_profiles)
    except (NojoError, OSError) as e:
        report_error(e)
        raise typer.Exit(1) from e

    for path in result.removed:
        console.print(f"  [green]✓[/green] {path} [dim](removed)[/dim]")

    if result.kept:
        console.print()
        print_warning(f"Kept {len(result.kept)} file(s) you modified:")
        for path in result.kept:
            console.print(f"  {path}")

    if result.profiles_removed:
        print_info(f"Removed built-in profiles: {', '.join(result.profiles_removed)}")

    console.print()
    print_success(f"Uninstalled nojo: removed {len(result.removed)} file(s)")
    if not result.manifest_deleted:
        print_info("The manifest was kept because nojo still tracks files here.")
