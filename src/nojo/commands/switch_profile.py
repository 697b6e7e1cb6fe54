"""nojo switch-profile command - change the active profile."""

import logging

import typer

from nojo.commands.install import print_install_result
from nojo.commands.options import build_controller, get_state, report_error
from nojo.exceptions import NojoError
from nojo.services import ProfileLifecycleController
from nojo.utils import console, print_info, print_success

logger = logging.getLogger(__name__)

MODIFICATION_ICONS = {"added": "+", "modified": "~", "deleted": "-"}


def _save_current_modifications(controller: ProfileLifecycleController) -> None:
    """Carry edits to the current profile's skills and CLAUDE.md into its profile."""
    current = controller.current_profile()
    if current is None:
        return

    modifications = controller.detect_modifications(current)
    if not modifications:
        return

    print_info(f"Found {len(modifications)} modification(s) to profile '{current}':")
    for modification in modifications:
        console.print(f"  {MODIFICATION_ICONS[modification.type.value]} {modification.path}")

    saved = controller.save_modifications(current, modifications)
    if saved:
        print_success(f"Saved {saved} modification(s) to profile '{current}'")


def switch_profile(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile to switch to."),
    skip_uninstall: bool = typer.Option(
        False,
        "--skip-uninstall",
        help="Keep the previous profile's files instead of cleaning them up.",
    ),
) -> None:
    """Switch to another profile and reinstall its files."""
    state = get_state(ctx)

    try:
        controller = build_controller(state)
        controller.require_profile(name)
        _save_current_modifications(controller)
        console.print(f"\n[bold]Switching to profile:[/bold] {name}\n")
        result = controller.switch_profile(name, skip_uninstall=skip_uninstall)
    except (NojoError, OSError) as e:
        report_error(e)
        raise typer.Exit(1) from e

    print_install_result(result)
