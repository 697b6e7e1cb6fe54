"""nojo install command - install a profile into the .claude directory.

This module implements the 'nojo install' command which composes the
selected profile and syncs it into the install root without touching
files the user has created or edited.
"""

import logging

import typer
from rich.prompt import Confirm, Prompt

from nojo.commands.options import build_controller, get_state, report_error
from nojo.exceptions import NojoError
from nojo.models.config import DEFAULT_PROFILE
from nojo.services import (
    FirstInstallStrategy,
    InstallResult,
    InstallState,
    ProfileLifecycleController,
)
from nojo.utils import console, print_info, print_step, print_success, print_warning

logger = logging.getLogger(__name__)

STRATEGY_DESCRIPTIONS = {
    FirstInstallStrategy.preserve: "Keep your existing files and install alongside them",
    FirstInstallStrategy.create_profile: "Save your existing setup as a custom profile first",
    FirstInstallStrategy.overwrite: "Install the defaults (your files are still kept)",
}


def _confirm_ancestors(controller: ProfileLifecycleController, interactive: bool) -> bool:
    """Warn about installations in parent directories.

    Returns:
        False if the user chose not to continue.
    """
    ancestors = controller.ancestor_installations()
    if not ancestors:
        return True

    print_warning("nojo is already installed in a parent directory:")
    for ancestor in ancestors:
        console.print(f"  {ancestor}")
    console.print("\nClaude Code loads CLAUDE.md from every parent directory.")
    console.print("To remove the other installation, run:")
    for ancestor in ancestors:
        console.print(f"  [cyan]cd {ancestor} && nojo uninstall[/cyan]")
    console.print()

    if not interactive:
        return True
    return Confirm.ask("Continue with the installation anyway?", default=False)


def _prompt_strategy(summary: str | None) -> FirstInstallStrategy:
    """Ask how to treat an existing, unmanaged configuration."""
    if summary:
        print_warning(summary)
    console.print("\nHow should nojo handle your existing configuration?")
    for strategy, description in STRATEGY_DESCRIPTIONS.items():
        console.print(f"  [bold]{strategy.value}[/bold] - {description}")

    choice = Prompt.ask(
        "Strategy",
        choices=[strategy.value for strategy in FirstInstallStrategy],
        default=FirstInstallStrategy.preserve.value,
    )
    return FirstInstallStrategy(choice)


def _prompt_profile(controller: ProfileLifecycleController) -> str:
    """Ask which profile to install, offering to keep the current one."""
    current = controller.current_profile()
    if current and Confirm.ask(f"Keep the current profile '{current}'?", default=True):
        return current

    profiles = controller.list_profiles()
    console.print("\n[bold]Available profiles:[/bold]")
    for profile in profiles:
        description = f" [dim]- {profile.description}[/dim]" if profile.description else ""
        console.print(f"  [cyan]{profile.name}[/cyan]{description}")
    console.print()

    names = [profile.name for profile in profiles]
    default = DEFAULT_PROFILE if DEFAULT_PROFILE in names else (names[0] if names else None)
    return Prompt.ask("Select a profile", choices=names, default=default)


def print_install_result(result: InstallResult) -> None:
    """Print per-feature counts for an install or switch."""
    if result.snapshot_profile:
        print_success(f"Saved your existing setup as profile '{result.snapshot_profile}'")
    if result.removed.removed:
        print_info(f"Removed {len(result.removed.removed)} file(s) from the previous profile")

    total = len(result.features)
    for step, (name, feature) in enumerate(result.features.items(), start=1):
        print_step(
            step,
            total,
            f"{name} [dim]({feature.installed_count} installed, "
            f"{feature.preserved_count} preserved)[/dim]",
        )

    console.print()
    print_success(
        f"Installed profile [bold]{result.profile_name}[/bold]: "
        f"{result.installed_count} file(s) installed, "
        f"{result.preserved_count} preserved"
    )
    if result.preserved_count:
        print_info("Preserved files were created or edited by you and were left untouched.")


def install(
    ctx: typer.Context,
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Profile to install (default: current profile)."
    ),
    skip_uninstall: bool = typer.Option(
        False,
        "--skip-uninstall",
        help="Keep the previous profile's files instead of cleaning them up.",
    ),
    strategy: FirstInstallStrategy | None = typer.Option(
        None,
        "--strategy",
        help="How to treat an existing .claude directory nojo has not managed before.",
    ),
    snapshot_name: str | None = typer.Option(
        None,
        "--snapshot-name",
        help="Profile name for --strategy create-profile.",
    ),
) -> None:
    """Install a nojo profile.

    Composes the profile from its mixins and installs CLAUDE.md, skills,
    subagents and slash commands into <install-dir>/.claude. Files you
    have created or edited are never overwritten.
    """
    state = get_state(ctx)
    interactive = not state.non_interactive

    try:
        controller = build_controller(state)

        if not _confirm_ancestors(controller, interactive):
            print_info("Installation cancelled.")
            raise typer.Exit(0)

        install_state = controller.detect_state()
        if install_state.state == InstallState.existing_untracked and strategy is None:
            if interactive:
                strategy = _prompt_strategy(install_state.summary())
            else:
                strategy = FirstInstallStrategy.preserve

        if (
            interactive
            and strategy == FirstInstallStrategy.create_profile
            and snapshot_name is None
        ):
            snapshot_name = Prompt.ask("Name for the new profile")

        if profile is None and interactive:
            profile = _prompt_profile(controller)

        console.print(f"\n[bold]Installing to:[/bold] {state.install_dir}\n")
        result = controller.install(
            profile_name=profile,
            strategy=strategy,
            snapshot_name=snapshot_name,
            skip_uninstall=skip_uninstall,
        )
    except (NojoError, OSError) as e:
        report_error(e)
        raise typer.Exit(1) from e

    print_install_result(result)
