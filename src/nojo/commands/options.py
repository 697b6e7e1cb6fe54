"""Global CLI options shared by every nojo command."""

import logging
from pathlib import Path

import typer
from pydantic import BaseModel

from nojo.exceptions import ConfigurationError, NojoError
from nojo.models.config import DEFAULT_AGENT
from nojo.services import ProfileLifecycleController, default_registry
from nojo.utils import console, print_error

logger = logging.getLogger(__name__)


class CLIState(BaseModel):
    """Options given before the command name.

    Attributes:
        install_dir: Normalized install root.
        non_interactive: Never prompt; fail when input would be needed.
        agent: Agent to operate on.
    """

    install_dir: Path
    non_interactive: bool = False
    agent: str = DEFAULT_AGENT


def get_state(ctx: typer.Context) -> CLIState:
    """Return the global options stored by the app callback."""
    state = ctx.find_root().obj
    if not isinstance(state, CLIState):
        state = CLIState(install_dir=Path.cwd())
    return state


def build_controller(state: CLIState) -> ProfileLifecycleController:
    """Create a lifecycle controller for the global options.

    Raises:
        ConfigurationError: If the agent is unknown.
    """
    registry = default_registry()
    registry.get(state.agent)
    return ProfileLifecycleController(
        install_dir=state.install_dir, registry=registry, agent_name=state.agent
    )


def report_error(error: NojoError | OSError) -> None:
    """Print an error and its next step, if it has one.

    Args:
        error: The error that aborted the command.
    """
    logger.debug(f"Command failed: {error!r}")
    print_error(str(error))
    if isinstance(error, ConfigurationError) and error.hint:
        console.print(f"  [dim]{error.hint}[/dim]")
