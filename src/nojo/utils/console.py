"""Terminal output for nojo commands.

Every command prints through the shared ``console`` so that the global
``--silent`` flag can mute install, switch and uninstall reports in one
place. Per-file decisions go to ``logging`` instead; this module is only
for what the user is meant to read.
"""

import logging
import sys

from rich.console import Console

logger = logging.getLogger(__name__)

# Windows code pages that cannot encode the ✓/✗/⚠ status glyphs
LEGACY_WINDOWS_ENCODINGS = frozenset({"cp1252", "cp437", "ascii"})


def create_console() -> Console:
    """Create the console used for command output.

    The check and install reports mark each feature with ✓ or ✗. On a
    Windows terminal whose code page cannot encode those glyphs, Rich's
    legacy_windows mode is enabled so the reports print instead of raising.

    Returns:
        Console: A configured Rich Console instance.
    """
    if sys.platform == "win32":
        encoding = getattr(sys.stdout, "encoding", None) or "utf-8"
        encoding = encoding.lower().replace("-", "")

        if encoding in LEGACY_WINDOWS_ENCODINGS:
            logger.debug(f"Legacy Windows encoding {encoding!r}, enabling legacy_windows mode")
            return Console(legacy_windows=True)

    return Console()


console = create_console()


def set_silent(silent: bool) -> None:
    """Mute or restore every command's output (the ``--silent`` flag).

    Args:
        silent: True to swallow output, False to print normally.
    """
    console.quiet = silent


def print_success(message: str) -> None:
    """Print a completed operation, e.g. a finished install or a passing check.

    Args:
        message: The message to display after the green ✓.
    """
    console.print(f"[bold green]✓[/bold green] {message}")


def print_error(message: str) -> None:
    """Print a failure such as an unknown profile or a failed feature check.

    Args:
        message: The message to display after the red ✗.
    """
    console.print(f"[bold red]✗[/bold red] {message}")


def print_warning(message: str) -> None:
    """Print something the user should know but that did not stop the command.

    Used for preserved user edits and installations found in parent directories.

    Args:
        message: The message to display after the yellow ⚠.
    """
    console.print(f"[bold yellow]⚠[/bold yellow] {message}")


def print_info(message: str) -> None:
    """Print a dimmed hint, such as the next step after an error."""
    console.print(f"[dim]{message}[/dim]")


def print_step(step: int, total: int, message: str) -> None:
    """Print one feature's line in the install report.

    Args:
        step: Position of the feature being reported (1-indexed).
        total: Number of features the agent installs.
        message: The feature's summary.
    """
    console.print(f"[bold blue][{step}/{total}][/bold blue] {message}")
