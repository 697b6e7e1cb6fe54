"""Path helpers for install roots and the .claude configuration tree."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

CLAUDE_DIR_NAME = ".claude"
CONFIG_FILENAME = ".nojo-config.json"
MANIFEST_FILENAME = ".nojo-manifest.json"
MANAGED_BLOCK_MARKER = "NOJO MANAGED BLOCK"

# Older releases wrote the config next to .claude, and before that without the dot
LEGACY_CONFIG_FILENAMES = (".nojo-config.json", "nojo-config.json")


def get_claude_dir(install_dir: Path) -> Path:
    """Return the configuration root (<install_dir>/.claude)."""
    return install_dir / CLAUDE_DIR_NAME


def get_skills_dir(install_dir: Path) -> Path:
    """Return the directory Claude Code loads skills from."""
    return get_claude_dir(install_dir) / "skills"


def get_agents_dir(install_dir: Path) -> Path:
    """Return the directory Claude Code loads subagents from."""
    return get_claude_dir(install_dir) / "agents"


def get_commands_dir(install_dir: Path) -> Path:
    """Return the directory Claude Code loads slash commands from."""
    return get_claude_dir(install_dir) / "commands"


def get_profiles_dir(install_dir: Path) -> Path:
    """Return the directory installed profiles live in."""
    return get_claude_dir(install_dir) / "profiles"


def get_claude_md_file(install_dir: Path) -> Path:
    return get_claude_dir(install_dir) / "CLAUDE.md"


def get_settings_file(install_dir: Path) -> Path:
    return get_claude_dir(install_dir) / "settings.json"


def get_config_path(install_dir: Path) -> Path:
    return get_claude_dir(install_dir) / CONFIG_FILENAME


def get_legacy_config_path(install_dir: Path) -> Path:
    return install_dir / LEGACY_CONFIG_FILENAMES[0]


def get_manifest_path(install_dir: Path) -> Path:
    return get_claude_dir(install_dir) / MANIFEST_FILENAME


def normalize_install_dir(install_dir: str | Path | None) -> Path:
    """Normalize a user-supplied installation directory.

    Empty values resolve to the current working directory, ``~`` is
    expanded, relative paths are made absolute, and a trailing ``.claude``
    component is stripped so both ``~/`` and ``~/.claude`` point at the
    same install root.

    Args:
        install_dir: The directory given on the command line, if any.

    Returns:
        Absolute path to the install root.
    """
    if install_dir is None or str(install_dir) == "":
        return Path.cwd()

    path = Path(install_dir).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    path = Path(os.path.normpath(path))

    if path.name == CLAUDE_DIR_NAME:
        return path.parent

    return path


def has_installation(directory: Path) -> bool:
    """Check whether a directory holds a nojo installation.

    Args:
        directory: Candidate install root.

    Returns:
        True if a current or legacy config file exists, or if the
        directory's CLAUDE.md carries the nojo managed block marker.
    """
    if get_config_path(directory).exists():
        return True

    for legacy_name in LEGACY_CONFIG_FILENAMES:
        if (directory / legacy_name).exists():
            return True

    claude_md = get_claude_md_file(directory)
    if claude_md.is_file():
        try:
            if MANAGED_BLOCK_MARKER in claude_md.read_text(encoding="utf-8"):
                return True
        except (OSError, UnicodeDecodeError):
            logger.debug(f"Could not read {claude_md}")

    return False


def get_install_dirs(current_dir: Path | None = None) -> list[Path]:
    """Find nojo installations in a directory and its ancestors.

    Claude Code loads CLAUDE.md files from every parent directory, so an
    installation higher up the tree affects this one.

    Args:
        current_dir: Directory to start searching from (default: cwd).

    Returns:
        Install roots ordered from closest to furthest. Empty if none found.
    """
    current = current_dir or Path.cwd()
    results: list[Path] = []

    for directory in (current, *current.parents):
        if has_installation(directory):
            results.append(directory)

    return results
