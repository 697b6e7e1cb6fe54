"""Merging nojo's entries into Claude Code's settings.json.

Only ``permissions.additionalDirectories`` is touched. Every other key in
the file is preserved as-is.
"""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

SETTINGS_SCHEMA_URL = "https://json.schemastore.org/claude-code-settings.json"


class SettingsFileError(ValueError):
    """Raised when settings.json exists but is not a JSON object."""


def read_settings(path: Path) -> dict[str, Any] | None:
    """Read settings.json.

    Args:
        path: Path to settings.json.

    Returns:
        The parsed settings, or None if the file does not exist.

    Raises:
        SettingsFileError: If the file exists but is not a JSON object.
    """
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise SettingsFileError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise SettingsFileError(f"Expected a JSON object in {path}")
    return data


def write_settings(path: Path, settings: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings, indent=2) + "\n", encoding="utf-8")


def add_additional_directory(path: Path, directory: Path) -> bool:
    """Grant Claude Code access to a directory.

    Creates settings.json (with its $schema key) when missing.

    Args:
        path: Path to settings.json.
        directory: Directory to add to permissions.additionalDirectories.

    Returns:
        True if the directory was added, False if it was already present.

    Raises:
        SettingsFileError: If settings.json is unreadable as JSON or its
            permissions entries have the wrong type.
    """
    settings = read_settings(path)
    if settings is None:
        settings = {"$schema": SETTINGS_SCHEMA_URL}

    permissions = settings.setdefault("permissions", {})
    if not isinstance(permissions, dict):
        raise SettingsFileError(f"Expected 'permissions' to be an object in {path}")
    directories = permissions.setdefault("additionalDirectories", [])
    if not isinstance(directories, list):
        raise SettingsFileError(
            f"Expected 'permissions.additionalDirectories' to be an array in {path}"
        )

    if str(directory) in directories:
        return False

    directories.append(str(directory))
    write_settings(path, settings)
    return True


def remove_additional_directory(path: Path, directory: Path) -> bool:
    """Revoke a directory added by add_additional_directory.

    Empty ``additionalDirectories`` lists and empty ``permissions``
    objects are removed afterwards. A file left holding nothing but the
    ``$schema`` key is deleted.

    Args:
        path: Path to settings.json.
        directory: Directory to remove.

    Returns:
        True if settings.json was changed.

    Raises:
        SettingsFileError: If settings.json is unreadable as JSON.
    """
    settings = read_settings(path)
    if settings is None:
        return False

    permissions = settings.get("permissions")
    if not isinstance(permissions, dict):
        return False
    directories = permissions.get("additionalDirectories")
    if not isinstance(directories, list) or str(directory) not in directories:
        return False

    permissions["additionalDirectories"] = [d for d in directories if d != str(directory)]
    if not permissions["additionalDirectories"]:
        del permissions["additionalDirectories"]
    if not permissions:
        del settings["permissions"]

    if settings == {"$schema": SETTINGS_SCHEMA_URL}:
        path.unlink()
        logger.debug(f"Removed empty settings file: {path}")
    else:
        write_settings(path, settings)
    return True


def has_additional_directory(path: Path, directory: Path) -> bool:
    """Return True if settings.json grants access to the directory."""
    settings = read_settings(path)
    if settings is None:
        return False
    permissions = settings.get("permissions")
    if not isinstance(permissions, dict):
        return False
    directories = permissions.get("additionalDirectories")
    return isinstance(directories, list) and str(directory) in directories
