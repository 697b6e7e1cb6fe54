"""Pydantic models for profile directories.

A profile is a directory holding a CLAUDE.md behavioral-instructions file
plus optional skills/, subagents/ and slashcommands/ subtrees. Its
profile.json metadata records whether it ships with nojo and which mixin
bundles are layered underneath it.
"""

import logging
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from nojo.exceptions import InvalidProfileNameError

logger = logging.getLogger(__name__)

INSTRUCTIONS_FILENAME = "CLAUDE.md"
METADATA_FILENAME = "profile.json"
SKILLS_SUBDIR = "skills"
SUBAGENTS_SUBDIR = "subagents"
SLASHCOMMANDS_SUBDIR = "slashcommands"

PROFILE_NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")


class ProfileMetadata(BaseModel):
    """Contents of a profile's profile.json.

    Attributes:
        builtin: True for profiles shipped with nojo. Only builtin profiles
            are removed or replaced automatically.
        description: One-line summary shown when selecting a profile.
        mixins: Mixin bundles to layer in, keyed by mixin name.
    """

    model_config = ConfigDict(extra="ignore")

    builtin: bool = Field(default=False, description="Shipped with nojo")
    description: str = Field(default="", description="Profile summary")
    mixins: dict[str, dict] = Field(default_factory=dict, description="Mixins to layer in")

    @property
    def mixin_names(self) -> list[str]:
        """Mixin names in the order they are layered (ascending by name)."""
        return sorted(self.mixins)


class Profile(BaseModel):
    """A profile directory together with its metadata."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    path: Path
    metadata: ProfileMetadata = Field(default_factory=ProfileMetadata)

    @property
    def builtin(self) -> bool:
        return self.metadata.builtin

    @property
    def description(self) -> str:
        return self.metadata.description


def load_profile_metadata(profile_dir: Path) -> ProfileMetadata:
    """Load profile.json from a profile directory.

    Args:
        profile_dir: The profile directory.

    Returns:
        Parsed metadata, or defaults (custom profile, no mixins) when the
        file is missing or invalid.
    """
    metadata_path = profile_dir / METADATA_FILENAME
    if not metadata_path.is_file():
        return ProfileMetadata()

    try:
        return ProfileMetadata.model_validate_json(metadata_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug(f"Ignoring invalid {metadata_path}: {e}")
        return ProfileMetadata()


def save_profile_metadata(profile_dir: Path, metadata: ProfileMetadata) -> None:
    """Write profile.json into a profile directory."""
    content = metadata.model_dump_json(indent=2)
    (profile_dir / METADATA_FILENAME).write_text(content + "\n", encoding="utf-8")


def is_valid_profile(profile_dir: Path) -> bool:
    """Return True if the directory contains the behavioral-instructions file."""
    return (profile_dir / INSTRUCTIONS_FILENAME).is_file()


def load_profile(profile_dir: Path) -> Profile | None:
    """Load a profile directory.

    Args:
        profile_dir: Candidate profile directory.

    Returns:
        Profile if the directory is a valid profile, None otherwise.
    """
    if not profile_dir.is_dir() or not is_valid_profile(profile_dir):
        return None
    return Profile(
        name=profile_dir.name,
        path=profile_dir,
        metadata=load_profile_metadata(profile_dir),
    )


def list_profiles(profiles_dir: Path) -> list[Profile]:
    """List the valid profiles in a directory.

    Directories without CLAUDE.md, and directories whose name starts with
    an underscore (mixin bundles), are skipped.

    Args:
        profiles_dir: Directory holding one subdirectory per profile.

    Returns:
        Profiles sorted by name.
    """
    if not profiles_dir.is_dir():
        return []

    profiles: list[Profile] = []
    for entry in sorted(profiles_dir.iterdir()):
        if entry.name.startswith("_"):
            continue
        profile = load_profile(entry)
        if profile is not None:
            profiles.append(profile)
    return profiles


def validate_profile_name(name: str, reserved: set[str] | frozenset[str] = frozenset()) -> str:
    """Validate a name for a new user-created profile.

    Args:
        name: Proposed profile name.
        reserved: Names that belong to builtin profiles.

    Returns:
        The name with surrounding whitespace removed.

    Raises:
        InvalidProfileNameError: If the name is empty, not made of lowercase
            letters, digits and hyphens, or reserved.
    """
    trimmed = name.strip()
    if not trimmed:
        raise InvalidProfileNameError("Profile name cannot be empty.")
    if not PROFILE_NAME_PATTERN.match(trimmed):
        raise InvalidProfileNameError(
            "Profile name can only contain lowercase letters, numbers, and hyphens."
        )
    if trimmed in reserved:
        raise InvalidProfileNameError(
            f'"{trimmed}" is a built-in profile name. Please choose a different name.'
        )
    return trimmed
