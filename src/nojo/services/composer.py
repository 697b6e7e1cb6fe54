"""Profile composition from mixins and profile-specific content.

A profile's effective file tree is built by layering each mixin named in
its profile.json, in ascending alphabetical order of mixin name, and then
the profile's own files on top. When two layers provide the same relative
path the later layer wins outright. Components carrying the reserved
``paid-`` prefix are never included.
"""

import logging
from importlib.resources import files
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from nojo.models.profile import (
    ProfileMetadata,
    is_valid_profile,
    list_profiles,
    load_profile_metadata,
)
from nojo.utils.files import iter_tree_files

logger = logging.getLogger(__name__)

PREMIUM_PREFIX = "paid-"


def bundled_config_dir() -> Path:
    """Return the directory holding the profiles shipped with nojo."""
    return Path(str(files("nojo") / "config"))


def is_premium(relative_path: str) -> bool:
    """Return True if any component of the path carries the premium prefix."""
    return any(part.startswith(PREMIUM_PREFIX) for part in relative_path.split("/"))


class ComposedProfile(BaseModel):
    """The merged file tree of a profile.

    Attributes:
        name: Profile name.
        metadata: The profile's own profile.json contents.
        layers: Names of the layers applied, in order (mixins, then the
            profile itself).
        files: Mapping of POSIX path relative to the profile root to the
            source file that provides it.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    metadata: ProfileMetadata = Field(default_factory=ProfileMetadata)
    layers: list[str] = Field(default_factory=list)
    files: dict[str, Path] = Field(default_factory=dict)

    def subtree(self, prefix: str) -> dict[str, Path]:
        """Return the files under a directory, re-rooted at that directory.

        Args:
            prefix: Directory name inside the profile (e.g. "skills").

        Returns:
            Mapping of path relative to prefix to source file. Empty when
            no layer provides the directory.
        """
        start = prefix.rstrip("/") + "/"
        return {
            relative[len(start) :]: source
            for relative, source in self.files.items()
            if relative.startswith(start)
        }

    def get(self, relative_path: str) -> Path | None:
        return self.files.get(relative_path)


class ProfileComposer(BaseModel):
    """Build composed profiles from a profiles directory and mixins.

    Attributes:
        profiles_dir: Directory containing one subdirectory per profile.
        mixins_dir: Directory containing one subdirectory per mixin.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    profiles_dir: Path
    mixins_dir: Path

    @classmethod
    def bundled(cls) -> "ProfileComposer":
        """Create a composer over the profiles shipped with nojo."""
        config_dir = bundled_config_dir()
        return cls(profiles_dir=config_dir / "profiles", mixins_dir=config_dir / "_mixins")

    def profile_names(self) -> list[str]:
        """Return the names of valid profiles, sorted."""
        return [profile.name for profile in list_profiles(self.profiles_dir)]

    def has_profile(self, profile_name: str) -> bool:
        return is_valid_profile(self.profiles_dir / profile_name)

    def compose(self, profile_name: str) -> ComposedProfile:
        """Compose a profile's effective file tree.

        Args:
            profile_name: Profile directory name under profiles_dir.

        Returns:
            The merged tree. A profile directory without CLAUDE.md still
            composes, so callers check validity with has_profile first.
        """
        profile_dir = self.profiles_dir / profile_name
        metadata = load_profile_metadata(profile_dir)
        composed = ComposedProfile(name=profile_name, metadata=metadata)

        for mixin_name in metadata.mixin_names:
            mixin_dir = self.mixins_dir / mixin_name
            if not mixin_dir.is_dir():
                logger.warning(f"Profile '{profile_name}' names unknown mixin '{mixin_name}'")
                continue
            self._apply_layer(composed, mixin_dir, mixin_name)

        self._apply_layer(composed, profile_dir, profile_name)
        return composed

    def _apply_layer(self, composed: ComposedProfile, layer_dir: Path, layer_name: str) -> None:
        """Overlay one directory onto the composed tree."""
        for path, relative in iter_tree_files(layer_dir):
            if is_premium(relative):
                logger.debug(f"Skipping premium component: {relative}")
                continue
            composed.files[relative] = path
        composed.layers.append(layer_name)
