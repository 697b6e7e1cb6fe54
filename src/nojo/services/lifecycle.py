"""Install, switch and uninstall profiles for one install root.

The controller owns the single manifest transaction of a command: it loads
(or creates) the manifest, lets every feature installer record its
decisions on the in-memory copy, and saves it once at the very end. All
configuration problems are raised before anything is written.
"""

import logging
import shutil
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from nojo import __version__
from nojo.exceptions import ConfigurationError, ProfileNotFoundError
from nojo.models.config import (
    DEFAULT_AGENT,
    Config,
    delete_config,
    load_config,
    load_legacy_config,
    remove_legacy_config,
    save_config,
)
from nojo.models.manifest import (
    Manifest,
    create_manifest,
    delete_manifest,
    load_manifest,
    save_manifest,
    snapshot_existing_tree,
)
from nojo.models.profile import (
    INSTRUCTIONS_FILENAME,
    SKILLS_SUBDIR,
    SLASHCOMMANDS_SUBDIR,
    SUBAGENTS_SUBDIR,
    Profile,
    ProfileMetadata,
    list_profiles,
    save_profile_metadata,
    validate_profile_name,
)
from nojo.services.agents import Agent, AgentRegistry, default_registry
from nojo.services.composer import ComposedProfile, ProfileComposer
from nojo.services.features import InstallContext, ValidationResult
from nojo.services.sync import DirectorySynchronizer, RemovalResult, SyncResult
from nojo.utils.files import compute_file_hash, iter_tree_files
from nojo.utils.paths import (
    get_agents_dir,
    get_claude_dir,
    get_claude_md_file,
    get_commands_dir,
    get_install_dirs,
    get_profiles_dir,
    get_skills_dir,
)

logger = logging.getLogger(__name__)

SNAPSHOT_DESCRIPTION = "Custom profile created from existing setup"


class InstallState(str, Enum):
    """What an install root looks like before an install."""

    fresh = "fresh"
    existing_untracked = "existing-untracked"
    existing_managed = "existing-managed"


class FirstInstallStrategy(str, Enum):
    """How to treat a pre-existing, unmanaged .claude directory.

    Values:
        preserve: Install alongside the existing files, leaving them as-is.
        create_profile: Snapshot the existing setup into a custom profile
            first, then install.
        overwrite: Install the defaults. Existing files are still never
            replaced, so the outcome matches preserve.
    """

    preserve = "preserve"
    create_profile = "create-profile"
    overwrite = "overwrite"


class InstallationState(BaseModel):
    """Detected state of an install root.

    Attributes:
        state: Which lifecycle state the root is in.
        manifest: The loaded manifest for existing-managed roots.
        files: Non-hidden files under .claude, relative to it, for
            existing-untracked roots.
    """

    state: InstallState
    manifest: Manifest | None = None
    files: list[str] = Field(default_factory=list)

    def summary(self) -> str | None:
        """Describe what already exists, or None for a fresh root."""
        if self.state == InstallState.fresh:
            return None
        if self.state == InstallState.existing_managed and self.manifest is not None:
            return f"nojo is already installed (tracking {len(self.manifest.files)} files)"

        labels = {
            "skills/": "skills",
            "commands/": "commands",
            "agents/": "agents",
        }
        parts = [
            label
            for prefix, label in labels.items()
            if any(f.startswith(prefix) for f in self.files)
        ]
        if INSTRUCTIONS_FILENAME in self.files:
            parts.append(INSTRUCTIONS_FILENAME)
        if "settings.json" in self.files:
            parts.append("settings")

        if not parts:
            return f"Existing .claude directory with {len(self.files)} file(s)"
        return f"Existing Claude Code configuration: {', '.join(parts)}"


class ModificationType(str, Enum):
    added = "added"
    modified = "modified"
    deleted = "deleted"


class ProfileModification(BaseModel):
    """A change the user made to files installed for a profile.

    Attributes:
        type: Kind of change.
        path: Path relative to the install root.
        absolute_path: Path on disk.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: ModificationType
    path: str
    absolute_path: Path


class InstallResult(BaseModel):
    """Outcome of an install or switch.

    Attributes:
        profile_name: The profile now active.
        features: Sync outcome per feature installer name.
        profiles: Sync outcome for the installed profile directories.
        removed: Files of the previous profile cleaned up before syncing.
        snapshot_profile: Name of the profile created from an existing
            setup, if any.
    """

    profile_name: str
    features: dict[str, SyncResult] = Field(default_factory=dict)
    profiles: SyncResult = Field(default_factory=SyncResult)
    removed: RemovalResult = Field(default_factory=RemovalResult)
    snapshot_profile: str | None = None

    @property
    def installed_count(self) -> int:
        return sum(r.installed_count for r in self.features.values())

    @property
    def preserved_count(self) -> int:
        return sum(r.preserved_count for r in self.features.values())


class UninstallResult(BaseModel):
    """Outcome of an uninstall.

    Attributes:
        removed: Paths deleted.
        kept: Managed paths kept because the user modified them.
        profiles_removed: Built-in profile directories deleted.
        manifest_deleted: Whether the manifest file was deleted.
        config_deleted: Whether the config file was deleted.
    """

    removed: list[str] = Field(default_factory=list)
    kept: list[str] = Field(default_factory=list)
    profiles_removed: list[str] = Field(default_factory=list)
    manifest_deleted: bool = False
    config_deleted: bool = False

    def add(self, result: RemovalResult) -> None:
        self.removed.extend(result.removed)
        self.kept.extend(result.kept)


def list_claude_files(claude_dir: Path) -> list[str]:
    """List files under .claude, skipping hidden files and directories."""
    return [
        relative
        for _, relative in iter_tree_files(claude_dir)
        if not any(part.startswith(".") for part in relative.split("/"))
    ]


def detect_installation_state(install_dir: Path) -> InstallationState:
    """Detect the lifecycle state of an install root.

    Args:
        install_dir: The install root.

    Returns:
        fresh when there is no .claude directory, existing-managed when a
        valid manifest exists, existing-untracked otherwise.
    """
    claude_dir = get_claude_dir(install_dir)
    if not claude_dir.is_dir():
        return InstallationState(state=InstallState.fresh)

    manifest = load_manifest(install_dir)
    if manifest is not None:
        return InstallationState(state=InstallState.existing_managed, manifest=manifest)

    return InstallationState(
        state=InstallState.existing_untracked, files=list_claude_files(claude_dir)
    )


class ProfileLifecycleController(BaseModel):
    """Orchestrate profile installs for one install root and one agent.

    Attributes:
        install_dir: The install root.
        registry: Agents available to this controller.
        agent_name: Agent whose installers run.
        composer: Composer over the bundled profiles and mixins.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    install_dir: Path
    registry: AgentRegistry = Field(default_factory=default_registry)
    agent_name: str = DEFAULT_AGENT
    composer: ProfileComposer = Field(default_factory=ProfileComposer.bundled)

    @property
    def agent(self) -> Agent:
        return self.registry.get(self.agent_name)

    @property
    def profiles_dir(self) -> Path:
        return get_profiles_dir(self.install_dir)

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.install_dir).as_posix()

    def _installed_composer(self) -> ProfileComposer:
        return ProfileComposer(profiles_dir=self.profiles_dir, mixins_dir=self.composer.mixins_dir)

    def detect_state(self) -> InstallationState:
        return detect_installation_state(self.install_dir)

    def load_existing_config(self) -> Config | None:
        """Load the config, falling back to the legacy location."""
        return load_config(self.install_dir) or load_legacy_config(self.install_dir)

    def current_profile(self) -> str | None:
        """Return the profile selected for this agent, if installed."""
        config = self.load_existing_config()
        return config.get_agent_profile(self.agent_name) if config else None

    def ancestor_installations(self) -> list[Path]:
        """Return installations in parent directories, closest first."""
        return [d for d in get_install_dirs(self.install_dir) if d != self.install_dir]

    def list_profiles(self) -> list[Profile]:
        """List selectable profiles: installed ones plus bundled ones.

        An installed profile shadows the bundled profile of the same name.

        Returns:
            Profiles sorted by name.
        """
        profiles = {p.name: p for p in list_profiles(self.composer.profiles_dir)}
        profiles.update({p.name: p for p in list_profiles(self.profiles_dir)})
        return [profiles[name] for name in sorted(profiles)]

    def list_custom_profiles(self) -> list[str]:
        """Return names of installed profiles that did not ship with nojo."""
        return [p.name for p in list_profiles(self.profiles_dir) if not p.builtin]

    def profile_exists(self, profile_name: str) -> bool:
        """Return True if the profile is installed or bundled."""
        installed = self._installed_composer()
        return installed.has_profile(profile_name) or self.composer.has_profile(profile_name)

    def require_profile(self, profile_name: str) -> None:
        """Raise ProfileNotFoundError unless the profile exists."""
        if not self.profile_exists(profile_name):
            raise ProfileNotFoundError(profile_name, [p.name for p in self.list_profiles()])

    def _compose(self, profile_name: str) -> ComposedProfile:
        """Compose a profile, preferring the installed copy."""
        installed = self._installed_composer()
        if installed.has_profile(profile_name):
            return installed.compose(profile_name)
        return self.composer.compose(profile_name)

    def _context(
        self, synchronizer: DirectorySynchronizer, profile: ComposedProfile
    ) -> InstallContext:
        return InstallContext(
            install_dir=self.install_dir, profile=profile, synchronizer=synchronizer
        )

    def _bootstrap_manifest(self) -> Manifest:
        """Create the first manifest, snapshotting any existing .claude content."""
        manifest = create_manifest()
        claude_dir = get_claude_dir(self.install_dir)
        if claude_dir.is_dir():
            manifest.pre_install_snapshot = snapshot_existing_tree(self.install_dir, claude_dir)
            logger.info(
                f"Recorded {len(manifest.pre_install_snapshot.files)} pre-existing file(s)"
            )
        return manifest

    def _install_bundled_profiles(self, synchronizer: DirectorySynchronizer) -> SyncResult:
        """Write every composed bundled profile into .claude/profiles."""
        result = SyncResult()
        for profile_name in self.composer.profile_names():
            composed = self.composer.compose(profile_name)
            result.merge(
                synchronizer.sync_files(composed.files, self.profiles_dir / profile_name, None)
            )
        return result

    def _remove_profile_files(
        self, synchronizer: DirectorySynchronizer, profile_name: str
    ) -> RemovalResult:
        """Remove the unmodified files installed for a profile."""
        result = RemovalResult()
        ctx = self._context(synchronizer, ComposedProfile(name=profile_name))
        for installer in self.agent.installers:
            removal = installer.uninstall(ctx, profile_name=profile_name)
            result.removed.extend(removal.removed)
            result.kept.extend(removal.kept)
        return result

    def install(
        self,
        profile_name: str | None = None,
        strategy: FirstInstallStrategy | None = None,
        snapshot_name: str | None = None,
        skip_uninstall: bool = False,
    ) -> InstallResult:
        """Install a profile into the install root.

        Args:
            profile_name: Profile to install. Defaults to the profile the
                existing config selects for this agent.
            strategy: How to treat an existing, unmanaged .claude directory.
            snapshot_name: Name for the custom profile created by the
                create-profile strategy.
            skip_uninstall: Keep the previous profile's files instead of
                removing its unmodified managed files first.

        Returns:
            Per-feature installed and preserved paths.

        Raises:
            ConfigurationError: If no profile can be resolved, the profile
                does not exist, or the snapshot name is unusable. Nothing
                has been written when this is raised.
            OSError: If a file cannot be read or written. The manifest is
                not saved.
        """
        return self._install(
            profile_name, strategy, snapshot_name, skip_uninstall, keep_version=False
        )

    def switch_profile(self, profile_name: str, skip_uninstall: bool = False) -> InstallResult:
        """Make another profile active and reinstall its files.

        The config keeps its recorded version, auto-update preference and
        the selections of other agents.

        Args:
            profile_name: Installed or bundled profile to switch to.
            skip_uninstall: Keep the previous profile's files in place.

        Returns:
            The install outcome for the new profile.

        Raises:
            ConfigurationError: If nojo is not installed here or the profile
                does not exist.
        """
        if self.load_existing_config() is None:
            raise ConfigurationError(
                f"No nojo installation found in {self.install_dir}.",
                hint="Run 'nojo install' first.",
            )
        return self._install(profile_name, None, None, skip_uninstall, keep_version=True)

    def _install(
        self,
        profile_name: str | None,
        strategy: FirstInstallStrategy | None,
        snapshot_name: str | None,
        skip_uninstall: bool,
        keep_version: bool,
    ) -> InstallResult:
        agent = self.agent
        state = self.detect_state()
        existing_config = self.load_existing_config()
        previous_profile = (
            existing_config.get_agent_profile(agent.name) if existing_config else None
        )

        resolved = profile_name or previous_profile
        if resolved is None:
            raise ConfigurationError(
                "No profile selected and no existing configuration found.",
                hint="Run 'nojo install --profile <name>' with an explicit profile.",
            )
        self.require_profile(resolved)

        create_snapshot = (
            state.state == InstallState.existing_untracked
            and strategy == FirstInstallStrategy.create_profile
        )
        if create_snapshot:
            snapshot_name = self._check_new_profile_name(snapshot_name)
        elif strategy == FirstInstallStrategy.overwrite:
            logger.info("Overwrite strategy: existing files are still preserved")

        manifest = state.manifest or self._bootstrap_manifest()
        synchronizer = DirectorySynchronizer(install_dir=self.install_dir, manifest=manifest)
        result = InstallResult(profile_name=resolved)

        if create_snapshot:
            result.snapshot_profile = self.create_profile_from_existing(snapshot_name)

        if skip_uninstall:
            logger.info("Skipping uninstall step (preserving existing installation)")
        elif previous_profile is not None:
            result.removed = self._remove_profile_files(synchronizer, previous_profile)

        result.profiles = self._install_bundled_profiles(synchronizer)

        ctx = self._context(synchronizer, self._compose(resolved))
        for installer in agent.installers:
            result.features[installer.name] = installer.install(ctx)

        config = existing_config or Config(install_dir=self.install_dir)
        config.install_dir = self.install_dir
        config.set_agent_profile(agent.name, resolved)
        if not keep_version or config.version is None:
            config.version = __version__
        save_config(config)
        remove_legacy_config(self.install_dir)

        save_manifest(self.install_dir, manifest)
        logger.info(
            f"Installed profile '{resolved}': {result.installed_count} installed, "
            f"{result.preserved_count} preserved"
        )
        return result

    def uninstall(self, remove_profiles: bool = True) -> UninstallResult:
        """Remove every unmodified managed file of this agent.

        Modified and untracked files stay. The manifest is deleted once it
        tracks nothing, the config once no agent remains.

        Args:
            remove_profiles: Also delete the built-in profile directories.
                Custom profiles are never deleted.

        Returns:
            Removed and kept paths.

        Raises:
            ConfigurationError: If nothing is installed here.
        """
        agent = self.agent
        manifest = load_manifest(self.install_dir)
        config = self.load_existing_config()
        if manifest is None and config is None:
            raise ConfigurationError(
                f"No nojo installation found in {self.install_dir}.",
                hint="Use --install-dir to point at an installation.",
            )

        manifest = manifest or create_manifest()
        synchronizer = DirectorySynchronizer(install_dir=self.install_dir, manifest=manifest)
        profile_name = (config.get_agent_profile(agent.name) if config else None) or ""
        ctx = self._context(synchronizer, ComposedProfile(name=profile_name))
        result = UninstallResult()

        for installer in agent.installers:
            result.add(installer.uninstall(ctx))

        if remove_profiles:
            for profile in list_profiles(self.profiles_dir):
                if not profile.builtin:
                    continue
                result.add(synchronizer.remove_managed(profile.path))
                if not profile.path.exists():
                    result.profiles_removed.append(profile.name)
            if self.profiles_dir.is_dir() and not any(self.profiles_dir.iterdir()):
                self.profiles_dir.rmdir()

        if config is not None:
            config.agents.pop(agent.name, None)
            if config.agents:
                save_config(config)
                remove_legacy_config(self.install_dir)
            else:
                result.config_deleted = delete_config(self.install_dir)

        if manifest.files:
            save_manifest(self.install_dir, manifest)
        else:
            result.manifest_deleted = delete_manifest(self.install_dir)

        logger.info(f"Uninstalled: {len(result.removed)} removed, {len(result.kept)} kept")
        return result

    def validate(self) -> dict[str, ValidationResult]:
        """Validate every feature of the active profile.

        Returns:
            Validation outcome per feature installer name.

        Raises:
            ConfigurationError: If nojo is not installed here or the active
                profile no longer exists.
        """
        profile_name = self.current_profile()
        if profile_name is None:
            raise ConfigurationError(
                f"No nojo installation found in {self.install_dir}.",
                hint="Run 'nojo install' first.",
            )
        self.require_profile(profile_name)

        manifest = load_manifest(self.install_dir) or create_manifest()
        synchronizer = DirectorySynchronizer(install_dir=self.install_dir, manifest=manifest)
        ctx = self._context(synchronizer, self._compose(profile_name))
        return {installer.name: installer.validate(ctx) for installer in self.agent.installers}

    def detect_modifications(self, profile_name: str) -> list[ProfileModification]:
        """Find changes to the files installed for a profile.

        Tracked files whose hash differs are modified, tracked files that
        are gone are deleted, and untracked files under .claude/skills are
        added.

        Args:
            profile_name: Profile whose manifest entries are checked.

        Returns:
            Detected modifications, empty when there is no manifest.
        """
        manifest = load_manifest(self.install_dir)
        if manifest is None:
            return []

        modifications: list[ProfileModification] = []
        for entry in sorted(manifest.entries_for_profile(profile_name), key=lambda e: e.path):
            path = self.install_dir / entry.path
            if not path.exists():
                kind = ModificationType.deleted
            elif compute_file_hash(path) != entry.hash:
                kind = ModificationType.modified
            else:
                continue
            modifications.append(
                ProfileModification(type=kind, path=entry.path, absolute_path=path)
            )

        for path, _ in iter_tree_files(get_skills_dir(self.install_dir)):
            relative = self._relative(path)
            if manifest.get_entry(relative) is None:
                modifications.append(
                    ProfileModification(
                        type=ModificationType.added, path=relative, absolute_path=path
                    )
                )

        return modifications

    def save_modifications(
        self, profile_name: str, modifications: list[ProfileModification]
    ) -> int:
        """Copy modified and added skills and CLAUDE.md into an installed profile.

        Deleted files are not propagated.

        Args:
            profile_name: Installed profile to save into.
            modifications: Output of detect_modifications.

        Returns:
            Number of files copied.
        """
        profile_dir = self.profiles_dir / profile_name
        if not profile_dir.is_dir():
            logger.warning(f"Profile '{profile_name}' not found, cannot save modifications")
            return 0

        skills_prefix = self._relative(get_skills_dir(self.install_dir)) + "/"
        claude_md = self._relative(get_claude_md_file(self.install_dir))

        saved = 0
        for modification in modifications:
            if modification.type == ModificationType.deleted:
                continue
            if modification.path.startswith(skills_prefix):
                destination = profile_dir / SKILLS_SUBDIR / modification.path[len(skills_prefix) :]
            elif modification.path == claude_md:
                destination = profile_dir / INSTRUCTIONS_FILENAME
            else:
                continue

            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(modification.absolute_path, destination)
            saved += 1

        return saved

    def _check_new_profile_name(self, name: str | None) -> str:
        if name is None:
            raise ConfigurationError(
                "A profile name is required to snapshot the existing setup.",
                hint="Pass --snapshot-name <name>.",
            )
        name = validate_profile_name(name, reserved=set(self.composer.profile_names()))
        if (self.profiles_dir / name).exists():
            raise ConfigurationError(f"Profile '{name}' already exists.")
        return name

    def create_profile_from_existing(self, name: str) -> str | None:
        """Snapshot the current .claude setup into a new custom profile.

        Copies skills, CLAUDE.md, commands and agents into
        .claude/profiles/<name> with a non-builtin profile.json.

        Args:
            name: Name for the new profile.

        Returns:
            The profile name, or None when there was nothing to copy.

        Raises:
            InvalidProfileNameError: If the name is invalid or reserved.
            ConfigurationError: If the profile already exists.
        """
        name = self._check_new_profile_name(name)
        profile_dir = self.profiles_dir / name
        logger.info(f"Creating profile '{name}' from existing setup")

        sources = [
            (get_skills_dir(self.install_dir), profile_dir / SKILLS_SUBDIR),
            (get_commands_dir(self.install_dir), profile_dir / SLASHCOMMANDS_SUBDIR),
            (get_agents_dir(self.install_dir), profile_dir / SUBAGENTS_SUBDIR),
        ]
        copied = 0
        for source_dir, destination_dir in sources:
            for path, relative in iter_tree_files(source_dir):
                destination = destination_dir / relative
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(path, destination)
                copied += 1

        claude_md = get_claude_md_file(self.install_dir)
        if claude_md.is_file():
            profile_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(claude_md, profile_dir / INSTRUCTIONS_FILENAME)
            copied += 1

        if copied == 0:
            logger.warning("No existing configuration found to snapshot")
            return None

        save_profile_metadata(
            profile_dir, ProfileMetadata(builtin=False, description=SNAPSHOT_DESCRIPTION)
        )
        logger.info(f"Profile '{name}' created with {copied} file(s)")
        return name
