"""Feature installers for the pieces of a profile.

Each installer picks one subtree of the composed profile and one
destination inside the .claude directory, and hands both to the
DirectorySynchronizer. Installers also know how to remove what they
installed and how to check that an installation is complete.
"""

import logging
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from nojo.models.profile import (
    INSTRUCTIONS_FILENAME,
    SKILLS_SUBDIR,
    SLASHCOMMANDS_SUBDIR,
    SUBAGENTS_SUBDIR,
)
from nojo.services.composer import ComposedProfile
from nojo.services.settings import (
    SettingsFileError,
    add_additional_directory,
    has_additional_directory,
    remove_additional_directory,
)
from nojo.services.sync import DirectorySynchronizer, RemovalResult, SyncResult
from nojo.utils.paths import (
    get_agents_dir,
    get_claude_md_file,
    get_commands_dir,
    get_settings_file,
    get_skills_dir,
)

logger = logging.getLogger(__name__)

_FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---", re.DOTALL)

REINSTALL_HINT = 'Run "nojo install" to reinstall'


class InstallContext(BaseModel):
    """Everything a feature installer needs for one operation.

    Attributes:
        install_dir: The install root.
        profile: The composed profile being installed or validated.
        synchronizer: Synchronizer bound to the operation's manifest.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    install_dir: Path
    profile: ComposedProfile
    synchronizer: DirectorySynchronizer

    @property
    def profile_name(self) -> str:
        return self.profile.name


class ValidationResult(BaseModel):
    """Outcome of validating one feature.

    Attributes:
        valid: Whether the feature is correctly installed.
        message: One-line summary.
        errors: Details and next steps when invalid.
    """

    valid: bool
    message: str
    errors: list[str] = Field(default_factory=list)


def parse_frontmatter(content: str) -> dict | None:
    """Parse YAML frontmatter from a markdown file.

    Args:
        content: The full content of the markdown file.

    Returns:
        The frontmatter mapping, or None if there is no valid frontmatter.
    """
    match = _FRONTMATTER_PATTERN.match(content)
    if not match:
        return None

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError:
        return None

    return data if isinstance(data, dict) else None


class FeatureInstaller(BaseModel):
    """Install one directory of a profile into the configuration tree.

    Attributes:
        name: Short identifier shown in progress output.
        description: What the feature provides.
        source_subdir: Directory inside the profile to install from.
    """

    name: str
    description: str
    source_subdir: str

    def destination(self, install_dir: Path) -> Path:
        raise NotImplementedError

    def include(self, relative_path: str) -> bool:
        """Return False for source files that must not be installed."""
        return True

    def source_files(self, profile: ComposedProfile) -> dict[str, Path]:
        """Return the profile files this feature installs."""
        return {
            relative: source
            for relative, source in profile.subtree(self.source_subdir).items()
            if self.include(relative)
        }

    def install(self, ctx: InstallContext) -> SyncResult:
        """Sync the feature's files for the context's profile.

        Args:
            ctx: The install context.

        Returns:
            Installed and preserved paths.
        """
        return ctx.synchronizer.sync_files(
            self.source_files(ctx.profile),
            self.destination(ctx.install_dir),
            ctx.profile_name,
        )

    def uninstall(self, ctx: InstallContext, profile_name: str | None = None) -> RemovalResult:
        """Remove this feature's managed, unmodified files.

        Args:
            ctx: The install context.
            profile_name: Only remove files installed for this profile.
                None removes every managed file of the feature.

        Returns:
            Removed and kept paths.
        """
        return ctx.synchronizer.remove_managed(self.destination(ctx.install_dir), profile_name)

    def expected_items(self, profile: ComposedProfile) -> list[str]:
        """Return the relative paths validate() expects at the destination."""
        return sorted(self.source_files(profile))

    def validate(self, ctx: InstallContext) -> ValidationResult:
        """Check that every expected file of the profile is installed.

        Args:
            ctx: The install context.

        Returns:
            The validation outcome.
        """
        destination = self.destination(ctx.install_dir)
        expected = self.expected_items(ctx.profile)

        if not expected:
            return ValidationResult(
                valid=True, message=f"No {self.name} configured for this profile"
            )

        if not destination.exists():
            return ValidationResult(
                valid=False,
                message=f"{self.name.capitalize()} directory not found",
                errors=[f"{destination} does not exist", REINSTALL_HINT],
            )

        missing = [item for item in expected if not (destination / item).exists()]
        if missing:
            return ValidationResult(
                valid=False,
                message=f"Missing {len(missing)} {self.name} file(s)",
                errors=[*missing, REINSTALL_HINT],
            )

        return ValidationResult(
            valid=True, message=f"All {len(expected)} {self.name} file(s) are installed"
        )


class SkillsInstaller(FeatureInstaller):
    """Install skills to .claude/skills and grant Claude Code access to them."""

    name: str = "skills"
    description: str = "Install skill configuration files"
    source_subdir: str = SKILLS_SUBDIR

    def destination(self, install_dir: Path) -> Path:
        return get_skills_dir(install_dir)

    def install(self, ctx: InstallContext) -> SyncResult:
        result = super().install(ctx)
        skills_dir = self.destination(ctx.install_dir)
        skills_dir.mkdir(parents=True, exist_ok=True)
        try:
            add_additional_directory(get_settings_file(ctx.install_dir), skills_dir)
        except SettingsFileError as e:
            logger.warning(f"Could not configure skills permissions: {e}")
        return result

    def uninstall(self, ctx: InstallContext, profile_name: str | None = None) -> RemovalResult:
        result = super().uninstall(ctx, profile_name)
        if profile_name is not None:
            return result

        skills_dir = self.destination(ctx.install_dir)
        try:
            remove_additional_directory(get_settings_file(ctx.install_dir), skills_dir)
        except SettingsFileError as e:
            logger.warning(f"Could not remove skills permissions: {e}")

        # install() creates the directory even for profiles without skills
        if skills_dir.is_dir() and not any(skills_dir.iterdir()):
            skills_dir.rmdir()
        return result

    def expected_items(self, profile: ComposedProfile) -> list[str]:
        """Expect one directory per skill rather than every file."""
        skills = {relative.split("/", 1)[0] for relative in self.source_files(profile)}
        return sorted(skills)

    def validate(self, ctx: InstallContext) -> ValidationResult:
        result = super().validate(ctx)
        if not result.valid:
            return result

        skills_dir = self.destination(ctx.install_dir)
        errors: list[str] = []
        for skill_name in self.expected_items(ctx.profile):
            skill_md = skills_dir / skill_name / "SKILL.md"
            if not skill_md.is_file():
                continue
            text = skill_md.read_bytes().decode("utf-8", errors="replace")
            frontmatter = parse_frontmatter(text)
            if not frontmatter or not frontmatter.get("name") or not frontmatter.get("description"):
                errors.append(
                    f"{skill_name}/SKILL.md is missing 'name' or 'description' frontmatter"
                )

        if errors:
            return ValidationResult(valid=False, message="Invalid skill frontmatter", errors=errors)

        settings_file = get_settings_file(ctx.install_dir)
        try:
            configured = has_additional_directory(settings_file, skills_dir)
        except SettingsFileError as e:
            return ValidationResult(valid=False, message="Settings file error", errors=[str(e)])

        if not configured:
            return ValidationResult(
                valid=False,
                message="Skills permissions not configured",
                errors=[
                    "Skills directory not configured in permissions.additionalDirectories",
                    REINSTALL_HINT,
                ],
            )

        return result


class SubagentsInstaller(FeatureInstaller):
    """Install subagent definitions to .claude/agents."""

    name: str = "subagents"
    description: str = "Install subagent definitions"
    source_subdir: str = SUBAGENTS_SUBDIR

    def destination(self, install_dir: Path) -> Path:
        return get_agents_dir(install_dir)


class SlashCommandsInstaller(FeatureInstaller):
    """Install slash commands to .claude/commands.

    Nested directories become namespaced commands (nojo/init-docs.md is
    /nojo/init-docs). docs.md files document a directory and are skipped.
    """

    name: str = "slashcommands"
    description: str = "Register slash commands with Claude Code"
    source_subdir: str = SLASHCOMMANDS_SUBDIR

    def destination(self, install_dir: Path) -> Path:
        return get_commands_dir(install_dir)

    def include(self, relative_path: str) -> bool:
        return relative_path.endswith(".md") and relative_path.rsplit("/", 1)[-1] != "docs.md"

    def validate(self, ctx: InstallContext) -> ValidationResult:
        result = super().validate(ctx)
        if not result.valid and result.errors:
            # Report command names (nojo/init-docs) rather than file names
            result.errors = [
                error.removesuffix(".md") if error != REINSTALL_HINT else error
                for error in result.errors
            ]
        return result


class InstructionsInstaller(FeatureInstaller):
    """Install the profile's CLAUDE.md as .claude/CLAUDE.md."""

    name: str = "claudemd"
    description: str = "Install behavioral instructions (CLAUDE.md)"
    source_subdir: str = ""

    def destination(self, install_dir: Path) -> Path:
        return get_claude_md_file(install_dir)

    def source_files(self, profile: ComposedProfile) -> dict[str, Path]:
        source = profile.get(INSTRUCTIONS_FILENAME)
        return {INSTRUCTIONS_FILENAME: source} if source is not None else {}

    def install(self, ctx: InstallContext) -> SyncResult:
        result = SyncResult()
        source = ctx.profile.get(INSTRUCTIONS_FILENAME)
        if source is None:
            return result

        destination = self.destination(ctx.install_dir)
        status = ctx.synchronizer.sync_file(source, destination, ctx.profile_name)
        result.record(ctx.synchronizer.relative_path(destination), status)
        return result

    def validate(self, ctx: InstallContext) -> ValidationResult:
        destination = self.destination(ctx.install_dir)
        if not self.source_files(ctx.profile):
            return ValidationResult(valid=True, message="No CLAUDE.md configured for this profile")
        if not destination.is_file():
            return ValidationResult(
                valid=False,
                message="CLAUDE.md not found",
                errors=[f"{destination} does not exist", REINSTALL_HINT],
            )
        return ValidationResult(valid=True, message="CLAUDE.md is installed")


def default_installers() -> list[FeatureInstaller]:
    """Return the feature installers for Claude Code, in install order."""
    return [
        InstructionsInstaller(),
        SkillsInstaller(),
        SubagentsInstaller(),
        SlashCommandsInstaller(),
    ]
