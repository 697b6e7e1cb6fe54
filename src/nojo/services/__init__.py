"""nojo services."""

from nojo.services.agents import Agent, AgentRegistry, default_registry
from nojo.services.composer import ComposedProfile, ProfileComposer, bundled_config_dir
from nojo.services.features import (
    FeatureInstaller,
    InstallContext,
    InstructionsInstaller,
    SkillsInstaller,
    SlashCommandsInstaller,
    SubagentsInstaller,
    ValidationResult,
)
from nojo.services.lifecycle import (
    FirstInstallStrategy,
    InstallationState,
    InstallResult,
    InstallState,
    ProfileLifecycleController,
    ProfileModification,
    UninstallResult,
    detect_installation_state,
)
from nojo.services.settings import SettingsFileError
from nojo.services.sync import (
    DirectorySynchronizer,
    FileSyncStatus,
    RemovalResult,
    SyncResult,
)

__all__ = [
    "Agent",
    "AgentRegistry",
    "ComposedProfile",
    "DirectorySynchronizer",
    "FeatureInstaller",
    "FileSyncStatus",
    "FirstInstallStrategy",
    "InstallContext",
    "InstallResult",
    "InstallState",
    "InstallationState",
    "InstructionsInstaller",
    "ProfileComposer",
    "ProfileLifecycleController",
    "ProfileModification",
    "RemovalResult",
    "SettingsFileError",
    "SkillsInstaller",
    "SlashCommandsInstaller",
    "SubagentsInstaller",
    "SyncResult",
    "UninstallResult",
    "ValidationResult",
    "bundled_config_dir",
    "default_registry",
    "detect_installation_state",
]
