"""nojo data models."""

from nojo.models.config import (
    AgentConfig,
    AutoUpdate,
    Config,
    ProfileRef,
    delete_config,
    load_config,
    load_legacy_config,
    remove_legacy_config,
    save_config,
)
from nojo.models.manifest import (
    FileSource,
    Manifest,
    ManifestEntry,
    PreInstallSnapshot,
    create_manifest,
    delete_manifest,
    load_manifest,
    save_manifest,
    snapshot_existing_tree,
)
from nojo.models.profile import (
    Profile,
    ProfileMetadata,
    list_profiles,
    load_profile,
    load_profile_metadata,
    validate_profile_name,
)

__all__ = [
    "AgentConfig",
    "AutoUpdate",
    "Config",
    "FileSource",
    "Manifest",
    "ManifestEntry",
    "PreInstallSnapshot",
    "Profile",
    "ProfileMetadata",
    "ProfileRef",
    "create_manifest",
    "delete_config",
    "delete_manifest",
    "list_profiles",
    "load_config",
    "load_legacy_config",
    "load_manifest",
    "load_profile",
    "load_profile_metadata",
    "remove_legacy_config",
    "save_config",
    "save_manifest",
    "snapshot_existing_tree",
    "validate_profile_name",
]
