"""Pydantic models for the persisted nojo configuration.

This module defines the data model for .nojo-config.json, which records
the profile selected for each agent, the install directory, the
auto-update preference, and the installed nojo version.

Installed agents are derived from the keys of ``agents``; there is no
separate list that could drift out of sync with it.
"""

import json
import logging
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nojo.utils.paths import get_config_path, get_legacy_config_path

logger = logging.getLogger(__name__)

DEFAULT_AGENT = "claude-code"
DEFAULT_PROFILE = "senior-swe"


class AutoUpdate(str, Enum):
    """Auto-update preference."""

    enabled = "enabled"
    disabled = "disabled"


class ProfileRef(BaseModel):
    """Reference to the profile an agent is installed with."""

    model_config = ConfigDict(populate_by_name=True)

    base_profile: str = Field(..., alias="baseProfile", description="Selected profile name")


class AgentConfig(BaseModel):
    """Per-agent configuration settings."""

    profile: ProfileRef | None = Field(default=None, description="Selected profile")


class Config(BaseModel):
    """Root model for .nojo-config.json.

    Unknown top-level properties are dropped on load.

    Attributes:
        install_dir: The install root this config belongs to.
        agents: Mapping of agent name to its settings. The keys are the
            installed agents.
        autoupdate: Whether nojo should update itself automatically.
        version: nojo version that wrote the installation.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    install_dir: Path = Field(..., alias="installDir", description="Install root")
    agents: dict[str, AgentConfig] = Field(
        default_factory=dict, description="Per-agent configuration"
    )
    autoupdate: AutoUpdate | None = Field(default=None, description="Auto-update preference")
    version: str | None = Field(default=None, description="Installed nojo version")

    @property
    def installed_agents(self) -> list[str]:
        """Return installed agent names, derived from the agents mapping."""
        return list(self.agents)

    def get_agent_profile(self, agent_name: str) -> str | None:
        """Return the base profile selected for an agent, if any.

        Args:
            agent_name: Agent to look up (e.g. "claude-code").

        Returns:
            The profile name, or None when the agent has no profile.
        """
        agent = self.agents.get(agent_name)
        if agent is None or agent.profile is None:
            return None
        return agent.profile.base_profile

    def set_agent_profile(self, agent_name: str, profile_name: str) -> None:
        """Select a profile for an agent, adding the agent if needed."""
        self.agents[agent_name] = AgentConfig(profile=ProfileRef(base_profile=profile_name))


def _parse_raw_config(data: object, install_dir: Path) -> Config | None:
    """Validate raw JSON data into a Config.

    Args:
        data: Parsed JSON content.
        install_dir: Fallback install root when the file does not record one.

    Returns:
        Config if the data is valid and meaningful, None otherwise.
    """
    if not isinstance(data, dict):
        return None

    data = dict(data)
    data.setdefault("installDir", str(install_dir))
    if data.get("installDir") is None:
        data["installDir"] = str(install_dir)

    # Configs written before multi-agent support stored a top-level profile
    legacy_profile = data.pop("profile", None)
    if not data.get("agents") and isinstance(legacy_profile, dict):
        base_profile = legacy_profile.get("baseProfile")
        if base_profile:
            data["agents"] = {DEFAULT_AGENT: {"profile": {"baseProfile": base_profile}}}

    if data.get("agents") is None:
        data.pop("agents", None)

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Ignoring invalid config: {e}")
        return None

    if not config.agents and config.autoupdate is None:
        return None

    return config


def load_config(install_dir: Path) -> Config | None:
    """Load the configuration for an install root.

    Args:
        install_dir: The install root.

    Returns:
        Config if the file exists and is valid, None otherwise.
    """
    path = get_config_path(install_dir)
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug(f"Could not read config at {path}: {e}")
        return None

    return _parse_raw_config(data, install_dir)


def load_legacy_config(install_dir: Path) -> Config | None:
    """Read a config left at the pre-.claude location without touching it.

    Args:
        install_dir: The install root.

    Returns:
        The legacy Config, or None if there is no usable legacy file.
    """
    legacy_path = get_legacy_config_path(install_dir)
    if not legacy_path.exists():
        return None

    try:
        data = json.loads(legacy_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable legacy config {legacy_path}: {e}")
        return None

    return _parse_raw_config(data, install_dir)


def remove_legacy_config(install_dir: Path) -> bool:
    """Delete the legacy config once its contents have been saved elsewhere.

    Returns:
        True if a legacy file was removed.
    """
    legacy_path = get_legacy_config_path(install_dir)
    if not legacy_path.exists():
        return False

    legacy_path.unlink()
    logger.info(f"Migrated config from legacy location {legacy_path}")
    return True


def save_config(config: Config) -> Path:
    """Write the configuration to disk.

    Args:
        config: Config to save. Its install_dir decides the location.

    Returns:
        Path of the written config file.
    """
    path = get_config_path(config.install_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    content = config.model_dump_json(indent=2, by_alias=True, exclude_none=True)
    path.write_text(content + "\n", encoding="utf-8")
    return path


def delete_config(install_dir: Path) -> bool:
    """Delete the config file and any legacy copy.

    Returns:
        True if anything was removed.
    """
    path = get_config_path(install_dir)
    removed = False
    if path.exists():
        path.unlink()
        removed = True
    return remove_legacy_config(install_dir) or removed
