"""Agent integrations and the registry that resolves them by name."""

from pydantic import BaseModel, Field

from nojo.exceptions import ConfigurationError
from nojo.models.config import DEFAULT_AGENT
from nojo.services.features import FeatureInstaller, default_installers


class Agent(BaseModel):
    """An AI coding tool nojo can install profiles for.

    Attributes:
        name: Identifier used on the command line and in the config.
        display_name: Human-readable name.
        installers: Feature installers, run in order on install.
    """

    name: str
    display_name: str
    installers: list[FeatureInstaller] = Field(default_factory=list)


def claude_code_agent() -> Agent:
    return Agent(
        name=DEFAULT_AGENT,
        display_name="Claude Code",
        installers=default_installers(),
    )


class AgentRegistry:
    """Lookup table of available agents.

    Build one per process (or per test) and pass it to the lifecycle
    controller; there is no shared global instance.
    """

    def __init__(self, agents: list[Agent] | None = None) -> None:
        """Initialize the registry.

        Args:
            agents: Agents to register. Later agents replace earlier ones
                with the same name.
        """
        self._agents: dict[str, Agent] = {}
        for agent in agents or []:
            self.register(agent)

    def register(self, agent: Agent) -> None:
        self._agents[agent.name] = agent

    def names(self) -> list[str]:
        return sorted(self._agents)

    def get(self, name: str) -> Agent:
        """Return the agent registered under a name.

        Args:
            name: Agent name (e.g. "claude-code").

        Returns:
            The registered agent.

        Raises:
            ConfigurationError: If no agent has that name.
        """
        agent = self._agents.get(name)
        if agent is None:
            known = ", ".join(self.names()) or "none"
            raise ConfigurationError(
                f"Unknown agent '{name}'.", hint=f"Available agents: {known}"
            )
        return agent


def default_registry() -> AgentRegistry:
    """Return a registry with every agent nojo supports."""
    return AgentRegistry([claude_code_agent()])
