"""Agent registry: the crew roster plus runtime resolution."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from ..models.agent import Agent, ManagerAgent
from .errors import ConfigurationError

RuntimeFactory = Callable[[Agent], object]

DEFAULT_MANAGER = {
    "name": "crew_manager",
    "role": "Crew Manager",
    "goal": "Coordinate team efforts and delegate tasks effectively",
    "backstory": (
        "You are an experienced project manager who coordinates team efforts, "
        "delegates tasks appropriately, and ensures deliverables meet requirements."
    ),
}


class AgentRegistry:
    """Ordered, read-only view over a crew's agents."""

    def __init__(self, agents: Sequence[Agent], runtime_factory: Optional[RuntimeFactory] = None):
        self._agents: list[Agent] = []
        self._by_name: dict[str, Agent] = {}
        for agent in agents:
            if agent.name in self._by_name:
                raise ConfigurationError(f"Agent name '{agent.name}' is declared more than once")
            self._agents.append(agent)
            self._by_name[agent.name] = agent
        self._runtime_factory = runtime_factory
        self._runtimes: dict[str, object] = {}

    def __iter__(self):
        return iter(self._agents)

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Agent:
        try:
            return self._by_name[name]
        except KeyError:
            raise ConfigurationError(f"Unknown agent: {name}") from None

    def managers(self) -> list[Agent]:
        return [a for a in self._agents if a.is_manager]

    def delegation_candidates(self) -> list[Agent]:
        """Agents that may receive delegated work, in registry order."""
        return [a for a in self._agents if a.can_be_delegated_to()]

    def resolve_manager(self) -> Agent:
        """Pick the coordinator for a hierarchical run.

        The declared manager wins, then the first agent allowed to delegate.
        With neither, a default manager is created for the run only.
        """
        managers = self.managers()
        if len(managers) > 1:
            names = ", ".join(m.name for m in managers)
            raise ConfigurationError(f"Hierarchical crews support exactly one manager, found: {names}")
        if managers:
            return managers[0]
        for agent in self._agents:
            if agent.allow_delegation:
                return agent
        return ManagerAgent(**DEFAULT_MANAGER)

    def runtime_for(self, agent: Agent):
        """Return the runtime an agent executes with, creating it once."""
        if agent.runtime is not None:
            return agent.runtime
        if agent.name not in self._runtimes:
            if self._runtime_factory is None:
                raise ConfigurationError(
                    f"Agent '{agent.name}' has no runtime and the crew has no runtime factory"
                )
            self._runtimes[agent.name] = self._runtime_factory(agent)
        return self._runtimes[agent.name]
