"""Agent data models."""

from __future__ import annotations

from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field


class Agent(BaseModel):
    """A crew member. Immutable for the duration of a run.

    ``runtime`` is the agent's bound runtime, if any. When it is left unset
    the crew's runtime factory supplies one.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    is_manager: ClassVar[bool] = False

    name: str = Field(min_length=1)
    role: str
    goal: str = ""
    backstory: str = ""
    capabilities: list[str] = []
    allow_delegation: bool = False
    max_iterations: int = Field(default=10, ge=1)
    max_execution_time: Optional[float] = Field(default=300, gt=0)
    runtime: Optional[Any] = Field(default=None, exclude=True, repr=False)

    def can_be_delegated_to(self) -> bool:
        return not self.is_manager


class SpecialistAgent(Agent):
    """An agent that executes ordinary tasks and accepts delegated work."""


class ManagerAgent(Agent):
    """Coordinates a hierarchical crew. Never receives auto-delegated tasks."""

    is_manager: ClassVar[bool] = True

    allow_delegation: bool = True


def make_agent(manager: bool = False, **fields: Any) -> Agent:
    """Build the right agent variant from a flat definition."""
    cls = ManagerAgent if manager else SpecialistAgent
    return cls(**fields)
