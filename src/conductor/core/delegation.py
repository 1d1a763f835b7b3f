"""Delegation router for hierarchical crews.

Assigns each unassigned task to the best-matching specialist at the moment
the task becomes eligible. Matching is keyword overlap between the task and
the agent's role/goal, plus a bonus for declared tool capabilities that
cover the task's tool requirements.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

from ..models.agent import Agent
from ..models.run import DelegationDecision
from ..models.task import Task
from .errors import DelegationError, DelegationErrorKind
from .registry import AgentRegistry

STOPWORDS = frozenset(
    "the a an and or but in on at to for of with by is are was were be been being "
    "have has had do does did will would could should from into this that these those "
    "all any its our your their".split()
)

TOOL_MATCH_WEIGHT = 1.0


def extract_keywords(text: str) -> set[str]:
    """Lower-cased words of three or more characters, minus stop words."""
    words = re.split(r"[\W_]+", text.lower())
    return {w for w in words if len(w) >= 3 and w not in STOPWORDS}


def score_agent(task: Task, agent: Agent) -> float:
    task_keywords = extract_keywords(f"{task.name} {task.description}")
    agent_keywords = extract_keywords(f"{agent.role} {agent.goal}")
    score = float(len(task_keywords & agent_keywords))

    capabilities = {c.lower() for c in agent.capabilities}
    for tool in task.required_tools:
        if tool.lower() in capabilities:
            score += TOOL_MATCH_WEIGHT
    return score


class DelegationRouter:
    def __init__(
        self,
        registry: AgentRegistry,
        manager: Optional[Agent] = None,
        relevance_floor: float = 0.0,
    ):
        self.registry = registry
        self.manager = manager
        self.relevance_floor = relevance_floor

    def candidates(self) -> list[Agent]:
        """Delegation targets in registry order, never the coordinator."""
        manager_name = self.manager.name if self.manager else None
        return [a for a in self.registry.delegation_candidates() if a.name != manager_name]

    def ensure_candidates(self) -> None:
        if not self.candidates():
            raise DelegationError(
                DelegationErrorKind.NO_ELIGIBLE_AGENT,
                "hierarchical crew has unassigned tasks but no agent that can receive them",
            )

    def delegate(self, task: Task, load: Mapping[str, int]) -> DelegationDecision:
        """Select exactly one agent for ``task``.

        ``load`` maps agent names to the number of tasks already assigned to
        them in this run; it is only consulted when nobody clears the
        relevance floor.
        """
        candidates = self.candidates()
        if not candidates:
            raise DelegationError(
                DelegationErrorKind.NO_ELIGIBLE_AGENT,
                f"no agent can receive task '{task.name}'",
            )
        manager_name = self.manager.name if self.manager else None

        best: Optional[Agent] = None
        best_score = 0.0
        for agent in candidates:
            score = score_agent(task, agent)
            # strict comparison keeps the first-registered agent on ties
            if best is None or score > best_score:
                best, best_score = agent, score

        if best is not None and best_score > self.relevance_floor:
            return DelegationDecision(
                agent=best.name,
                score=best_score,
                reason=f"keyword match with role '{best.role}'",
                manager=manager_name,
            )

        least_loaded = min(candidates, key=lambda a: load.get(a.name, 0))
        return DelegationDecision(
            agent=least_loaded.name,
            score=score_agent(task, least_loaded),
            reason="least-loaded fallback",
            manager=manager_name,
        )
