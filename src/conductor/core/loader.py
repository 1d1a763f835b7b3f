"""Build a Crew from an effective configuration dict."""

from __future__ import annotations

from typing import Callable, Optional

from pydantic import ValidationError

from ..models.agent import Agent, make_agent
from ..models.task import Task
from .crew import Crew
from .errors import ConfigurationError

_AGENT_DEFAULT_KEYS = ("max_iterations", "max_execution_time")
_TASK_DEFAULT_KEYS = ("max_retries", "timeout")


def _format_validation_error(kind: str, index: int, definition: dict, error: ValidationError) -> str:
    label = definition.get("name") or f"#{index + 1}"
    problems = "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or kind}: {e['msg']}" for e in error.errors()
    )
    return f"Invalid {kind} {label}: {problems}"


def build_agents(config: dict) -> list[Agent]:
    defaults = config.get("agents", {})
    agents: list[Agent] = []
    for i, definition in enumerate(config.get("agent_defs") or []):
        if not isinstance(definition, dict):
            raise ConfigurationError(f"Agent #{i + 1} must be a mapping")
        fields = {k: defaults[k] for k in _AGENT_DEFAULT_KEYS if defaults.get(k) is not None}
        fields.update(definition)
        is_manager = fields.pop("is_manager", False)
        manager = bool(fields.pop("manager", False) or is_manager)
        # "tools" in a crew file names tool affinities
        if "tools" in fields and "capabilities" not in fields:
            fields["capabilities"] = fields.pop("tools")
        try:
            agents.append(make_agent(manager=manager, **fields))
        except ValidationError as e:
            raise ConfigurationError(_format_validation_error("agent", i, definition, e)) from e
    return agents


def build_tasks(config: dict) -> list[Task]:
    defaults = config.get("tasks", {})
    tasks: list[Task] = []
    for i, definition in enumerate(config.get("task_defs") or []):
        if not isinstance(definition, dict):
            raise ConfigurationError(f"Task #{i + 1} must be a mapping")
        fields = {k: defaults[k] for k in _TASK_DEFAULT_KEYS if defaults.get(k) is not None}
        fields.update(definition)
        # tool names in a crew file are requirements; Tool objects only come from code
        if "tools" in fields:
            names = fields.pop("tools") or []
            if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
                label = definition.get("name") or f"#{i + 1}"
                raise ConfigurationError(f"Invalid task {label}: tools must be a list of tool names")
            required = list(fields.get("required_tools") or [])
            fields["required_tools"] = required + [n for n in names if n not in required]
        try:
            tasks.append(Task(**fields))
        except ValidationError as e:
            raise ConfigurationError(_format_validation_error("task", i, definition, e)) from e
    return tasks


def build_crew(
    config: dict,
    runtime_factory: Optional[Callable[[Agent], object]] = None,
) -> Crew:
    """Create a Crew from merged configuration (see core.config)."""
    crew_cfg = config.get("crew", {})
    task_cfg = config.get("tasks", {})
    try:
        max_concurrency = int(crew_cfg.get("max_concurrency", 4))
        relevance_floor = float(crew_cfg.get("relevance_floor", 0.0))
        backoff_base = float(task_cfg.get("backoff_base", 1.0))
        backoff_max = float(task_cfg.get("backoff_max", 30.0))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid numeric setting: {e}") from e

    return Crew(
        name=str(crew_cfg.get("name") or "crew"),
        agents=build_agents(config),
        tasks=build_tasks(config),
        process=crew_cfg.get("process", "sequential"),
        max_concurrency=max_concurrency,
        runtime_factory=runtime_factory,
        verbose=bool(crew_cfg.get("verbose", False)),
        backoff_base=backoff_base,
        backoff_max=backoff_max,
        relevance_floor=relevance_floor,
    )
