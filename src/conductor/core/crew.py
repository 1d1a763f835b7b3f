"""Crew: the unit of one execution.

Holds the declared agents and tasks plus execution settings. Each call to
execute() compiles the task graph, creates a fresh RunState, and hands both
to the scheduler; nothing from a run is stored back on the crew.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional, Sequence, Union

from rich.console import Console

from ..models.agent import Agent
from ..models.run import ProcessMode, RunResult
from ..models.task import Task
from .aggregator import aggregate_run
from .config import DEFAULT_CONFIG
from .delegation import DelegationRouter
from .errors import ConfigurationError
from .executor import TaskExecutor
from .graph import TaskGraph, build_task_graph
from .registry import AgentRegistry
from .scheduler import Scheduler
from .state import RunState

console = Console()

_CREW_DEFAULTS = DEFAULT_CONFIG["crew"]
_TASK_DEFAULTS = DEFAULT_CONFIG["tasks"]


def _parse_process(process: Union[ProcessMode, str]) -> ProcessMode:
    try:
        return ProcessMode(process)
    except ValueError:
        valid = ", ".join(m.value for m in ProcessMode)
        raise ConfigurationError(f"Invalid process type: {process}. Valid types: {valid}") from None


class Crew:
    def __init__(
        self,
        name: str,
        agents: Optional[Sequence[Agent]] = None,
        tasks: Optional[Sequence[Task]] = None,
        process: Union[ProcessMode, str] = _CREW_DEFAULTS["process"],
        max_concurrency: int = _CREW_DEFAULTS["max_concurrency"],
        runtime_factory: Optional[Callable[[Agent], object]] = None,
        verbose: bool = False,
        backoff_base: float = _TASK_DEFAULTS["backoff_base"],
        backoff_max: float = _TASK_DEFAULTS["backoff_max"],
        relevance_floor: float = _CREW_DEFAULTS["relevance_floor"],
    ):
        self.name = name
        self.agents: list[Agent] = list(agents or [])
        self.tasks: list[Task] = list(tasks or [])
        self.process = _parse_process(process)
        if max_concurrency < 1:
            raise ConfigurationError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency
        self.runtime_factory = runtime_factory
        self.verbose = verbose
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.relevance_floor = relevance_floor

    def __repr__(self) -> str:
        return (
            f"Crew(name={self.name!r}, process={self.process.value!r}, "
            f"agents={len(self.agents)}, tasks={len(self.tasks)})"
        )

    def add_agent(self, agent: Agent) -> None:
        self.agents.append(agent)

    def add_task(self, task: Task) -> None:
        self.tasks.append(task)

    def _check_assignments(self, registry: AgentRegistry) -> None:
        for task in self.tasks:
            if task.agent is None:
                if self.process is not ProcessMode.HIERARCHICAL:
                    raise ConfigurationError(
                        f"Task '{task.name}' has no agent; only hierarchical crews delegate"
                    )
            elif task.agent not in registry:
                raise ConfigurationError(f"Task '{task.name}' is assigned to unknown agent '{task.agent}'")

    def validate(self) -> TaskGraph:
        """Check the crew definition without running anything.

        Raises GraphError, ConfigurationError or DelegationError.
        """
        graph = build_task_graph(self.tasks)
        registry = AgentRegistry(self.agents)
        self._check_assignments(registry)
        if self.process is ProcessMode.HIERARCHICAL:
            manager = registry.resolve_manager()
            if any(t.agent is None for t in self.tasks):
                DelegationRouter(registry, manager=manager).ensure_candidates()
        return graph

    def plan(self) -> list[list[str]]:
        """Static dependency levels of the task graph."""
        return self.validate().phases()

    def _prepare_runtimes(self, registry: AgentRegistry, router: Optional[DelegationRouter]) -> None:
        # Resolve every runtime that could be needed before anything is dispatched.
        needed = {t.agent for t in self.tasks if t.agent is not None}
        if router is not None and any(t.agent is None for t in self.tasks):
            needed.update(a.name for a in router.candidates())
        for agent in registry:
            if agent.name in needed:
                registry.runtime_for(agent)

    async def execute(
        self,
        concurrent: Optional[bool] = None,
        max_concurrency: Optional[int] = None,
    ) -> RunResult:
        """Run every task to a terminal state and return the RunResult.

        ``concurrent=True`` schedules a sequential crew with the concurrent
        rules for this call; ``max_concurrency`` overrides the pool size for
        this call only. Task failures never raise; they are reported in the
        result. Graph and configuration errors raise before any task runs.
        """
        start = time.perf_counter()

        process = self.process
        if concurrent and process is ProcessMode.SEQUENTIAL:
            process = ProcessMode.CONCURRENT
        pool_size = max_concurrency if max_concurrency is not None else self.max_concurrency
        if pool_size < 1:
            raise ConfigurationError(f"max_concurrency must be at least 1, got {pool_size}")

        graph = build_task_graph(self.tasks)
        registry = AgentRegistry(self.agents, runtime_factory=self.runtime_factory)
        self._check_assignments(registry)

        router = None
        manager_name = None
        if process is ProcessMode.HIERARCHICAL:
            manager = registry.resolve_manager()
            manager_name = manager.name
            if manager.name not in registry:
                console.print(
                    f"  [yellow]WARN[/yellow] No manager agent declared, "
                    f"using default manager '{manager.name}'"
                )
            router = DelegationRouter(registry, manager=manager, relevance_floor=self.relevance_floor)
            if any(t.agent is None for t in self.tasks):
                router.ensure_candidates()

        self._prepare_runtimes(registry, router)

        state = RunState(self.tasks)
        state.manager = manager_name
        executor = TaskExecutor(
            registry,
            backoff_base=self.backoff_base,
            backoff_max=self.backoff_max,
            verbose=self.verbose,
        )
        scheduler = Scheduler(
            graph,
            state,
            executor,
            process,
            max_concurrency=pool_size,
            router=router,
            verbose=self.verbose,
        )

        if self.verbose:
            console.print(
                f"  [bold cyan]{self.name}[/bold cyan]: {len(self.tasks)} tasks, "
                f"{len(self.agents)} agents, {process.value} process, "
                f"max concurrency {scheduler.max_concurrency}"
            )

        await scheduler.run()

        result = aggregate_run(
            self.name,
            process,
            state,
            max_concurrency=scheduler.max_concurrency,
            duration_seconds=time.perf_counter() - start,
            manager=manager_name,
        )
        if self.verbose:
            console.print(
                f"  Completed {result.completed_tasks}/{result.total_tasks} tasks "
                f"({round(result.success_rate, 1)}%) in {result.duration_seconds}s"
            )
        return result

    def execute_sync(
        self,
        concurrent: Optional[bool] = None,
        max_concurrency: Optional[int] = None,
    ) -> RunResult:
        return asyncio.run(self.execute(concurrent=concurrent, max_concurrency=max_concurrency))
