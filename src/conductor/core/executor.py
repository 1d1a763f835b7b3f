"""Task executor: runs one task to a terminal state.

Gathers the dependency context, calls the agent runtime under a hard
timeout, and retries failed attempts with exponential backoff.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Optional

from rich.console import Console

from ..models.agent import Agent
from ..models.run import TaskContext, TaskRecord
from ..models.task import FailureKind, Task, TaskStatus
from ..utils.sanitize import sanitize_error
from .errors import TaskExecutionError
from .registry import AgentRegistry

console = Console()


class TaskExecutor:
    def __init__(
        self,
        registry: AgentRegistry,
        backoff_base: float = 1.0,
        backoff_max: float = 30.0,
        verbose: bool = False,
    ):
        self.registry = registry
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.verbose = verbose

    def backoff(self, attempt: int) -> float:
        """Delay before a retry, given the number of earlier retries (0 for the first)."""
        return min(self.backoff_base * 2 ** attempt, self.backoff_max)

    @staticmethod
    def resolve_timeout(task: Task, agent: Agent) -> Optional[float]:
        if task.timeout is not None:
            return task.timeout
        return agent.max_execution_time

    async def execute(self, task: Task, record: TaskRecord, context: TaskContext) -> TaskRecord:
        agent = self.registry.get(record.agent)
        runtime = self.registry.runtime_for(agent)
        timeout = self.resolve_timeout(task, agent)
        rendered_context = context.render()

        record.status = TaskStatus.RUNNING
        record.started_at = datetime.now()
        start = time.perf_counter()

        last_error: Optional[TaskExecutionError] = None
        for attempt in range(1, task.max_attempts + 1):
            record.attempts = attempt
            try:
                result = await asyncio.wait_for(
                    runtime.run(
                        task_description=task.description,
                        expected_output=task.expected_output,
                        context=rendered_context,
                        tool_overrides=list(task.tools),
                        timeout=timeout,
                    ),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                last_error = TaskExecutionError(
                    task.name, attempt, f"timed out after {timeout}s", timed_out=True
                )
            except Exception as e:
                last_error = TaskExecutionError(task.name, attempt, str(e) or type(e).__name__)
            else:
                record.result = "" if result is None else str(result)
                record.status = TaskStatus.COMPLETED
                record.finished_at = datetime.now()
                record.duration_seconds = time.perf_counter() - start
                if self.verbose:
                    console.print(
                        f"  [green]OK[/green] {task.name} ({agent.name}) "
                        f"in {round(record.duration_seconds, 2)}s"
                    )
                self._run_callback(task, record)
                return record

            if attempt < task.max_attempts:
                delay = self.backoff(attempt - 1)
                if self.verbose:
                    console.print(
                        f"  [yellow]RETRY[/yellow] {task.name} "
                        f"({attempt}/{task.max_attempts}) in {delay}s: {last_error}"
                    )
                await asyncio.sleep(delay)

        record.status = TaskStatus.FAILED
        record.failure_kind = (
            FailureKind.TIMEOUT if last_error and last_error.timed_out else FailureKind.EXECUTION_ERROR
        )
        record.error = sanitize_error(str(last_error))
        record.finished_at = datetime.now()
        record.duration_seconds = time.perf_counter() - start
        console.print(f"  [red]FAILED[/red] {task.name} after {record.attempts} attempt(s): {record.error}")
        return record

    def _run_callback(self, task: Task, record: TaskRecord) -> None:
        if task.callback is None:
            return
        try:
            task.callback(task, record.result)
        except Exception as e:
            record.callback_error = sanitize_error(str(e))
            console.print(f"  [yellow]WARN[/yellow] Completion callback for {task.name} raised: {record.callback_error}")
