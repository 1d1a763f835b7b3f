"""Per-run mutable state.

A fresh RunState is created for every Crew.execute() call so repeated or
overlapping runs never observe each other's records.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Optional, Sequence

from ..models.run import ContextEntry, DelegationDecision, TaskContext, TaskRecord
from ..models.task import FailureKind, Task, TaskStatus
from .graph import TaskGraph


class RunState:
    def __init__(self, tasks: Sequence[Task]):
        self.tasks: dict[str, Task] = {t.name: t for t in tasks}
        self.records: dict[str, TaskRecord] = {
            t.name: TaskRecord(name=t.name, index=i, agent=t.agent) for i, t in enumerate(tasks)
        }
        self.agent_load: Counter[str] = Counter()
        self.wave = 0
        self.manager: Optional[str] = None
        self.started_at = datetime.now()

    def record(self, name: str) -> TaskRecord:
        return self.records[name]

    def assign(self, name: str, agent: str, delegation: Optional[DelegationDecision] = None) -> None:
        rec = self.records[name]
        rec.agent = agent
        rec.delegation = delegation
        self.agent_load[agent] += 1

    def context_for(self, task: Task) -> TaskContext:
        """Dependency results in the order the task declared them."""
        entries = [
            ContextEntry(task=dep, result=self.records[dep].result or "")
            for dep in task.dependencies
        ]
        return TaskContext(entries=entries)

    def pending(self) -> list[str]:
        return [n for n, r in self.records.items() if r.status is TaskStatus.PENDING]

    def block_pending(self, graph: TaskGraph) -> list[str]:
        """Fail every task left pending because an upstream task failed.

        Walks in topological order so each blocked task can name the failed
        dependencies it was waiting on.
        """
        blocked: list[str] = []
        now = datetime.now()
        for name in graph.topological_order():
            rec = self.records[name]
            if rec.status is not TaskStatus.PENDING:
                continue
            failed = [
                d for d in graph.dependencies_of(name)
                if self.records[d].status is TaskStatus.FAILED
            ]
            rec.status = TaskStatus.FAILED
            rec.failure_kind = FailureKind.DEPENDENCY_FAILED
            rec.error = "Dependency failed: " + ", ".join(failed or graph.dependencies_of(name))
            rec.finished_at = now
            blocked.append(name)
        return blocked

    def is_finished(self) -> bool:
        return all(r.status.is_terminal for r in self.records.values())
