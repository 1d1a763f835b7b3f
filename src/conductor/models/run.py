"""Run state and run result data models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .task import FailureKind, TaskStatus


class ProcessMode(str, Enum):
    SEQUENTIAL = "sequential"
    HIERARCHICAL = "hierarchical"
    CONCURRENT = "concurrent"


class ContextEntry(BaseModel):
    task: str
    result: str


class TaskContext(BaseModel):
    """Dependency results for one task, in dependency declaration order."""

    entries: list[ContextEntry] = []

    def render(self) -> str:
        if not self.entries:
            return ""
        blocks = [f"Task: {e.task}\nResult: {e.result}\n---" for e in self.entries]
        return "Context from previous tasks:\n" + "\n".join(blocks)


class DelegationDecision(BaseModel):
    agent: str
    score: float = 0.0
    reason: str = ""
    manager: Optional[str] = None


class TaskRecord(BaseModel):
    """Mutable per-run state of one task."""

    name: str
    index: int
    status: TaskStatus = TaskStatus.PENDING
    agent: Optional[str] = None
    delegation: Optional[DelegationDecision] = None
    result: Optional[str] = None
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    callback_error: Optional[str] = None
    attempts: int = 0
    phase: Optional[int] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    duration_seconds: float = 0


class TaskResult(BaseModel):
    name: str
    status: TaskStatus
    agent: Optional[str] = None
    delegated: bool = False
    delegation_reason: Optional[str] = None
    result: Optional[str] = None
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    attempts: int = 0
    phase: Optional[int] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    duration_seconds: float = 0


class RunResult(BaseModel):
    crew: str
    process: ProcessMode
    total_tasks: int = 0
    completed_tasks: int = 0
    failed_tasks: int = 0
    success_rate: float = 0.0
    max_concurrency: int = 1
    manager: Optional[str] = None
    waves: int = 0
    started_at: Optional[datetime] = None
    duration_seconds: float = 0
    results: list[TaskResult] = []

    @property
    def succeeded(self) -> bool:
        return self.failed_tasks == 0

    def get(self, name: str) -> Optional[TaskResult]:
        for r in self.results:
            if r.name == name:
                return r
        return None

    def phases(self) -> list[list[str]]:
        """Task names grouped by the wave they were admitted in."""
        grouped: dict[int, list[str]] = {}
        for r in self.results:
            if r.phase is not None:
                grouped.setdefault(r.phase, []).append(r.name)
        return [grouped[p] for p in sorted(grouped)]
