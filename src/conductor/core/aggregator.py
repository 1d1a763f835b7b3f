"""Result aggregation: per-task records into a crew-level RunResult."""

from __future__ import annotations

from typing import Optional

from ..models.run import ProcessMode, RunResult, TaskRecord, TaskResult
from ..models.task import TaskStatus
from .state import RunState


def calculate_success_rate(completed: int, total: int) -> float:
    """Percentage of tasks that completed. Zero for an empty crew."""
    if total == 0:
        return 0.0
    return completed / total * 100


def _to_result(record: TaskRecord) -> TaskResult:
    return TaskResult(
        name=record.name,
        status=record.status,
        agent=record.agent,
        delegated=record.delegation is not None,
        delegation_reason=record.delegation.reason if record.delegation else None,
        result=record.result,
        error=record.error,
        failure_kind=record.failure_kind,
        attempts=record.attempts,
        phase=record.phase,
        started_at=record.started_at,
        finished_at=record.finished_at,
        duration_seconds=round(record.duration_seconds, 3),
    )


def aggregate_run(
    crew_name: str,
    process: ProcessMode,
    state: RunState,
    max_concurrency: int,
    duration_seconds: float,
    manager: Optional[str] = None,
) -> RunResult:
    """Build the RunResult for a finished run.

    Results keep task declaration order, not completion order.
    """
    records = sorted(state.records.values(), key=lambda r: r.index)
    unfinished = [r.name for r in records if not r.status.is_terminal]
    if unfinished:
        raise RuntimeError(f"Run ended with non-terminal tasks: {', '.join(unfinished)}")

    completed = sum(1 for r in records if r.status is TaskStatus.COMPLETED)
    failed = sum(1 for r in records if r.status is TaskStatus.FAILED)
    total = len(records)

    return RunResult(
        crew=crew_name,
        process=process,
        total_tasks=total,
        completed_tasks=completed,
        failed_tasks=failed,
        success_rate=calculate_success_rate(completed, total),
        max_concurrency=max_concurrency,
        manager=manager,
        waves=state.wave,
        started_at=state.started_at,
        duration_seconds=round(duration_seconds, 3),
        results=[_to_result(r) for r in records],
    )
