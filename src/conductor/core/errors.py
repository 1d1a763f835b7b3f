"""Error taxonomy for crew construction and execution."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class CrewError(Exception):
    """Base error for all crew operations."""
    pass


class ConfigurationError(CrewError):
    """Raised when a crew definition cannot be run as declared."""
    pass


class GraphErrorKind(str, Enum):
    UNKNOWN_DEPENDENCY = "UnknownDependency"
    CYCLE_DETECTED = "CycleDetected"
    DUPLICATE_TASK = "DuplicateTask"


class GraphError(CrewError):
    """Raised when the task list does not form a valid dependency graph.

    ``tasks`` holds the names involved. For ``CYCLE_DETECTED`` it is the
    cycle in traversal order, closed on its first element.
    """

    def __init__(self, kind: GraphErrorKind, tasks: list[str], message: str):
        self.kind = kind
        self.tasks = list(tasks)
        super().__init__(f"{kind.value}: {message}")


class DelegationErrorKind(str, Enum):
    NO_ELIGIBLE_AGENT = "NoEligibleAgent"


class DelegationError(CrewError):
    """Raised when an unassigned task has nobody to be delegated to."""

    def __init__(self, kind: DelegationErrorKind, message: str):
        self.kind = kind
        super().__init__(f"{kind.value}: {message}")


class TaskExecutionError(CrewError):
    """A single failed attempt at running a task."""

    def __init__(self, task: str, attempt: int, message: str, timed_out: bool = False):
        self.task = task
        self.attempt = attempt
        self.timed_out = timed_out
        super().__init__(f"Task '{task}' failed on attempt {attempt}: {message}")


class RuntimeCallError(CrewError):
    """Raised by an agent runtime when its backend call fails."""

    def __init__(self, runtime: str, message: str, status_code: Optional[int] = None):
        self.runtime = runtime
        self.status_code = status_code
        super().__init__(f"{runtime} error: {message}")
