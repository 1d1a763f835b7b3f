"""Task data models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class FailureKind(str, Enum):
    EXECUTION_ERROR = "execution_error"
    TIMEOUT = "timeout"
    DEPENDENCY_FAILED = "dependency_failed"


class Task(BaseModel):
    """A unit of work declared on a crew.

    ``dependencies`` are task names whose results become this task's
    context, in the order given. ``max_retries`` is the total number of
    runtime invocations the task may use.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, populate_by_name=True)

    name: str = Field(min_length=1)
    description: str
    expected_output: str = ""
    agent: Optional[str] = None
    dependencies: list[str] = Field(default=[], alias="context")
    is_async: bool = Field(default=False, alias="async")
    max_retries: int = Field(default=3, ge=0)
    timeout: Optional[float] = Field(default=None, gt=0)
    required_tools: list[str] = []
    tools: list[Any] = Field(default=[], exclude=True, repr=False)
    callback: Optional[Callable[..., Any]] = Field(default=None, exclude=True, repr=False)

    @field_validator("dependencies")
    @classmethod
    def _dedupe_dependencies(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        result: list[str] = []
        for name in value:
            if name not in seen:
                seen.add(name)
                result.append(name)
        return result

    @property
    def max_attempts(self) -> int:
        return max(1, self.max_retries)
