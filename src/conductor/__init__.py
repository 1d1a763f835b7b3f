"""Crew Conductor - dependency-aware execution engine for agent crews."""

__version__ = "0.4.0"

from .core.crew import Crew
from .core.errors import (
    ConfigurationError,
    CrewError,
    DelegationError,
    GraphError,
    TaskExecutionError,
)
from .models.agent import Agent, ManagerAgent, SpecialistAgent
from .models.run import ProcessMode, RunResult, TaskResult
from .models.task import Task, TaskStatus

__all__ = [
    "Agent",
    "ConfigurationError",
    "Crew",
    "CrewError",
    "DelegationError",
    "GraphError",
    "ManagerAgent",
    "ProcessMode",
    "RunResult",
    "SpecialistAgent",
    "Task",
    "TaskExecutionError",
    "TaskResult",
    "TaskStatus",
]
