"""Shared fixtures for Crew Conductor tests."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conductor.models.agent import ManagerAgent, SpecialistAgent


class ScriptedBackend:
    """Records every runtime call made during a run.

    Behaviour is scripted per task description: ``delays`` sleeps before
    answering, ``failures`` raises for the first N calls (-1 for always).
    Tracks how many calls are in flight at once.
    """

    def __init__(self):
        self.calls: list[tuple[str, str]] = []
        self.contexts: dict[str, str] = {}
        self.delays: dict[str, float] = {}
        self.failures: dict[str, int] = {}
        self.running = 0
        self.max_running = 0

    def runtime_for(self, agent) -> "ScriptedRuntime":
        return ScriptedRuntime(self, agent.name)

    def descriptions(self) -> list[str]:
        return [description for _, description in self.calls]

    def agent_for(self, description: str) -> str | None:
        for agent, called in self.calls:
            if called == description:
                return agent
        return None


class ScriptedRuntime:
    def __init__(self, backend: ScriptedBackend, agent_name: str):
        self.backend = backend
        self.agent_name = agent_name

    async def run(self, task_description, expected_output, context, tool_overrides, timeout):
        backend = self.backend
        backend.calls.append((self.agent_name, task_description))
        backend.contexts[task_description] = context
        backend.running += 1
        backend.max_running = max(backend.max_running, backend.running)
        try:
            await asyncio.sleep(backend.delays.get(task_description, 0))
            remaining = backend.failures.get(task_description, 0)
            if remaining:
                if remaining > 0:
                    backend.failures[task_description] = remaining - 1
                raise RuntimeError(f"{task_description} exploded")
            return f"{task_description} done"
        finally:
            backend.running -= 1


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def researcher() -> SpecialistAgent:
    return SpecialistAgent(
        name="researcher",
        role="Market Research Specialist",
        goal="Conduct thorough market analysis and competitive research",
        capabilities=["web_search"],
    )


@pytest.fixture
def writer() -> SpecialistAgent:
    return SpecialistAgent(
        name="writer",
        role="Content Writer",
        goal="Write clear reports and articles",
    )


@pytest.fixture
def manager() -> ManagerAgent:
    return ManagerAgent(name="lead", role="Project Manager", goal="Coordinate the crew")


@pytest.fixture
def crew_file(tmp_path: Path) -> Path:
    """A valid three-task crew using the mock runtime."""
    path = tmp_path / "crew.yaml"
    path.write_text(
        """\
name: test_crew
process: concurrent
max_concurrency: 2

runtime:
  provider: mock

task_defaults:
  max_retries: 1

agents:
  - name: researcher
    role: Market Research Specialist
    goal: Conduct market analysis
    tools: [web_search]
  - name: writer
    role: Content Writer

tasks:
  - name: research
    description: Research the market
    agent: researcher
    async: true
  - name: trends
    description: Scan trends
    agent: researcher
  - name: report
    description: Write the report
    agent: writer
    context: [research, trends]
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def cyclic_crew_file(tmp_path: Path) -> Path:
    path = tmp_path / "cyclic.yaml"
    path.write_text(
        """\
name: loop
runtime:
  provider: mock
agents:
  - name: solo
    role: Generalist
tasks:
  - name: a
    description: First
    agent: solo
    context: [b]
  - name: b
    description: Second
    agent: solo
    context: [a]
""",
        encoding="utf-8",
    )
    return path
