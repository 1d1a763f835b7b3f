"""Tests for models/ and the per-run state in core/state.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from conductor.core.aggregator import aggregate_run, calculate_success_rate
from conductor.core.graph import build_task_graph
from conductor.core.state import RunState
from conductor.models.agent import ManagerAgent, SpecialistAgent, make_agent
from conductor.models.run import ContextEntry, ProcessMode, TaskContext
from conductor.models.task import FailureKind, Task, TaskStatus


class TestTask:
    def test_aliases(self):
        task = Task.model_validate({"name": "t", "description": "d", "context": ["a"], "async": True})
        assert task.dependencies == ["a"]
        assert task.is_async

    def test_duplicate_dependencies_dropped(self):
        task = Task(name="t", description="d", dependencies=["b", "a", "b"])
        assert task.dependencies == ["b", "a"]

    def test_max_attempts(self):
        assert Task(name="t", description="d", max_retries=0).max_attempts == 1
        assert Task(name="t", description="d", max_retries=4).max_attempts == 4

    def test_frozen(self):
        task = Task(name="t", description="d")
        with pytest.raises(ValidationError):
            task.name = "other"

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            Task(name="t", description="d", max_retries=-1)

    def test_terminal_statuses(self):
        assert TaskStatus.COMPLETED.is_terminal
        assert TaskStatus.FAILED.is_terminal
        assert not TaskStatus.RUNNING.is_terminal


class TestAgent:
    def test_manager_variant(self):
        lead = make_agent(manager=True, name="lead", role="Lead")
        assert isinstance(lead, ManagerAgent)
        assert lead.allow_delegation
        assert not lead.can_be_delegated_to()

    def test_specialist_variant(self):
        agent = make_agent(name="w", role="Writer")
        assert isinstance(agent, SpecialistAgent)
        assert agent.can_be_delegated_to()
        assert agent.max_execution_time == 300

    def test_runtime_not_serialized(self):
        agent = SpecialistAgent(name="w", role="Writer", runtime=object())
        assert "runtime" not in agent.model_dump()


class TestTaskContext:
    def test_empty_renders_blank(self):
        assert TaskContext().render() == ""

    def test_render_order(self):
        context = TaskContext(entries=[ContextEntry(task="a", result="1"), ContextEntry(task="b", result="2")])
        assert context.render() == "Context from previous tasks:\nTask: a\nResult: 1\n---\nTask: b\nResult: 2\n---"


class TestRunState:
    def _tasks(self):
        return [
            Task(name="a", description="a", agent="w"),
            Task(name="b", description="b", agent="w", dependencies=["a"]),
            Task(name="c", description="c", agent="w", dependencies=["b"]),
        ]

    def test_context_uses_dependency_order(self):
        tasks = [
            Task(name="x", description="x", agent="w"),
            Task(name="y", description="y", agent="w"),
            Task(name="z", description="z", agent="w", dependencies=["y", "x"]),
        ]
        state = RunState(tasks)
        state.record("x").result = "X"
        state.record("y").result = "Y"
        assert [e.task for e in state.context_for(tasks[2]).entries] == ["y", "x"]

    def test_assign_tracks_load(self):
        state = RunState(self._tasks())
        state.assign("a", "w")
        state.assign("b", "w")
        assert state.agent_load["w"] == 2
        assert state.record("b").agent == "w"

    def test_block_pending(self):
        tasks = self._tasks()
        state = RunState(tasks)
        state.record("a").status = TaskStatus.FAILED
        blocked = state.block_pending(build_task_graph(tasks))
        assert blocked == ["b", "c"]
        assert state.record("c").failure_kind is FailureKind.DEPENDENCY_FAILED
        assert state.record("c").error == "Dependency failed: b"
        assert state.is_finished()


class TestAggregator:
    def test_success_rate(self):
        assert calculate_success_rate(0, 0) == 0.0
        assert calculate_success_rate(1, 3) == pytest.approx(33.333, rel=1e-3)
        assert calculate_success_rate(4, 4) == 100.0

    def test_non_terminal_records_rejected(self):
        state = RunState([Task(name="a", description="a", agent="w")])
        with pytest.raises(RuntimeError, match="non-terminal"):
            aggregate_run("c", ProcessMode.SEQUENTIAL, state, max_concurrency=1, duration_seconds=0)

    def test_results_in_declaration_order(self):
        tasks = [Task(name=n, description=n, agent="w") for n in ("b", "a")]
        state = RunState(tasks)
        for name in ("a", "b"):
            state.record(name).status = TaskStatus.COMPLETED
        result = aggregate_run("c", ProcessMode.CONCURRENT, state, max_concurrency=2, duration_seconds=0.5)
        assert [r.name for r in result.results] == ["b", "a"]
        assert result.success_rate == 100.0
        assert result.succeeded
