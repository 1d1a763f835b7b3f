"""Tests for core/graph.py."""

from __future__ import annotations

import pytest

from conductor.core.errors import GraphError, GraphErrorKind
from conductor.core.graph import build_task_graph
from conductor.models.task import Task


def _task(name: str, *deps: str) -> Task:
    return Task(name=name, description=f"Do {name}", agent="worker", dependencies=list(deps))


class TestBuildTaskGraph:
    def test_empty_task_list(self):
        graph = build_task_graph([])
        assert len(graph) == 0
        assert graph.topological_order() == []
        assert graph.phases() == []

    def test_declaration_order_kept(self):
        graph = build_task_graph([_task("b"), _task("a"), _task("c")])
        assert graph.names == ["b", "a", "c"]
        assert graph.index_of("a") == 1

    def test_dependents_index(self):
        graph = build_task_graph([_task("a"), _task("b", "a"), _task("c", "a")])
        assert graph.dependents_of("a") == ["b", "c"]
        assert graph.dependencies_of("b") == ("a",)

    def test_unknown_dependency(self):
        with pytest.raises(GraphError) as exc:
            build_task_graph([_task("a", "ghost")])
        assert exc.value.kind is GraphErrorKind.UNKNOWN_DEPENDENCY
        assert exc.value.tasks == ["a", "ghost"]
        assert "ghost" in str(exc.value)

    def test_duplicate_task(self):
        with pytest.raises(GraphError) as exc:
            build_task_graph([_task("a"), _task("a")])
        assert exc.value.kind is GraphErrorKind.DUPLICATE_TASK

    def test_two_task_cycle(self):
        with pytest.raises(GraphError) as exc:
            build_task_graph([_task("a", "b"), _task("b", "a")])
        assert exc.value.kind is GraphErrorKind.CYCLE_DETECTED
        assert exc.value.tasks == ["a", "b", "a"]
        assert "CycleDetected" in str(exc.value)

    def test_self_dependency_is_cycle(self):
        with pytest.raises(GraphError) as exc:
            build_task_graph([_task("a", "a")])
        assert exc.value.kind is GraphErrorKind.CYCLE_DETECTED
        assert exc.value.tasks == ["a", "a"]

    def test_cycle_behind_valid_prefix(self):
        tasks = [_task("start"), _task("x", "start", "z"), _task("y", "x"), _task("z", "y")]
        with pytest.raises(GraphError) as exc:
            build_task_graph(tasks)
        cycle = exc.value.tasks
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"x", "y", "z"}

    def test_unknown_dependency_reported_before_cycle(self):
        with pytest.raises(GraphError) as exc:
            build_task_graph([_task("a", "b"), _task("b", "a", "missing")])
        assert exc.value.kind is GraphErrorKind.UNKNOWN_DEPENDENCY


class TestOrdering:
    def test_topological_order_respects_dependencies(self):
        graph = build_task_graph([_task("report", "research"), _task("research"), _task("review", "report")])
        order = graph.topological_order()
        assert order == ["research", "report", "review"]

    def test_topological_ties_follow_declaration(self):
        graph = build_task_graph([_task("c"), _task("a"), _task("b")])
        assert graph.topological_order() == ["c", "a", "b"]

    def test_phases(self):
        graph = build_task_graph([_task("t1"), _task("t2"), _task("t3", "t1"), _task("t4", "t2", "t3")])
        assert graph.phases() == [["t1", "t2"], ["t3"], ["t4"]]

    def test_initial_ready(self):
        graph = build_task_graph([_task("a"), _task("b", "a"), _task("c")])
        assert graph.initial_ready() == ["a", "c"]


class TestDependencyTracker:
    def test_complete_releases_when_all_resolved(self):
        graph = build_task_graph([_task("a"), _task("b"), _task("c", "a", "b")])
        tracker = graph.tracker()
        assert tracker.remaining("c") == 2
        assert tracker.complete("a") == []
        assert tracker.complete("b") == ["c"]
        assert tracker.remaining("c") == 0

    def test_trackers_are_independent(self):
        graph = build_task_graph([_task("a"), _task("b", "a")])
        first = graph.tracker()
        first.complete("a")
        assert graph.tracker().remaining("b") == 1
