"""Task graph construction and dependency tracking.

Compiles a crew's task list into a validated DAG. The graph itself is
read-only; per-run readiness bookkeeping lives in a DependencyTracker.
"""

from __future__ import annotations

from typing import Sequence

from ..models.task import Task
from .errors import GraphError, GraphErrorKind

_WHITE, _GREY, _BLACK = 0, 1, 2


class TaskGraph:
    def __init__(self, names: list[str], dependencies: dict[str, tuple[str, ...]]):
        self.names = names
        self._index = {name: i for i, name in enumerate(names)}
        self._dependencies = dependencies
        self._dependents: dict[str, list[str]] = {name: [] for name in names}
        for name in names:
            for dep in dependencies[name]:
                self._dependents[dep].append(name)

    def __len__(self) -> int:
        return len(self.names)

    def index_of(self, name: str) -> int:
        return self._index[name]

    def dependencies_of(self, name: str) -> tuple[str, ...]:
        return self._dependencies[name]

    def dependents_of(self, name: str) -> list[str]:
        return list(self._dependents[name])

    def initial_ready(self) -> list[str]:
        """Tasks with no dependencies, in declaration order."""
        return [name for name in self.names if not self._dependencies[name]]

    def topological_order(self) -> list[str]:
        """Kahn's algorithm, breaking ties by declaration order."""
        remaining = {name: len(self._dependencies[name]) for name in self.names}
        ready = self.initial_ready()
        order: list[str] = []
        while ready:
            ready.sort(key=self.index_of)
            name = ready.pop(0)
            order.append(name)
            for child in self._dependents[name]:
                remaining[child] -= 1
                if remaining[child] == 0:
                    ready.append(child)
        return order

    def phases(self) -> list[list[str]]:
        """Group tasks into dependency levels.

        Level 0 holds tasks without dependencies; every other task sits one
        level after its deepest dependency.
        """
        level: dict[str, int] = {}
        for name in self.topological_order():
            deps = self._dependencies[name]
            level[name] = max((level[d] + 1 for d in deps), default=0)

        grouped: list[list[str]] = []
        for name in self.names:
            while len(grouped) <= level[name]:
                grouped.append([])
            grouped[level[name]].append(name)
        return grouped

    def tracker(self) -> "DependencyTracker":
        return DependencyTracker(self)


class DependencyTracker:
    """Counts unresolved dependencies for one run."""

    def __init__(self, graph: TaskGraph):
        self.graph = graph
        self._remaining = {name: len(graph.dependencies_of(name)) for name in graph.names}

    def remaining(self, name: str) -> int:
        return self._remaining[name]

    def complete(self, name: str) -> list[str]:
        """Resolve ``name`` and return dependents that just became eligible."""
        eligible: list[str] = []
        for child in self.graph.dependents_of(name):
            self._remaining[child] -= 1
            if self._remaining[child] == 0:
                eligible.append(child)
        return eligible


def _find_cycle(names: list[str], dependencies: dict[str, tuple[str, ...]]) -> list[str]:
    """Three-colour DFS. Returns the first cycle found, or an empty list."""
    color = {name: _WHITE for name in names}

    for root in names:
        if color[root] != _WHITE:
            continue
        path: list[str] = [root]
        stack = [iter(dependencies[root])]
        color[root] = _GREY
        while stack:
            dep = next(stack[-1], None)
            if dep is None:
                color[path.pop()] = _BLACK
                stack.pop()
                continue
            if color[dep] == _GREY:
                start = path.index(dep)
                return path[start:] + [dep]
            if color[dep] == _WHITE:
                color[dep] = _GREY
                path.append(dep)
                stack.append(iter(dependencies[dep]))
    return []


def build_task_graph(tasks: Sequence[Task]) -> TaskGraph:
    """Validate ``tasks`` and compile them into a TaskGraph.

    Raises GraphError for duplicate names, unknown dependencies, or cycles.
    Nothing is mutated.
    """
    names: list[str] = []
    seen: set[str] = set()
    for task in tasks:
        if task.name in seen:
            raise GraphError(
                GraphErrorKind.DUPLICATE_TASK,
                [task.name],
                f"task name '{task.name}' is declared more than once",
            )
        seen.add(task.name)
        names.append(task.name)

    dependencies: dict[str, tuple[str, ...]] = {}
    for task in tasks:
        for dep in task.dependencies:
            if dep not in seen:
                raise GraphError(
                    GraphErrorKind.UNKNOWN_DEPENDENCY,
                    [task.name, dep],
                    f"task '{task.name}' depends on unknown task '{dep}'",
                )
        dependencies[task.name] = tuple(task.dependencies)

    cycle = _find_cycle(names, dependencies)
    if cycle:
        raise GraphError(
            GraphErrorKind.CYCLE_DETECTED,
            cycle,
            "dependency cycle " + " -> ".join(cycle),
        )

    return TaskGraph(names, dependencies)
