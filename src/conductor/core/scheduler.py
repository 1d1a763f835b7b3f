"""Scheduler: drives a crew run to completion.

A single coordinator coroutine owns the ready set and all scheduling
bookkeeping. A fixed pool of worker coroutines pulls dispatched task names
from a queue, runs the executor, and reports back on a completion queue.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from rich.console import Console

from ..models.run import ProcessMode
from ..models.task import TaskStatus
from .delegation import DelegationRouter
from .executor import TaskExecutor
from .graph import TaskGraph
from .state import RunState

console = Console()


class Scheduler:
    def __init__(
        self,
        graph: TaskGraph,
        state: RunState,
        executor: TaskExecutor,
        process: ProcessMode,
        max_concurrency: int = 1,
        router: Optional[DelegationRouter] = None,
        verbose: bool = False,
    ):
        self.graph = graph
        self.state = state
        self.executor = executor
        self.process = process
        self.max_concurrency = 1 if process is ProcessMode.SEQUENTIAL else max_concurrency
        self.router = router
        self.verbose = verbose

    def _priority(self, name: str) -> tuple[int, int]:
        index = self.graph.index_of(name)
        if self.process is ProcessMode.SEQUENTIAL:
            return (0, index)
        is_async = self.state.tasks[name].is_async
        return (0 if is_async else 1, index)

    def _admit(self, ready: list[str], capacity: int) -> list[str]:
        """Take up to ``capacity`` tasks off the ready list, best first."""
        if capacity <= 0 or not ready:
            return []
        ready.sort(key=self._priority)
        admitted = ready[:capacity]
        del ready[:capacity]
        return admitted

    def _dispatch(self, name: str) -> None:
        task = self.state.tasks[name]
        record = self.state.record(name)
        if task.agent is None:
            if self.router is None:
                raise RuntimeError(f"Task '{name}' has no agent and no delegation router")
            decision = self.router.delegate(task, self.state.agent_load)
            self.state.assign(name, decision.agent, decision)
            if self.verbose:
                console.print(
                    f"  [magenta]DELEGATE[/magenta] {name} -> {decision.agent} ({decision.reason})"
                )
        else:
            self.state.assign(name, task.agent)
        record.phase = self.state.wave
        # leaves PENDING here so no other tick can dispatch it again
        record.status = TaskStatus.RUNNING
        if self.verbose:
            console.print(f"  [cyan]Wave {self.state.wave}[/cyan] {name} -> {record.agent}")

    async def _worker(self, queue: asyncio.Queue, done: asyncio.Queue) -> None:
        while True:
            name = await queue.get()
            error: Optional[BaseException] = None
            try:
                task = self.state.tasks[name]
                await self.executor.execute(task, self.state.record(name), self.state.context_for(task))
            except Exception as e:
                error = e
            finally:
                queue.task_done()
            done.put_nowait((name, error))

    async def run(self) -> RunState:
        tracker = self.graph.tracker()
        ready = self.graph.initial_ready()
        queue: asyncio.Queue = asyncio.Queue()
        done: asyncio.Queue = asyncio.Queue()
        workers = [
            asyncio.create_task(self._worker(queue, done))
            for _ in range(self.max_concurrency)
        ]
        in_flight = 0

        try:
            while True:
                admitted = self._admit(ready, self.max_concurrency - in_flight)
                if admitted:
                    self.state.wave += 1
                    for name in admitted:
                        self._dispatch(name)
                        queue.put_nowait(name)
                        in_flight += 1

                if in_flight == 0:
                    break

                batch = [await done.get()]
                while not done.empty():
                    batch.append(done.get_nowait())

                for name, error in batch:
                    in_flight -= 1
                    if error is not None:
                        raise error
                    if self.state.record(name).status is TaskStatus.COMPLETED:
                        ready.extend(tracker.complete(name))
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        blocked = self.state.block_pending(self.graph)
        if blocked:
            console.print(
                f"  [yellow]WARN[/yellow] {len(blocked)} task(s) not run because a dependency failed: "
                f"{', '.join(blocked)}"
            )
        return self.state
