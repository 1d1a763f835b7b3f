"""Mock runtime for dry runs.

Returns deterministic canned output without calling any backend, so a crew
file can be exercised end to end offline.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from ..models.runtime import CompletionResult
from .base import BaseRuntime, Tool


class MockRuntime(BaseRuntime):
    name = "mock"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        timeout: Optional[float] = None,
    ) -> CompletionResult:
        return CompletionResult(success=True, content=user_prompt)

    async def run(
        self,
        task_description: str,
        expected_output: str,
        context: str,
        tool_overrides: Sequence[Tool] = (),
        timeout: Optional[float] = None,
    ) -> str:
        delay = float(self.config.get("delay_seconds", 0) or 0)
        if delay:
            await asyncio.sleep(delay)

        lines = [f"[{self.agent.name}] {task_description}"]
        if expected_output:
            lines.append(f"Deliverable: {expected_output}")
        if context:
            lines.append(f"Built on {context.count('Task: ')} upstream result(s).")
        return "\n".join(lines)
