"""Agent runtime abstraction.

A runtime is bound to one agent and turns a task (description, expected
output, rendered context, tool overrides) into a result string. The engine
treats it as an opaque, cancellable, fallible call.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from ..core.errors import RuntimeCallError
from ..models.agent import Agent
from ..models.runtime import CompletionResult
from ..utils.sanitize import sanitize_error


@runtime_checkable
class Tool(Protocol):
    """Protocol for tools handed to a runtime. Invoked by the runtime only."""

    name: str
    description: str

    def execute(self, params: dict[str, Any]) -> str: ...


@runtime_checkable
class AgentRuntime(Protocol):
    """Protocol that all agent runtimes must implement."""

    async def run(
        self,
        task_description: str,
        expected_output: str,
        context: str,
        tool_overrides: Sequence[Tool],
        timeout: Optional[float],
    ) -> str: ...


class BaseRuntime:
    """Base class for LLM-backed runtimes: prompt assembly plus error mapping."""

    name: str = "base"

    def __init__(self, agent: Agent, runtime_config: dict, common_config: dict):
        self.agent = agent
        self.config = runtime_config
        self.common = common_config

    def build_system_prompt(self, tools: Sequence[Tool] = ()) -> str:
        agent = self.agent
        parts = [f"You are {agent.name}, a {agent.role}."]
        if agent.goal:
            parts.append(f"Your goal: {agent.goal}")
        if agent.backstory:
            parts.append(agent.backstory)
        if tools:
            listing = "\n".join(f"- {t.name}: {t.description}" for t in tools)
            parts.append(f"Available tools:\n{listing}")
        return "\n\n".join(parts)

    def build_user_prompt(self, task_description: str, expected_output: str, context: str) -> str:
        parts = [f"Task: {task_description}"]
        if expected_output:
            parts.append(f"Expected output: {expected_output}")
        if context:
            parts.append(context)
        parts.append("Provide your final answer.")
        return "\n\n".join(parts)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        timeout: Optional[float] = None,
    ) -> CompletionResult:
        raise NotImplementedError

    async def run(
        self,
        task_description: str,
        expected_output: str,
        context: str,
        tool_overrides: Sequence[Tool] = (),
        timeout: Optional[float] = None,
    ) -> str:
        result = await self.complete(
            self.build_system_prompt(tool_overrides),
            self.build_user_prompt(task_description, expected_output, context),
            timeout=timeout,
        )
        if not result.success:
            raise RuntimeCallError(
                self.name,
                sanitize_error(result.error or "unknown error"),
                status_code=result.status_code,
            )
        return result.content or ""


def get_agent_runtime(
    config: dict,
    agent: Agent,
    provider_override: Optional[str] = None,
    model_override: Optional[str] = None,
) -> BaseRuntime:
    """Factory function to create the configured runtime for one agent."""
    runtime_config = config.get("runtime", {})
    provider_name = provider_override or runtime_config.get("provider", "anthropic")

    provider_config = dict(runtime_config.get(provider_name, {}))
    if model_override:
        provider_config["model"] = model_override

    common_config = {
        k: v
        for k, v in runtime_config.items()
        if k not in ("anthropic", "openai", "ollama", "mock")
    }

    if provider_name == "anthropic":
        from .anthropic import AnthropicRuntime
        return AnthropicRuntime(agent, provider_config, common_config)
    elif provider_name == "openai":
        from .openai_runtime import OpenAIRuntime
        return OpenAIRuntime(agent, provider_config, common_config)
    elif provider_name == "ollama":
        from .ollama import OllamaRuntime
        return OllamaRuntime(agent, provider_config, common_config)
    elif provider_name == "mock":
        from .mock import MockRuntime
        return MockRuntime(agent, provider_config, common_config)
    else:
        raise ValueError(f"Unknown agent runtime provider: {provider_name}")
