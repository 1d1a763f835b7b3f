"""Anthropic Messages API runtime."""

from __future__ import annotations

import os
from typing import Optional

import httpx

from ..models.runtime import CompletionResult
from .base import BaseRuntime


class AnthropicRuntime(BaseRuntime):
    name = "anthropic"
    API_URL = "https://api.anthropic.com/v1/messages"

    def _get_api_key(self) -> Optional[str]:
        env_var = self.config.get("api_key_env", "ANTHROPIC_API_KEY")
        return os.environ.get(env_var) or os.environ.get("CLAUDE_API_KEY")

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        timeout: Optional[float] = None,
    ) -> CompletionResult:
        api_key = self._get_api_key()
        if not api_key:
            env_var = self.config.get("api_key_env", "ANTHROPIC_API_KEY")
            return CompletionResult(
                success=False,
                error=f"API key not found in environment variable: {env_var}",
            )

        body = {
            "model": self.config.get("model", "claude-sonnet-4-5-20250929"),
            "max_tokens": self.config.get("max_tokens", 4000),
            "temperature": self.common.get("temperature", 0.1),
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }

        headers = {
            "x-api-key": api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=timeout or self.common.get("timeout_seconds", 120)) as client:
                response = await client.post(self.API_URL, json=body, headers=headers)
                response.raise_for_status()
                data = response.json()

            text_blocks = [
                block.get("text", "")
                for block in data.get("content", [])
                if block.get("type") == "text"
            ]
            usage = data.get("usage", {})
            return CompletionResult(
                success=True,
                content="\n".join(text_blocks),
                tokens_used={
                    "input": usage.get("input_tokens", 0),
                    "output": usage.get("output_tokens", 0),
                },
            )
        except httpx.HTTPStatusError as e:
            return CompletionResult(
                success=False,
                error=f"{e.response.status_code} | {e.response.text}",
                status_code=e.response.status_code,
            )
        except httpx.HTTPError as e:
            return CompletionResult(success=False, error=f"{type(e).__name__}: {e}")
