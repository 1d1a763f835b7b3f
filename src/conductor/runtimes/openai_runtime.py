"""OpenAI chat completions runtime."""

from __future__ import annotations

import os
from typing import Optional

import httpx

from ..models.runtime import CompletionResult
from .base import BaseRuntime


class OpenAIRuntime(BaseRuntime):
    name = "openai"
    API_URL = "https://api.openai.com/v1/chat/completions"

    def _get_api_key(self) -> Optional[str]:
        env_var = self.config.get("api_key_env", "OPENAI_API_KEY")
        return os.environ.get(env_var)

    def _endpoint(self) -> str:
        base = self.config.get("base_url") or os.environ.get("LLM_BASE_URL")
        if base:
            return f"{base.rstrip('/')}/chat/completions"
        return self.API_URL

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        timeout: Optional[float] = None,
    ) -> CompletionResult:
        api_key = self._get_api_key()
        if not api_key:
            env_var = self.config.get("api_key_env", "OPENAI_API_KEY")
            return CompletionResult(
                success=False,
                error=f"API key not found in environment variable: {env_var}",
            )

        body = {
            "model": self.config.get("model", "gpt-4o"),
            "max_tokens": self.config.get("max_tokens", 4000),
            "temperature": self.common.get("temperature", 0.1),
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=timeout or self.common.get("timeout_seconds", 120)) as client:
                response = await client.post(self._endpoint(), json=body, headers=headers)
                response.raise_for_status()
                data = response.json()

            usage = data.get("usage", {})
            return CompletionResult(
                success=True,
                content=data["choices"][0]["message"]["content"],
                tokens_used={
                    "input": usage.get("prompt_tokens", 0),
                    "output": usage.get("completion_tokens", 0),
                },
            )
        except httpx.HTTPStatusError as e:
            return CompletionResult(
                success=False,
                error=f"{e.response.status_code} | {e.response.text}",
                status_code=e.response.status_code,
            )
        except (httpx.HTTPError, KeyError, IndexError) as e:
            return CompletionResult(success=False, error=f"{type(e).__name__}: {e}")
