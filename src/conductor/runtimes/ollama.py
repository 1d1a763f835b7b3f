"""Ollama local inference runtime."""

from __future__ import annotations

from typing import Optional

import httpx

from ..models.runtime import CompletionResult
from .base import BaseRuntime


class OllamaRuntime(BaseRuntime):
    name = "ollama"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        timeout: Optional[float] = None,
    ) -> CompletionResult:
        endpoint = self.config.get("endpoint", "http://localhost:11434")
        body = {
            "model": self.config.get("model", "llama3.1:8b"),
            "system": system_prompt,
            "prompt": user_prompt,
            "stream": False,
            "options": {"temperature": self.common.get("temperature", 0.1)},
        }

        try:
            url = f"{endpoint.rstrip('/')}/api/generate"
            async with httpx.AsyncClient(timeout=timeout or self.common.get("timeout_seconds", 120)) as client:
                response = await client.post(url, json=body)
                response.raise_for_status()
                data = response.json()

            return CompletionResult(success=True, content=data.get("response", ""))
        except httpx.HTTPStatusError as e:
            return CompletionResult(
                success=False,
                error=f"{e.response.status_code} | {e.response.text}",
                status_code=e.response.status_code,
            )
        except httpx.HTTPError as e:
            return CompletionResult(success=False, error=f"{type(e).__name__}: {e}")
