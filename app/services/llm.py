"""Thin async client for an OpenAI-compatible chat completions API.

Every call is a single user turn; callers choose temperature and token
budget.  All transport and format problems are raised as
``ExternalServiceError`` so scoring code has exactly one thing to catch.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.config import settings
from app.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)


def _api_url() -> str:
    if settings.LLM_BASE_URL:
        return settings.LLM_BASE_URL.rstrip("/") + "/chat/completions"
    if settings.LLM_PROVIDER != "openai":
        # Allow custom base URL for non-OpenAI providers
        return f"https://api.{settings.LLM_PROVIDER}.com/v1/chat/completions"
    return "https://api.openai.com/v1/chat/completions"


def strip_code_fence(content: str) -> str:
    """Remove a surrounding markdown code block, if the model added one."""
    clean = content.strip()
    if clean.startswith("```"):
        lines = [line for line in clean.split("\n") if not line.strip().startswith("```")]
        clean = "\n".join(lines).strip()
    return clean


class CompletionClient:
    """Chat completion client shared by scoring, reasoning and team picks."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        url: str | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.LLM_API_KEY
        self.model = model or settings.LLM_MODEL
        self.timeout = timeout if timeout is not None else settings.LLM_TIMEOUT_SECONDS
        self._url = url or _api_url()

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Send one prompt and return the stripped text of the first choice."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self._url,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning(
                "llm_completion_failed",
                extra={
                    "model": self.model,
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                },
            )
            raise ExternalServiceError(f"{type(exc).__name__}: {exc}") from exc

        if not isinstance(content, str):
            raise ExternalServiceError("Completion content is not text")
        return content.strip()
