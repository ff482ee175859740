from __future__ import annotations

import os
from typing import Any, Optional

from openai import AsyncOpenAI


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


class OpenAIProvider:
    """JSON-mode chat completions against any OpenAI-compatible endpoint."""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        temperature: float = 0.2,
        max_output_tokens: int = 1200,
    ):
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._api_key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        self._base_url = base_url or os.getenv("OPENAI_BASE_URL") or None
        self._timeout_s = timeout_s
        self._client: AsyncOpenAI | None = None

    @property
    def configured(self) -> bool:
        return bool(self._api_key) and not _looks_like_placeholder(self._api_key)

    def _get_client(self) -> AsyncOpenAI:
        if not self.configured:
            raise RuntimeError("OPENAI_API_KEY is missing")
        if self._client is None:
            # Retries are owned by the fit scorer's backoff loop.
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout_s,
                max_retries=0,
            )
        return self._client

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: dict[str, Any] | None = None,
        schema_name: str = "response",
    ) -> str | None:
        if schema is None:
            response_format: dict[str, Any] = {"type": "json_object"}
        else:
            response_format = {"type": "json_schema", "json_schema": {"name": schema_name, "schema": schema}}
        response = await self._get_client().chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self._temperature,
            response_format=response_format,
            max_tokens=self._max_output_tokens,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content
