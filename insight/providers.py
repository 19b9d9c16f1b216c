"""LLM providers that turn an upload sample into a narrative report."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import openai
from google import genai
from google.genai import types

from config.settings import (
    GEMINI_API_KEY,
    GEMINI_MAX_TOKENS,
    GEMINI_MODEL,
    GEMINI_TIMEOUT_SECONDS,
    OPENAI_API_KEY,
    OPENAI_MAX_TOKENS,
    OPENAI_MODEL,
    OPENAI_TIMEOUT_SECONDS,
)
from tracker.errors import ProviderError

from .prompts import SYSTEM_PROMPT, build_user_prompt

logger = logging.getLogger(__name__)

TEMPERATURE = 0.2


class GeminiProvider:
    """Gemini via google-genai (AI Studio, not Vertex)."""

    name = "gemini"

    def __init__(
        self,
        *,
        api_key: str = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        max_tokens: int = GEMINI_MAX_TOKENS,
        timeout_seconds: float = GEMINI_TIMEOUT_SECONDS,
        client: Optional[genai.Client] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._timeout_seconds = timeout_seconds
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._api_key:
                raise ProviderError("GEMINI_API_KEY not configured", provider=self.name)
            self._client = genai.Client(
                vertexai=False,
                api_key=self._api_key,
                # HttpOptions.timeout is in milliseconds.
                http_options=types.HttpOptions(timeout=int(self._timeout_seconds * 1000)),
            )
        return self._client

    def summarize(self, sample: List[Dict[str, Any]], days: int) -> str:
        client = self._get_client()
        try:
            response = client.models.generate_content(
                model=self._model,
                contents=build_user_prompt(sample, days),
                config=types.GenerateContentConfig(
                    system_instruction=SYSTEM_PROMPT,
                    max_output_tokens=self._max_tokens,
                    temperature=TEMPERATURE,
                ),
            )
        except Exception as exc:  # noqa: BLE001
            raise ProviderError(f"Gemini call failed: {exc}", provider=self.name) from exc
        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise ProviderError("Gemini returned empty content", provider=self.name)
        return text


class OpenAIProvider:
    """OpenAI chat completions."""

    name = "openai"

    def __init__(
        self,
        *,
        api_key: str = OPENAI_API_KEY,
        model: str = OPENAI_MODEL,
        max_tokens: int = OPENAI_MAX_TOKENS,
        timeout_seconds: float = OPENAI_TIMEOUT_SECONDS,
        client: Optional[openai.OpenAI] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._timeout_seconds = timeout_seconds
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self._api_key)

    def _get_client(self) -> openai.OpenAI:
        if self._client is None:
            if not self._api_key:
                raise ProviderError("OPENAI_API_KEY not configured", provider=self.name)
            self._client = openai.OpenAI(api_key=self._api_key, timeout=self._timeout_seconds, max_retries=0)
        return self._client

    def summarize(self, sample: List[Dict[str, Any]], days: int) -> str:
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(sample, days)},
                ],
                temperature=TEMPERATURE,
                max_tokens=self._max_tokens,
            )
        except openai.OpenAIError as exc:
            raise ProviderError(f"OpenAI call failed: {exc}", provider=self.name) from exc
        choices = getattr(response, "choices", None) or []
        text = (choices[0].message.content or "").strip() if choices else ""
        if not text:
            raise ProviderError("OpenAI returned empty content", provider=self.name)
        return text


__all__ = ["GeminiProvider", "OpenAIProvider"]
