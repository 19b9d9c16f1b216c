"""Ordered provider table with fallback for the narrative report."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from config.settings import GEMINI_API_KEY, LLM_PROVIDER, OPENAI_API_KEY
from tracker.errors import ProviderError

from .providers import GeminiProvider, OpenAIProvider

logger = logging.getLogger(__name__)


class SummaryProvider(Protocol):
    name: str

    def summarize(self, sample: List[Dict[str, Any]], days: int) -> str:
        ...


@dataclass
class Summary:
    text: str
    provider: str
    fallbacks: int


def pick_provider_order(
    preference: str = LLM_PROVIDER,
    *,
    openai_key: str = OPENAI_API_KEY,
    gemini_key: str = GEMINI_API_KEY,
) -> List[str]:
    """Explicit preference wins; otherwise Gemini leads only when it alone has a key."""
    if preference == "gemini":
        return ["gemini", "openai"]
    if preference == "openai":
        return ["openai", "gemini"]
    if not openai_key and gemini_key:
        return ["gemini", "openai"]
    return ["openai", "gemini"]


def default_providers(
    preference: str = LLM_PROVIDER,
    *,
    openai_key: str = OPENAI_API_KEY,
    gemini_key: str = GEMINI_API_KEY,
) -> List[SummaryProvider]:
    """Providers in preference order, leaving out those without a key.

    When no provider has a key the full table is kept, so the caller still
    gets a ProviderError naming the missing configuration.
    """
    factories = {
        "gemini": lambda: GeminiProvider(api_key=gemini_key),
        "openai": lambda: OpenAIProvider(api_key=openai_key),
    }
    order = pick_provider_order(preference, openai_key=openai_key, gemini_key=gemini_key)
    providers = [factories[name]() for name in order]
    return [provider for provider in providers if provider.configured] or providers


class Summarizer:
    """Tries each provider in order and returns the first non-empty report."""

    def __init__(self, providers: Optional[Sequence[SummaryProvider]] = None):
        self._providers = list(providers) if providers is not None else default_providers()
        if not self._providers:
            raise ValueError("Summarizer needs at least one provider")

    @property
    def providers(self) -> List[SummaryProvider]:
        return list(self._providers)

    def summarize(self, sample: List[Dict[str, Any]], days: int) -> Summary:
        last_index = len(self._providers) - 1
        for index, provider in enumerate(self._providers):
            try:
                text = provider.summarize(sample, days)
            except ProviderError as exc:
                if index == last_index:
                    logger.warning("[insight] %s failed: %s", provider.name, exc)
                    raise
                logger.warning(
                    "[insight] %s failed, fallback->%s: %s",
                    provider.name,
                    self._providers[index + 1].name,
                    exc,
                )
                continue
            return Summary(text=text, provider=provider.name, fallbacks=index)
        raise ProviderError("no summary provider produced a report")


__all__ = ["Summarizer", "Summary", "SummaryProvider", "default_providers", "pick_provider_order"]
