"""Error taxonomy shared by the ingestion core and its boundary."""

from __future__ import annotations

from typing import Any, Dict, Optional


class TrackerError(Exception):
    """Base class for failures that surface to callers as ``{kind, message}``."""

    kind = "internal"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": str(self) or self.__class__.__name__}


class NotFoundError(TrackerError):
    """A channel, playlist or video could not be located upstream."""

    kind = "not_found"


class UpstreamError(TrackerError):
    """The YouTube Data API call failed or returned a malformed payload."""

    kind = "upstream"

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class QuotaExceededError(TrackerError):
    """Spending the next call would exceed the configured unit budget."""

    kind = "quota_exceeded"


class ProviderError(TrackerError):
    """An LLM provider call failed, timed out, or returned empty content."""

    kind = "provider"

    def __init__(self, message: str, *, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class ConfigError(TrackerError):
    """A required credential or setting is absent."""

    kind = "config"


class InvalidInputError(TrackerError):
    """The caller supplied an empty or malformed argument."""

    kind = "invalid_input"


__all__ = [
    "TrackerError",
    "NotFoundError",
    "UpstreamError",
    "QuotaExceededError",
    "ProviderError",
    "ConfigError",
    "InvalidInputError",
]
