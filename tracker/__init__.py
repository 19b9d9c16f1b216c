"""Incremental/backfill upload ingestion and metrics for YouTube channels."""

from .errors import (
    ConfigError,
    InvalidInputError,
    NotFoundError,
    ProviderError,
    QuotaExceededError,
    TrackerError,
    UpstreamError,
)

__all__ = [
    "TrackerError",
    "NotFoundError",
    "UpstreamError",
    "QuotaExceededError",
    "ProviderError",
    "ConfigError",
    "InvalidInputError",
]
