"""Time and timestamp helpers for YouTube API interactions."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_rfc3339(dt: datetime) -> str:
    """Format datetimes as RFC3339 strings for the YouTube API."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def parse_rfc3339(timestamp: Optional[str]) -> Optional[datetime]:
    """Parse an RFC3339 / ISO timestamp into an aware UTC datetime.

    Date-only strings are read as midnight UTC. Unparsable input yields None.
    """
    if not timestamp:
        return None
    cleaned = timestamp.strip()
    if re.fullmatch(r"\d{4}-\d{2}-\d{2}", cleaned):
        cleaned = f"{cleaned}T00:00:00Z"
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(cleaned)
    except ValueError:
        logger.warning("Failed to parse timestamp %s", timestamp)
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


__all__ = [
    "utc_now",
    "format_rfc3339",
    "parse_rfc3339",
]
