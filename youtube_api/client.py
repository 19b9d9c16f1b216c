"""YouTube Data API client utilities."""

from __future__ import annotations

import errno
import logging
import time
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from googleapiclient.discovery import build

from config.settings import YOUTUBE_API_KEY
from tracker.errors import ConfigError

logger = logging.getLogger(__name__)


def build_youtube_service(api_key: str = YOUTUBE_API_KEY):
    """Build a YouTube Data API service client.

    httplib2 transports are not thread-safe, so each gateway builds its own
    client instead of sharing a module-level one.
    """
    if not api_key:
        raise ConfigError("YOUTUBE_API_KEY is not configured")
    return build("youtube", "v3", developerKey=api_key, cache_discovery=False)


def _is_transient(exc: OSError) -> bool:
    # EADDRNOTAVAIL shows up when the local socket pool is briefly exhausted.
    return isinstance(exc, TimeoutError) or getattr(exc, "errno", None) == errno.EADDRNOTAVAIL


def execute_request(request, *, retries: int = 1, label: str = "request"):
    """Execute a Google API request, retrying timeouts and socket exhaustion.

    Timeouts are retried at once; socket errors back off 0.5s per attempt.
    Anything else, and the last transient failure, propagates to the caller.
    """
    attempts = max(0, retries) + 1
    for attempt in range(1, attempts + 1):
        try:
            return request.execute(num_retries=0)
        except OSError as exc:
            if attempt >= attempts or not _is_transient(exc):
                raise
            backoff = 0.0 if isinstance(exc, TimeoutError) else 0.5 * attempt
            logger.warning(
                "YouTube API %s transient failure (%s), attempt %s/%s, retrying in %.1fs",
                label,
                exc,
                attempt,
                attempts,
                backoff,
            )
            if backoff:
                time.sleep(backoff)
    raise RuntimeError(f"YouTube API {label} was not attempted")


def redact_request_uri(request) -> Optional[str]:
    """Return the request URI with the ``key`` query parameter removed."""
    uri = getattr(request, "uri", None)
    if not isinstance(uri, str) or not uri:
        return None
    try:
        parts = urlsplit(uri)
    except ValueError as exc:
        logger.debug("Failed to redact request URI: %s", exc)
        return None
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "key"]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


__all__ = [
    "build_youtube_service",
    "execute_request",
    "redact_request_uri",
]
