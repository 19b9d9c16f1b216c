"""Keyword metrics: search, AND-filter on all keywords, hydrate, summarize."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from config.settings import YT_SEARCH_MAX_PAGES, YT_VIDEOS_BATCH
from youtube_api.time_utils import utc_now

from .details import fetch_details
from .metrics import MetricsResult, compute_metrics, top_channels

logger = logging.getLogger(__name__)


def parse_keywords(query: Optional[str]) -> List[str]:
    """Split a comma-separated query into trimmed, non-empty keywords."""
    return [part.strip() for part in (query or "").split(",") if part.strip()]


def matches_all_keywords(text: str, keywords: Iterable[str]) -> bool:
    lowered = (text or "").lower()
    return all(keyword.lower() in lowered for keyword in keywords)


@dataclass
class KeywordMetricsResult(MetricsResult):
    query: Optional[str] = None
    top_channels: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["query"] = self.query
        payload["top_channels"] = list(self.top_channels)
        return payload


class KeywordSearch:
    """Runs the uncached keyword path; every call goes to the network."""

    def __init__(
        self,
        gateway,
        *,
        max_pages: int = YT_SEARCH_MAX_PAGES,
        batch_size: int = YT_VIDEOS_BATCH,
    ):
        self._gateway = gateway
        self._max_pages = max(1, max_pages)
        self._batch_size = batch_size

    def collect_candidates(self, keywords: Sequence[str], published_after: datetime) -> List[str]:
        video_ids: List[str] = []
        page_token: Optional[str] = None
        pages = 0
        seen = 0
        while True:
            page = self._gateway.search_videos(" ".join(keywords), published_after, page_token=page_token)
            pages += 1
            for hit in page.hits:
                seen += 1
                if matches_all_keywords(f"{hit.title}\n{hit.description}", keywords):
                    video_ids.append(hit.video_id)
            page_token = page.next_page_token
            if not page_token or pages >= self._max_pages:
                break
        logger.info(
            "Keyword search %s: %s page(s), %s hit(s), %s matched all keywords",
            list(keywords),
            pages,
            seen,
            len(video_ids),
        )
        return video_ids

    def search_metrics(
        self,
        keywords: Sequence[str],
        days: int,
        now: Optional[datetime] = None,
    ) -> KeywordMetricsResult:
        keywords = [keyword.strip() for keyword in keywords if keyword and keyword.strip()]
        if not keywords:
            return KeywordMetricsResult()
        now = now or utc_now()
        # Matches the start of the metrics window.
        published_after = now - timedelta(days=days)

        video_ids = self.collect_candidates(keywords, published_after)
        records = fetch_details(self._gateway, video_ids, batch_size=self._batch_size)
        base = compute_metrics(records, days, now=now)
        return KeywordMetricsResult(
            by_day=base.by_day,
            rows=base.rows,
            top=base.top,
            total=base.total,
            query=", ".join(keywords),
            top_channels=top_channels(base.rows),
        )


__all__ = ["KeywordSearch", "KeywordMetricsResult", "matches_all_keywords", "parse_keywords"]
