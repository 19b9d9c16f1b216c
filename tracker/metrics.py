"""Day-bucketed counts and top-N views over a recency window."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from youtube_api.time_utils import utc_now

from .models import StoreSnapshot, VideoRecord

TOP_VIDEOS = 10
TOP_CHANNELS = 5
UNKNOWN_CHANNEL = "unknown"


@dataclass
class MetricsResult:
    by_day: Dict[str, int] = field(default_factory=dict)
    rows: List[VideoRecord] = field(default_factory=list)
    top: List[VideoRecord] = field(default_factory=list)
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "by_day": dict(self.by_day),
            "rows": [row.model_dump(mode="json") for row in self.rows],
            "top": [row.model_dump(mode="json") for row in self.top],
            "total": self.total,
        }


def compute_metrics(rows: Iterable[VideoRecord], days: int, now: Optional[datetime] = None) -> MetricsResult:
    """Filter to ``[now - days, now)``, sort ascending, bucket by UTC day, pick top views."""
    now = now or utc_now()
    window_start = now - timedelta(days=days)
    filtered = sorted(
        (row for row in rows if window_start <= row.published_at < now),
        key=lambda row: row.published_at,
    )

    by_day: Dict[str, int] = {}
    for row in filtered:
        day = row.published_at.date().isoformat()
        by_day[day] = by_day.get(day, 0) + 1

    # sorted() is stable, so equal view counts keep chronological order.
    top = sorted(filtered, key=lambda row: row.views, reverse=True)[:TOP_VIDEOS]
    return MetricsResult(by_day=by_day, rows=filtered, top=top, total=len(filtered))


def channel_metrics(
    snapshot: StoreSnapshot,
    channel_id: str,
    days: int,
    now: Optional[datetime] = None,
) -> MetricsResult:
    state = snapshot.channels.get(channel_id)
    if state is None:
        return MetricsResult()
    return compute_metrics(state.videos.values(), days, now=now)


def top_channels(rows: Iterable[VideoRecord], limit: int = TOP_CHANNELS) -> List[Dict[str, Any]]:
    """Group by channel title (then ID, then 'unknown'), most uploads first."""
    groups: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        key = row.channel_title or row.channel_id or UNKNOWN_CHANNEL
        group = groups.setdefault(key, {"channel": key, "count": 0, "views": 0})
        group["count"] += 1
        group["views"] += row.views
    ranked = sorted(groups.values(), key=lambda group: group["count"], reverse=True)
    return ranked[:limit]


__all__ = ["MetricsResult", "compute_metrics", "channel_metrics", "top_channels"]
