"""Build the size- and field-capped sample handed to the report writer."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Union

from config.settings import INSIGHT_MAX_ROWS, INSIGHT_TITLE_MAX_CHARS
from tracker.models import VideoRecord
from youtube_api.time_utils import format_rfc3339

RowLike = Union[VideoRecord, Mapping[str, Any]]


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _timestamp_text(value: Any) -> str:
    if isinstance(value, datetime):
        return format_rfc3339(value)
    return str(value or "")


def normalize_row(row: RowLike) -> Dict[str, Any]:
    """Reduce a stored record or a client-supplied dict to the fields the sample uses."""
    if isinstance(row, VideoRecord):
        return {
            "published_at": format_rfc3339(row.published_at),
            "title": row.title,
            "views": row.views,
            "likes": row.likes,
            "comments": row.comments,
            "channel_title": row.channel_title or "",
        }
    return {
        "published_at": _timestamp_text(row.get("published_at") or row.get("publishedAt") or row.get("date")),
        "title": str(row.get("title") or ""),
        "views": _as_int(row.get("views")),
        "likes": _as_int(row.get("likes")),
        "comments": _as_int(row.get("comments")),
        "channel_title": str(row.get("channel_title") or row.get("channelTitle") or ""),
    }


def build_sample(rows: Iterable[RowLike], max_rows: int = INSIGHT_MAX_ROWS) -> List[Dict[str, Any]]:
    """Oldest-first sample, keeping the most recent ``max_rows`` rows."""
    normalized = sorted((normalize_row(row) for row in rows), key=lambda row: row["published_at"])
    if max_rows > 0:
        normalized = normalized[-max_rows:]
    else:
        normalized = []
    return [
        {
            "d": row["published_at"][:10],
            "title": row["title"][:INSIGHT_TITLE_MAX_CHARS],
            "views": row["views"],
            "likes": row["likes"],
            "comments": row["comments"],
            "ch": row["channel_title"],
        }
        for row in normalized
    ]


__all__ = ["build_sample", "normalize_row"]
