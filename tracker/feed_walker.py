"""Walk a channel's uploads playlist down to a cursor, a cutoff, or a cap."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from config.settings import YT_FETCH_MAX_NEW

from .models import FeedEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Incremental:
    """Fetch uploads newer than the stored cursor and advance it."""

    since: Optional[datetime] = None

    name = "incremental"


@dataclass(frozen=True)
class Backfill:
    """Ignore the cursor and walk back to ``since``; the cursor is left alone."""

    since: Optional[datetime] = None

    name = "backfill"


IngestMode = Union[Incremental, Backfill]


def walk_uploads(
    gateway,
    uploads_playlist_id: str,
    *,
    mode: IngestMode,
    cursor_video_id: Optional[str] = None,
    max_records: int = YT_FETCH_MAX_NEW,
    page_size: int = 50,
) -> List[FeedEntry]:
    """
    Page through the uploads playlist (newest first) and return the slice of
    interest oldest first.

    Per item, in order: in incremental mode the cursor item ends the walk and
    is excluded; an item published before ``mode.since`` ends the walk and is
    excluded; reaching ``max_records`` ends the walk with the item included.
    Items without a publish time never trigger the cutoff.
    """
    max_records = max(1, max_records)
    page_size = max(1, min(50, page_size))
    use_cursor = isinstance(mode, Incremental) and bool(cursor_video_id)
    since = mode.since

    buffer: List[FeedEntry] = []
    page_token: Optional[str] = None
    pages = 0
    stop_reason = "end of feed"

    while True:
        page = gateway.list_playlist_items(uploads_playlist_id, page_token=page_token, page_size=page_size)
        pages += 1
        stopped = False
        for entry in page.entries:
            if use_cursor and entry.video_id == cursor_video_id:
                stop_reason = "cursor"
                stopped = True
                break
            if since is not None and entry.published_at is not None and entry.published_at < since:
                stop_reason = "cutoff"
                stopped = True
                break
            buffer.append(entry)
            if len(buffer) >= max_records:
                stop_reason = "cap"
                stopped = True
                break
        if stopped:
            break
        page_token = page.next_page_token
        if not page_token:
            break

    logger.info(
        "Walked %s page(s) of %s in %s mode: %s candidate(s), stopped at %s",
        pages,
        uploads_playlist_id,
        mode.name,
        len(buffer),
        stop_reason,
    )
    buffer.reverse()
    return buffer


__all__ = ["Incremental", "Backfill", "IngestMode", "walk_uploads"]
