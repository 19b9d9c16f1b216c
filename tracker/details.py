"""Hydrate video IDs into full records with bounded videos.list batches."""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from config.settings import VIDEOS_BATCH_CEILING, YT_VIDEOS_BATCH

from .models import VideoRecord

logger = logging.getLogger(__name__)


def clamp_batch_size(batch_size: int, ceiling: int = VIDEOS_BATCH_CEILING) -> int:
    return max(1, min(ceiling, batch_size))


def _unique(ids: Iterable[str]) -> List[str]:
    seen = set()
    result: List[str] = []
    for video_id in ids:
        if not video_id or video_id in seen:
            continue
        seen.add(video_id)
        result.append(video_id)
    return result


def fetch_details(gateway, video_ids: Sequence[str], *, batch_size: int = YT_VIDEOS_BATCH) -> List[VideoRecord]:
    """Return records for ``video_ids`` in batch order; missing videos are dropped."""
    ids = _unique(video_ids)
    size = clamp_batch_size(batch_size)
    records: List[VideoRecord] = []
    for start in range(0, len(ids), size):
        batch = ids[start:start + size]
        records.extend(gateway.list_videos_by_ids(batch))
    if len(records) < len(ids):
        logger.info("Hydrated %s of %s video(s); the rest were unavailable", len(records), len(ids))
    return records


__all__ = ["fetch_details", "clamp_batch_size"]
