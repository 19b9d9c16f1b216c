"""Coordinates resolve -> walk -> hydrate -> merge -> persist for one channel."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from config.settings import YT_FETCH_MAX_NEW, YT_VIDEOS_BATCH

from .details import fetch_details
from .errors import NotFoundError, TrackerError
from .feed_walker import Incremental, IngestMode, walk_uploads
from .locks import ChannelLocks
from .models import ChannelState
from .resolver import ChannelResolver
from .store import ChannelStore

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    added: int
    channel_id: str
    mode: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": self.added,
            "channel_id": self.channel_id,
            "mode": self.mode,
            "backfill": self.mode != Incremental.name,
        }


class IngestionOrchestrator:
    """Runs incremental or backfill ingestion of a channel's uploads into the store.

    Same-channel runs are serialized through ``locks``; pass a shared
    ``ChannelLocks`` when several orchestrators front the same store.
    """

    def __init__(
        self,
        gateway,
        store: ChannelStore,
        *,
        locks: Optional[ChannelLocks] = None,
        resolver: Optional[ChannelResolver] = None,
        max_records: int = YT_FETCH_MAX_NEW,
        batch_size: int = YT_VIDEOS_BATCH,
    ):
        self._gateway = gateway
        self._store = store
        self._locks = locks or ChannelLocks()
        self._resolver = resolver or ChannelResolver(gateway)
        self._max_records = max_records
        self._batch_size = batch_size

    def ingest(self, identifier: str, mode: IngestMode) -> IngestResult:
        channel_id = self._resolver.resolve(identifier)
        with self._locks.hold(channel_id):
            return self._ingest_locked(channel_id, mode)

    def _ingest_locked(self, channel_id: str, mode: IngestMode) -> IngestResult:
        state = self._store.get_channel(channel_id) or ChannelState()
        uploads_playlist_id = self._uploads_playlist_id(state, channel_id)

        cursor = state.last_seen_video_id if isinstance(mode, Incremental) else None
        candidates = walk_uploads(
            self._gateway,
            uploads_playlist_id,
            mode=mode,
            cursor_video_id=cursor,
            max_records=self._max_records,
        )
        if not candidates:
            logger.info("No new uploads for %s (%s)", channel_id, mode.name)
            return IngestResult(added=0, channel_id=channel_id, mode=mode.name)

        records = fetch_details(
            self._gateway,
            [entry.video_id for entry in candidates],
            batch_size=self._batch_size,
        )
        state.merge_videos(records)

        if isinstance(mode, Incremental):
            # Tracks feed position, so it may name a video that failed to hydrate.
            newest = candidates[-1]
            state.last_seen_video_id = newest.video_id
            state.last_published_at = newest.published_at or state.last_published_at

        if state.meta is None:
            self._refresh_meta_best_effort(state, channel_id)

        self._store.commit_channel(channel_id, state)
        logger.info(
            "Ingested %s video(s) for %s (%s, %s candidate(s))",
            len(records),
            channel_id,
            mode.name,
            len(candidates),
        )
        return IngestResult(added=len(records), channel_id=channel_id, mode=mode.name)

    def _uploads_playlist_id(self, state: ChannelState, channel_id: str) -> str:
        cached = state.uploads_playlist_id or (state.meta.uploads_playlist_id if state.meta else None)
        if cached:
            state.uploads_playlist_id = cached
            return cached
        playlist_id = self._gateway.get_uploads_playlist_id(channel_id)
        if not playlist_id:
            raise NotFoundError(f"uploads playlist not found for {channel_id}")
        state.uploads_playlist_id = playlist_id
        return playlist_id

    def _refresh_meta_best_effort(self, state: ChannelState, channel_id: str) -> None:
        try:
            state.meta = self._resolver.fetch_meta(channel_id)
        except TrackerError as exc:
            logger.warning("Skipping channel meta refresh for %s: %s", channel_id, exc)


__all__ = ["IngestionOrchestrator", "IngestResult"]
