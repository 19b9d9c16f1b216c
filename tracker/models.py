"""Data models for the persisted upload store and derived views."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from youtube_api.time_utils import utc_now


class VideoRecord(BaseModel):
    """One uploaded video with its latest known engagement numbers."""

    video_id: str = Field(..., description="YouTube video ID (primary key).")
    title: str = Field(default="")
    description: str = Field(default="")
    published_at: datetime = Field(..., description="Publish time (UTC); never changes once set.")
    channel_id: Optional[str] = Field(default=None)
    channel_title: Optional[str] = Field(default=None)
    duration: Optional[str] = Field(default=None, description="ISO 8601 duration, e.g. PT4M13S.")
    views: int = Field(default=0)
    likes: int = Field(default=0)
    comments: int = Field(default=0)


class ChannelStats(BaseModel):
    subscriber_count: int = Field(default=0)
    video_count: int = Field(default=0)
    view_count: int = Field(default=0)


class ChannelMeta(BaseModel):
    """Cached channel snippet/statistics. Replaced wholesale on refresh."""

    channel_id: str = Field(..., description="Canonical YouTube channel ID (UC...).")
    title: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    thumbnails: Dict[str, Any] = Field(default_factory=dict)
    stats: ChannelStats = Field(default_factory=ChannelStats)
    uploads_playlist_id: Optional[str] = Field(
        default=None,
        description="Uploads playlist ID (UU...) for listing the channel's uploads.",
    )
    fetched_at: datetime = Field(default_factory=utc_now)

    def is_fresh(self, now: datetime, ttl_hours: float) -> bool:
        age = now - self.fetched_at
        return age.total_seconds() < ttl_hours * 3600


class ChannelState(BaseModel):
    """Everything stored for one channel: videos, feed cursor, and meta."""

    videos: Dict[str, VideoRecord] = Field(default_factory=dict)
    last_seen_video_id: Optional[str] = Field(
        default=None,
        description="Newest feed item seen by the last incremental ingestion.",
    )
    last_published_at: Optional[datetime] = Field(default=None)
    uploads_playlist_id: Optional[str] = Field(
        default=None,
        description="Uploads playlist ID (UU...); fixed for the life of a channel.",
    )
    meta: Optional[ChannelMeta] = Field(default=None)

    def merge_videos(self, records: List[VideoRecord]) -> None:
        for record in records:
            self.videos[record.video_id] = record


class StoreSnapshot(BaseModel):
    """The whole persisted document: channel ID -> state."""

    channels: Dict[str, ChannelState] = Field(default_factory=dict)

    def channel(self, channel_id: str) -> ChannelState:
        """Return the channel's state, creating an empty one if absent."""
        state = self.channels.get(channel_id)
        if state is None:
            state = ChannelState()
            self.channels[channel_id] = state
        return state


@dataclass(frozen=True)
class FeedEntry:
    """A candidate upload taken from the uploads playlist."""

    video_id: str
    published_at: Optional[datetime]


@dataclass
class PlaylistPage:
    entries: List[FeedEntry]
    next_page_token: Optional[str] = None


@dataclass(frozen=True)
class SearchHit:
    video_id: str
    title: str
    description: str


@dataclass
class SearchPage:
    hits: List[SearchHit]
    next_page_token: Optional[str] = None


__all__ = [
    "VideoRecord",
    "ChannelStats",
    "ChannelMeta",
    "ChannelState",
    "StoreSnapshot",
    "FeedEntry",
    "PlaylistPage",
    "SearchHit",
    "SearchPage",
]
