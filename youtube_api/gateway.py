"""Typed access to the handful of YouTube Data API calls the tracker needs."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from googleapiclient.errors import HttpError

from tracker.errors import UpstreamError
from tracker.models import (
    ChannelMeta,
    ChannelStats,
    FeedEntry,
    PlaylistPage,
    SearchHit,
    SearchPage,
    VideoRecord,
)
from tracker.quota import QuotaTracker

from .client import build_youtube_service, execute_request, redact_request_uri
from .time_utils import format_rfc3339, parse_rfc3339, utc_now

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


def _safe_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _http_status(exc: HttpError) -> Optional[int]:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "resp", None), "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


class YouTubeGateway:
    """Wraps a googleapiclient ``youtube`` service.

    Every call spends from the optional ``QuotaTracker`` first, logs the
    redacted request URI, and converts API/transport failures to
    ``UpstreamError``. Build one per request; the service client is not
    shared across threads.
    """

    def __init__(self, service=None, *, quota: Optional[QuotaTracker] = None, retries: int = 2):
        self._service = service
        self._quota = quota
        self._retries = retries

    @property
    def service(self):
        if self._service is None:
            self._service = build_youtube_service()
        return self._service

    @property
    def quota(self) -> Optional[QuotaTracker]:
        return self._quota

    def _call(self, operation: str, label: str, build_request: Callable[[Any], Any]) -> Dict[str, Any]:
        service = self.service
        if self._quota is not None:
            self._quota.spend(operation)
        try:
            request = build_request(service)
            sanitized_uri = redact_request_uri(request)
            if sanitized_uri:
                logger.info("YouTube API request (%s): %s", label, sanitized_uri)
            response = execute_request(request, retries=self._retries, label=label)
        except HttpError as http_err:
            status = _http_status(http_err)
            logger.warning("YouTube API error during %s (status %s): %s", label, status, http_err)
            raise UpstreamError(f"YouTube API error during {label}: {http_err}", status=status) from http_err
        except OSError as exc:
            # TimeoutError is an OSError subclass.
            logger.warning("YouTube API transport failure during %s: %s", label, exc)
            raise UpstreamError(f"YouTube API transport failure during {label}: {exc}") from exc
        if not isinstance(response, dict):
            raise UpstreamError(f"Malformed YouTube API response during {label}")
        return response

    @staticmethod
    def _items(response: Dict[str, Any], label: str) -> List[Dict[str, Any]]:
        items = response.get("items") or []
        if not isinstance(items, list):
            raise UpstreamError(f"Malformed 'items' in YouTube API response during {label}")
        return [item for item in items if isinstance(item, dict)]

    def resolve_channel_by_search(self, term: str) -> Optional[str]:
        """Return the channel ID of the top channel-type search hit, if any."""
        response = self._call(
            "search.list",
            "channel search",
            lambda service: service.search().list(
                part="snippet",
                q=term,
                type="channel",
                maxResults=1,
            ),
        )
        items = self._items(response, "channel search")
        if not items:
            return None
        first = items[0]
        return (first.get("snippet") or {}).get("channelId") or (first.get("id") or {}).get("channelId")

    def get_channel(self, channel_id: str) -> Optional[ChannelMeta]:
        """Fetch snippet, statistics, and uploads playlist for a channel."""
        response = self._call(
            "channels.list",
            "channel details",
            lambda service: service.channels().list(
                part="snippet,statistics,contentDetails",
                id=channel_id,
                maxResults=1,
            ),
        )
        items = self._items(response, "channel details")
        if not items:
            return None
        item = items[0]
        snippet = item.get("snippet") or {}
        statistics = item.get("statistics") or {}
        uploads = (
            (item.get("contentDetails") or {})
            .get("relatedPlaylists", {})
            .get("uploads")
        )
        return ChannelMeta(
            channel_id=channel_id,
            title=snippet.get("title"),
            description=snippet.get("description"),
            thumbnails=snippet.get("thumbnails") or {},
            stats=ChannelStats(
                subscriber_count=_safe_int(statistics.get("subscriberCount")),
                video_count=_safe_int(statistics.get("videoCount")),
                view_count=_safe_int(statistics.get("viewCount")),
            ),
            uploads_playlist_id=uploads,
            fetched_at=utc_now(),
        )

    def get_uploads_playlist_id(self, channel_id: str) -> Optional[str]:
        """Look up only the uploads playlist (contentDetails) for a channel."""
        response = self._call(
            "channels.list",
            "uploads playlist lookup",
            lambda service: service.channels().list(
                part="contentDetails",
                id=channel_id,
                maxResults=1,
            ),
        )
        items = self._items(response, "uploads playlist lookup")
        if not items:
            return None
        return (
            (items[0].get("contentDetails") or {})
            .get("relatedPlaylists", {})
            .get("uploads")
        )

    def list_playlist_items(
        self,
        playlist_id: str,
        page_token: Optional[str] = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> PlaylistPage:
        """One page of the playlist, in playlist order (newest first for uploads)."""
        page_size = max(1, min(MAX_PAGE_SIZE, page_size))
        response = self._call(
            "playlistItems.list",
            "playlist uploads",
            lambda service: service.playlistItems().list(
                part="contentDetails",
                playlistId=playlist_id,
                maxResults=page_size,
                pageToken=page_token,
            ),
        )
        entries: List[FeedEntry] = []
        for item in self._items(response, "playlist uploads"):
            content_details = item.get("contentDetails") or {}
            video_id = content_details.get("videoId")
            if not video_id:
                continue
            entries.append(
                FeedEntry(
                    video_id=video_id,
                    published_at=parse_rfc3339(content_details.get("videoPublishedAt")),
                )
            )
        return PlaylistPage(entries=entries, next_page_token=response.get("nextPageToken") or None)

    def list_videos_by_ids(self, video_ids: Sequence[str]) -> List[VideoRecord]:
        """Hydrate up to 50 video IDs. Unknown or deleted IDs are simply absent."""
        ids = [video_id for video_id in video_ids if video_id]
        if not ids:
            return []
        if len(ids) > MAX_PAGE_SIZE:
            raise ValueError(f"videos.list accepts at most {MAX_PAGE_SIZE} IDs, got {len(ids)}")
        response = self._call(
            "videos.list",
            "video details batch",
            lambda service: service.videos().list(
                part="snippet,statistics,contentDetails",
                id=",".join(ids),
            ),
        )
        records: List[VideoRecord] = []
        for item in self._items(response, "video details batch"):
            snippet = item.get("snippet") or {}
            statistics = item.get("statistics") or {}
            published_at = parse_rfc3339(snippet.get("publishedAt"))
            if not item.get("id") or published_at is None:
                logger.warning("Skipping video without id or publish time: %s", item.get("id"))
                continue
            records.append(
                VideoRecord(
                    video_id=item["id"],
                    title=snippet.get("title") or "",
                    description=snippet.get("description") or "",
                    published_at=published_at,
                    channel_id=snippet.get("channelId"),
                    channel_title=snippet.get("channelTitle"),
                    duration=(item.get("contentDetails") or {}).get("duration"),
                    views=_safe_int(statistics.get("viewCount")),
                    likes=_safe_int(statistics.get("likeCount")),
                    comments=_safe_int(statistics.get("commentCount")),
                )
            )
        return records

    def search_videos(
        self,
        query: str,
        published_after: datetime,
        page_token: Optional[str] = None,
        page_size: int = MAX_PAGE_SIZE,
    ) -> SearchPage:
        """One page of a date-ordered video search published after ``published_after``."""
        page_size = max(1, min(MAX_PAGE_SIZE, page_size))
        response = self._call(
            "search.list",
            "keyword search",
            lambda service: service.search().list(
                part="snippet",
                q=query,
                type="video",
                order="date",
                maxResults=page_size,
                publishedAfter=format_rfc3339(published_after),
                pageToken=page_token,
            ),
        )
        hits: List[SearchHit] = []
        for item in self._items(response, "keyword search"):
            video_id = (item.get("id") or {}).get("videoId")
            if not video_id:
                continue
            snippet = item.get("snippet") or {}
            hits.append(
                SearchHit(
                    video_id=video_id,
                    title=snippet.get("title") or "",
                    description=snippet.get("description") or "",
                )
            )
        return SearchPage(hits=hits, next_page_token=response.get("nextPageToken") or None)


__all__ = ["YouTubeGateway", "MAX_PAGE_SIZE"]
