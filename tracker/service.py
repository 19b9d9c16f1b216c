"""Boundary façade: each operation returns a plain dict, never raises.

Failures come back as ``{"error": {"kind": ..., "message": ...}}`` so the
transport layer only has to map ``kind`` to a status code.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from config.settings import (
    INSIGHT_MAX_ROWS,
    STORE_PATH,
    YT_FETCH_MAX_NEW,
    YT_REQUEST_QUOTA_BUDGET,
    YT_SEARCH_MAX_PAGES,
    YT_VIDEOS_BATCH,
)
from insight.sample import build_sample
from insight.summarizer import Summarizer
from youtube_api.gateway import YouTubeGateway
from youtube_api.time_utils import parse_rfc3339, utc_now

from .errors import InvalidInputError, TrackerError
from .feed_walker import Backfill, Incremental
from .keyword_search import KeywordSearch, parse_keywords
from .locks import ChannelLocks
from .metrics import channel_metrics
from .models import ChannelState, VideoRecord
from .orchestrator import IngestionOrchestrator
from .quota import QuotaTracker
from .resolver import ChannelResolver
from .store import ChannelStore, JsonFileStore

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 90
MAX_DAYS = 3650

GatewayFactory = Callable[[QuotaTracker], Any]


def _default_gateway_factory(quota: QuotaTracker) -> YouTubeGateway:
    return YouTubeGateway(quota=quota)


def _coerce_since(since: Union[str, datetime, None]) -> Optional[datetime]:
    if since is None or since == "":
        return None
    if isinstance(since, datetime):
        return parse_rfc3339(since.isoformat())
    parsed = parse_rfc3339(str(since))
    if parsed is None:
        raise InvalidInputError(f"invalid 'since' timestamp: {since!r}")
    return parsed


def _coerce_days(days: Any) -> int:
    try:
        value = int(days if days not in (None, "") else DEFAULT_DAYS)
    except (TypeError, ValueError):
        raise InvalidInputError(f"invalid 'days': {days!r}") from None
    if value < 1:
        raise InvalidInputError("'days' must be at least 1")
    if value > MAX_DAYS:
        raise InvalidInputError(f"'days' must be at most {MAX_DAYS}")
    return value


class TrackerService:
    """Entry point for the API layer.

    A fresh ``QuotaTracker`` (and gateway) is built per call; the store and
    per-channel locks are shared across calls.
    """

    def __init__(
        self,
        *,
        store: Optional[ChannelStore] = None,
        gateway_factory: Optional[GatewayFactory] = None,
        summarizer: Optional[Summarizer] = None,
        locks: Optional[ChannelLocks] = None,
        quota_budget: Optional[int] = YT_REQUEST_QUOTA_BUDGET,
        max_records: int = YT_FETCH_MAX_NEW,
        batch_size: int = YT_VIDEOS_BATCH,
        search_max_pages: int = YT_SEARCH_MAX_PAGES,
        insight_max_rows: int = INSIGHT_MAX_ROWS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store or JsonFileStore(STORE_PATH)
        self._gateway_factory = gateway_factory or _default_gateway_factory
        self._summarizer = summarizer
        self._locks = locks or ChannelLocks()
        self._quota_budget = quota_budget
        self._max_records = max_records
        self._batch_size = batch_size
        self._search_max_pages = search_max_pages
        self._insight_max_rows = insight_max_rows
        self._clock = clock

    @property
    def store(self) -> ChannelStore:
        return self._store

    def _summarizer_or_default(self) -> Summarizer:
        if self._summarizer is None:
            self._summarizer = Summarizer()
        return self._summarizer

    def _guard(self, label: str, func: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        try:
            return func()
        except TrackerError as exc:
            logger.warning("[%s] %s: %s", label, exc.kind, exc)
            return {"error": exc.to_dict()}
        except Exception as exc:  # noqa: BLE001
            logger.exception("[%s] unexpected error", label)
            return {"error": {"kind": "internal", "message": str(exc) or exc.__class__.__name__}}

    def _new_gateway(self) -> Any:
        return self._gateway_factory(QuotaTracker(self._quota_budget))

    @staticmethod
    def _quota_summary(gateway: Any) -> Optional[Dict[str, Any]]:
        quota = getattr(gateway, "quota", None)
        return quota.summary() if isinstance(quota, QuotaTracker) else None

    def resolve(self, handle_or_id: Optional[str]) -> Dict[str, Any]:
        """Resolve a handle/ID and return channel meta, refreshing it when older than the TTL."""

        def run() -> Dict[str, Any]:
            gateway = self._new_gateway()
            resolver = ChannelResolver(gateway)
            channel_id = resolver.resolve(handle_or_id)
            with self._locks.hold(channel_id):
                existing = self._store.get_channel(channel_id)
                state = existing or ChannelState()
                cached = state.meta
                meta = resolver.get_meta(state, channel_id, now=self._clock())
                if existing is None or meta is not cached:
                    self._store.commit_channel(channel_id, state)
            return meta.model_dump(mode="json")

        return self._guard("resolve", run)

    def ingest(
        self,
        handle_or_id: Optional[str],
        since: Union[str, datetime, None] = None,
        backfill: bool = False,
    ) -> Dict[str, Any]:
        def run() -> Dict[str, Any]:
            cutoff = _coerce_since(since)
            mode = Backfill(since=cutoff) if backfill else Incremental(since=cutoff)
            gateway = self._new_gateway()
            orchestrator = IngestionOrchestrator(
                gateway,
                self._store,
                locks=self._locks,
                max_records=self._max_records,
                batch_size=self._batch_size,
            )
            result = orchestrator.ingest(handle_or_id or "", mode)
            payload = {"ok": True, **result.to_dict()}
            quota = self._quota_summary(gateway)
            if quota is not None:
                payload["quota"] = quota
            return payload

        return self._guard("ingest", run)

    def channel_metrics(self, handle_or_id: Optional[str], days: Any = DEFAULT_DAYS) -> Dict[str, Any]:
        def run() -> Dict[str, Any]:
            window = _coerce_days(days)
            if not (handle_or_id or "").strip():
                return {"channel_id": None, "by_day": {}, "rows": [], "top": [], "total": 0}
            channel_id = ChannelResolver(self._new_gateway()).resolve(handle_or_id)
            result = channel_metrics(self._store.load(), channel_id, window, now=self._clock())
            return {"channel_id": channel_id, **result.to_dict()}

        return self._guard("metrics-by-handle", run)

    def keyword_metrics(self, query: Union[str, Sequence[str], None], days: Any = DEFAULT_DAYS) -> Dict[str, Any]:
        def run() -> Dict[str, Any]:
            window = _coerce_days(days)
            keywords = parse_keywords(query) if isinstance(query, str) or query is None else list(query)
            gateway = self._new_gateway()
            search = KeywordSearch(gateway, max_pages=self._search_max_pages, batch_size=self._batch_size)
            return search.search_metrics(keywords, window, now=self._clock()).to_dict()

        return self._guard("metrics-by-query", run)

    def insight(
        self,
        rows: Optional[Iterable[Union[VideoRecord, Mapping[str, Any]]]] = None,
        handle_or_id: Optional[str] = None,
        days: Any = DEFAULT_DAYS,
    ) -> Dict[str, Any]:
        """Summarize supplied rows, or the stored channel's rows when none are given."""

        def run() -> Dict[str, Any]:
            window = _coerce_days(days)
            source: List[Union[VideoRecord, Mapping[str, Any]]] = list(rows or [])
            if not source and (handle_or_id or "").strip():
                channel_id = ChannelResolver(self._new_gateway()).resolve(handle_or_id)
                source = list(channel_metrics(self._store.load(), channel_id, window, now=self._clock()).rows)
            if not source:
                raise InvalidInputError("rows data not provided (or cannot load from the store).")
            sample = build_sample(source, self._insight_max_rows)
            summary = self._summarizer_or_default().summarize(sample, window)
            return {
                "text": summary.text,
                "rows_used": len(sample),
                "provider": summary.provider,
                "fallbacks": summary.fallbacks,
            }

        return self._guard("insight", run)


__all__ = ["TrackerService", "DEFAULT_DAYS", "MAX_DAYS"]
